from webui_lite.config import (
    API_BASE_DEFAULT,
    DEMO_MAX_TIMES_PER_HOUR_DEFAULT,
    MODEL_IDS_DEFAULT,
    SECRET_PASSWORD_DEFAULT,
    ConfigResolver,
    load_config,
    split_list,
)


def test_config_defaults_when_env_empty():
    config = load_config({}, use_dotenv=False)

    assert config.secret_password == SECRET_PASSWORD_DEFAULT
    assert config.secret_password
    assert config.api_keys == ["sk-xxxxx", "sk-yyyyy"]
    assert config.model_ids == MODEL_IDS_DEFAULT
    assert config.api_base == API_BASE_DEFAULT
    assert config.demo_password == ""
    assert config.demo_max_times_per_hour == DEMO_MAX_TIMES_PER_HOUR_DEFAULT
    assert config.tavily_keys == []
    assert config.search_enabled is False
    assert config.log_level == "INFO"
    assert config.port == 8000


def test_config_reads_os_environ(monkeypatch):
    monkeypatch.setenv("SECRET_PASSWORD", "from-env")
    monkeypatch.setenv("API_KEYS", "k1,k2")

    config = load_config(use_dotenv=False)

    assert config.secret_password == "from-env"
    assert config.api_keys == ["k1", "k2"]


def test_config_custom_values():
    config = load_config(
        {
            "SECRET_PASSWORD": "s3cret",
            "API_KEYS": "k1,k2,k3",
            "MODEL_IDS": "gemini-2.5-pro,gemini-2.5-flash:Flash",
            "API_BASE": "https://generativelanguage.googleapis.com/",
            "DEMO_PASSWORD": "demo",
            "DEMO_MAX_TIMES_PER_HOUR": "30",
            "TAVILY_KEYS": "tv1, tv2",
            "TITLE": "Team Chat",
            "LOG_LEVEL": "debug",
            "PORT": "9000",
        },
        use_dotenv=False,
    )

    assert config.secret_password == "s3cret"
    assert config.api_keys == ["k1", "k2", "k3"]
    assert config.model_ids == "gemini-2.5-pro,gemini-2.5-flash:Flash"
    assert config.api_base == "https://generativelanguage.googleapis.com"
    assert config.demo_password == "demo"
    assert config.demo_max_times_per_hour == 30
    assert config.tavily_keys == ["tv1", "tv2"]
    assert config.search_enabled is True
    assert config.title == "Team Chat"
    assert config.log_level == "DEBUG"
    assert config.port == 9000


def test_config_strips_whitespace_and_empty_entries():
    config = load_config({"API_KEYS": " key1 , ,key2 ,"}, use_dotenv=False)

    assert config.api_keys == ["key1", "key2"]


def test_config_unparseable_ceiling_falls_back():
    assert (
        load_config({"DEMO_MAX_TIMES_PER_HOUR": "lots"}, use_dotenv=False)
        .demo_max_times_per_hour
        == 15
    )
    assert (
        load_config({"DEMO_MAX_TIMES_PER_HOUR": "0"}, use_dotenv=False)
        .demo_max_times_per_hour
        == 15
    )


def test_resolver_blank_value_uses_default():
    resolver = ConfigResolver({"API_BASE": "   ", "TITLE": " Chat "})

    assert resolver.resolve("API_BASE") == API_BASE_DEFAULT
    assert resolver.resolve("TITLE") == "Chat"
    assert resolver.resolve("UNKNOWN_SETTING") == ""


def test_split_list():
    assert split_list("a, b,,c ") == ["a", "b", "c"]
    assert split_list("") == []
