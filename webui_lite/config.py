"""Configuration management for the WebUI Lite proxy."""

import logging
import os
import secrets
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

SECRET_PASSWORD_DEFAULT = f"webui.{secrets.token_hex(4)}"
API_KEYS_DEFAULT = "sk-xxxxx,sk-yyyyy"
MODEL_IDS_DEFAULT = "gpt-5-pro,gpt-5,gpt-5-mini"
API_BASE_DEFAULT = "https://api.openai.com"
DEMO_PASSWORD_DEFAULT = ""
DEMO_MAX_TIMES_PER_HOUR_DEFAULT = 15
TITLE_DEFAULT = "OpenAI Chat"

DEFAULTS: Dict[str, str] = {
    "SECRET_PASSWORD": SECRET_PASSWORD_DEFAULT,
    "API_KEYS": API_KEYS_DEFAULT,
    "MODEL_IDS": MODEL_IDS_DEFAULT,
    "API_BASE": API_BASE_DEFAULT,
    "DEMO_PASSWORD": DEMO_PASSWORD_DEFAULT,
    "DEMO_MAX_TIMES_PER_HOUR": str(DEMO_MAX_TIMES_PER_HOUR_DEFAULT),
    "TAVILY_KEYS": "",
    "TITLE": TITLE_DEFAULT,
    "REDIS_URL": "",
    "LOG_LEVEL": "INFO",
    "HOST": "0.0.0.0",
    "PORT": "8000",
}


def split_list(raw: str) -> List[str]:
    """Split a comma-separated value, trimming entries and dropping empty ones."""
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


class ConfigResolver:
    """Reads configuration values from a host environment map.

    A value that is missing or blank in the environment resolves to the
    compiled-in default. Resolution never raises.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ: Mapping[str, str] = environ if environ is not None else {}

    def resolve(self, name: str) -> str:
        value = self._environ.get(name)
        if value is not None and value.strip():
            return value.strip()
        return DEFAULTS.get(name, "")

    def resolve_number(self, name: str, default: float) -> float:
        raw = self.resolve(name)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring unparseable %s=%r", name, raw)
            return default
        if value <= 0:
            return default
        return value


@dataclass
class Config:
    """Deployment configuration for one proxy process."""

    secret_password: str = SECRET_PASSWORD_DEFAULT
    api_keys: List[str] = field(default_factory=lambda: split_list(API_KEYS_DEFAULT))
    model_ids: str = MODEL_IDS_DEFAULT
    api_base: str = API_BASE_DEFAULT
    demo_password: str = DEMO_PASSWORD_DEFAULT
    demo_max_times_per_hour: float = DEMO_MAX_TIMES_PER_HOUR_DEFAULT
    tavily_keys: List[str] = field(default_factory=list)
    title: str = TITLE_DEFAULT
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def search_enabled(self) -> bool:
        return bool(self.tavily_keys)


def load_config(
    environ: Optional[Mapping[str, str]] = None, use_dotenv: bool = True
) -> Config:
    """Load configuration from the host environment.

    Args:
        environ: Environment map supplied by the host. Defaults to ``os.environ``.
        use_dotenv: Load a ``.env`` file into ``os.environ`` first. Ignored
            when an explicit ``environ`` is given.

    Returns:
        Config: Configured application settings
    """
    if environ is None:
        if use_dotenv:
            load_dotenv()
        environ = os.environ

    resolver = ConfigResolver(environ)

    port = int(resolver.resolve_number("PORT", 8000))

    return Config(
        secret_password=resolver.resolve("SECRET_PASSWORD"),
        api_keys=split_list(resolver.resolve("API_KEYS")),
        model_ids=resolver.resolve("MODEL_IDS"),
        api_base=resolver.resolve("API_BASE").rstrip("/"),
        demo_password=resolver.resolve("DEMO_PASSWORD"),
        demo_max_times_per_hour=resolver.resolve_number(
            "DEMO_MAX_TIMES_PER_HOUR", DEMO_MAX_TIMES_PER_HOUR_DEFAULT
        ),
        tavily_keys=split_list(resolver.resolve("TAVILY_KEYS")),
        title=resolver.resolve("TITLE"),
        log_level=resolver.resolve("LOG_LEVEL").upper(),
        host=resolver.resolve("HOST"),
        port=port,
    )
