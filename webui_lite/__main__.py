from webui_lite.config import load_config
from webui_lite.host import ProcessHost
from webui_lite.main import app


def main() -> None:
    host = ProcessHost()
    config = load_config(host.environ)
    app.state.host = host
    host.serve(app, config.host, config.port, config.log_level)


if __name__ == "__main__":
    main()
