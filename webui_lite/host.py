"""Hosting glue: environment, KV binding and the server loop."""

import os
import platform
from typing import Dict, Mapping, Optional, Protocol

import uvicorn
from dotenv import load_dotenv

from webui_lite.config import ConfigResolver
from webui_lite.kv_store import KeyValueStore, build_kv_store


class HostAdapter(Protocol):
    @property
    def environ(self) -> Mapping[str, str]: ...

    def get_env(self, name: str) -> str: ...

    def kv_binding(self) -> Optional[KeyValueStore]: ...

    def describe(self) -> Dict[str, object]: ...

    def serve(self, app: object, host: str, port: int, log_level: str) -> None: ...


class ProcessHost:
    """A plain long-running Python process served by uvicorn."""

    server_type = "PYTHON"

    def __init__(self, use_dotenv: bool = True):
        if use_dotenv:
            load_dotenv()

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ

    def get_env(self, name: str) -> str:
        return os.environ.get(name, "")

    def kv_binding(self) -> Optional[KeyValueStore]:
        return build_kv_store(ConfigResolver(self.environ).resolve("REDIS_URL"))

    def describe(self) -> Dict[str, object]:
        return {
            "serverType": self.server_type,
            "serverInfo": {
                "python": platform.python_version(),
                "os": platform.system().lower(),
                "arch": platform.machine(),
                "implementation": platform.python_implementation(),
            },
        }

    def serve(self, app: object, host: str, port: int, log_level: str) -> None:
        uvicorn.run(app, host=host, port=port, log_level=log_level.lower())
