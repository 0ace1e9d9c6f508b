"""Process-wide state shared by every request."""

from dataclasses import dataclass
from typing import Optional

import httpx

from webui_lite.auth import Authorizer
from webui_lite.config import Config
from webui_lite.key_selector import KeySelector
from webui_lite.kv_store import KeyValueStore
from webui_lite.rate_limiter import RateLimiter


@dataclass
class ProxyState:
    config: Config
    key_selector: KeySelector
    rate_limiter: RateLimiter
    authorizer: Authorizer
    http_client: httpx.AsyncClient
    kv_store: Optional[KeyValueStore] = None


def build_state(
    config: Config,
    http_client: httpx.AsyncClient,
    kv_store: Optional[KeyValueStore] = None,
) -> ProxyState:
    """Wire the selector, limiter and authorizer around one config."""
    key_selector = KeySelector()
    rate_limiter = RateLimiter(kv_store, max_times=config.demo_max_times_per_hour)
    authorizer = Authorizer(config, key_selector, rate_limiter)
    return ProxyState(
        config=config,
        key_selector=key_selector,
        rate_limiter=rate_limiter,
        authorizer=authorizer,
        http_client=http_client,
        kv_store=kv_store,
    )
