"""Rolling-hour rate limiter for the demo password."""

import logging
import time
from typing import Callable, Optional

from webui_lite.kv_store import KeyValueStore, KeyValueUnavailable
from webui_lite.models import RateLimitBucket, RateLimitResult

logger = logging.getLogger(__name__)

BUCKET_KEY = "demo_memory"


class RateLimiter:
    """Hourly demo budget kept in the KV store, or in process memory.

    Without a bound store each process enforces its own budget (degraded
    mode). The read-modify-write against the store is not atomic: requests
    landing in the same tick can both read the old count.
    """

    def __init__(
        self,
        kv_store: Optional[KeyValueStore],
        max_times: float,
        clock: Callable[[], float] = time.time,
    ):
        self.kv_store = kv_store
        self.max_times = max_times
        self._clock = clock
        self.memory = RateLimitBucket(hour=0, times=0, max_times=max_times)

        if kv_store is None:
            logger.warning(
                "No KV store bound; demo rate limit is enforced per process"
            )

    @property
    def degraded(self) -> bool:
        return self.kv_store is None

    def current_hour(self) -> int:
        return int(self._clock() // 3600)

    async def check_and_increment(self, weight: float = 1.0) -> RateLimitResult:
        hour = self.current_hour()
        bucket, persistent = await self._load(hour)
        bucket.max_times = self.max_times

        if bucket.exhausted:
            return RateLimitResult(
                allowed=False,
                message=(
                    "Exceeded maximum API calls for this hour "
                    f"(limit: {_format_number(bucket.max_times)})"
                ),
                bucket=bucket,
            )

        # round away float drift so fractional weights add up exactly
        bucket.times = round(bucket.times + weight, 6)

        if persistent and self.kv_store is not None:
            stored = await self.kv_store.set(BUCKET_KEY, bucket.to_json())
            if not stored:
                logger.warning("Demo bucket not persisted (hour=%s)", hour)

        return RateLimitResult(allowed=True, message="ok", bucket=bucket)

    async def _load(self, hour: int):
        """Return the bucket for ``hour`` and whether it is backed by the store."""
        if self.kv_store is not None:
            try:
                raw = await self.kv_store.get(BUCKET_KEY)
            except KeyValueUnavailable as exc:
                logger.warning("KV read failed, using in-memory bucket: %s", exc)
            else:
                bucket = RateLimitBucket.from_json(raw) if raw else None
                if bucket is None or bucket.hour != hour:
                    bucket = RateLimitBucket(hour=hour, max_times=self.max_times)
                return bucket, True

        if self.memory.hour != hour:
            self.memory = RateLimitBucket(hour=hour, max_times=self.max_times)
        return self.memory, False


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
