import json
from typing import Dict, List, Optional, Tuple, Union

import pytest

from webui_lite.kv_store import KeyValueUnavailable
from webui_lite.rate_limiter import BUCKET_KEY, RateLimiter

HOUR = 3600
START = 490000 * HOUR + 12


class FakeClock:
    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeKeyValueStore:
    def __init__(self):
        self.data: Dict[str, Union[str, bytes]] = {}
        self.sets: List[Tuple[str, str, Optional[int]]] = []
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, key: str) -> Optional[Union[str, bytes]]:
        if self.fail_reads:
            raise KeyValueUnavailable("connection refused")
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        if self.fail_writes:
            return False
        self.data[key] = value
        self.sets.append((key, value, ttl_seconds))
        return True


@pytest.mark.asyncio
async def test_budget_boundary_and_hour_rollover():
    clock = FakeClock()
    limiter = RateLimiter(FakeKeyValueStore(), max_times=15, clock=clock)

    for call in range(15):
        result = await limiter.check_and_increment(1)
        assert result.allowed, f"call {call + 1} should be allowed"

    denied = await limiter.check_and_increment(1)
    assert denied.allowed is False
    assert "15" in denied.message
    assert denied.bucket.times == 15

    clock.now += HOUR
    result = await limiter.check_and_increment(1)
    assert result.allowed is True
    assert result.bucket.times == 1
    assert result.bucket.hour == limiter.current_hour()


@pytest.mark.asyncio
async def test_denied_call_does_not_increment():
    store = FakeKeyValueStore()
    limiter = RateLimiter(store, max_times=1, clock=FakeClock())

    await limiter.check_and_increment(1)
    writes = len(store.sets)
    await limiter.check_and_increment(1)
    await limiter.check_and_increment(1)

    assert len(store.sets) == writes
    assert json.loads(store.data[BUCKET_KEY])["times"] == 1


@pytest.mark.asyncio
async def test_fractional_weights_accumulate():
    limiter = RateLimiter(FakeKeyValueStore(), max_times=1, clock=FakeClock())

    for _ in range(10):
        assert (await limiter.check_and_increment(0.1)).allowed

    result = await limiter.check_and_increment(0.1)
    assert result.allowed is False
    assert result.bucket.times == 1.0


@pytest.mark.asyncio
async def test_bucket_persisted_without_ttl():
    clock = FakeClock()
    store = FakeKeyValueStore()
    limiter = RateLimiter(store, max_times=15, clock=clock)

    await limiter.check_and_increment(1)

    key, value, ttl = store.sets[-1]
    assert key == BUCKET_KEY
    assert ttl is None
    assert json.loads(value) == {
        "hour": int(clock.now // HOUR),
        "times": 1,
        "maxTimes": 15,
    }


@pytest.mark.asyncio
async def test_stale_stored_bucket_is_reset():
    clock = FakeClock()
    store = FakeKeyValueStore()
    store.data[BUCKET_KEY] = json.dumps(
        {"hour": int(clock.now // HOUR) - 1, "times": 15, "maxTimes": 15}
    )
    limiter = RateLimiter(store, max_times=15, clock=clock)

    result = await limiter.check_and_increment(1)

    assert result.allowed is True
    assert result.bucket.times == 1


@pytest.mark.asyncio
async def test_store_shared_between_limiters():
    clock = FakeClock()
    store = FakeKeyValueStore()
    first = RateLimiter(store, max_times=2, clock=clock)
    second = RateLimiter(store, max_times=2, clock=clock)

    assert (await first.check_and_increment(1)).allowed
    assert (await second.check_and_increment(1)).allowed
    assert not (await first.check_and_increment(1)).allowed


@pytest.mark.asyncio
async def test_ceiling_follows_configuration():
    clock = FakeClock()
    store = FakeKeyValueStore()
    store.data[BUCKET_KEY] = json.dumps(
        {"hour": int(clock.now // HOUR), "times": 5, "maxTimes": 5}
    )
    limiter = RateLimiter(store, max_times=10, clock=clock)

    result = await limiter.check_and_increment(1)

    assert result.allowed is True
    assert result.bucket.max_times == 10


@pytest.mark.asyncio
async def test_memory_fallback_without_store():
    clock = FakeClock()
    limiter = RateLimiter(None, max_times=2, clock=clock)

    assert limiter.degraded is True
    assert (await limiter.check_and_increment(1)).allowed
    assert (await limiter.check_and_increment(1)).allowed
    assert not (await limiter.check_and_increment(1)).allowed
    assert limiter.memory.times == 2

    clock.now += HOUR
    assert (await limiter.check_and_increment(1)).allowed
    assert limiter.memory.times == 1


@pytest.mark.asyncio
async def test_read_failure_uses_memory_bucket():
    store = FakeKeyValueStore()
    store.fail_reads = True
    limiter = RateLimiter(store, max_times=1, clock=FakeClock())

    assert limiter.degraded is False
    assert (await limiter.check_and_increment(1)).allowed
    assert not (await limiter.check_and_increment(1)).allowed
    assert store.sets == []


@pytest.mark.asyncio
async def test_write_failure_still_allows():
    store = FakeKeyValueStore()
    store.fail_writes = True
    limiter = RateLimiter(store, max_times=1, clock=FakeClock())

    result = await limiter.check_and_increment(1)

    assert result.allowed is True
    assert BUCKET_KEY not in store.data
