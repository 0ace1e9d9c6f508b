"""Upstream key selection."""

import random
from typing import Sequence

from webui_lite.errors import EmptyKeyPool


class KeySelector:
    """Round-robin and random selection over key pools.

    The cursor is shared by every pool passed to ``next`` and lives as long
    as the selector. It is advanced without a lock, so two concurrent
    requests may occasionally be dealt the same key.
    """

    def __init__(self) -> None:
        self.cursor: int = 0

    def next(self, pool: Sequence[str]) -> str:
        if not pool:
            raise EmptyKeyPool("API key list is empty")
        key = pool[self.cursor % len(pool)]
        self.cursor = (self.cursor + 1) % len(pool)
        return key

    def random(self, pool: Sequence[str]) -> str:
        if not pool:
            raise EmptyKeyPool("API key list is empty")
        return random.choice(pool)
