"""Data models for credential resolution and rate limiting."""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from webui_lite.errors import ProxyError


class CredentialKind(str, Enum):
    SHARED_SECRET = "shared_secret"
    DEMO = "demo"
    RAW_KEY = "raw_key"


@dataclass
class RateLimitBucket:
    """The demo counter for one hour window."""

    hour: int
    times: float = 0
    max_times: float = 15

    @property
    def exhausted(self) -> bool:
        return self.times >= self.max_times

    def to_json(self) -> str:
        return json.dumps(
            {"hour": self.hour, "times": self.times, "maxTimes": self.max_times}
        )

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> Optional["RateLimitBucket"]:
        """Parse a stored bucket, returning None for anything malformed."""
        try:
            data = json.loads(raw)
            return cls(
                hour=int(data["hour"]),
                times=float(data["times"]),
                max_times=float(data["maxTimes"]),
            )
        except (KeyError, TypeError, ValueError):
            return None


@dataclass
class RateLimitResult:
    allowed: bool
    message: str
    bucket: RateLimitBucket


@dataclass
class AuthResult:
    """Outcome of classifying and resolving an inbound credential."""

    valid: bool
    resolved_key: str = ""
    kind: Optional[CredentialKind] = None
    error: Optional[ProxyError] = None

    @property
    def via_shared_password(self) -> bool:
        return self.kind in (CredentialKind.SHARED_SECRET, CredentialKind.DEMO)
