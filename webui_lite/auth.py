"""Credential classification and upstream key resolution."""

import logging

from starlette.requests import Request

from webui_lite.config import Config
from webui_lite.errors import MissingCredential, RateLimitExceeded
from webui_lite.key_selector import KeySelector
from webui_lite.models import AuthResult, CredentialKind
from webui_lite.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

FULL_CALL_WEIGHT = 1.0
AUX_CALL_WEIGHT = 0.1


def extract_credential(request: Request) -> str:
    """Read the caller credential from ``?key=`` or the Authorization header."""
    raw = request.query_params.get("key") or request.headers.get("authorization") or ""
    return raw.replace("Bearer ", "", 1).strip()


class Authorizer:
    """Resolves an inbound credential to a concrete upstream API key.

    Classification, first match wins:

    1. empty credential -> missing (401)
    2. the secret password -> next pool key
    3. the demo password, when configured -> rate limited, then next pool key
    4. anything else -> used verbatim as the upstream key
    """

    def __init__(self, config: Config, selector: KeySelector, limiter: RateLimiter):
        self.config = config
        self.selector = selector
        self.limiter = limiter

    async def authorize(
        self, credential: str, demo_increment: float = FULL_CALL_WEIGHT
    ) -> AuthResult:
        if not credential:
            return AuthResult(
                valid=False,
                error=MissingCredential(
                    "Missing API key. Provide via ?key= parameter or Authorization header"
                ),
            )

        if credential == self.config.secret_password:
            return AuthResult(
                valid=True,
                resolved_key=self.selector.next(self.config.api_keys),
                kind=CredentialKind.SHARED_SECRET,
            )

        if self.config.demo_password and credential == self.config.demo_password:
            result = await self.limiter.check_and_increment(demo_increment)
            if not result.allowed:
                logger.info(
                    "Demo budget exhausted (hour=%s, times=%s)",
                    result.bucket.hour,
                    result.bucket.times,
                )
                return AuthResult(
                    valid=False,
                    kind=CredentialKind.DEMO,
                    error=RateLimitExceeded(result.message),
                )
            return AuthResult(
                valid=True,
                resolved_key=self.selector.next(self.config.api_keys),
                kind=CredentialKind.DEMO,
            )

        return AuthResult(valid=True, resolved_key=credential, kind=CredentialKind.RAW_KEY)
