"""Error taxonomy and the uniform JSON error envelope."""

from datetime import datetime, timezone

from starlette.responses import JSONResponse


class ProxyError(Exception):
    """A request-level failure that maps onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> JSONResponse:
        return error_response(self.message, self.status_code)


class MissingCredential(ProxyError):
    status_code = 401


class RateLimitExceeded(ProxyError):
    status_code = 429


class InvalidCredentialForEndpoint(ProxyError):
    status_code = 403


class BadRequestBody(ProxyError):
    status_code = 400


class FeatureDisabled(ProxyError):
    status_code = 404


class UpstreamUnavailable(ProxyError):
    status_code = 502


class EmptyKeyPool(RuntimeError):
    """Raised when a key pool has no entries; a deployment error."""


def utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        content={"error": message, "timestamp": utc_timestamp()},
        status_code=status_code,
    )
