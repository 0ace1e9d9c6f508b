import json
import logging
from typing import AsyncIterator, Dict, Optional, cast
from urllib.parse import quote, unquote_plus

import httpx
from starlette.requests import Request
from starlette.responses import StreamingResponse

from webui_lite.auth import FULL_CALL_WEIGHT, Authorizer, extract_credential
from webui_lite.config import Config
from webui_lite.errors import BadRequestBody, UpstreamUnavailable
from webui_lite.upstream import replace_api_url

logger = logging.getLogger(__name__)

FORWARDED_HEADERS = ("content-type", "accept", "accept-encoding", "user-agent")

# Dropped from the upstream response: they describe the upstream connection
# or framing, which starlette re-derives for the downstream stream.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "transfer-encoding",
        "te",
        "trailer",
        "upgrade",
        "proxy-authorization",
        "proxy-authenticate",
        "content-length",
    }
)

BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def _prepare_headers(request_headers: Dict[str, str], api_key: str) -> Dict[str, str]:
    """Copy the allow-listed headers and set the upstream bearer key."""
    lowered = {k.lower(): v for k, v in request_headers.items()}
    headers = {name: lowered[name] for name in FORWARDED_HEADERS if lowered.get(name)}
    headers["authorization"] = f"Bearer {api_key}"
    return headers


def _substitute_key_in_query(query_string: str, password: str, api_key: str) -> str:
    """Replace a ``key=<password>`` parameter with the resolved upstream key.

    Every other parameter is kept byte for byte.
    """
    if not query_string:
        return ""
    pairs = []
    for pair in query_string.split("&"):
        name, sep, value = pair.partition("=")
        if name == "key" and sep and unquote_plus(value) == password:
            pair = f"key={quote(api_key, safe='')}"
        pairs.append(pair)
    return "&".join(pairs)


async def read_json_body(request: Request) -> Dict[str, object]:
    """Parse a JSON object body, raising BadRequestBody on anything else."""
    try:
        data = json.loads(await request.body())
    except ValueError as exc:
        raise BadRequestBody("Invalid JSON body") from exc
    if not isinstance(data, dict):
        raise BadRequestBody("JSON body must be an object")
    return cast(Dict[str, object], data)


def build_target_url(api_base: str, path: str, query_string: str) -> str:
    url = f"{api_base}{path}"
    if query_string:
        url = f"{url}?{query_string}"
    return replace_api_url(url)


def _response_headers(response: httpx.Response) -> Dict[str, str]:
    return {
        k: v
        for k, v in response.headers.items()
        if k.lower() not in HOP_BY_HOP_HEADERS
    }


async def stream_upstream(
    http_client: httpx.AsyncClient, upstream_request: httpx.Request
) -> StreamingResponse:
    """Send a request and relay status, headers and body without buffering.

    The upstream response is closed when the body is exhausted or when the
    downstream client goes away and the generator is cancelled.
    """
    response = await http_client.send(upstream_request, stream=True)

    async def body() -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_raw():
                if chunk:
                    yield chunk
        finally:
            await response.aclose()

    return StreamingResponse(
        body(),
        status_code=response.status_code,
        headers=_response_headers(response),
    )


async def proxy_request(
    request: Request,
    authorizer: Authorizer,
    http_client: httpx.AsyncClient,
    config: Config,
) -> StreamingResponse:
    """
    Forward a ``/v1`` request to the upstream API.

    Flow:
    1. Resolve the caller credential to an upstream key (may raise via AuthResult.error)
    2. Swap a shared password in ``?key=`` for the resolved key
    3. Build the target URL and apply host-specific path rewrites
    4. Forward method, allow-listed headers and the body stream
    5. Relay the upstream response unmodified; network failures become 502
    """
    credential = extract_credential(request)
    auth = await authorizer.authorize(credential, demo_increment=FULL_CALL_WEIGHT)
    if auth.error is not None:
        raise auth.error

    query_string = request.url.query
    if auth.via_shared_password:
        query_string = _substitute_key_in_query(
            query_string, credential, auth.resolved_key
        )

    target_url = build_target_url(config.api_base, request.url.path, query_string)
    headers = _prepare_headers(dict(request.headers), auth.resolved_key)

    content: Optional[AsyncIterator[bytes]] = None
    if request.method.upper() not in BODYLESS_METHODS:
        content = request.stream()

    try:
        upstream_request = http_client.build_request(
            method=request.method,
            url=target_url,
            headers=headers,
            content=content,
        )
        # Drop httpx default headers the caller did not send.
        for name in FORWARDED_HEADERS:
            if name not in headers:
                upstream_request.headers.pop(name, None)
        return await stream_upstream(http_client, upstream_request)
    except (httpx.RequestError, httpx.InvalidURL) as exc:
        logger.error(
            "Proxy request failed (%s %s): %s", request.method, request.url.path, exc
        )
        raise UpstreamUnavailable("Proxy request failed") from exc
