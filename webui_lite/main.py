"""FastAPI application for the WebUI Lite proxy."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from starlette.responses import HTMLResponse, JSONResponse, Response

from webui_lite.assets import (
    ASSET_CACHE_CONTROL,
    FAVICON_SVG,
    HTML_CACHE_CONTROL,
    render_index,
    render_manifest,
)
from webui_lite.config import load_config
from webui_lite.errors import BadRequestBody, ProxyError
from webui_lite.host import HostAdapter, ProcessHost
from webui_lite.proxy import proxy_request
from webui_lite.search import search
from webui_lite.state import ProxyState, build_state
from webui_lite.summarize import summarize

logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def _host(app: FastAPI) -> HostAdapter:
    host = getattr(app.state, "host", None)
    if host is None:
        host = ProcessHost()
        app.state.host = host
    return host


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle: startup and shutdown."""
    host = _host(app)
    config = load_config(host.environ)

    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))

    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(None, connect=10.0),
        limits=httpx.Limits(max_keepalive_connections=20, max_connections=100),
        follow_redirects=True,
    )
    state = build_state(config, http_client, host.kv_binding())
    app.state.proxy = state

    logger.info(
        "WebUI Lite proxy started (upstream=%s, keys=%d, demo=%s, kv=%s)",
        config.api_base,
        len(config.api_keys),
        "on" if config.demo_password else "off",
        "memory" if state.rate_limiter.degraded else "redis",
    )

    yield

    await state.http_client.aclose()
    close = getattr(state.kv_store, "aclose", None)
    if close is not None:
        await close()
    logger.info("WebUI Lite proxy stopped")


app = FastAPI(title="WebUI Lite Proxy", lifespan=lifespan)


def _state(request: Request) -> ProxyState:
    return request.app.state.proxy


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s", request.method, request.url.path, exc.status_code)
    return exc.to_response()


@app.get("/")
@app.get("/index.html")
async def index(request: Request) -> HTMLResponse:
    return HTMLResponse(
        render_index(_state(request).config),
        headers={"Cache-Control": HTML_CACHE_CONTROL},
    )


@app.get("/favicon.svg")
async def favicon() -> Response:
    return Response(
        FAVICON_SVG,
        media_type="image/svg+xml",
        headers={"Cache-Control": ASSET_CACHE_CONTROL},
    )


@app.get("/manifest.json")
@app.get("/site.webmanifest")
async def manifest(request: Request) -> Response:
    return Response(
        render_manifest(_state(request).config),
        media_type="application/manifest+json",
        headers={"Cache-Control": ASSET_CACHE_CONTROL},
    )


@app.api_route("/whoami", methods=ALL_METHODS)
async def whoami(request: Request) -> JSONResponse:
    """Echo the inbound request for debugging."""
    return JSONResponse(
        content={
            **_host(request.app).describe(),
            "url": str(request.url),
            "headers": dict(request.headers),
            "method": request.method,
        }
    )


@app.post("/search")
async def search_endpoint(request: Request) -> Response:
    return await search(request, _state(request))


@app.post("/summarize")
async def summarize_endpoint(request: Request) -> Response:
    return await summarize(request, _state(request))


@app.api_route("/{path:path}", methods=ALL_METHODS)
async def proxy_endpoint(request: Request, path: str) -> Response:
    """Catch-all route: ``/v1`` paths are forwarded upstream."""
    api_path = request.url.path
    if not api_path.startswith("/v1"):
        raise BadRequestBody(f"{api_path} Invalid API path. Must start with /v1")

    state = _state(request)
    return await proxy_request(
        request=request,
        authorizer=state.authorizer,
        http_client=state.http_client,
        config=state.config,
    )
