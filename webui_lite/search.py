"""Search assist: turn a chat question into web search results."""

import logging
import re
from datetime import date
from typing import Optional

import httpx
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from webui_lite.auth import AUX_CALL_WEIGHT, extract_credential
from webui_lite.errors import BadRequestBody, FeatureDisabled, UpstreamUnavailable
from webui_lite.proxy import read_json_body, stream_upstream
from webui_lite.state import ProxyState
from webui_lite.upstream import chat_completion

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
MAX_RESULTS = 20
NO_SEARCH_MARKER = "NO_SEARCH"

EXCLUDE_DOMAINS = [
    "pinterest.com",
    "facebook.com",
    "instagram.com",
    "tiktok.com",
    "douyin.com",
    "csdn.net",
]

KEYWORD_PROMPT = """You are a search keyword extractor. Today is {today}.

Decide whether the user's message needs a web search to be answered well.
- If it does not (greetings, small talk, pure creative writing, math, code
  with no external facts), reply with exactly `{marker}`.
- Otherwise reply with one short search query, at most 8 words, in the
  language best suited to finding the answer, wrapped in single backticks,
  for example `python 3.13 release date`.

Reply with nothing else."""

_BACKTICK_SPAN = re.compile(r"`([^`]+)`")


def build_keyword_messages(query: str, today: Optional[date] = None):
    prompt = KEYWORD_PROMPT.format(
        today=(today or date.today()).isoformat(), marker=NO_SEARCH_MARKER
    )
    return [
        {"role": "system", "content": prompt},
        {"role": "user", "content": query},
    ]


def parse_keywords(content: str) -> str:
    """Return the first backtick-quoted span, or the trimmed content."""
    match = _BACKTICK_SPAN.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()


async def search(request: Request, state: ProxyState) -> Response:
    config = state.config
    body = await read_json_body(request)
    query = body.get("query")
    if not isinstance(query, str) or not query.strip():
        raise BadRequestBody("Missing query")

    if not config.search_enabled:
        raise FeatureDisabled("Search is not enabled on this server")

    auth = await state.authorizer.authorize(
        extract_credential(request), demo_increment=AUX_CALL_WEIGHT
    )
    if auth.error is not None:
        raise auth.error

    content = await chat_completion(
        state.http_client,
        config,
        auth.resolved_key,
        build_keyword_messages(query),
        temperature=0,
    )
    keywords = parse_keywords(content)
    if not keywords or NO_SEARCH_MARKER in keywords:
        logger.debug("Query classified as non-search")
        return JSONResponse(content={"results": []})

    logger.info("Searching for %r", keywords)
    tavily_key = state.key_selector.random(config.tavily_keys)
    upstream_request = state.http_client.build_request(
        "POST",
        TAVILY_SEARCH_URL,
        json={
            "query": keywords,
            "max_results": MAX_RESULTS,
            "exclude_domains": EXCLUDE_DOMAINS,
        },
        headers={"Authorization": f"Bearer {tavily_key}"},
    )
    try:
        return await stream_upstream(state.http_client, upstream_request)
    except httpx.RequestError as exc:
        logger.error("Search provider request failed: %s", exc)
        raise UpstreamUnavailable("Search request failed") from exc
