"""Session titling for shared-password users."""

import logging
from typing import Dict, List

from starlette.requests import Request
from starlette.responses import JSONResponse

from webui_lite.auth import AUX_CALL_WEIGHT, extract_credential
from webui_lite.errors import BadRequestBody, InvalidCredentialForEndpoint
from webui_lite.proxy import read_json_body
from webui_lite.state import ProxyState
from webui_lite.upstream import chat_completion

logger = logging.getLogger(__name__)

EXCERPT_LIMIT = 300
EXCERPT_EDGE = 150
EXCERPT_JOINER = "......"
SUMMARY_MAX_TOKENS = 300

SUMMARY_PROMPT = (
    "Write a short title that captures the topic of the exchange above, "
    "at most 12 words. No preamble, explanation or formatting. Punctuation "
    "inside the title is fine, but do not end with a punctuation mark."
)

TRAILING_PUNCTUATION = "。！？.!?"


def excerpt(text: str) -> str:
    """Keep the head and tail of long text to bound the prompt size."""
    if len(text) <= EXCERPT_LIMIT:
        return text
    return text[:EXCERPT_EDGE] + EXCERPT_JOINER + text[-EXCERPT_EDGE:]


def build_summary_messages(question: str, answer: str) -> List[Dict[str, str]]:
    return [
        {"role": "user", "content": excerpt(question)},
        {"role": "assistant", "content": excerpt(answer)},
        {"role": "user", "content": SUMMARY_PROMPT},
    ]


async def summarize(request: Request, state: ProxyState) -> JSONResponse:
    body = await read_json_body(request)
    question = body.get("question")
    answer = body.get("answer")
    if not isinstance(question, str) or not question:
        raise BadRequestBody("Missing question")
    if not isinstance(answer, str) or not answer:
        raise BadRequestBody("Missing answer")

    auth = await state.authorizer.authorize(
        extract_credential(request), demo_increment=AUX_CALL_WEIGHT
    )
    if auth.error is not None:
        raise auth.error
    if not auth.via_shared_password:
        raise InvalidCredentialForEndpoint(
            "Summaries are only available with the shared password"
        )

    summary = await chat_completion(
        state.http_client,
        state.config,
        auth.resolved_key,
        build_summary_messages(question, answer),
        temperature=0.7,
        max_tokens=SUMMARY_MAX_TOKENS,
    )
    summary = summary.strip().rstrip(TRAILING_PUNCTUATION)
    logger.debug("Generated summary %r", summary)
    return JSONResponse(content={"success": True, "summary": summary})
