"""Helpers for talking to the upstream completion API."""

import logging
from typing import Dict, List, Optional, cast
from urllib.parse import urlsplit, urlunsplit

import httpx

from webui_lite.config import Config, split_list
from webui_lite.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

GEMINI_HOSTS = frozenset({"generativelanguage.googleapis.com"})

GEMINI_PATH_PREFIXES = (
    ("/v1/chat", "/v1beta/openai/chat"),
    ("/v1/models", "/v1beta/openai/models"),
)

LITE_MODEL_TOKENS = ("-mini", "-nano", "-lite", "-flash")
LITE_MODEL_DEFAULT = "gpt-5-mini"

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


def replace_api_url(url: str) -> str:
    """Adapt OpenAI-style paths to the host's conventions.

    Gemini's OpenAI-compatible surface lives under ``/v1beta/openai``; every
    other host is returned unchanged.
    """
    parts = urlsplit(url)
    if (parts.hostname or "").lower() not in GEMINI_HOSTS:
        return url

    path = parts.path
    for prefix, replacement in GEMINI_PATH_PREFIXES:
        if path == prefix or path.startswith(prefix + "/"):
            path = replacement + path[len(prefix) :]
            break
    return urlunsplit(parts._replace(path=path))


def get_lite_model_id(model_ids: str) -> str:
    """Pick a small, fast model from a MODEL_IDS value for auxiliary calls."""
    ids = [entry.split(":", 1)[0].strip() for entry in split_list(model_ids)]
    ids = [model_id for model_id in ids if model_id]
    if not ids:
        return LITE_MODEL_DEFAULT

    for token in LITE_MODEL_TOKENS:
        for model_id in ids:
            lowered = model_id.lower()
            if lowered.endswith(token) or f"{token}-" in lowered:
                return model_id
    return ids[0]


def chat_completions_url(config: Config) -> str:
    return replace_api_url(f"{config.api_base}{CHAT_COMPLETIONS_PATH}")


async def chat_completion(
    http_client: httpx.AsyncClient,
    config: Config,
    api_key: str,
    messages: List[Dict[str, str]],
    model: Optional[str] = None,
    **params: object,
) -> str:
    """Run one non-streaming completion and return the assistant's text."""
    payload: Dict[str, object] = {
        "model": model or get_lite_model_id(config.model_ids),
        "messages": messages,
        "stream": False,
        **params,
    }
    try:
        response = await http_client.post(
            chat_completions_url(config),
            json=payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )
    except httpx.RequestError as exc:
        logger.error("Upstream completion failed: %s", exc)
        raise UpstreamUnavailable("Upstream request failed") from exc

    if response.status_code >= 400:
        logger.warning(
            "Upstream completion returned %s: %s",
            response.status_code,
            response.text[:200],
        )
        raise UpstreamUnavailable(
            f"Upstream request failed with status {response.status_code}"
        )

    try:
        data = cast(Dict[str, object], response.json())
        choices = cast(List[Dict[str, object]], data["choices"])
        message = cast(Dict[str, object], choices[0]["message"])
        return str(message.get("content") or "")
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise UpstreamUnavailable("Malformed upstream completion response") from exc
