"""End-to-end tests with a real upstream API."""

import os

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from webui_lite.config import load_config
from webui_lite.main import app as main_app
from webui_lite.state import build_state

UPSTREAM_TEST_KEY = os.getenv("UPSTREAM_TEST_KEY", "")
UPSTREAM_TEST_BASE = os.getenv("UPSTREAM_TEST_BASE", "https://api.openai.com")
UPSTREAM_TEST_MODEL = os.getenv("UPSTREAM_TEST_MODEL", "gpt-5-mini")


@pytest.mark.e2e
@pytest.mark.asyncio
@pytest.mark.skipif(not UPSTREAM_TEST_KEY, reason="UPSTREAM_TEST_KEY not set")
async def test_e2e_proxy_real_upstream():
    """Smoke test: proxy a real completion through the shared password."""
    config = load_config(
        {
            "SECRET_PASSWORD": "e2e-password",
            "API_KEYS": UPSTREAM_TEST_KEY,
            "API_BASE": UPSTREAM_TEST_BASE,
            "MODEL_IDS": UPSTREAM_TEST_MODEL,
        },
        use_dotenv=False,
    )
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(None, connect=10.0), follow_redirects=True
    )
    main_app.state.proxy = build_state(config, http_client)

    try:
        async with AsyncClient(
            transport=ASGITransport(app=main_app), base_url="http://test"
        ) as client:
            response = await client.post(
                "/v1/chat/completions",
                json={
                    "model": UPSTREAM_TEST_MODEL,
                    "messages": [{"role": "user", "content": "Say hello in one word"}],
                },
                headers={"Authorization": "Bearer e2e-password"},
                timeout=60.0,
            )

            assert response.status_code == 200
            data = response.json()
            assert data["choices"][0]["message"]["content"]
    finally:
        await http_client.aclose()

        if hasattr(main_app.state, "proxy"):
            del main_app.state.proxy
