"""HTTP clients for the generative-AI service and for our own proxy in front of it."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from curator.constants import (
    AI_UNAVAILABLE_TEXT,
    GEMINI_API_BASE,
    GEMINI_HTTP_CONNECT_TIMEOUT,
    GEMINI_HTTP_POOL_TIMEOUT,
    GEMINI_HTTP_READ_TIMEOUT,
    GEMINI_HTTP_WRITE_TIMEOUT,
    GEMINI_MODEL,
)
from curator.llm_utils import build_payload, extract_text

logger = logging.getLogger(__name__)


class GeminiError(RuntimeError):
    """Raised when the upstream service answers with a non-success status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Gemini API error {status_code}")
        self.status_code = status_code
        self.body = body


def _timeout() -> httpx.Timeout:
    return httpx.Timeout(
        connect=GEMINI_HTTP_CONNECT_TIMEOUT,
        read=GEMINI_HTTP_READ_TIMEOUT,
        write=GEMINI_HTTP_WRITE_TIMEOUT,
        pool=GEMINI_HTTP_POOL_TIMEOUT,
    )


def generate_content_url(model: str = GEMINI_MODEL) -> str:
    return f"{GEMINI_API_BASE}/{model}:generateContent"


class GeminiClient:
    """Single-attempt generateContent calls. No retries."""

    def __init__(
        self,
        api_key: str,
        model: str = GEMINI_MODEL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._client = client

    async def generate(self, prompt: str) -> Any:
        """Return the upstream JSON body; raise GeminiError on non-2xx."""
        if self._client is not None:
            return await self._post(self._client, prompt)
        async with httpx.AsyncClient(timeout=_timeout()) as client:
            return await self._post(client, prompt)

    async def _post(self, client: httpx.AsyncClient, prompt: str) -> Any:
        resp = await client.post(
            generate_content_url(self.model),
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
            json=build_payload(prompt),
        )
        if not resp.is_success:
            raise GeminiError(resp.status_code, resp.text)
        return resp.json()


async def ask_proxy(prompt: str, proxy_url: str) -> str:
    """Send a prompt through the rate-limited proxy and return the generated text."""
    try:
        async with httpx.AsyncClient(timeout=_timeout()) as client:
            resp = await client.post(proxy_url, json={"prompt": prompt})
        if not resp.is_success:
            logger.warning(f"AI proxy returned {resp.status_code}")
            return AI_UNAVAILABLE_TEXT
        return extract_text(resp.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"AI proxy call failed: {e}")
        return AI_UNAVAILABLE_TEXT
