from __future__ import annotations

from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, StrictStr, ValidationError

from curator.config import load_settings
from curator.constants import PROMPT_MAX_CHARS
from curator.gemini import GeminiClient, GeminiError
from curator.logging_config import configure_logging, get_logger
from curator.rate_limit import RateLimiter, client_key

logger = get_logger(__name__)


class PromptRequest(BaseModel):
    prompt: StrictStr


def _error(message: str, status_code: int, headers: Optional[dict[str, str]] = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


def create_app(limiter: Optional[RateLimiter] = None) -> FastAPI:
    """Build the API. The rate limiter is owned by the app and shared by all requests."""
    app = FastAPI(title="News Curator API")
    app.state.limiter = limiter or RateLimiter()

    # Enable CORS for the reader frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Remaining", "X-RateLimit-Reset"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/api/gemini")
    async def gemini_proxy(request: Request) -> JSONResponse:
        try:
            return await _handle_prompt(request)
        except Exception:
            # Never leak internal detail to the caller
            logger.exception("gemini_proxy_failed")
            return _error("Internal server error", 500)

    return app


async def _handle_prompt(request: Request) -> JSONResponse:
    limiter: RateLimiter = request.app.state.limiter
    key = client_key(request.headers)
    decision = limiter.check(key)
    if not decision.allowed:
        logger.info("rate_limited", client=key)
        return _error(
            "Too many requests. Please try again later.",
            429,
            headers={
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(decision.reset_at * 1000)),
            },
        )

    settings = load_settings()
    if not settings.gemini_api_key:
        logger.error("gemini_api_key_missing")
        return _error("Service configuration error", 500)

    try:
        body = await request.json()
    except ValueError:
        return _error("Invalid request: body must be JSON", 400)

    try:
        prompt = PromptRequest.model_validate(body).prompt
    except ValidationError:
        return _error('Invalid request: "prompt" field must be a string', 400)

    if not prompt.strip():
        return _error("Prompt cannot be empty", 400)
    if len(prompt) > PROMPT_MAX_CHARS:
        return _error(f"Prompt is too long (max {PROMPT_MAX_CHARS} characters)", 400)

    client = GeminiClient(settings.gemini_api_key, settings.gemini_model)
    try:
        data = await client.generate(prompt)
    except GeminiError as e:
        logger.error("gemini_upstream_error", status=e.status_code, body=e.body[:2000])
        return _error(f"AI service error: {e.status_code}", e.status_code)

    return JSONResponse(
        data, headers={"X-RateLimit-Remaining": str(decision.remaining)}
    )


def run() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(), host="127.0.0.1", port=8000)


app = create_app()
