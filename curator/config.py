import os
from dataclasses import dataclass
from typing import Optional

from curator.constants import DEFAULT_PROXY_URL, GEMINI_MODEL


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment."""

    gemini_api_key: Optional[str]
    gemini_model: str
    proxy_url: str
    log_level: str


def load_settings() -> Settings:
    return Settings(
        gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
        gemini_model=os.environ.get("GEMINI_MODEL") or GEMINI_MODEL,
        proxy_url=os.environ.get("CURATOR_PROXY_URL") or DEFAULT_PROXY_URL,
        log_level=os.environ.get("CURATOR_LOG_LEVEL") or "INFO",
    )
