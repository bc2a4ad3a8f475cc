"""Fixed-window, per-client request limiting for the AI proxy."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from typing import Optional

from curator.constants import (
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_SWEEP_THRESHOLD,
    RATE_LIMIT_UNKNOWN_CLIENT,
    RATE_LIMIT_WINDOW_SECONDS,
)
from curator.models import RateLimitDecision, RateLimitEntry

logger = logging.getLogger(__name__)


def client_key(headers: Mapping[str, str]) -> str:
    """
    Identify the caller from proxy headers.

    Uses the first X-Forwarded-For hop, then X-Real-IP. Callers with neither
    share a single bucket.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return RATE_LIMIT_UNKNOWN_CLIENT


class RateLimiter:
    """
    Counts requests per client key in fixed windows.

    One lock guards the whole table: the expiry check, the allow/deny decision,
    the increment and the opportunistic sweep of expired entries all happen in
    the same critical section.
    """

    def __init__(
        self,
        limit: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        sweep_threshold: int = RATE_LIMIT_SWEEP_THRESHOLD,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self.limit = limit
        self.window_seconds = window_seconds
        self.sweep_threshold = sweep_threshold
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep(self, now: float) -> None:
        expired = [k for k, v in self._entries.items() if now > v.reset_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired rate limit entries")

    def check(self, key: str, now: Optional[float] = None) -> RateLimitDecision:
        if now is None:
            now = time.time()

        with self._lock:
            if len(self._entries) > self.sweep_threshold:
                self._sweep(now)

            entry = self._entries.get(key)
            if entry is None or now > entry.reset_at:
                entry = RateLimitEntry(count=1, reset_at=now + self.window_seconds)
                self._entries[key] = entry
                return RateLimitDecision(
                    allowed=True, remaining=self.limit - 1, reset_at=entry.reset_at
                )

            if entry.count >= self.limit:
                return RateLimitDecision(
                    allowed=False, remaining=0, reset_at=entry.reset_at
                )

            entry.count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=self.limit - entry.count,
                reset_at=entry.reset_at,
            )
