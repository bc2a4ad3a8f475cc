from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

from url_normalize import url_normalize


def normalize_url(url: str) -> str:
    """Canonical form of an article URL: normalized, no query, fragment or trailing slash."""
    if not url:
        return ""
    try:
        normalized = url_normalize(url)
    except Exception:
        normalized = url

    parts = urlsplit(normalized)
    if not parts.scheme or not parts.netloc:
        return normalized
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def is_absolute_url(url: str) -> bool:
    parts = urlsplit(url or "")
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def identity_key(url: str, fallback_id: str) -> str:
    """Dedupe key for a story: its canonical URL, or its id when it has no usable URL."""
    try:
        if is_absolute_url(url):
            return "url:" + normalize_url(url)
    except ValueError:
        # Malformed netloc, e.g. an unclosed IPv6 bracket
        pass
    return "id:" + fallback_id
