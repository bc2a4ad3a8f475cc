from __future__ import annotations

import asyncio
import calendar
import html
import logging
import re
from collections.abc import Sequence
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import feedparser
import httpx
from bs4 import BeautifulSoup

from curator.constants import (
    EXCERPT_MAX_CHARS,
    EXTERNAL_REQUEST_SEMAPHORE,
    RSS_FETCH_TIMEOUT,
    RSS_PER_FEED_LIMIT,
)
from curator.models import FeedBatch, FeedSource, Story, parse_timestamp

logger = logging.getLogger(__name__)


class FeedError(RuntimeError):
    """Raised when a feed cannot be retrieved or parsed."""


def _strip_html(txt: str) -> str:
    if not txt:
        return ""
    clean = BeautifulSoup(txt, "html.parser").get_text(" ", strip=True)
    clean = html.unescape(clean)
    clean = re.sub(r"\s+([.,;:!?])", r"\1", clean)
    clean = re.sub(r"\s+", " ", clean).strip()
    return clean


def _make_excerpt(summary: str) -> Optional[str]:
    text = _strip_html(summary)
    if not text:
        return None
    if len(text) <= EXCERPT_MAX_CHARS:
        return text
    return text[:EXCERPT_MAX_CHARS].rstrip() + "..."


def _parse_date(text: str) -> Optional[float]:
    if not text:
        return None
    try:
        dt = parsedate_to_datetime(text)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.timestamp()
    except (TypeError, ValueError):
        return parse_timestamp(text)


def _entry_timestamp(entry: Any) -> Optional[float]:
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        parsed_time = entry.get(key)
        if parsed_time:
            return float(calendar.timegm(parsed_time))
    date_text = entry.get("published") or entry.get("updated") or ""
    return _parse_date(str(date_text))


def _entry_image(entry: Any) -> Optional[str]:
    for key in ("media_thumbnail", "media_content"):
        media = entry.get(key)
        if isinstance(media, list):
            for item in media:
                url = item.get("url") if isinstance(item, dict) else None
                if url:
                    return str(url)
    for enclosure in entry.get("enclosures") or []:
        href = enclosure.get("href")
        if href and str(enclosure.get("type", "")).startswith("image"):
            return str(href)
    return None


def _entry_topics(entry: Any) -> tuple[str, ...]:
    topics: list[str] = []
    for tag in entry.get("tags") or []:
        term = tag.get("term") if isinstance(tag, dict) else None
        if isinstance(term, str) and term.strip():
            topics.append(term.strip())
    return tuple(topics)


def parse_feed_entries(
    feed_xml: str, source: FeedSource, max_items: int = RSS_PER_FEED_LIMIT
) -> list[Story]:
    """
    Parse RSS/Atom XML into stories labelled with the source.

    Entries without a title, a link or a usable date are dropped.
    """
    parsed = feedparser.parse(feed_xml)
    if parsed.bozo and not parsed.entries:
        raise FeedError(f"Failed to parse feed XML for {source.key}: {parsed.bozo_exception}")

    stories: list[Story] = []
    for entry in parsed.entries:
        title = _strip_html(str(entry.get("title", "") or ""))
        link = str(entry.get("link", "") or "").strip()
        published_at = _entry_timestamp(entry)
        if not title or not link or published_at is None:
            logger.debug(f"Dropping incomplete entry from {source.key}: {title!r}")
            continue

        guid = str(entry.get("id", "") or "").strip()
        summary = entry.get("summary") or entry.get("description") or ""

        stories.append(
            Story(
                id=guid or link,
                title=title,
                url=link,
                source=source.label,
                published_at=published_at,
                excerpt=_make_excerpt(str(summary)),
                image=_entry_image(entry),
                topics=_entry_topics(entry),
            )
        )
        if len(stories) >= max_items:
            break

    return stories


async def fetch_source(
    client: httpx.AsyncClient, source: FeedSource, max_items: int = RSS_PER_FEED_LIMIT
) -> FeedBatch:
    """Fetch one source. Never raises; failures come back as an empty batch."""
    try:
        resp = await client.get(source.rss_url, follow_redirects=True)
        if resp.status_code != 200 or not resp.text:
            raise FeedError(f"HTTP {resp.status_code}")
        stories = parse_feed_entries(resp.text, source, max_items)
    except (httpx.HTTPError, FeedError) as e:
        logger.warning(f"Failed to fetch {source.label}: {e}")
        return FeedBatch(source_key=source.key, error=str(e) or type(e).__name__)
    except Exception as e:
        logger.exception(f"Unexpected error reading {source.label}")
        return FeedBatch(source_key=source.key, error=str(e) or type(e).__name__)
    return FeedBatch(source_key=source.key, stories=stories)


async def fetch_batches(
    sources: Sequence[FeedSource],
    max_items: int = RSS_PER_FEED_LIMIT,
    client: Optional[httpx.AsyncClient] = None,
) -> list[FeedBatch]:
    """Fetch every source concurrently, one batch per source in input order."""
    if not sources:
        return []

    sem = asyncio.Semaphore(EXTERNAL_REQUEST_SEMAPHORE)

    async def _limited(c: httpx.AsyncClient, source: FeedSource) -> FeedBatch:
        async with sem:
            return await fetch_source(c, source, max_items)

    if client is not None:
        return list(await asyncio.gather(*[_limited(client, s) for s in sources]))

    async with httpx.AsyncClient(
        timeout=RSS_FETCH_TIMEOUT, headers={"User-Agent": "Mozilla/5.0"}
    ) as own_client:
        return list(await asyncio.gather(*[_limited(own_client, s) for s in sources]))
