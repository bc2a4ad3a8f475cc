"""Configured news feeds."""

from __future__ import annotations

from curator.models import FeedSource

DEFAULT_SOURCES: tuple[FeedSource, ...] = (
    FeedSource("reuters", "Reuters", "https://feeds.reuters.com/reuters/topNews"),
    FeedSource("bbc", "BBC World", "http://feeds.bbci.co.uk/news/world/rss.xml"),
    FeedSource(
        "nyt", "NYT World", "https://rss.nytimes.com/services/xml/rss/nyt/World.xml"
    ),
    FeedSource("techcrunch", "TechCrunch", "https://techcrunch.com/feed/"),
    FeedSource("verge", "The Verge", "https://www.theverge.com/rss/index.xml"),
    FeedSource("sbs", "SBS Australian News", "https://www.sbs.com.au/news/feed"),
    FeedSource("crikey", "Crikey", "https://www.crikey.com.au/feed/"),
)


def source_keys() -> list[str]:
    return [s.key for s in DEFAULT_SOURCES]


def get_source(key: str) -> FeedSource | None:
    for source in DEFAULT_SOURCES:
        if source.key == key:
            return source
    return None
