"""Candidate pool assembly: dedupe, filter and order stories for display."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping, Sequence

import numpy as np

from curator.models import FeedBatch, FeedSource, Preferences, Story, UserProfile, View
from curator.profile import normalize_topic
from curator.scoring import DEFAULT_BOOSTS, Boosts, score_pool
from curator.sources import DEFAULT_SOURCES
from curator.url_utils import identity_key

logger = logging.getLogger(__name__)

_HOUR = 3600


def demo_stories(now: float) -> list[Story]:
    """Fixed set shown instead of an empty pool when no feed yields anything."""
    return [
        Story(
            id="demo-1",
            title="SpaceX successfully launches next-gen Starship",
            url="#",
            source="TechCrunch",
            published_at=now - 2 * _HOUR,
            excerpt=(
                "The massive rocket achieved orbit for the first time, marking a "
                "major milestone in space exploration."
            ),
            image="https://images.unsplash.com/photo-1517976487492-5750f3195933?auto=format&fit=crop&w=800&q=80",
            topics=("Space", "Tech", "Musk"),
        ),
        Story(
            id="demo-2",
            title="Global markets rally as inflation data cools",
            url="#",
            source="Reuters",
            published_at=now - 5 * _HOUR,
            excerpt=(
                "Investors are optimistic that central banks may pause rate hikes "
                "following the latest CPI report."
            ),
            image="https://images.unsplash.com/photo-1611974765270-ca1258634369?auto=format&fit=crop&w=800&q=80",
            topics=("Economy", "Markets", "Finance"),
        ),
        Story(
            id="demo-3",
            title="The hidden history of ancient coffee rituals",
            url="#",
            source="BBC World",
            published_at=now - 12 * _HOUR,
            excerpt="How a simple bean transformed societies across the Middle East and Europe.",
            image="https://images.unsplash.com/photo-1495474472287-4d71bcdd2085?auto=format&fit=crop&w=800&q=80",
            topics=("History", "Culture", "Food"),
        ),
    ]


def enabled_sources(
    preferences: Preferences, sources: Sequence[FeedSource] = DEFAULT_SOURCES
) -> list[FeedSource]:
    return [s for s in sources if preferences.sources_enabled.get(s.key, False)]


def dedupe_stories(stories: Iterable[Story]) -> list[Story]:
    """One story per identity; the last one seen wins but keeps the first slot."""
    unique: dict[str, Story] = {}
    for story in stories:
        unique[identity_key(story.url, story.id)] = story
    return list(unique.values())


def assemble_pool(batches: Iterable[FeedBatch], now: float) -> list[Story]:
    flattened: list[Story] = []
    for batch in batches:
        if not batch.ok:
            logger.warning(f"Skipping failed batch from {batch.source_key}: {batch.error}")
            continue
        flattened.extend(batch.stories)

    unique = dedupe_stories(flattened)
    if not unique:
        logger.info("No stories fetched, falling back to demo stories")
        return demo_stories(now)
    return unique


def matches_search(story: Story, search_text: str) -> bool:
    query = search_text.strip().lower()
    if not query:
        return True
    return query in story.title.lower() or query in story.source.lower()


def is_muted(story: Story, muted_topics: Collection[str]) -> bool:
    return any(normalize_topic(t) in muted_topics for t in story.topics)


def filter_pool(
    pool: Sequence[Story],
    view: View,
    search_text: str = "",
    muted_topics: Iterable[str] = (),
    dismissed_ids: Collection[str] = frozenset(),
    saved: Mapping[str, Story] | None = None,
) -> list[Story]:
    if view is View.SAVED:
        candidates = list((saved or {}).values())
    else:
        candidates = [s for s in pool if s.id not in dismissed_ids]

    if search_text.strip():
        candidates = [s for s in candidates if matches_search(s, search_text)]

    muted = {normalize_topic(t) for t in muted_topics} - {""}
    if muted:
        candidates = [s for s in candidates if not is_muted(s, muted)]

    return candidates


def order_pool(
    pool: Sequence[Story],
    view: View,
    profile: UserProfile,
    now: float,
    boosts: Boosts = DEFAULT_BOOSTS,
) -> list[Story]:
    """
    Personalized view: score descending, then newer first, then input order.
    Other views: newer first, then input order.
    """
    if not pool:
        return []

    published = np.array([s.published_at for s in pool], dtype=np.float64)
    position = np.arange(len(pool))

    if view is View.PERSONALIZED:
        scores = score_pool(pool, profile, now, boosts)
        # lexsort uses the last key as primary
        order = np.lexsort((position, -published, -scores))
    else:
        order = np.lexsort((position, -published))

    return [pool[int(i)] for i in order]
