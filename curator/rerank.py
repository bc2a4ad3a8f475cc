from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence

from curator.aggregator import dedupe_stories, demo_stories, filter_pool, order_pool
from curator.constants import HISTORY_HALF_LIFE_DAYS
from curator.models import HistoryEvent, Preferences, Story, View
from curator.profile import build_user_profile
from curator.scoring import DEFAULT_BOOSTS, Boosts


def rank(
    stories: Sequence[Story],
    history: Sequence[HistoryEvent],
    preferences: Preferences,
    search_text: str,
    dismissed_ids: Collection[str],
    now: float,
    saved: Mapping[str, Story] | None = None,
    boosts: Boosts = DEFAULT_BOOSTS,
    half_life_days: float = HISTORY_HALF_LIFE_DAYS,
) -> list[Story]:
    """
    Order stories for display under the reader's current preferences.

    Pure: the profile is rebuilt from the full history on every call and no
    input is mutated. The saved view reads from `saved` and ignores
    `stories` and dismissals. An empty story pool is replaced by the demo set.
    """
    pool = dedupe_stories(stories)
    if not pool and preferences.view is not View.SAVED:
        pool = demo_stories(now)
    filtered = filter_pool(
        pool,
        view=preferences.view,
        search_text=search_text,
        muted_topics=preferences.muted_topics,
        dismissed_ids=dismissed_ids,
        saved=saved,
    )
    profile = build_user_profile(history, now, half_life_days)
    return order_pool(filtered, preferences.view, profile, now, boosts)
