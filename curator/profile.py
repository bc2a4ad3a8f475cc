"""Reader profile built from the interaction history."""

from __future__ import annotations

import re
from collections.abc import Iterable

from curator.constants import (
    ACTION_WEIGHT_DISMISS,
    ACTION_WEIGHT_OPEN,
    ACTION_WEIGHT_SAVE,
    HISTORY_HALF_LIFE_DAYS,
    SECONDS_PER_DAY,
)
from curator.models import Action, HistoryEvent, UserProfile

ACTION_WEIGHTS: dict[Action, float] = {
    Action.OPEN: ACTION_WEIGHT_OPEN,
    Action.SAVE: ACTION_WEIGHT_SAVE,
    Action.DISMISS: ACTION_WEIGHT_DISMISS,
}

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_topic(topic: str) -> str:
    """Topic key: trimmed, lowercased, ASCII alphanumerics only."""
    return _NON_ALNUM.sub("", topic.strip().lower())


def decay_factor(
    age_seconds: float, half_life_days: float = HISTORY_HALF_LIFE_DAYS
) -> float:
    """Exponential decay; evidence halves in weight every half_life_days."""
    if half_life_days <= 0:
        raise ValueError(f"half_life_days must be positive, got {half_life_days}")
    age_days = max(0.0, age_seconds) / SECONDS_PER_DAY
    return 0.5 ** (age_days / half_life_days)


def event_weight(
    event: HistoryEvent, now: float, half_life_days: float = HISTORY_HALF_LIFE_DAYS
) -> float:
    return decay_factor(now - event.ts, half_life_days) * ACTION_WEIGHTS[event.action]


def build_user_profile(
    history: Iterable[HistoryEvent],
    now: float,
    half_life_days: float = HISTORY_HALF_LIFE_DAYS,
) -> UserProfile:
    """
    Fold the history into decayed per-source and per-topic affinity.

    Each event contributes decay(age) * action weight to its source and to
    every topic that survives normalization. The result is a plain sum, so it
    does not depend on event order.
    """
    if half_life_days <= 0:
        raise ValueError(f"half_life_days must be positive, got {half_life_days}")

    source_scores: dict[str, float] = {}
    topic_scores: dict[str, float] = {}

    for event in history:
        weight = event_weight(event, now, half_life_days)

        source_scores[event.source] = source_scores.get(event.source, 0.0) + weight
        for topic in event.topics:
            key = normalize_topic(topic)
            if key:
                topic_scores[key] = topic_scores.get(key, 0.0) + weight

    return UserProfile(source_scores=source_scores, topic_scores=topic_scores)
