"""Relevance scoring of a single story against a reader profile."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from curator.constants import (
    RECENCY_BOOST,
    RECENCY_WINDOW_DAYS,
    SECONDS_PER_DAY,
    SOURCE_BOOST,
    TOPIC_BOOST,
)
from curator.models import Story, UserProfile
from curator.profile import normalize_topic


@dataclass(frozen=True)
class Boosts:
    """Weights of the three score components."""

    source: float = SOURCE_BOOST
    topic: float = TOPIC_BOOST
    recency: float = RECENCY_BOOST

    def __post_init__(self) -> None:
        if min(self.source, self.topic, self.recency) < 0:
            raise ValueError(f"boost weights must be non-negative: {self}")


DEFAULT_BOOSTS = Boosts()


def saturate(affinity: float) -> float:
    """Bounded, monotonic, zero at zero. Keeps one strong signal from dominating."""
    return math.tanh(max(0.0, affinity))


def recency_score(published_at: float, now: float) -> float:
    """1.0 for a brand-new story, falling linearly to 0 at RECENCY_WINDOW_DAYS."""
    days_old = max(0.0, now - published_at) / SECONDS_PER_DAY
    return max(0.0, 1.0 - days_old / RECENCY_WINDOW_DAYS)


def topic_affinity(story: Story, profile: UserProfile) -> float:
    total = 0.0
    for topic in story.topics:
        key = normalize_topic(topic)
        if key:
            total += profile.topic_scores.get(key, 0.0)
    return total


def score_story(
    story: Story,
    profile: UserProfile,
    now: float,
    boosts: Boosts = DEFAULT_BOOSTS,
) -> float:
    source_term = saturate(profile.source_scores.get(story.source, 0.0)) * boosts.source
    topic_term = saturate(topic_affinity(story, profile)) * boosts.topic
    recency_term = recency_score(story.published_at, now) * boosts.recency
    return source_term + topic_term + recency_term


def score_pool(
    stories: Sequence[Story],
    profile: UserProfile,
    now: float,
    boosts: Boosts = DEFAULT_BOOSTS,
) -> NDArray[np.float64]:
    """Scores aligned with the input order."""
    return np.array(
        [score_story(s, profile, now, boosts) for s in stories], dtype=np.float64
    )
