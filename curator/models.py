"""Typed data models for news curation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional, TypedDict


class Action(StrEnum):
    """What the reader did with a story."""

    OPEN = "open"
    SAVE = "save"
    DISMISS = "dismiss"


class View(StrEnum):
    """Which pool the reader is looking at."""

    PERSONALIZED = "personalized"
    LATEST = "latest"
    SAVED = "saved"


class StoryDict(TypedDict):
    """Serialized Story payload for persistence and API boundaries."""

    id: str
    title: str
    url: str
    source: str
    published_at: float
    excerpt: Optional[str]
    image: Optional[str]
    topics: list[str]


class HistoryEventDict(TypedDict):
    """Serialized HistoryEvent payload."""

    story_id: str
    url: str
    title: str
    source: str
    topics: list[str]
    ts: float
    action: str


class PreferencesDict(TypedDict):
    """Serialized Preferences payload."""

    sources_enabled: dict[str, bool]
    muted_topics: list[str]
    view: str


def parse_timestamp(value: object) -> Optional[float]:
    """Epoch seconds from a number or an ISO-8601 string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.timestamp()
    return None


def _clean_str(value: object) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_topics(value: object) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(t for t in value if isinstance(t, str))


@dataclass(frozen=True)
class Story:
    """A news story as ingested from a feed."""

    id: str
    title: str
    url: str
    source: str
    published_at: float
    excerpt: Optional[str] = None
    image: Optional[str] = None
    topics: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, d: dict[str, object]) -> Optional[Story]:
        """Create Story from a persisted dict; None if required fields are missing."""
        story_id = _clean_str(d.get("id"))
        title = _clean_str(d.get("title"))
        url = _clean_str(d.get("url"))
        source = _clean_str(d.get("source"))
        published_at = parse_timestamp(d.get("published_at"))
        if not (story_id and title and url and source) or published_at is None:
            return None
        excerpt = d.get("excerpt")
        image = d.get("image")
        return cls(
            id=story_id,
            title=title,
            url=url,
            source=source,
            published_at=published_at,
            excerpt=excerpt if isinstance(excerpt, str) else None,
            image=image if isinstance(image, str) else None,
            topics=_clean_topics(d.get("topics")),
        )

    def to_dict(self) -> StoryDict:
        """Serialize to dict for persistence."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "source": self.source,
            "published_at": self.published_at,
            "excerpt": self.excerpt,
            "image": self.image,
            "topics": list(self.topics),
        }


@dataclass(frozen=True)
class HistoryEvent:
    """One reader interaction, denormalized from the story at write time."""

    story_id: str
    url: str
    title: str
    source: str
    topics: tuple[str, ...]
    ts: float
    action: Action

    @classmethod
    def for_story(cls, story: Story, action: Action, ts: float) -> HistoryEvent:
        return cls(
            story_id=story.id,
            url=story.url,
            title=story.title,
            source=story.source,
            topics=story.topics,
            ts=ts,
            action=action,
        )

    @classmethod
    def from_dict(cls, d: dict[str, object]) -> Optional[HistoryEvent]:
        ts = parse_timestamp(d.get("ts"))
        try:
            action = Action(d.get("action"))
        except ValueError:
            return None
        source = _clean_str(d.get("source"))
        if ts is None or not source:
            return None
        return cls(
            story_id=_clean_str(d.get("story_id")),
            url=_clean_str(d.get("url")),
            title=_clean_str(d.get("title")),
            source=source,
            topics=_clean_topics(d.get("topics")),
            ts=ts,
            action=action,
        )

    def to_dict(self) -> HistoryEventDict:
        return {
            "story_id": self.story_id,
            "url": self.url,
            "title": self.title,
            "source": self.source,
            "topics": list(self.topics),
            "ts": self.ts,
            "action": self.action.value,
        }


@dataclass(frozen=True)
class UserProfile:
    """Decayed affinity per source label and per normalized topic key."""

    source_scores: dict[str, float] = field(default_factory=dict)
    topic_scores: dict[str, float] = field(default_factory=dict)


@dataclass
class Preferences:
    """Reader preferences persisted between sessions."""

    sources_enabled: dict[str, bool] = field(default_factory=dict)
    muted_topics: list[str] = field(default_factory=list)
    view: View = View.PERSONALIZED

    @classmethod
    def default(cls, source_keys: list[str]) -> Preferences:
        return cls(sources_enabled={k: True for k in source_keys})

    @classmethod
    def from_dict(cls, d: dict[str, object]) -> Preferences:
        enabled = d.get("sources_enabled")
        muted = d.get("muted_topics")
        try:
            view = View(d.get("view", View.PERSONALIZED))
        except ValueError:
            view = View.PERSONALIZED
        return cls(
            sources_enabled={
                str(k): bool(v) for k, v in enabled.items()
            }
            if isinstance(enabled, dict)
            else {},
            muted_topics=[t for t in muted if isinstance(t, str)]
            if isinstance(muted, list)
            else [],
            view=view,
        )

    def to_dict(self) -> PreferencesDict:
        return {
            "sources_enabled": dict(self.sources_enabled),
            "muted_topics": list(self.muted_topics),
            "view": self.view.value,
        }


@dataclass(frozen=True)
class FeedSource:
    """A configured RSS source."""

    key: str
    label: str
    rss_url: str


@dataclass
class FeedBatch:
    """Stories fetched from one source; error is set when the fetch failed."""

    source_key: str
    stories: list[Story] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RateLimitEntry:
    """Request count for one client within its current window."""

    count: int
    reset_at: float  # Epoch seconds


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate-limit check."""

    allowed: bool
    remaining: int
    reset_at: float  # Epoch seconds at which the client's window ends
