import pytest

from curator.models import Action, HistoryEvent, Story

NOW = 1_767_225_600.0  # 2026-01-01T00:00:00Z
DAY = 86400.0


def make_story(
    story_id: str = "s1",
    source: str = "BBC",
    topics: tuple[str, ...] = (),
    published_at: float = NOW,
    url: str | None = None,
    title: str | None = None,
    excerpt: str | None = None,
) -> Story:
    return Story(
        id=story_id,
        title=title or f"Story {story_id}",
        url=url or f"https://news.example.com/{story_id}",
        source=source,
        published_at=published_at,
        excerpt=excerpt,
        topics=topics,
    )


def make_event(
    source: str = "BBC",
    topics: tuple[str, ...] = (),
    action: Action = Action.OPEN,
    ts: float = NOW,
    story_id: str = "h1",
) -> HistoryEvent:
    return HistoryEvent(
        story_id=story_id,
        url=f"https://news.example.com/{story_id}",
        title=f"Story {story_id}",
        source=source,
        topics=topics,
        ts=ts,
        action=action,
    )


@pytest.fixture
def now() -> float:
    return NOW
