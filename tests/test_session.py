import pytest

from conftest import NOW, make_event, make_story
from curator.models import Action, Preferences, View
from curator.session import ReaderSession, cap_history
from curator.storage import MemoryRepository


@pytest.fixture
def repos():
    return (
        MemoryRepository([]),
        MemoryRepository({}),
        MemoryRepository(Preferences(sources_enabled={"bbc": True})),
    )


@pytest.fixture
def session(repos):
    return ReaderSession(*repos)


def test_record_appends_denormalized_event(session, repos):
    story = make_story("a", source="BBC", topics=("Space",))
    session.record(story, Action.OPEN, now=NOW)

    assert len(session.history) == 1
    event = session.history[0]
    assert event.story_id == "a"
    assert event.source == "BBC"
    assert event.topics == ("Space",)
    assert event.ts == NOW
    assert event.action is Action.OPEN
    assert repos[0].load() == session.history


def test_save_toggles(session, repos):
    story = make_story("a")
    session.record(story, Action.SAVE, now=NOW)
    assert repos[1].load() == {"a": story}

    session.record(story, Action.SAVE, now=NOW + 1)
    assert repos[1].load() == {}
    # Both saves are still evidence of interest
    assert [e.action for e in session.history] == [Action.SAVE, Action.SAVE]


def test_dismiss_hides_story_for_session(session):
    a, b = make_story("a"), make_story("b")
    session.record(a, Action.DISMISS, now=NOW)

    assert session.dismissed == {"a"}
    session.set_view(View.LATEST)
    assert [s.id for s in session.ranked([a, b], now=NOW)] == ["b"]


def test_saved_view_shows_dismissed_saved_story(session):
    a = make_story("a")
    session.record(a, Action.SAVE, now=NOW)
    session.record(a, Action.DISMISS, now=NOW)
    session.set_view(View.SAVED)

    assert session.ranked([], now=NOW) == [a]


def test_history_is_capped(repos):
    session = ReaderSession(*repos, max_history=3)
    for i in range(5):
        session.record(make_story(str(i)), Action.OPEN, now=NOW + i)
    assert [e.story_id for e in session.history] == ["2", "3", "4"]


def test_cap_history_drops_oldest_first():
    events = [make_event(story_id=str(i), ts=NOW - i) for i in range(4)]
    kept = cap_history(events, max_events=2)
    assert [e.story_id for e in kept] == ["1", "0"]
    assert cap_history(events, max_events=0) == []


def test_mute_and_unmute_store_normalized_keys(session, repos):
    assert session.mute_topic(" Space! ")
    assert not session.mute_topic("space")
    assert repos[2].load().muted_topics == ["space"]

    assert session.unmute_topic("SPACE")
    assert not session.unmute_topic("space")
    assert repos[2].load().muted_topics == []


def test_toggle_source(session, repos):
    session.set_source_enabled("bbc", False)
    assert repos[2].load().sources_enabled["bbc"] is False


def test_clear_forgets_history_saves_and_dismissals(session, repos):
    story = make_story("a")
    session.record(story, Action.SAVE, now=NOW)
    session.record(story, Action.DISMISS, now=NOW)

    session.clear()

    assert session.history == [] and repos[0].load() == []
    assert session.saves == {} and repos[1].load() == {}
    assert session.dismissed == set()
    assert repos[2].load().sources_enabled == {"bbc": True}
