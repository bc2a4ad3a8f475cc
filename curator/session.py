"""Reader session: records actions and keeps persisted state in step."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Optional

from curator.constants import MAX_HISTORY_EVENTS
from curator.models import Action, HistoryEvent, Preferences, Story, View
from curator.profile import normalize_topic
from curator.rerank import rank
from curator.storage import Repository

logger = logging.getLogger(__name__)


def cap_history(
    history: Sequence[HistoryEvent], max_events: int = MAX_HISTORY_EVENTS
) -> list[HistoryEvent]:
    """Keep the newest max_events events, dropping the oldest first."""
    if max_events <= 0:
        return []
    if len(history) <= max_events:
        return list(history)
    ordered = sorted(history, key=lambda e: e.ts)
    return ordered[-max_events:]


class ReaderSession:
    """
    Owns the reader's state for one run.

    History, saves and preferences are loaded from and written back to the
    injected repositories; dismissals live only as long as the session.
    """

    def __init__(
        self,
        history_repo: Repository[list[HistoryEvent]],
        saves_repo: Repository[dict[str, Story]],
        prefs_repo: Repository[Preferences],
        max_history: int = MAX_HISTORY_EVENTS,
    ) -> None:
        self._history_repo = history_repo
        self._saves_repo = saves_repo
        self._prefs_repo = prefs_repo
        self.max_history = max_history

        self.history: list[HistoryEvent] = cap_history(history_repo.load(), max_history)
        self.saves: dict[str, Story] = saves_repo.load()
        self.preferences: Preferences = prefs_repo.load()
        self.dismissed: set[str] = set()

    def record(self, story: Story, action: Action, now: Optional[float] = None) -> None:
        """Append the action to history and apply its side effect."""
        ts = time.time() if now is None else now
        self.history = cap_history(
            [*self.history, HistoryEvent.for_story(story, action, ts)],
            self.max_history,
        )
        self._history_repo.save(self.history)

        if action is Action.SAVE:
            self._toggle_save(story)
        elif action is Action.DISMISS:
            self.dismissed.add(story.id)

    def _toggle_save(self, story: Story) -> None:
        saves = dict(self.saves)
        if story.id in saves:
            del saves[story.id]
        else:
            saves[story.id] = story
        self.saves = saves
        self._saves_repo.save(self.saves)

    def set_view(self, view: View) -> None:
        self.preferences.view = view
        self._prefs_repo.save(self.preferences)

    def set_source_enabled(self, key: str, enabled: bool) -> None:
        self.preferences.sources_enabled[key] = enabled
        self._prefs_repo.save(self.preferences)

    def mute_topic(self, topic: str) -> bool:
        key = normalize_topic(topic)
        if not key or key in self.preferences.muted_topics:
            return False
        self.preferences.muted_topics.append(key)
        self._prefs_repo.save(self.preferences)
        return True

    def unmute_topic(self, topic: str) -> bool:
        key = normalize_topic(topic)
        if key not in self.preferences.muted_topics:
            return False
        self.preferences.muted_topics.remove(key)
        self._prefs_repo.save(self.preferences)
        return True

    def clear(self) -> None:
        """Forget history, saves and dismissals; preferences are kept."""
        self.history = []
        self.saves = {}
        self.dismissed = set()
        self._history_repo.save(self.history)
        self._saves_repo.save(self.saves)
        logger.info("Cleared reading history and saved stories")

    def ranked(
        self, stories: Sequence[Story], search_text: str = "", now: Optional[float] = None
    ) -> list[Story]:
        return rank(
            stories,
            self.history,
            self.preferences,
            search_text,
            self.dismissed,
            time.time() if now is None else now,
            saved=self.saves,
        )
