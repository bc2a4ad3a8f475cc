"""Local persistence of preferences, history and saved stories."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar

from curator.cache_utils import atomic_write_json
from curator.models import HistoryEvent, Preferences, Story
from curator.sources import source_keys

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATE_DIR = Path.home() / ".config" / "news_curator"
HISTORY_FILE = "history.json"
SAVES_FILE = "saves.json"
PREFS_FILE = "prefs.json"


class Repository(Protocol[T]):
    """Whole-value key-value slot: load the current value or replace it."""

    def load(self) -> T: ...

    def save(self, value: T) -> None: ...


class MemoryRepository(Generic[T]):
    def __init__(self, initial: T) -> None:
        self._value = initial

    def load(self) -> T:
        return self._value

    def save(self, value: T) -> None:
        self._value = value


class JsonFileRepository(Generic[T]):
    """
    Stores one value as a JSON file.

    A missing or unreadable file loads as the default; writes are atomic but
    there is no locking between processes.
    """

    def __init__(
        self,
        path: Path,
        default: Callable[[], T],
        decode: Callable[[Any], T],
        encode: Callable[[T], Any],
    ) -> None:
        self.path = path
        self._default = default
        self._decode = decode
        self._encode = encode

    def load(self) -> T:
        if not self.path.exists():
            return self._default()
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
            return self._decode(raw)
        except Exception as e:
            logger.warning(f"Failed to load {self.path}, using defaults: {e}")
            return self._default()

    def save(self, value: T) -> None:
        atomic_write_json(self.path, self._encode(value))


def _decode_history(raw: Any) -> list[HistoryEvent]:
    if not isinstance(raw, list):
        raise ValueError("history must be a list")
    events = [HistoryEvent.from_dict(d) for d in raw if isinstance(d, dict)]
    return [e for e in events if e is not None]


def _decode_saves(raw: Any) -> dict[str, Story]:
    if not isinstance(raw, dict):
        raise ValueError("saves must be an object")
    saves: dict[str, Story] = {}
    for story_id, d in raw.items():
        story = Story.from_dict(d) if isinstance(d, dict) else None
        if story is not None:
            saves[str(story_id)] = story
    return saves


def _decode_prefs(raw: Any) -> Preferences:
    if not isinstance(raw, dict):
        raise ValueError("prefs must be an object")
    return Preferences.from_dict(raw)


def history_repository(state_dir: Path = STATE_DIR) -> JsonFileRepository[list[HistoryEvent]]:
    return JsonFileRepository(
        state_dir / HISTORY_FILE,
        default=list,
        decode=_decode_history,
        encode=lambda events: [e.to_dict() for e in events],
    )


def saves_repository(state_dir: Path = STATE_DIR) -> JsonFileRepository[dict[str, Story]]:
    return JsonFileRepository(
        state_dir / SAVES_FILE,
        default=dict,
        decode=_decode_saves,
        encode=lambda saves: {k: s.to_dict() for k, s in saves.items()},
    )


def prefs_repository(state_dir: Path = STATE_DIR) -> JsonFileRepository[Preferences]:
    return JsonFileRepository(
        state_dir / PREFS_FILE,
        default=lambda: Preferences.default(source_keys()),
        decode=_decode_prefs,
        encode=lambda prefs: prefs.to_dict(),
    )
