"""Occurrence registries and outcome counters shared by every match call."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from enum import Enum

from .config import ENTRY_ID_SEPARATOR, OCCURRENCE_PLACEHOLDER

logger = logging.getLogger(__name__)


def instantiate(template: str, occurrence: int) -> str:
    """Substitute the last occurrence placeholder in ``template``."""
    head, sep, tail = template.rpartition(OCCURRENCE_PLACEHOLDER)
    if not sep:
        return template
    return f"{head}{occurrence}{tail}"


def entry_id(test_name: str, occurrence: int) -> str:
    return f"{test_name}{ENTRY_ID_SEPARATOR}{occurrence}"


class SnapshotRegistry:
    """Numbers repeated calls of one test inside a shared snapshot file.

    ``running`` answers "which entry is this call, right now" and is reset
    by the test's cleanup hook. ``cleanup`` only ever grows and answers "how
    many calls were observed in total" for obsolescence accounting.
    """

    def __init__(self) -> None:
        self.running: dict[str, dict[str, int]] = defaultdict(dict)
        self.cleanup: dict[str, dict[str, int]] = defaultdict(dict)
        self._lock = threading.Lock()

    def get_test_id(self, snap_path: str, test_name: str) -> str:
        """Return ``"<test_name> - <N>"`` for the next call in ``snap_path``."""
        with self._lock:
            running = self.running[snap_path]
            cleanup = self.cleanup[snap_path]
            running[test_name] = running.get(test_name, 0) + 1
            cleanup[test_name] = cleanup.get(test_name, 0) + 1
            occurrence = running[test_name]

        logger.debug("Assigned occurrence %d to %s in %s", occurrence, test_name, snap_path)
        return entry_id(test_name, occurrence)

    def reset(self, snap_path: str, test_name: str) -> None:
        with self._lock:
            self.running[snap_path][test_name] = 0


class StandaloneRegistry:
    """Numbers calls producing one dedicated file each, keyed by generic path."""

    def __init__(self) -> None:
        self.running: dict[str, int] = {}
        self.cleanup: dict[str, int] = {}
        self._lock = threading.Lock()

    def get_test_id(self, snap_path: str, snap_path_rel: str) -> tuple[str, str]:
        """Return the instantiated absolute and relative paths for the next call."""
        with self._lock:
            self.running[snap_path] = self.running.get(snap_path, 0) + 1
            self.cleanup[snap_path] = self.cleanup.get(snap_path, 0) + 1
            occurrence = self.running[snap_path]

        return instantiate(snap_path, occurrence), instantiate(snap_path_rel, occurrence)

    def reset(self, snap_path: str) -> None:
        with self._lock:
            self.running[snap_path] = 0


class Event(Enum):
    """Outcome of a single match call."""

    ERRED = "erred"
    ADDED = "added"
    UPDATED = "updated"
    PASSED = "passed"


class TestEvents:
    """Thread-safe outcome counters used by the run summary."""

    __test__ = False

    def __init__(self) -> None:
        self.items: dict[Event, int] = {}
        self._lock = threading.Lock()

    def register(self, event: Event) -> None:
        with self._lock:
            self.items[event] = self.items.get(event, 0) + 1

    def __getitem__(self, event: Event) -> int:
        return self.items.get(event, 0)

    def __len__(self) -> int:
        return len(self.items)


__all__ = [
    "Event",
    "SnapshotRegistry",
    "StandaloneRegistry",
    "TestEvents",
    "entry_id",
    "instantiate",
]
