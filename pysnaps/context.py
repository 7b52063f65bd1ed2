"""Run-wide state shared by every match call of one test session."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .config import CI_ENV_VARS, CLEAN_VALUE, UPDATE_ENV_VAR, UPDATE_VALUE
from .registry import SnapshotRegistry, StandaloneRegistry, TestEvents
from .skip import SkipTracker
from .store import SnapshotFileStore
from .typing_utils import CIDetector, EnvGetter


def detect_ci() -> bool:
    """True when a well-known CI environment variable is set."""
    for name in CI_ENV_VARS:
        value = os.environ.get(name, "")
        if value and value.lower() not in ("0", "false"):
            return True
    return False


@dataclass
class SnapsContext:
    """Registries, counters and collaborators of one test run.

    A session uses a single instance; tests needing isolation build their
    own or call :meth:`reset`.
    """

    registry: SnapshotRegistry = field(default_factory=SnapshotRegistry)
    standalone_registry: StandaloneRegistry = field(default_factory=StandaloneRegistry)
    events: TestEvents = field(default_factory=TestEvents)
    skipped: SkipTracker = field(default_factory=SkipTracker)
    store: SnapshotFileStore = field(default_factory=SnapshotFileStore)
    is_ci: CIDetector = detect_ci
    getenv: EnvGetter = os.environ.get

    def update_var(self) -> str:
        return self.getenv(UPDATE_ENV_VAR) or ""

    def update_requested(self) -> bool:
        """``UPDATE_SNAPS=true`` asks for mismatching snapshots to be rewritten."""
        return self.update_var() == UPDATE_VALUE

    def should_clean(self) -> bool:
        """Obsolete snapshots are removed on ``true`` and ``clean``, never on CI."""
        return self.update_var() in (UPDATE_VALUE, CLEAN_VALUE) and not self.is_ci()

    def reset(self) -> None:
        self.registry = SnapshotRegistry()
        self.standalone_registry = StandaloneRegistry()
        self.events = TestEvents()
        self.skipped = SkipTracker()


default_context = SnapsContext()


__all__ = ["SnapsContext", "default_context", "detect_ci"]
