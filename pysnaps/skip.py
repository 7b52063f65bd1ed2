"""Tracking of skipped tests so their snapshots are not reported obsolete."""

from __future__ import annotations

import ast
import logging
import re
import threading
from collections.abc import Collection
from dataclasses import dataclass, field
from pathlib import Path

from .config import SNAPS_EXT
from .store import strip_occurrence

logger = logging.getLogger(__name__)


class SkipTracker:
    """Append-only, thread-safe record of skipped test names."""

    def __init__(self) -> None:
        self._names: list[str] = []
        self._lock = threading.Lock()

    def add(self, *names: str) -> None:
        with self._lock:
            self._names.extend(names)

    def values(self) -> list[str]:
        with self._lock:
            return list(self._names)

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)


def _run_filter_matches(run_only: str, value: str) -> bool:
    try:
        return re.search(run_only, value) is not None
    except re.error:
        logger.debug("Invalid run filter %r, treating %s as excluded", run_only, value)
        return False


def _covers(test_name: str, names: Collection[str]) -> bool:
    """Whether ``test_name`` is one of ``names`` or nested below one of them."""
    if test_name in names:
        return True
    return any(test_name.startswith(f"{name}/") for name in names)


def owning_module(snaps_dir: str | Path, filename: str) -> Path:
    """Test module a snapshot file was created for: ``<dir>/../<stem>.py``."""
    stem = filename.split(SNAPS_EXT)[0]
    return Path(snaps_dir).parent / f"{stem}.py"


@dataclass
class RunSelection:
    """The tests pytest chose to run in one session.

    Attributes:
        selected: Names of the tests that were collected and kept
        deselected: Names removed by ``-k``, ``-m``, ``--deselect`` or ``--lf``
        complete_modules: Resolved paths of modules whose every test was selected
        narrowed: Node id arguments restricted collection inside a module
    """

    selected: set[str] = field(default_factory=set)
    deselected: set[str] = field(default_factory=set)
    complete_modules: set[str] = field(default_factory=set)
    narrowed: bool = False

    def excludes_test(self, test_name: str) -> bool:
        if _covers(test_name, self.deselected):
            return True
        return self.narrowed and not _covers(test_name, self.selected)

    def excludes_file(self, snaps_dir: str | Path, filename: str) -> bool:
        """True if the file's module exists but was not run in full.

        Files without a module next to them are orphans and never excluded.
        """
        module = owning_module(snaps_dir, filename)
        if not module.is_file():
            return False
        return str(module.resolve()) not in self.complete_modules


def is_test_skipped(
    test_id: str,
    run_only: str,
    skipped: Collection[str],
    selection: RunSelection | None = None,
) -> bool:
    """Whether the snapshot ``test_id`` was intentionally not exercised.

    True when the test (or one of its parents) called skip, when pytest did
    not select it, or when a non-empty run filter does not select ``test_id``.
    """
    test_name = strip_occurrence(test_id)

    if _covers(test_name, skipped):
        return True
    if selection is not None and selection.excludes_test(test_name):
        return True

    return not _run_filter_matches(run_only, test_id)


def is_file_skipped(
    snaps_dir: str | Path,
    filename: str,
    run_only: str,
    selection: RunSelection | None = None,
) -> bool:
    """Whether the test module owning ``filename`` was excluded from this run.

    Modules pytest did not run in full are excluded. Otherwise the module is
    looked up next to the snapshot directory and parsed; any function or
    class whose name matches ``run_only`` means it was selected. Missing or
    unparsable modules are never considered skipped.
    """
    if selection is not None and selection.excludes_file(snaps_dir, filename):
        return True
    if not run_only:
        return False

    test_file = owning_module(snaps_dir, filename)

    try:
        tree = ast.parse(test_file.read_text(encoding="utf-8"), filename=str(test_file))
    except (OSError, SyntaxError, ValueError) as exc:
        logger.debug("Cannot inspect %s: %s", test_file, exc)
        return False

    for node in ast.walk(tree):
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            continue
        if _run_filter_matches(run_only, node.name):
            return False

    return True


__all__ = ["RunSelection", "SkipTracker", "is_file_skipped", "is_test_skipped", "owning_module"]
