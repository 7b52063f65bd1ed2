"""
End-of-run obsolescence scan and summary.

After all tests ran, every snapshot directory touched by the registries is
scanned: files and entries this run never referenced are reported, and
removed when ``UPDATE_SNAPS`` asks for cleaning.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from .config import (
    ARROW_SYMBOL,
    BULLET_SYMBOL,
    CLEAN_HINT,
    ENTER_SYMBOL,
    ERROR_SYMBOL,
    SKIP_SYMBOL,
    SNAPS_EXT,
    SUCCESS_SYMBOL,
    UPDATE_SYMBOL,
)
from .context import SnapsContext, default_context
from .exceptions import SnapsError
from .registry import Event, TestEvents, entry_id, instantiate
from .skip import RunSelection, is_file_skipped, is_test_skipped

logger = logging.getLogger(__name__)

OccurrenceFormatter = Callable[[str, int], str]


@dataclass
class CleanResult:
    """Outcome of the end-of-run scan."""

    obsolete_files: list[str] = field(default_factory=list)
    obsolete_tests: list[str] = field(default_factory=list)
    used_files: list[str] = field(default_factory=list)
    summary: str = ""


def occurrences(
    counters: Mapping[str, int], count: int, formatter: OccurrenceFormatter
) -> set[str]:
    """Expand cumulative call counters into every id seen in one run.

    Counters accumulate when the same ids run ``count`` times in one
    process, so they are divided by it first. Every key keeps at least its
    first occurrence.
    """
    count = max(count, 1)
    result: set[str] = set()
    for key, counter in counters.items():
        for occurrence in range(1, max(counter // count, 1) + 1):
            result.add(formatter(key, occurrence))
    return result


def examine_files(
    registry: Mapping[str, Mapping[str, int]],
    registered_standalone: set[str],
    run_only: str,
    should_update: bool,
    selection: RunSelection | None = None,
) -> tuple[list[str], list[str]]:
    """Classify every snapshot file next to the ones this run touched.

    Returns:
        ``(obsolete, used)`` file paths. Standalone files registered by this
        run are neither; their single entry needs no further examination.
    """
    unique_dirs = {os.path.dirname(path) for path in registry}
    unique_dirs.update(os.path.dirname(path) for path in registered_standalone)

    obsolete: list[str] = []
    used: list[str] = []

    for snaps_dir in sorted(unique_dirs):
        try:
            entries = sorted(os.scandir(snaps_dir), key=lambda e: e.name)
        except OSError as exc:
            logger.debug("Cannot list %s: %s", snaps_dir, exc)
            continue

        for entry in entries:
            if entry.is_dir() or SNAPS_EXT not in entry.name:
                continue

            snap_path = os.path.join(snaps_dir, entry.name)
            if snap_path in registry:
                used.append(snap_path)
                continue

            if snap_path in registered_standalone:
                continue

            if is_file_skipped(snaps_dir, entry.name, run_only, selection):
                continue

            obsolete.append(snap_path)
            if not should_update:
                continue

            try:
                os.remove(snap_path)
            except OSError as exc:
                logger.warning("Failed to remove obsolete snapshot %s: %s", snap_path, exc)

    return obsolete, used


def examine_snaps(
    context: SnapsContext,
    used: Iterable[str],
    run_only: str,
    count: int,
    update: bool,
    sort: bool,
    selection: RunSelection | None = None,
) -> list[str]:
    """Find, and optionally drop or re-sort, obsolete entries of used files."""
    registry = context.registry.cleanup
    skipped = context.skipped.values()
    obsolete_tests: list[str] = []

    def skipped_test(test_id: str) -> bool:
        return is_test_skipped(test_id, run_only, skipped, selection)

    for snap_path in used:
        live_ids = occurrences(registry.get(snap_path, {}), count, entry_id)
        obsolete_tests.extend(
            context.store.reconcile(snap_path, live_ids, skipped_test, update, sort)
        )

    return obsolete_tests


def _pluralize(subject: str, amount: int) -> str:
    return subject if amount == 1 else f"{subject}s"


def _event_line(symbol: str, verb: str, amount: int) -> str:
    if amount == 0:
        return ""
    return f"{symbol}{amount} {_pluralize('snapshot', amount)} {verb}\n"


def _object_list(objects: list[str], name: str, should_update: bool) -> str:
    action = "removed" if should_update else "obsolete"
    lines = [f"\n{ARROW_SYMBOL}{len(objects)} snapshot {_pluralize(name, len(objects))} {action}\n"]
    lines.extend(f"  {ENTER_SYMBOL}{BULLET_SYMBOL}{obj}\n" for obj in objects)
    return "".join(lines)


def summary(
    obsolete_files: list[str],
    obsolete_tests: list[str],
    skipped_tests: int,
    events: TestEvents,
    should_update: bool,
) -> str:
    """Render the human readable run summary, or ``""`` if nothing happened."""
    if not obsolete_files and not obsolete_tests and not len(events) and not skipped_tests:
        return ""

    parts = [
        "\nSnapshot Summary\n\n",
        _event_line(SUCCESS_SYMBOL, "passed", events[Event.PASSED]),
        _event_line(ERROR_SYMBOL, "failed", events[Event.ERRED]),
        _event_line(UPDATE_SYMBOL, "added", events[Event.ADDED]),
        _event_line(UPDATE_SYMBOL, "updated", events[Event.UPDATED]),
        _event_line(SKIP_SYMBOL, "skipped", skipped_tests),
    ]

    if obsolete_files:
        parts.append(_object_list(obsolete_files, "file", should_update))
    if obsolete_tests:
        parts.append(_object_list(obsolete_tests, "test", should_update))

    total = len(obsolete_files) + len(obsolete_tests)
    if not should_update and total > 0:
        parts.append(f"\n{CLEAN_HINT.format(it='them' if total > 1 else 'it')}\n")

    return "".join(parts)


def clean(
    run_only: str = "",
    count: int = 1,
    sort: bool = False,
    context: SnapsContext | None = None,
    selection: RunSelection | None = None,
) -> CleanResult:
    """Run the obsolescence scan once every test finished.

    Args:
        run_only: Regular expression of selected test ids, empty for all
        count: How many times the same ids ran in this process
        sort: Rewrite shared snapshot files in natural id order
        selection: Tests the runner selected; ``None`` treats the run as complete

    Returns:
        The obsolete files and entries plus the rendered summary.
    """
    ctx = context if context is not None else default_context
    should_clean = ctx.should_clean()

    registered_standalone = occurrences(ctx.standalone_registry.cleanup, count, instantiate)
    obsolete_files, used_files = examine_files(
        ctx.registry.cleanup, registered_standalone, run_only, should_clean, selection
    )

    result = CleanResult(obsolete_files=obsolete_files, used_files=used_files)
    try:
        result.obsolete_tests = examine_snaps(
            ctx,
            used_files,
            run_only,
            count,
            should_clean,
            sort and not ctx.is_ci(),
            selection,
        )
    except SnapsError as exc:
        logger.error("Snapshot scan failed: %s", exc)
        return result

    result.summary = summary(
        obsolete_files, result.obsolete_tests, len(ctx.skipped), ctx.events, should_clean
    )
    return result


__all__ = [
    "CleanResult",
    "clean",
    "examine_files",
    "examine_snaps",
    "occurrences",
    "summary",
]
