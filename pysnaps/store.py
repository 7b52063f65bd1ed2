"""
On-disk storage of snapshots.

Shared snapshot files hold many entries, each framed as::

    \\n[<entry id>]\\n<escaped body>---\\n

Standalone snapshot files hold a single raw value and no framing.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
import threading
from collections.abc import Callable, Collection, Iterator
from dataclasses import dataclass
from pathlib import Path

from .config import (
    END_SEQUENCE,
    ENTRY_ID_PREFIXES,
    ENTRY_ID_SEPARATOR,
    ESCAPED_END_SEQUENCE,
)
from .exceptions import SnapshotIOError, SnapshotNotFoundError

logger = logging.getLogger(__name__)

_ENTRY_HEADER = re.compile(
    r"^\[((?:{prefixes}).*{sep}[0-9]+)\]$".format(
        prefixes="|".join(re.escape(prefix) for prefix in ENTRY_ID_PREFIXES),
        sep=re.escape(ENTRY_ID_SEPARATOR),
    )
)
_ESCAPED_SENTINEL = re.compile(r"/+" + re.escape(ESCAPED_END_SEQUENCE[1:]))
_DIGITS = re.compile(r"([0-9]+)")


def _split_cr(line: str) -> tuple[str, str]:
    """Separate trailing carriage returns so CRLF lines frame like LF ones."""
    core = line.rstrip("\r")
    return core, line[len(core):]


def _is_end(line: str) -> bool:
    return _split_cr(line)[0] == END_SEQUENCE


def escape_end_chars(text: str) -> str:
    """Escape lines that would otherwise terminate an entry.

    A line equal to the end sequence becomes the sentinel; lines that already
    look like a sentinel get one more leading ``/`` so the mapping reverses.
    Trailing carriage returns are kept as they are.
    """
    lines = text.split("\n")
    for index, line in enumerate(lines):
        core, cr = _split_cr(line)
        if core == END_SEQUENCE:
            lines[index] = ESCAPED_END_SEQUENCE + cr
        elif _ESCAPED_SENTINEL.fullmatch(core):
            lines[index] = f"/{line}"
    return "\n".join(lines)


def unescape_end_chars(text: str) -> str:
    """Reverse :func:`escape_end_chars`."""
    lines = text.split("\n")
    for index, line in enumerate(lines):
        core, cr = _split_cr(line)
        if core == ESCAPED_END_SEQUENCE:
            lines[index] = END_SEQUENCE + cr
        elif core.startswith("//") and _ESCAPED_SENTINEL.fullmatch(core):
            lines[index] = line[1:]
    return "\n".join(lines)


def parse_entry_id(line: str) -> str | None:
    """Return the entry id if ``line`` is an entry header."""
    match = _ENTRY_HEADER.match(_split_cr(line)[0])
    return match.group(1) if match else None


def strip_occurrence(test_id: str) -> str:
    """``"TestA/b - 3"`` -> ``"TestA/b"``, keeping separators inside the name."""
    name, separator, _ = test_id.rpartition(ENTRY_ID_SEPARATOR)
    return name if separator else test_id


def natural_key(value: str) -> tuple[list[str | int], str]:
    """Sort key comparing digit runs numerically, so ``x9`` < ``x10``."""
    parts: list[str | int] = [
        int(part) if index % 2 else part
        for index, part in enumerate(_DIGITS.split(value))
    ]
    return parts, value


def natural_sorted(values: Collection[str]) -> list[str]:
    return sorted(values, key=natural_key)


def is_naturally_sorted(values: list[str]) -> bool:
    return all(
        natural_key(left) <= natural_key(right)
        for left, right in zip(values, values[1:])
    )


def _scan_lines(text: str) -> Iterator[str]:
    """Yield lines without their ``\\n`` and without a trailing empty line.

    Carriage returns stay in the line, so bodies holding CRLF text and files
    checked out with CRLF endings are rewritten byte for byte.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    yield from lines


@dataclass
class SnapshotEntry:
    """One framed record of a shared snapshot file."""

    id: str
    body: str
    line: int


def render_entry(test_id: str, body: str) -> str:
    return f"\n[{test_id}]\n{body}{END_SEQUENCE}\n"


class SnapshotFileStore:
    """Reads and writes snapshot files.

    The store has no update policy of its own; the orchestrator decides
    when to write. Mutations of shared files are serialized because many
    tests append to the same file.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @staticmethod
    def _read(snap_path: str | Path) -> str:
        try:
            with open(snap_path, encoding="utf-8", newline="") as handle:
                return handle.read()
        except FileNotFoundError as exc:
            raise SnapshotNotFoundError(details={"path": str(snap_path)}) from exc
        except OSError as exc:
            raise SnapshotIOError(str(exc), {"path": str(snap_path)}) from exc

    @staticmethod
    def _write(snap_path: str | Path, content: str) -> None:
        """Create parent directories and replace the file in one step."""
        path = Path(snap_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                    handle.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise SnapshotIOError(str(exc), {"path": str(path)}) from exc

    # Standalone snapshots

    def get_prev_standalone_snapshot(self, snap_path: str | Path) -> str:
        return self._read(snap_path)

    def upsert_standalone_snapshot(self, snapshot: str, snap_path: str | Path) -> None:
        self._write(snap_path, snapshot)
        logger.debug("Wrote standalone snapshot %s", snap_path)

    # Shared snapshots

    def iter_entries(self, snap_path: str | Path) -> Iterator[SnapshotEntry]:
        """Yield the recognized entries of a shared file in file order."""
        lines = _scan_lines(self._read(snap_path))
        number = 0
        for line in lines:
            number += 1
            test_id = parse_entry_id(line)
            if test_id is None:
                continue

            header_line = number
            body: list[str] = []
            for body_line in lines:
                number += 1
                if _is_end(body_line):
                    break
                body.append(f"{body_line}\n")
            yield SnapshotEntry(id=test_id, body="".join(body), line=header_line)

    def get_prev_snapshot(self, test_id: str, snap_path: str | Path) -> tuple[str, int]:
        """Return the escaped body of ``test_id`` and its header line number.

        Raises:
            SnapshotNotFoundError: the file or the entry does not exist
            SnapshotIOError: the file exists but cannot be read
        """
        header = f"[{test_id}]"
        lines = _scan_lines(self._read(snap_path))
        number = 0

        for line in lines:
            number += 1
            if _split_cr(line)[0] != header:
                continue

            header_line = number
            body: list[str] = []
            for body_line in lines:
                number += 1
                if _is_end(body_line):
                    return "".join(body), header_line
                body.append(f"{body_line}\n")

        raise SnapshotNotFoundError(details={"path": str(snap_path), "id": test_id})

    def add_new_snapshot(self, test_id: str, snapshot: str, snap_path: str | Path) -> None:
        """Append a new entry, creating the file and its directory if needed."""
        path = Path(snap_path)
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with path.open("a", encoding="utf-8", newline="") as handle:
                    handle.write(render_entry(test_id, snapshot))
            except OSError as exc:
                raise SnapshotIOError(str(exc), {"path": str(path)}) from exc

        logger.debug("Added %s to %s", test_id, snap_path)

    def update_snapshot(self, test_id: str, snapshot: str, snap_path: str | Path) -> None:
        """Replace the body of ``test_id`` leaving every other line untouched."""
        header = f"[{test_id}]"
        with self._lock:
            lines = _scan_lines(self._read(snap_path))
            output: list[str] = []
            for line in lines:
                output.append(f"{line}\n")
                if _split_cr(line)[0] != header:
                    continue

                for old_line in lines:
                    if _is_end(old_line):
                        break
                output.append(f"{snapshot}{END_SEQUENCE}\n")

            self._write(snap_path, "".join(output))

        logger.debug("Updated %s in %s", test_id, snap_path)

    def reconcile(
        self,
        snap_path: str | Path,
        live_ids: Collection[str],
        is_skipped: Callable[[str], bool],
        update: bool,
        sort: bool,
    ) -> list[str]:
        """Find entries of ``snap_path`` not referenced by this run.

        In ``update`` mode obsolete entries are dropped; with ``sort`` the
        entries are rewritten in natural order. When neither applies the file
        is not written at all.

        Returns:
            Ids of the obsolete entries, in file order.
        """
        with self._lock:
            entries = list(self.iter_entries(snap_path))
            obsolete = [
                entry.id
                for entry in entries
                if entry.id not in live_ids and not is_skipped(entry.id)
            ]

            ids = [entry.id for entry in entries]
            should_sort = sort and not is_naturally_sorted(ids)
            should_remove = update and bool(obsolete)
            if not should_sort and not should_remove:
                return obsolete

            bodies = {entry.id: entry.body for entry in entries}
            if should_remove:
                for test_id in obsolete:
                    bodies.pop(test_id, None)

            ordered = natural_sorted(bodies) if should_sort else list(bodies)
            self._write(
                snap_path,
                "".join(render_entry(test_id, bodies[test_id]) for test_id in ordered),
            )

        logger.debug(
            "Reconciled %s (removed=%d, sorted=%s)",
            snap_path,
            len(obsolete) if should_remove else 0,
            should_sort,
        )
        return obsolete


__all__ = [
    "SnapshotEntry",
    "SnapshotFileStore",
    "escape_end_chars",
    "is_naturally_sorted",
    "natural_key",
    "natural_sorted",
    "parse_entry_id",
    "render_entry",
    "strip_occurrence",
    "unescape_end_chars",
]
