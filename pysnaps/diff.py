"""
Line diffing between a stored snapshot and a freshly received value.

Opcodes come from ``difflib.SequenceMatcher`` (Ratcliff/Obershelp longest
contiguous match with the auto-junk heuristic); this module wraps them in
typed records and renders the human-readable report shown on mismatch.
"""

from __future__ import annotations

import difflib
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from .config import DIFF_CONTEXT_LINES

T = TypeVar("T")


class OpTag(Enum):
    """Edit operation kinds."""

    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"
    REPLACE = "replace"


@dataclass(frozen=True)
class OpCode:
    """Turn ``a[i1:i2]`` into ``b[j1:j2]`` using ``tag``."""

    tag: OpTag
    i1: int
    i2: int
    j1: int
    j2: int


@dataclass(frozen=True)
class MatchBlock:
    """``a[a:a+size] == b[b:b+size]``."""

    a: int
    b: int
    size: int


def _matcher(a: Sequence[T], b: Sequence[T]) -> difflib.SequenceMatcher:
    return difflib.SequenceMatcher(None, a, b, autojunk=True)


def matching_blocks(a: Sequence[T], b: Sequence[T]) -> list[MatchBlock]:
    """Return the maximal matching blocks, terminated by a ``(len(a), len(b), 0)`` sentinel."""
    return [MatchBlock(m.a, m.b, m.size) for m in _matcher(a, b).get_matching_blocks()]


def opcodes(a: Sequence[T], b: Sequence[T]) -> list[OpCode]:
    """Return the edit script that transforms ``a`` into ``b``.

    Every index of both sequences is covered exactly once, in increasing
    order. Two empty inputs yield a single empty ``EQUAL`` opcode.
    """
    if not a and not b:
        return [OpCode(OpTag.EQUAL, 0, 0, 0, 0)]

    return [
        OpCode(OpTag(tag), i1, i2, j1, j2)
        for tag, i1, i2, j1, j2 in _matcher(a, b).get_opcodes()
    ]


def grouped_opcodes(
    a: Sequence[T], b: Sequence[T], n: int = DIFF_CONTEXT_LINES
) -> list[list[OpCode]]:
    """Isolate change clusters with up to ``n`` items of surrounding context."""
    if n < 0:
        n = DIFF_CONTEXT_LINES

    return [
        [OpCode(OpTag(tag), i1, i2, j1, j2) for tag, i1, i2, j1, j2 in group]
        for group in _matcher(a, b).get_grouped_opcodes(n)
    ]


def apply_opcodes(a: Sequence[T], b: Sequence[T], codes: Sequence[OpCode]) -> list[T]:
    """Rebuild ``b`` by replaying ``codes`` over ``a``."""
    result: list[T] = []
    for code in codes:
        if code.tag is OpTag.EQUAL:
            result.extend(a[code.i1 : code.i2])
        elif code.tag is not OpTag.DELETE:
            result.extend(b[code.j1 : code.j2])
    return result


def format_range_unified(start: int, stop: int) -> str:
    """Convert a range to the unified diff ``start,length`` format."""
    beginning = start + 1
    length = stop - start

    if length == 1:
        return str(beginning)
    if length == 0:
        beginning -= 1

    return f"{beginning},{length}"


def split_newlines(text: str) -> list[str]:
    """Split ``text`` on newlines keeping a trailing ``\\n`` on every line."""
    return [f"{line}\n" for line in text.split("\n")]


def _int_padding(inserted: int, deleted: int) -> tuple[str, str]:
    width = max(len(str(inserted)), len(str(deleted)))
    return " " * (width - len(str(inserted))), " " * (width - len(str(deleted)))


def build_diff_report(inserted: int, deleted: int, diff: str, name: str, line: int) -> str:
    """Frame a rendered diff with its counters and the snapshot location."""
    if inserted == 0 and deleted == 0 and not diff:
        return ""

    i_padding, d_padding = _int_padding(inserted, deleted)
    parts = [
        "\n",
        f"- Snapshot {d_padding}- {deleted}\n",
        f"+ Received {i_padding}+ {inserted}\n",
        "\n",
        diff,
    ]
    if name:
        parts.append(f"\nat {name}:{line}\n")

    return "".join(parts)


def unified_diff(expected: str, received: str, name: str, line: int) -> str:
    """Render a line diff report between two snapshot bodies."""
    # bodies are newline terminated; the final empty line is not content
    a = split_newlines(expected.removesuffix("\n"))
    b = split_newlines(received.removesuffix("\n"))
    inserted = deleted = 0
    lines: list[str] = []

    for index, group in enumerate(grouped_opcodes(a, b)):
        if index > 0:
            first, last = group[0], group[-1]
            lines.append(
                f"@@ -{format_range_unified(first.i1, last.i2)} "
                f"+{format_range_unified(first.j1, last.j2)} @@\n"
            )

        for code in group:
            if code.tag is OpTag.EQUAL:
                lines.extend(f"  {text}" for text in a[code.i1 : code.i2])
                continue
            if code.tag in (OpTag.REPLACE, OpTag.DELETE):
                for text in a[code.i1 : code.i2]:
                    lines.append(f"- {text}")
                    deleted += 1
            if code.tag in (OpTag.REPLACE, OpTag.INSERT):
                for text in b[code.j1 : code.j2]:
                    lines.append(f"+ {text}")
                    inserted += 1

    return build_diff_report(inserted, deleted, "".join(lines), name, line)


def pretty_diff(expected: str, received: str, name: str, line: int) -> str:
    """Return a diff report, or ``""`` when both bodies are identical."""
    if expected == received:
        return ""

    return unified_diff(expected, received, name, line)


__all__ = [
    "MatchBlock",
    "OpCode",
    "OpTag",
    "apply_opcodes",
    "build_diff_report",
    "format_range_unified",
    "grouped_opcodes",
    "matching_blocks",
    "opcodes",
    "pretty_diff",
    "split_newlines",
    "unified_diff",
]
