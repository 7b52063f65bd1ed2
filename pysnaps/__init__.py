"""
pysnaps - snapshot testing for pytest.

Values are serialized into ``__snapshots__/<test module>.snap`` on the first
run and compared against the stored text afterwards::

    def test_render(snaps):
        snaps.match_snapshot(render_page())

Set ``UPDATE_SNAPS=true`` to rewrite mismatching snapshots and remove
obsolete ones, or ``UPDATE_SNAPS=clean`` to only remove obsolete ones.
"""

from __future__ import annotations

from typing import Any

from .clean import CleanResult, clean
from .context import SnapsContext, default_context
from .exceptions import (
    InvalidInputError,
    InvalidJSONError,
    MatcherError,
    SnapsError,
    SnapshotIOError,
    SnapshotNotFoundError,
)
from .matchers import Any as AnyValue
from .matchers import Custom, Type
from .models import SnapshotConfig
from .snap import Snap
from .typing_utils import JsonMatcher, TestingT

__version__ = "0.1.0"


class ConfiguredSnaps:
    """Configuration bound to the module-level API; pass the test on each call."""

    def __init__(self, config: SnapshotConfig, context: SnapsContext | None = None) -> None:
        self.config = config
        self.context = context

    def _snap(self, t: TestingT) -> Snap:
        return Snap(t, self.config, self.context)

    def match_snapshot(self, t: TestingT, *values: Any) -> None:
        self._snap(t).match_snapshot(*values)

    def match_json(self, t: TestingT, value: Any, *matchers: JsonMatcher) -> None:
        self._snap(t).match_json(value, *matchers)

    def match_standalone_snapshot(self, t: TestingT, value: Any) -> None:
        self._snap(t).match_standalone_snapshot(value)


def with_config(**options: Any) -> ConfiguredSnaps:
    """Build a configured matcher set.

    Accepts the :class:`SnapshotConfig` fields: ``filename``, ``dir``,
    ``extension``, ``update`` and ``sort_keys``.
    """
    return ConfiguredSnaps(SnapshotConfig(**options))


def match_snapshot(t: TestingT, *values: Any) -> None:
    Snap(t).match_snapshot(*values)


def match_json(t: TestingT, value: Any, *matchers: JsonMatcher) -> None:
    Snap(t).match_json(value, *matchers)


def match_standalone_snapshot(t: TestingT, value: Any) -> None:
    Snap(t).match_standalone_snapshot(value)


def skip(t: TestingT, *args: Any) -> None:
    """Skip the test and keep its snapshots from being reported obsolete."""
    t.helper()
    Snap(t).skip(*args)


def skipf(t: TestingT, format: str, *args: Any) -> None:
    t.helper()
    Snap(t).skipf(format, *args)


def skip_now(t: TestingT) -> None:
    t.helper()
    Snap(t).skip_now()


__all__ = [
    "AnyValue",
    "CleanResult",
    "ConfiguredSnaps",
    "Custom",
    "InvalidInputError",
    "InvalidJSONError",
    "MatcherError",
    "Snap",
    "SnapsContext",
    "SnapsError",
    "SnapshotConfig",
    "SnapshotIOError",
    "SnapshotNotFoundError",
    "TestingT",
    "Type",
    "__version__",
    "clean",
    "default_context",
    "match_json",
    "match_snapshot",
    "match_standalone_snapshot",
    "skip",
    "skip_now",
    "skipf",
    "with_config",
]
