"""
Per-call control flow of snapshot matching.

Each match call resolves its snapshot path, takes an occurrence number from
the registry, looks up the stored snapshot and then passes, reports a diff,
creates the snapshot or rewrites it depending on the update policy.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Any

from .caller import base_caller
from .config import (
    ADDED_MSG,
    NO_VALUES_MSG,
    OCCURRENCE_PLACEHOLDER,
    SKIPPED_MSG,
    UPDATED_MSG,
)
from .context import SnapsContext, default_context
from .diff import pretty_diff
from .exceptions import (
    ErrorCollector,
    MatcherExceptionGroup,
    SnapsError,
    SnapshotNotFoundError,
)
from .models import SnapshotConfig
from .registry import Event
from .serializer import SnapshotSerializer, structurally_equal
from .store import escape_end_chars, unescape_end_chars
from .typing_utils import FrameProvider, JsonMatcher, TestingT

logger = logging.getLogger(__name__)


class Snap:
    """Snapshot matcher bound to one test and one configuration."""

    def __init__(
        self,
        t: TestingT,
        config: SnapshotConfig | None = None,
        context: SnapsContext | None = None,
        frame_provider: FrameProvider | None = None,
    ) -> None:
        self.t = t
        self.config = config or SnapshotConfig()
        self.context = context if context is not None else default_context
        self.frame_provider = frame_provider or base_caller
        self.serializer = SnapshotSerializer(sort_keys=self.config.sort_keys)

    def with_config(self, **changes: Any) -> Snap:
        """Return a matcher for the same test with some options overridden."""
        config = SnapshotConfig(**{**self.config.model_dump(), **changes})
        return Snap(self.t, config, self.context, self.frame_provider)

    # Public API

    def match_snapshot(self, *values: Any) -> None:
        """Compare ``values`` with this call's entry in the test module's snapshot file.

        Several values are rendered one per line, in order. Repeated calls
        in one test create ``<test> - 1``, ``<test> - 2``, ... entries.
        """
        self.t.helper()

        if not values:
            self.t.log(NO_VALUES_MSG)
            return

        snapshot = self.take_snapshot(values)
        self._match_entry(snapshot)

    def match_json(self, value: Any, *matchers: JsonMatcher) -> None:
        """Compare a JSON document after applying ``matchers`` in order."""
        self.t.helper()

        try:
            document = self.serializer.load_json(value)
        except SnapsError as exc:
            self._handle_error(exc)
            return

        try:
            with ErrorCollector("match_json") as collector:
                document = self.apply_json_matchers(document, matchers, collector)
        except MatcherExceptionGroup as group:
            self._handle_error(group.render())
            return

        snapshot = f"{escape_end_chars(self.serializer.serialize_json(document))}\n"
        self._match_entry(snapshot, structural=True)

    def match_standalone_snapshot(self, value: Any) -> None:
        """Compare ``value`` with a dedicated file created for this call."""
        self.t.helper()

        generic_path, generic_rel = self.snapshot_path(standalone=True)
        registry = self.context.standalone_registry
        snap_path, snap_path_rel = registry.get_test_id(generic_path, generic_rel)
        self.t.cleanup(lambda: registry.reset(generic_path))

        snapshot = self.serializer.serialize(value)
        store = self.context.store

        try:
            prev_snapshot = store.get_prev_standalone_snapshot(snap_path)
        except SnapshotNotFoundError as exc:
            self._create(exc, lambda: store.upsert_standalone_snapshot(snapshot, snap_path))
            return
        except SnapsError as exc:
            self._handle_error(exc)
            return

        diff = pretty_diff(prev_snapshot, snapshot, snap_path_rel, 1)
        if not diff:
            self._register(Event.PASSED)
            return

        self._update(diff, lambda: store.upsert_standalone_snapshot(snapshot, snap_path))

    def track_skip(self) -> None:
        self.t.helper()
        self.t.log(SKIPPED_MSG)
        self.context.skipped.add(self.t.name())

    def skip(self, *args: Any) -> None:
        """Skip the test and keep its snapshots from being reported obsolete."""
        self.track_skip()
        self.t.skip(*args)

    def skipf(self, format: str, *args: Any) -> None:
        self.track_skip()
        self.t.skipf(format, *args)

    def skip_now(self) -> None:
        self.track_skip()
        self.t.skip_now()

    # Building blocks

    def take_snapshot(self, values: tuple[Any, ...] | list[Any]) -> str:
        return f"{escape_end_chars(self.serializer.serialize_values(values))}\n"

    @staticmethod
    def apply_json_matchers(
        document: Any, matchers: tuple[JsonMatcher, ...], collector: ErrorCollector
    ) -> Any:
        """Run every matcher, keeping the last good document when one fails."""
        for matcher in matchers:
            result, errors = matcher.json(document)
            if errors:
                for error in errors:
                    collector.add_error(error)
                continue
            document = result
        return document

    def should_update(self) -> bool:
        """CI never updates; otherwise the config wins over ``UPDATE_SNAPS``."""
        if self.context.is_ci():
            return False
        if self.config.update is not None:
            return self.config.update
        return self.context.update_requested()

    def snapshot_path(self, standalone: bool = False) -> tuple[str, str]:
        """Return the snapshot file path and its path relative to the calling test."""
        caller_filename = self.frame_provider(0)
        caller_dir = os.path.dirname(caller_filename)

        snaps_dir = self.config.dir
        if not os.path.isabs(snaps_dir):
            snaps_dir = os.path.join(caller_dir, snaps_dir)

        snap_path = os.path.join(snaps_dir, self.construct_filename(caller_filename, standalone))
        try:
            snap_path_rel = os.path.relpath(snap_path, caller_dir or os.curdir)
        except ValueError:
            snap_path_rel = snap_path

        return snap_path, snap_path_rel

    def construct_filename(self, caller_filename: str, standalone: bool) -> str:
        filename = self.config.filename
        if not filename:
            if standalone:
                filename = self.t.name().replace("/", "_")
            else:
                filename = os.path.splitext(os.path.basename(caller_filename))[0]

        if standalone:
            filename += f"_{OCCURRENCE_PLACEHOLDER}"

        return f"{filename}{self.config.suffix}"

    # Internals

    def _match_entry(self, snapshot: str, structural: bool = False) -> None:
        snap_path, snap_path_rel = self.snapshot_path()
        test_name = self.t.name()
        registry = self.context.registry
        test_id = registry.get_test_id(snap_path, test_name)
        self.t.cleanup(lambda: registry.reset(snap_path, test_name))

        store = self.context.store
        try:
            prev_snapshot, line = store.get_prev_snapshot(test_id, snap_path)
        except SnapshotNotFoundError as exc:
            self._create(exc, lambda: store.add_new_snapshot(test_id, snapshot, snap_path))
            return
        except SnapsError as exc:
            self._handle_error(exc)
            return

        expected = unescape_end_chars(prev_snapshot)
        received = unescape_end_chars(snapshot)
        if structural and structurally_equal(expected, received):
            self._register(Event.PASSED)
            return

        diff = pretty_diff(expected, received, snap_path_rel, line)
        if not diff:
            self._register(Event.PASSED)
            return

        self._update(diff, lambda: store.update_snapshot(test_id, snapshot, snap_path))

    def _create(self, not_found: SnapshotNotFoundError, write: Callable[[], None]) -> None:
        if self.context.is_ci():
            self._handle_error(not_found)
            return

        try:
            write()
        except SnapsError as exc:
            self._handle_error(exc)
            return

        self.t.log(ADDED_MSG)
        self._register(Event.ADDED)

    def _update(self, diff: str, write: Callable[[], None]) -> None:
        if not self.should_update():
            self._handle_error(diff)
            return

        try:
            write()
        except SnapsError as exc:
            self._handle_error(exc)
            return

        self.t.log(UPDATED_MSG)
        self._register(Event.UPDATED)

    def _handle_error(self, err: str | Exception) -> None:
        self.t.helper()
        self.t.error(err)
        self._register(Event.ERRED)

    def _register(self, event: Event) -> None:
        logger.debug("%s: snapshot %s", self.t.name(), event.value)
        self.context.events.register(event)


__all__ = ["Snap"]
