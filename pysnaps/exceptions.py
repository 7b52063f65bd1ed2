"""
Exception types for the pysnaps snapshot plugin.

Every failure raised inside a match call is caught by the orchestrator and
reported through the host test framework, so these types mostly describe
*what* went wrong rather than controlling flow across the test run.
"""

from __future__ import annotations

from typing import Any

from .config import ERROR_SYMBOL


class SnapsError(Exception):
    """Base exception for snapshot errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class SnapshotNotFoundError(SnapsError):
    """No stored snapshot exists for the requested id or file."""

    def __init__(self, message: str = "snapshot not found", details: dict[str, Any] | None = None):
        super().__init__(message, details)


class InvalidInputError(SnapsError):
    """A value could not be serialized into a snapshot."""

    pass


class InvalidJSONError(InvalidInputError):
    """Input passed to match_json is not valid JSON."""

    def __init__(self, message: str = "invalid json", details: dict[str, Any] | None = None):
        super().__init__(message, details)


class SnapshotIOError(SnapsError):
    """Reading or writing a snapshot file failed."""

    pass


class MatcherError(SnapsError):
    """A JSON matcher could not be applied to a path."""

    def __init__(self, matcher: str, path: str, reason: str | Exception):
        self.matcher = matcher
        self.path = path
        self.reason = reason
        super().__init__(
            f'match.{matcher}("{path}") - {reason}',
            {"matcher": matcher, "path": path},
        )


class MatcherExceptionGroup(ExceptionGroup):
    """Group of matcher failures from a single match_json call."""

    def render(self) -> str:
        """Render every grouped failure on its own line."""
        return "".join(f"\n{ERROR_SYMBOL}{error}" for error in self.exceptions)


def handle_multiple_errors(errors: list[MatcherError], context: str = "") -> None:
    """Raise collected matcher errors as a single exception group."""
    if not errors:
        return

    message = f"Multiple matcher errors occurred{f' in {context}' if context else ''}"
    raise MatcherExceptionGroup(message, errors)


class ErrorCollector:
    """Gathers the matcher failures of one ``match_json`` call.

    Leaving the ``with`` block raises a :class:`MatcherExceptionGroup` when
    any matcher failed, so every failure is reported at once.
    """

    def __init__(self, context: str = "") -> None:
        self.errors: list[MatcherError] = []
        self.context = context

    def add_error(self, error: MatcherError) -> None:
        self.errors.append(error)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def raise_if_errors(self) -> None:
        if self.has_errors():
            handle_multiple_errors(self.errors, self.context)

    def __enter__(self) -> ErrorCollector:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.raise_if_errors()


__all__ = [
    "ErrorCollector",
    "InvalidInputError",
    "InvalidJSONError",
    "MatcherError",
    "MatcherExceptionGroup",
    "SnapshotIOError",
    "SnapshotNotFoundError",
    "SnapsError",
    "handle_multiple_errors",
]
