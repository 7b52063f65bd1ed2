"""
Protocols and type aliases shared across the snapshot plugin.

The orchestrator only ever talks to its collaborators through these
protocols, so any test framework, clock or frame walker can be plugged in.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeGuard, runtime_checkable

from .exceptions import MatcherError

FrameProvider = Callable[[int], str]
EnvGetter = Callable[[str], "str | None"]
CIDetector = Callable[[], bool]


class TestingT(Protocol):
    """Test-context object exposed by the host test framework."""

    def helper(self) -> None:
        """Mark the calling frame as a helper."""
        ...

    def name(self) -> str:
        """Hierarchical name of the running test."""
        ...

    def log(self, *args: Any) -> None:
        """Log a message attached to the test."""
        ...

    def error(self, *args: Any) -> None:
        """Report a failure without stopping the test."""
        ...

    def cleanup(self, fn: Callable[[], None]) -> None:
        """Register a callback run when the test finishes."""
        ...

    def skip(self, *args: Any) -> None:
        ...

    def skipf(self, format: str, *args: Any) -> None:
        ...

    def skip_now(self) -> None:
        ...


class JsonMatcher(Protocol):
    """Transforms or validates a decoded JSON document."""

    def json(self, document: Any) -> tuple[Any, list[MatcherError]]:
        """Return the transformed document and any errors found."""
        ...


@runtime_checkable
class Serializable(Protocol):
    """Values that know how to render themselves into a snapshot."""

    def __snapshot__(self) -> str:
        ...


def is_serializable(value: Any) -> TypeGuard[Serializable]:
    """Type guard for values providing their own snapshot form."""
    return isinstance(value, Serializable) and not isinstance(value, type)

