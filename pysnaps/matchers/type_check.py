"""Matcher asserting the type of volatile values."""

from __future__ import annotations

from typing import Any

from ..exceptions import MatcherError
from .base import get_path, set_path


def _type_name(expected: type | tuple[type, ...]) -> str:
    if isinstance(expected, tuple):
        return " | ".join(t.__name__ for t in expected)
    return expected.__name__


class TypeMatcher:
    """Check each path holds an ``expected_type`` and replace it with ``<Type:name>``."""

    name = "Type"

    def __init__(
        self,
        expected_type: type | tuple[type, ...],
        *paths: str,
        err_on_missing_path: bool = True,
    ) -> None:
        self.expected_type = expected_type
        self.paths = paths
        self.err_on_missing_path = err_on_missing_path

    def json(self, document: Any) -> tuple[Any, list[MatcherError]]:
        errors: list[MatcherError] = []

        for path in self.paths:
            exists, value = get_path(document, path)
            if not exists:
                if self.err_on_missing_path:
                    errors.append(MatcherError(self.name, path, "path does not exist"))
                continue

            if not isinstance(value, self.expected_type):
                errors.append(
                    MatcherError(
                        self.name,
                        path,
                        f"expected type {_type_name(self.expected_type)}, "
                        f"received {type(value).__name__}",
                    )
                )
                continue

            document = set_path(document, path, f"<Type:{type(value).__name__}>")

        return document, errors
