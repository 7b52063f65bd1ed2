"""Placeholder matcher for values that change between runs."""

from __future__ import annotations

from typing import Any

from ..exceptions import MatcherError
from .base import get_path, set_path


class AnyMatcher:
    """Replace the value at each path with a fixed placeholder.

    Useful for timestamps, ids and other volatile fields::

        snaps.match_json(payload, Any("created_at", "user.id"))
    """

    name = "Any"

    def __init__(
        self,
        *paths: str,
        placeholder: Any = "<Any value>",
        err_on_missing_path: bool = True,
    ) -> None:
        self.paths = paths
        self.placeholder = placeholder
        self.err_on_missing_path = err_on_missing_path

    def json(self, document: Any) -> tuple[Any, list[MatcherError]]:
        errors: list[MatcherError] = []

        for path in self.paths:
            exists, _ = get_path(document, path)
            if not exists:
                if self.err_on_missing_path:
                    errors.append(MatcherError(self.name, path, "path does not exist"))
                continue

            document = set_path(document, path, self.placeholder)

        return document, errors
