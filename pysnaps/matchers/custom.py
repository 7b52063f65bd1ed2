"""Matcher delegating to a user callback."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ..exceptions import MatcherError
from .base import get_path, set_path

CustomCallback = Callable[[Any], Any]


class CustomMatcher:
    """Pass the value at ``path`` to ``callback`` and store what it returns.

    The callback may raise to signal a validation failure; the exception
    becomes the reason of the reported matcher error.
    """

    name = "Custom"

    def __init__(
        self, path: str, callback: CustomCallback, err_on_missing_path: bool = True
    ) -> None:
        self.path = path
        self.callback = callback
        self.err_on_missing_path = err_on_missing_path

    def json(self, document: Any) -> tuple[Any, list[MatcherError]]:
        exists, value = get_path(document, self.path)
        if not exists:
            if self.err_on_missing_path:
                return document, [MatcherError(self.name, self.path, "path does not exist")]
            return document, []

        try:
            replacement = self.callback(value)
        except Exception as exc:
            return document, [MatcherError(self.name, self.path, exc)]

        return set_path(document, self.path, replacement), []
