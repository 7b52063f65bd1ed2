"""Deterministic text rendering of values stored in snapshots."""

from __future__ import annotations

import dataclasses
import json
import pprint
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel

from .exceptions import InvalidInputError, InvalidJSONError
from .typing_utils import is_serializable


class SnapshotSerializer:
    """Turns arbitrary values and JSON documents into comparable text.

    The serializer is pure: escaping the file delimiter is the store's job.
    """

    def __init__(self, sort_keys: bool = False, width: int = 80) -> None:
        self.sort_keys = sort_keys
        self.width = width

    def serialize(self, value: Any) -> str:
        """Render a single value."""
        if is_serializable(value):
            return value.__snapshot__()
        if isinstance(value, str):
            return value
        if value is None:
            return "None"
        # bool is an int subclass, so it has to be checked first
        if isinstance(value, bool):
            return f"bool({value})"
        if isinstance(value, (int, float, complex)):
            return f"{type(value).__name__}({value!r})"
        if isinstance(value, BaseModel):
            fields = pprint.pformat(
                value.model_dump(), width=self.width, sort_dicts=self.sort_keys
            )
            return f"{type(value).__name__}({fields})"

        return pprint.pformat(value, width=self.width, sort_dicts=self.sort_keys)

    def serialize_values(self, values: Iterable[Any]) -> str:
        """Render several values, one after the other, in call order."""
        return "\n".join(self.serialize(value) for value in values)

    def serialize_json(self, document: Any) -> str:
        """Pretty print a decoded JSON document."""
        return json.dumps(
            document, indent=1, sort_keys=self.sort_keys, ensure_ascii=False
        )

    @staticmethod
    def load_json(value: Any) -> Any:
        """Decode ``value`` into a JSON document.

        Strings and bytes must hold valid JSON; models, dataclasses and any
        value accepted by ``json.dumps`` are converted.

        Raises:
            InvalidJSONError: text input is not valid JSON
            InvalidInputError: the value cannot be represented as JSON
        """
        if isinstance(value, (bytes, bytearray)):
            try:
                value = bytes(value).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise InvalidJSONError(details={"reason": str(exc)}) from exc

        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise InvalidJSONError(details={"reason": str(exc)}) from exc

        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            value = dataclasses.asdict(value)

        try:
            return json.loads(json.dumps(value))
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(str(exc), {"type": type(value).__name__}) from exc


def _canonical_json(text: str) -> str:
    return json.dumps(json.loads(text), sort_keys=True, ensure_ascii=False)


def structurally_equal(left: str, right: str) -> bool:
    """True if both texts decode to the same JSON document.

    Key order and whitespace are ignored. Types are not: ``true`` differs
    from ``1`` and ``1.0`` from ``1``.
    """
    try:
        return _canonical_json(left) == _canonical_json(right)
    except ValueError:
        return False


__all__ = ["SnapshotSerializer", "structurally_equal"]
