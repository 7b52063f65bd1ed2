"""Dotted-path access into decoded JSON documents."""

from __future__ import annotations

import re
from typing import Any

_UNESCAPED_DOT = re.compile(r"(?<!\\)\.")

_MISSING = object()


def split_path(path: str) -> list[str]:
    """``"a.b\\.c.0"`` -> ``["a", "b.c", "0"]``."""
    return [part.replace("\\.", ".") for part in _UNESCAPED_DOT.split(path)]


def _child(node: Any, key: str) -> Any:
    if isinstance(node, dict):
        return node.get(key, _MISSING)
    if isinstance(node, list) and key.isdigit():
        index = int(key)
        return node[index] if index < len(node) else _MISSING
    return _MISSING


def get_path(document: Any, path: str) -> tuple[bool, Any]:
    """Return ``(exists, value)`` for ``path`` inside ``document``."""
    node = document
    for key in split_path(path):
        node = _child(node, key)
        if node is _MISSING:
            return False, None
    return True, node


def set_path(document: Any, path: str, value: Any) -> Any:
    """Replace the value at an existing ``path`` in place and return the document."""
    keys = split_path(path)
    if not keys or keys == [""]:
        return value

    parent = document
    for key in keys[:-1]:
        parent = _child(parent, key)
        if parent is _MISSING:
            raise KeyError(path)

    last = keys[-1]
    if isinstance(parent, dict):
        parent[last] = value
    elif isinstance(parent, list) and last.isdigit() and int(last) < len(parent):
        parent[int(last)] = value
    else:
        raise KeyError(path)
    return document


__all__ = ["get_path", "set_path", "split_path"]
