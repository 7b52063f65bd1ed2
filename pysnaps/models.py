"""
Data models for the pysnaps snapshot plugin.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from .config import DEFAULT_SNAPS_DIR, SNAPS_EXT


class SnapshotConfig(BaseModel):
    """Per-matcher configuration.

    Attributes:
        filename: Base name of the snapshot file, defaults to the test file (or test) name
        dir: Snapshot directory, absolute or relative to the calling test file
        extension: Suffix appended after ``.snap``, e.g. ``.txt`` gives ``.snap.txt``
        update: Force (True) or forbid (False) update mode; None defers to ``UPDATE_SNAPS``
        sort_keys: Sort object keys when serializing JSON and mappings
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    filename: str = ""
    dir: str = DEFAULT_SNAPS_DIR
    extension: str = ""
    update: bool | None = None
    sort_keys: bool = False

    @property
    def suffix(self) -> str:
        return f"{SNAPS_EXT}{self.extension}"


__all__ = ["SnapshotConfig"]
