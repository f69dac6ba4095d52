"""Immutable data produced by a repository scan."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from rulebook.repository.errors import GroupReadFailure


@dataclass(frozen=True)
class Entry:
    """One rule document: its key and raw content."""

    key: str
    content: str
    group: str = ""
    path: Path | None = None
    title: str = ""


@dataclass(frozen=True)
class Snapshot:
    """All entries from one scan, tagged with the wall-clock scan time."""

    entries: Mapping[str, Entry]
    created_at: float

    def __post_init__(self) -> None:
        if not isinstance(self.entries, MappingProxyType):
            object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    @classmethod
    def empty(cls, created_at: float | None = None) -> Snapshot:
        return cls({}, time.time() if created_at is None else created_at)

    def keys(self) -> list[str]:
        return list(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self.entries


@dataclass(frozen=True)
class ScanResult:
    """A successful scan: the new snapshot plus per-group warnings."""

    snapshot: Snapshot
    warnings: list[GroupReadFailure] = field(default_factory=list)
