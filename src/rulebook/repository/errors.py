"""Error types for the rule repository."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class RulebookError(Exception):
    """Base class for rule repository errors."""


class RootNotFound(RulebookError):
    """The configured rules directory is missing or not a directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(f"Rules directory not found: {root}")


class UnknownKey(RulebookError, KeyError):
    """Requested rule key is not in the current snapshot."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Unknown rule type: {key}")

    def __str__(self) -> str:
        return f"Unknown rule type: {self.key}"


@dataclass(frozen=True)
class GroupReadFailure:
    """Non-fatal scan warning: part of a group could not be read."""

    group: str
    path: Path
    reason: str

    def __str__(self) -> str:
        return f"Error reading group {self.group} ({self.path}): {self.reason}"
