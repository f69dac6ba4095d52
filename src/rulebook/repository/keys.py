"""Key derivation: (group directory, file name) -> rule key.

    general/README.md           -> GENERAL-OVERVIEW
    general/COMMIT-MESSAGES.md  -> GENERAL-COMMIT-MESSAGES
    general/notes.txt           -> None (not a rule document)
"""

from __future__ import annotations

import re

DOCUMENT_SUFFIX = ".md"
OVERVIEW_NAME = "README"
OVERVIEW_KEY = "OVERVIEW"
ALL_KEY = "ALL"

_KEY_RE = re.compile(r"[A-Z0-9_-]+")


def derive_key(group: str, filename: str) -> str | None:
    """Return the rule key for a file, or None if it is not a rule document."""
    if not filename.endswith(DOCUMENT_SUFFIX):
        return None
    stem = filename[: -len(DOCUMENT_SUFFIX)]
    prefix = group.upper()
    if stem.upper() == OVERVIEW_NAME:
        return f"{prefix}-{OVERVIEW_KEY}"
    return f"{prefix}-{stem.upper()}"


def is_valid_key(key: str) -> bool:
    return _KEY_RE.fullmatch(key) is not None
