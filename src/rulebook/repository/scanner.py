"""Directory scanner — builds a Snapshot from the rules directory.

Layout (exactly two levels, anything deeper is ignored):
    rules/
    ├── general/
    │   ├── README.md          -> GENERAL-OVERVIEW
    │   └── COMMIT-MESSAGES.md -> GENERAL-COMMIT-MESSAGES
    └── python/
        └── STYLE.md           -> PYTHON-STYLE

Only a missing root is fatal. A group that cannot be listed, or a file that
cannot be read, is reported as a GroupReadFailure and the scan carries on.
"""

from __future__ import annotations

import logging
import stat
import time
from collections.abc import Callable
from pathlib import Path

import frontmatter

from rulebook.repository.errors import GroupReadFailure, RootNotFound
from rulebook.repository.keys import derive_key, is_valid_key
from rulebook.repository.models import Entry, ScanResult, Snapshot

logger = logging.getLogger(__name__)


def scan(root: Path, clock: Callable[[], float] = time.time) -> ScanResult:
    """Scan ``root`` and return a fresh snapshot.

    Raises RootNotFound if ``root`` does not exist or is not a directory.
    """
    try:
        if not stat.S_ISDIR(root.stat().st_mode):
            raise RootNotFound(root)
        children = sorted(root.iterdir())
    except OSError as e:
        raise RootNotFound(root) from e

    entries: dict[str, Entry] = {}
    warnings: list[GroupReadFailure] = []

    for group_dir in children:
        if group_dir.name.startswith("."):
            continue
        try:
            if not stat.S_ISDIR(group_dir.stat().st_mode):
                continue
        except OSError as e:
            logger.warning("Error reading group directory %s: %s", group_dir.name, e)
            warnings.append(GroupReadFailure(group_dir.name, group_dir, str(e)))
            continue
        _scan_group(group_dir, entries, warnings)

    return ScanResult(snapshot=Snapshot(entries, clock()), warnings=warnings)


def _scan_group(
    group_dir: Path,
    entries: dict[str, Entry],
    warnings: list[GroupReadFailure],
) -> None:
    group = group_dir.name
    try:
        files = sorted(group_dir.iterdir())
    except OSError as e:
        logger.warning("Error reading group directory %s: %s", group, e)
        warnings.append(GroupReadFailure(group, group_dir, str(e)))
        return

    for path in files:
        key = derive_key(group, path.name)
        if key is None:
            continue
        if not is_valid_key(key):
            logger.warning("Skipping %s: %r is not a valid rule key", path, key)
            continue

        try:
            if not stat.S_ISREG(path.stat().st_mode):
                continue
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Error reading rule file %s: %s", path, e)
            warnings.append(GroupReadFailure(group, path, str(e)))
            continue

        if not content:
            logger.debug("Skipping empty rule file %s", path)
            continue

        if key in entries:
            logger.warning(
                "Rule key %s from %s replaces %s", key, path, entries[key].path
            )
        entries[key] = Entry(
            key=key,
            content=content,
            group=group,
            path=path,
            title=_extract_title(key, content),
        )


def _extract_title(key: str, content: str) -> str:
    """Title from front matter, else the first top-level heading, else the key."""
    body = content
    try:
        post = frontmatter.loads(content)
        title = post.metadata.get("title")
        if isinstance(title, str) and title.strip():
            return title.strip()
        body = post.content
    except Exception as e:
        logger.debug("Unparseable front matter in %s: %s", key, e)

    for line in body.splitlines():
        if line.startswith("# "):
            return line[2:].strip() or key
    return key
