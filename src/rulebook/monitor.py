"""Change monitor — watchdog observer that invalidates the rules cache.

The handler is given only the cache's invalidate callable; it never reads
file contents or touches snapshots.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rulebook.repository.keys import DOCUMENT_SUFFIX

logger = logging.getLogger(__name__)

_CHANGE_EVENTS = {"created", "modified", "deleted", "moved"}
# Groups appearing or disappearing matter; directory "modified" is just noise.
_DIRECTORY_EVENTS = {"created", "deleted", "moved"}


class RulesChangeHandler(FileSystemEventHandler):
    """Invalidates the cache when a rule document or group changes."""

    def __init__(self, invalidate: Callable[[], None]) -> None:
        super().__init__()
        self._invalidate = invalidate
        self.events_seen = 0

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not self._is_relevant(event):
            return
        self.events_seen += 1
        logger.info(
            "File change detected: %s (%s)", os.fsdecode(event.src_path), event.event_type
        )
        self._invalidate()

    @staticmethod
    def _is_relevant(event: FileSystemEvent) -> bool:
        if event.is_directory:
            return event.event_type in _DIRECTORY_EVENTS
        if event.event_type not in _CHANGE_EVENTS:
            return False
        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(p and os.fsdecode(p).endswith(DOCUMENT_SUFFIX) for p in paths)


class ChangeMonitor:
    """Owns a watchdog Observer scheduled recursively on the rules directory."""

    def __init__(self, root: Path, invalidate: Callable[[], None]) -> None:
        self.root = root
        self._invalidate = invalidate
        self._observer: Observer | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> bool:
        """Start watching. Returns False if the rules directory is missing."""
        if self.is_running:
            return True
        if not self.root.is_dir():
            logger.error("Rules directory not found for watching: %s", self.root)
            return False

        observer = Observer()
        observer.schedule(RulesChangeHandler(self._invalidate), str(self.root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Starting file change detection: %s", self.root)
        return True

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("File change detection stopped")

    def restart(self) -> bool:
        self.stop()
        return self.start()
