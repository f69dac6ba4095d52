"""Repository cache — serves the last snapshot, rescans lazily.

A rescan happens on the next read() when any of these holds:
- no snapshot has been installed yet
- invalidate() was called since the last rescan
- the current snapshot is older than the TTL

invalidate() never scans; a burst of change events collapses into a single
rescan on the next read.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections.abc import Callable
from pathlib import Path

from rulebook.repository.errors import GroupReadFailure, RootNotFound
from rulebook.repository.models import ScanResult, Snapshot
from rulebook.repository.scanner import scan

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 5.0

Scanner = Callable[[Path], ScanResult]
Clock = Callable[[], float]


class RepositoryCache:
    """Owns the current snapshot and the stale flag."""

    def __init__(
        self,
        root: Path,
        *,
        scanner: Scanner | None = None,
        clock: Clock = time.time,
        ttl: float = CACHE_TTL_SECONDS,
    ) -> None:
        self.root = root
        self._clock = clock
        self._scanner = scanner or functools.partial(scan, clock=clock)
        self._ttl = ttl
        self._current: Snapshot | None = None
        self._stale = True
        self._read_lock = threading.Lock()  # serializes rescans
        self._flag_lock = threading.Lock()
        self.last_warnings: list[GroupReadFailure] = []
        self.scan_count = 0

    @property
    def snapshot(self) -> Snapshot | None:
        return self._current

    # ── Invalidation ─────────────────────────────────────────

    def invalidate(self) -> None:
        """Mark the current snapshot untrusted. The next read() rescans."""
        with self._flag_lock:
            already = self._stale
            self._stale = True
        if not already:
            logger.info("Rules cache invalidated")

    def reset(self) -> None:
        """Drop the current snapshot entirely (console restart)."""
        with self._read_lock:
            self._current = None
            self.invalidate()

    # ── Reads ────────────────────────────────────────────────

    def read(self) -> Snapshot:
        """Return the current snapshot, rescanning first if it is due."""
        with self._read_lock:
            current = self._current
            if not self._needs_rescan(current):
                return current

            # Clear before scanning so an invalidation during the scan survives.
            with self._flag_lock:
                self._stale = False

            logger.debug("Rescanning rules in %s", self.root)
            self.scan_count += 1
            try:
                result = self._scanner(self.root)
            except (RootNotFound, OSError) as e:
                with self._flag_lock:
                    self._stale = True
                if current is not None:
                    logger.warning("Rescan failed (%s); serving previous snapshot", e)
                    return current
                logger.warning("Rescan failed (%s); serving empty snapshot", e)
                return Snapshot.empty(self._clock())

            for warning in result.warnings:
                logger.warning("%s", warning)
            self.last_warnings = list(result.warnings)
            self._current = result.snapshot
            logger.info("%d rules loaded", len(result.snapshot))
            return result.snapshot

    def _needs_rescan(self, current: Snapshot | None) -> bool:
        if current is None:
            return True
        with self._flag_lock:
            if self._stale:
                return True
        return self._clock() - current.created_at > self._ttl
