"""Keyboard console: single-letter commands typed on stdin.

    q — quit the server
    r — restart (drop the rules cache, restart file watching)

Lines that look like JSON-RPC frames never reach the console.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

HELP_TEXT = """\
Keyboard controls:
   q - Quit server
   r - Restart server
"""


class Console:
    """Maps command lines to daemon actions."""

    def __init__(self, on_quit: Callable[[], None], on_restart: Callable[[], None]) -> None:
        self._commands: dict[str, Callable[[], None]] = {
            "q": on_quit,
            "r": on_restart,
        }

    def handle(self, line: str) -> bool:
        """Run the command for ``line``. Returns False for unknown input."""
        key = line.strip().lower()
        action = self._commands.get(key)
        if action is None:
            logger.debug("Ignoring console input: %r", key)
            return False
        action()
        return True
