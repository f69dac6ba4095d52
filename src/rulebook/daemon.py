"""Daemon process — wires the rule repository to the stdio server.

Usage: python -m rulebook [--watch] [--keyboard] [--rules-dir PATH]

Manages:
- Repository cache + query surface
- Optional file change detection (--watch)
- Optional keyboard console (--keyboard)
- Graceful shutdown (SIGTERM/SIGINT, console "q", stdin EOF)
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from rulebook.config import RulebookConfig, load_config
from rulebook.console import HELP_TEXT, Console
from rulebook.monitor import ChangeMonitor
from rulebook.repository import RepositoryCache, RuleQuery
from rulebook.server import RulesServer, open_stdin_reader

logger = logging.getLogger(__name__)


class RulebookDaemon:
    """Always-on rules server."""

    def __init__(self, config: RulebookConfig | None = None) -> None:
        self.config = config or load_config()
        self._shutdown_event = asyncio.Event()
        self.cache = RepositoryCache(self.config.rules_dir)
        self.query = RuleQuery(self.cache)
        self.monitor = ChangeMonitor(self.config.rules_dir, self.cache.invalidate)
        self.console: Console | None = None
        if self.config.keyboard:
            self.console = Console(on_quit=self.request_shutdown, on_restart=self.restart)
        self.server = RulesServer(self.query, self.config.server, console=self.console)

    # ── Signal handling ──────────────────────────────────────

    def _setup_signals(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_signal, sig)

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down...", sig.name)
        self._shutdown_event.set()

    # ── Console actions ──────────────────────────────────────

    def request_shutdown(self) -> None:
        logger.info("Quitting server...")
        self._shutdown_event.set()

    def restart(self) -> None:
        logger.info("Restarting server...")
        self.cache.reset()
        if self.monitor.is_running:
            self.monitor.restart()
        logger.info("Server restarted")

    # ── Main run loop ────────────────────────────────────────

    async def run(self) -> None:
        self._setup_signals()
        server_config = self.config.server
        logger.info(
            "%s MCP Server started (v%s), rules: %s",
            server_config.name,
            server_config.version,
            self.config.rules_dir,
        )

        if self.config.watch:
            if self.monitor.start():
                logger.info("File change detection enabled")
        else:
            logger.info("File change detection disabled (use --watch to enable)")

        if self.console is not None:
            print(HELP_TEXT, file=sys.stderr)
            logger.info("Keyboard interface enabled")

        reader = await open_stdin_reader()
        try:
            await self.serve(reader)
        finally:
            self.monitor.stop()
            logger.info("%s MCP Server stopped.", server_config.name)

    async def serve(self, reader: asyncio.StreamReader) -> None:
        """Serve requests until EOF on ``reader`` or shutdown is requested."""
        serve_task = asyncio.create_task(self.server.serve(reader))
        stop_task = asyncio.create_task(self._shutdown_event.wait())
        done, pending = await asyncio.wait(
            {serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if serve_task in done:
            serve_task.result()
