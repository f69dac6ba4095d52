"""Entry point: python -m rulebook [options]

- No options:      serve rules from $MCP_RULES_DIR (default ./rules) over stdio
- --watch:         invalidate the cache when rule files change
- --keyboard:      accept q/r console commands on stdin
- --rules-dir P:   serve rules from P instead
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rulebook.config import CliOverrides, load_config

EPILOG = """\
examples:
  python -m rulebook                                    # Basic server
  python -m rulebook --watch                            # With file watching
  python -m rulebook --watch --keyboard                 # With both features
  python -m rulebook --rules-dir /path/to/rules         # Custom rules directory
  python -m rulebook --rules-dir ./custom-rules --watch # Custom dir + watching
"""


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rulebook",
        description="Serve a directory of project rules over stdio.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-w", "--watch", action="store_true", default=None,
        help="Enable file watching for rule changes",
    )
    parser.add_argument(
        "-k", "--keyboard", action="store_true", default=None,
        help="Enable keyboard interface (q=quit, r=restart)",
    )
    parser.add_argument(
        "-r", "--rules-dir", metavar="PATH",
        help="Specify custom rules directory path",
    )
    parser.add_argument(
        "-c", "--config", type=Path, metavar="PATH",
        help="Path to rulebook.toml",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    config = load_config(
        args.config,
        CliOverrides(rules_dir=args.rules_dir, watch=args.watch, keyboard=args.keyboard),
    )
    _setup_logging(config.log_level)

    from rulebook.daemon import RulebookDaemon

    daemon = RulebookDaemon(config)
    try:
        asyncio.run(daemon.run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
