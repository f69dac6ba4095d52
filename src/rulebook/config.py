"""Configuration loading from command line, environment variables and rulebook.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_RULES_DIR = "./rules"
_CONFIG_FILENAME = "rulebook.toml"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ServerConfig:
    """Identity reported to clients on initialize."""

    name: str = "project-rules"
    version: str = "1.0.0"
    description: str = "MCP server for project rules"


@dataclass
class RulebookConfig:
    """Top-level configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    rules_dir: Path = Path(_DEFAULT_RULES_DIR)
    watch: bool = False
    keyboard: bool = False
    log_level: str = "INFO"


@dataclass
class CliOverrides:
    """Values given on the command line; None means not given."""

    rules_dir: str | None = None
    watch: bool | None = None
    keyboard: bool | None = None


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def load_config(
    config_path: Path | None = None,
    overrides: CliOverrides | None = None,
) -> RulebookConfig:
    """Load configuration from the command line, environment and optional rulebook.toml.

    Priority: command line > environment variables > rulebook.toml > defaults.
    The rules directory is resolved to an absolute path here, once.
    """
    overrides = overrides or CliOverrides()
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.rulebook/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".rulebook" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    server_data = file_data.get("server", {})

    rules_dir = overrides.rules_dir or os.getenv(
        "MCP_RULES_DIR", file_data.get("rules_dir", _DEFAULT_RULES_DIR)
    )
    watch = _env_flag("RULEBOOK_WATCH", bool(file_data.get("watch", False)))
    keyboard = _env_flag("RULEBOOK_KEYBOARD", bool(file_data.get("keyboard", False)))

    return RulebookConfig(
        server=ServerConfig(
            name=os.getenv("MCP_SERVER_NAME", server_data.get("name", "project-rules")),
            version=os.getenv("MCP_SERVER_VERSION", server_data.get("version", "1.0.0")),
            description=os.getenv(
                "MCP_SERVER_DESCRIPTION",
                server_data.get("description", "MCP server for project rules"),
            ),
        ),
        rules_dir=Path(rules_dir).expanduser().resolve(),
        watch=watch if overrides.watch is None else overrides.watch,
        keyboard=keyboard if overrides.keyboard is None else overrides.keyboard,
        log_level=os.getenv("RULEBOOK_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
