"""rulebook — serve a directory of project rules to MCP clients."""

__version__ = "1.0.0"
