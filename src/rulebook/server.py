"""MCP tool server for project rules.

Exposes the rule repository as two tools:
- get_project_rules(rule_type)  — one rule document, or ALL of them
- list_project_rules()          — the available keys with their titles

Protocol: JSON-RPC 2.0 over stdio (NDJSON). stdout carries protocol frames
only; logging goes to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

from rulebook.repository.errors import UnknownKey

if TYPE_CHECKING:
    from rulebook.config import ServerConfig
    from rulebook.console import Console
    from rulebook.repository.query import RuleQuery

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

GET_RULES_TOOL = "get_project_rules"
LIST_RULES_TOOL = "list_project_rules"

# JSON-RPC error codes
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


# ── JSON-RPC 2.0 helpers ─────────────────────────────────────


def jsonrpc_result(req_id, result):
    return {"jsonrpc": "2.0", "id": req_id, "result": result}


def jsonrpc_error(req_id, code, message):
    return {"jsonrpc": "2.0", "id": req_id, "error": {"code": code, "message": message}}


def text_content(text: str, *, is_error: bool = False) -> dict[str, Any]:
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


class RequestError(Exception):
    """A request-level failure that becomes a JSON-RPC error response."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


# ── Server ───────────────────────────────────────────────────


class RulesServer:
    """Dispatches JSON-RPC requests to the rule query surface."""

    def __init__(
        self,
        query: RuleQuery,
        config: ServerConfig,
        console: Console | None = None,
        output: TextIO | None = None,
    ) -> None:
        self._query = query
        self._config = config
        self._console = console
        self._output = output

    # ── Tool definitions ─────────────────────────────────────

    def tool_definitions(self) -> list[dict[str, Any]]:
        """Tool list; the rule_type enum is rebuilt from the current snapshot."""
        return [
            {
                "name": GET_RULES_TOOL,
                "description": "Get project rules",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "rule_type": {
                            "type": "string",
                            "enum": self._query.list_keys(),
                            "description": "Type of rule to retrieve",
                        },
                    },
                    "required": ["rule_type"],
                },
            },
            {
                "name": LIST_RULES_TOOL,
                "description": "List available project rules with their titles",
                "inputSchema": {"type": "object", "properties": {}},
            },
        ]

    # ── Tool implementations ─────────────────────────────────

    def get_project_rules(self, args: Any) -> str:
        if not isinstance(args, dict) or not isinstance(args.get("rule_type"), str):
            raise RequestError(INVALID_PARAMS, "rule_type argument is required")
        rule_type = args["rule_type"]
        try:
            return self._query.get(rule_type)
        except UnknownKey as e:
            raise RequestError(INVALID_PARAMS, str(e)) from e

    def list_project_rules(self) -> str:
        titles = self._query.describe()
        if not titles:
            return "(no project rules available)"
        return "\n".join(f"- {key}: {title}" for key, title in titles.items())

    # ── Request handler ──────────────────────────────────────

    async def handle_request(self, req: dict) -> dict | None:
        req_id = req.get("id")
        method = req.get("method", "")

        # Notifications (no id) — no response
        if req_id is None:
            if method == "notifications/initialized":
                logger.info("Client initialized")
            return None

        params = req.get("params") or {}
        try:
            if not isinstance(params, dict):
                raise RequestError(INVALID_PARAMS, "params must be an object")
            return jsonrpc_result(req_id, self._dispatch(method, params))
        except RequestError as e:
            return jsonrpc_error(req_id, e.code, e.message)

    def _dispatch(self, method: str, params: dict) -> dict[str, Any]:
        if method == "initialize":
            return {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": self._config.name, "version": self._config.version},
                "instructions": self._config.description,
            }

        if method == "ping":
            return {}

        if method == "tools/list":
            return {"tools": self.tool_definitions()}

        if method == "tools/call":
            tool_name = params.get("name", "")
            args = params.get("arguments")
            if tool_name == GET_RULES_TOOL:
                return text_content(self.get_project_rules(args))
            if tool_name == LIST_RULES_TOOL:
                return text_content(self.list_project_rules())
            return text_content(f"Unknown tool: {tool_name}", is_error=True)

        raise RequestError(METHOD_NOT_FOUND, f"Method not found: {method}")

    # ── Stdio transport (NDJSON) ─────────────────────────────

    async def handle_line(self, line: str) -> dict | None:
        """Handle one input line: a console command or a JSON-RPC request."""
        line = line.strip()
        if not line:
            return None

        if self._console is not None and not line.startswith("{"):
            self._console.handle(line)
            return None

        try:
            req = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Parse error: %s", e)
            return None
        if not isinstance(req, dict):
            logger.warning("Ignoring non-object request: %r", req)
            return None

        logger.debug("<- %s", req.get("method", "?"))
        return await self.handle_request(req)

    def _write(self, response: dict) -> None:
        output = self._output or sys.stdout
        output.write(json.dumps(response) + "\n")
        output.flush()

    async def serve(self, reader: asyncio.StreamReader) -> None:
        """Read requests until EOF."""
        while True:
            raw = await reader.readline()
            if not raw:
                logger.info("stdin closed")
                break
            try:
                response = await self.handle_line(raw.decode("utf-8", errors="replace"))
            except Exception:
                logger.exception("Handler error")
                continue
            if response:
                self._write(response)


async def open_stdin_reader() -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await asyncio.get_running_loop().connect_read_pipe(lambda: protocol, sys.stdin)
    return reader
