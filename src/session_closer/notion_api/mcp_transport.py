"""MCP tool-invocation transport.

Launches the Notion MCP server as a child process (by default a Docker
container) and talks to it over the stdio tool-call protocol using the
``mcp`` client SDK.  This is the primary path for every remote operation.

Results are normalised to plain dicts by :func:`normalize_tool_result`; an
error-flagged result becomes a :class:`SessionCloserToolError` whose message
is the first content item's text.
"""

from __future__ import annotations

import json
from contextlib import AsyncExitStack
from typing import Any, Protocol, runtime_checkable

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import get_default_environment, stdio_client

from session_closer.config import SessionCloserConfig
from session_closer.errors import SessionCloserConnectionError, SessionCloserToolError
from session_closer.observability import NoopMetricsHook, get_logger

log = get_logger("session_closer.mcp")

CLIENT_NAME = "session-closer"


@runtime_checkable
class ToolTransport(Protocol):
    """What the client needs from a tool-invocation session."""

    @property
    def connected(self) -> bool: ...

    async def connect(self) -> None: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]: ...

    async def close(self) -> None: ...


def _first_text(content: list[Any] | None) -> str | None:
    for item in content or []:
        text = getattr(item, "text", None)
        if text is None and isinstance(item, dict):
            text = item.get("text")
        if text is not None:
            return text
    return None


def normalize_tool_result(tool: str, result: Any) -> dict[str, Any]:
    """Turn an MCP ``CallToolResult`` into a plain dict.

    Preference order: ``structuredContent``, then the first text item parsed
    as a JSON object, then ``{"text": <first text>}``.

    Raises
    ------
    SessionCloserToolError
        When the result carries ``isError``.
    """
    content = getattr(result, "content", None)
    if getattr(result, "isError", False):
        raise SessionCloserToolError(
            message=_first_text(content) or "Unknown error",
            context={"tool": tool},
        )

    structured = getattr(result, "structuredContent", None)
    if isinstance(structured, dict):
        return structured

    text = _first_text(content)
    if text is None:
        return {}
    try:
        parsed = json.loads(text)
    except ValueError:
        return {"text": text}
    if isinstance(parsed, dict):
        return parsed
    return {"results": parsed} if isinstance(parsed, list) else {"text": text}


class McpToolTransport:
    """Stdio MCP session to the Notion tool server.

    The session is a single mutable resource: :meth:`connect` and
    :meth:`close` are idempotent, and one instance must not be shared by
    overlapping requests.

    Parameters
    ----------
    config:
        Supplies the launch command, its arguments, extra environment, and
        the token forwarded to the child as ``NOTION_API_TOKEN``.
    """

    def __init__(self, config: SessionCloserConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._stack: AsyncExitStack | None = None
        self._session: ClientSession | None = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    def _server_parameters(self) -> StdioServerParameters:
        env = {
            **get_default_environment(),
            **self._config.mcp_env,
            "NOTION_API_TOKEN": self._config.token,
        }
        return StdioServerParameters(
            command=self._config.mcp_command,
            args=list(self._config.mcp_args),
            env=env,
        )

    async def connect(self) -> None:
        """Start the child process and complete the MCP handshake.

        Raises
        ------
        SessionCloserConnectionError
            If the process cannot be started or ``initialize`` fails.
        """
        if self._session is not None:
            return

        params = self._server_parameters()
        stack = AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(stdio_client(params))
            session = await stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
        except Exception as exc:
            await stack.aclose()
            raise SessionCloserConnectionError(
                message=f"Failed to connect to Notion MCP server: {exc}",
                context={"command": params.command, "args": params.args},
                cause=exc,
            ) from exc

        self._stack = stack
        self._session = session
        log.info(
            "MCP session established",
            extra={"extra_fields": {"op": "connect", "command": params.command}},
        )

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Invoke tool *name* with a flat argument object.

        Connects first when needed.  Structured values inside *arguments*
        are passed through untouched; the SDK serialises the whole request
        exactly once.
        """
        if self._session is None:
            await self.connect()
        assert self._session is not None

        self._metrics.increment("session_closer.tool_calls_total", tags={"tool": name})
        result = await self._session.call_tool(name, arguments=arguments)
        return normalize_tool_result(name, result)

    async def close(self) -> None:
        """Tear down the session and child process; safe when never connected."""
        stack, self._stack, self._session = self._stack, None, None
        if stack is not None:
            await stack.aclose()
