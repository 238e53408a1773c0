"""session_closer.notion_api -- transports and endpoint wrappers.

This sub-package provides:

* :mod:`.mcp_transport` -- MCP tool-invocation session over stdio (primary).
* :mod:`.http_transport` -- direct HTTP transport with timeout and retries
  (fallback).
* :mod:`.retries` -- retry policy for the HTTP path.
* :mod:`.pages` -- ``POST /pages`` wrapper.
* :mod:`.blocks` -- ``PATCH /blocks/{id}/children`` wrapper.
"""

from __future__ import annotations

from .blocks import BlockAPI
from .http_transport import NotionHttpTransport
from .mcp_transport import McpToolTransport, ToolTransport, normalize_tool_result
from .pages import PageAPI
from .retries import RetryPolicy

__all__ = [
    "BlockAPI",
    "McpToolTransport",
    "NotionHttpTransport",
    "PageAPI",
    "RetryPolicy",
    "ToolTransport",
    "normalize_tool_result",
]
