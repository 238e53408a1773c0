"""Remote document client for Notion.

:class:`NotionSessionClient` performs the four remote operations the
session closer needs and hides the choice of transport:

* :meth:`~NotionSessionClient.append_blocks` and
  :meth:`~NotionSessionClient.create_page` try the MCP tool first and fall
  back to a direct HTTP request for the *same* payload.
* :meth:`~NotionSessionClient.query_database` and
  :meth:`~NotionSessionClient.get_page_blocks` are read-only and use the MCP
  tool only.

Usage::

    from session_closer import NotionSessionClient, SessionCloserConfig
    from session_closer.converter import markdown_to_blocks

    async with NotionSessionClient(SessionCloserConfig(token="secret_xxx")) as client:
        await client.append_blocks("<page_id>", markdown_to_blocks("# Hello"))

A client holds one MCP session as plain mutable state; do not share an
instance between overlapping requests.
"""

from __future__ import annotations

import functools
import warnings
from collections.abc import Mapping, Sequence
from typing import Any

from session_closer.config import SessionCloserConfig
from session_closer.errors import (
    AppendError,
    ChunkPartialFailureWarning,
    CreatePageError,
    FetchError,
    PartialAppendError,
    QueryError,
    SerializationHazardError,
)
from session_closer.fallback import Strategy, run_strategies
from session_closer.models import AppendResult, PageCreateResult, ParentReference
from session_closer.notion_api.blocks import BlockAPI
from session_closer.notion_api.http_transport import NotionHttpTransport
from session_closer.notion_api.mcp_transport import McpToolTransport, ToolTransport
from session_closer.notion_api.pages import PageAPI
from session_closer.observability import NoopMetricsHook, get_logger
from session_closer.utils.chunk import chunk_children
from session_closer.utils.ids import normalize_id

log = get_logger("session_closer.client")


def _guard_structured(tool: str, arguments: Mapping[str, Any]) -> None:
    """Reject structured arguments that were flattened to strings.

    Raises
    ------
    SerializationHazardError
        If any value is a ``str`` where a dict or list is required.
    """
    for key, value in arguments.items():
        if not isinstance(value, (dict, list)):
            raise SerializationHazardError(
                message=(
                    f"Argument {key!r} for {tool} must be a dict or list, "
                    f"got {type(value).__name__}"
                ),
                context={"tool": tool, "argument": key},
            )


class NotionSessionClient:
    """Notion client with MCP-first, HTTP-fallback writes.

    Parameters
    ----------
    config:
        Client configuration.
    tool_transport:
        MCP session; defaults to :class:`McpToolTransport`.
    http_transport:
        Direct HTTP transport; defaults to :class:`NotionHttpTransport`.
    """

    def __init__(
        self,
        config: SessionCloserConfig,
        tool_transport: ToolTransport | None = None,
        http_transport: NotionHttpTransport | None = None,
    ) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._tools: ToolTransport = tool_transport or McpToolTransport(config)
        self._http = http_transport or NotionHttpTransport(config)
        self._blocks = BlockAPI(self._http)
        self._pages = PageAPI(self._http)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the MCP session if it is not already open.

        Raises
        ------
        SessionCloserConnectionError
            If the tool server cannot be started or the handshake fails.
        """
        if not self._tools.connected:
            await self._tools.connect()

    async def close(self) -> None:
        """Close the MCP session and the HTTP client.  Safe to call twice."""
        try:
            await self._tools.close()
        finally:
            await self._http.close()

    async def __aenter__(self) -> NotionSessionClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def append_blocks(
        self,
        page_id: str,
        blocks: Sequence[dict[str, Any]],
    ) -> AppendResult:
        """Append *blocks* to a page in order, one chunk per request.

        Each chunk is tried over MCP (``append_blocks``) and, on any failure,
        over ``PATCH /blocks/{id}/children``.  The next chunk is only sent
        after the previous one succeeded.

        Returns
        -------
        AppendResult

        Raises
        ------
        AppendError
            When both transports fail on the first chunk.
        PartialAppendError
            When both transports fail on a later chunk.  The earlier chunks
            stay on the page; nothing is rolled back.
        """
        target = normalize_id(page_id)
        batches = chunk_children(list(blocks), self._config.max_blocks_per_request)
        result = AppendResult(chunk_count=len(batches), total_blocks=0)

        for index, batch in enumerate(batches):
            _guard_structured("append_blocks", {"blocks": batch})
            outcome = await run_strategies(
                "append_blocks",
                [
                    Strategy(
                        "mcp",
                        functools.partial(
                            self._tools.call_tool,
                            "append_blocks",
                            {"page_id": target, "blocks": batch},
                        ),
                    ),
                    Strategy(
                        "http",
                        functools.partial(self._blocks.append_children, target, batch),
                    ),
                ],
                metrics=self._metrics,
                passthrough=(SerializationHazardError,),
            )

            if not outcome.succeeded:
                context = {
                    "page_id": target,
                    "chunk_index": index,
                    "chunk_count": len(batches),
                    "chunks_committed": index,
                    "blocks_committed": result.total_blocks,
                    "attempts": outcome.summary(),
                }
                if index == 0:
                    raise AppendError(
                        message=f"Failed to append blocks: {outcome.summary()}",
                        context=context,
                        cause=outcome.last_error,
                    )
                warnings.warn(
                    f"Append to {target} stopped at chunk {index + 1}/{len(batches)}; "
                    f"{index} chunk(s) already written",
                    ChunkPartialFailureWarning,
                    stacklevel=2,
                )
                log.warning(
                    "Partial append",
                    extra={"extra_fields": {"op": "append_blocks", **context}},
                )
                raise PartialAppendError(
                    message=(
                        f"Failed to append chunk {index + 1}/{len(batches)} "
                        f"after {index} succeeded: {outcome.summary()}"
                    ),
                    context=context,
                    cause=outcome.last_error,
                )

            result.responses.append(outcome.value or {})
            result.total_blocks += len(batch)
            self._metrics.increment(
                "session_closer.chunks_written_total",
                tags={"transport": outcome.winner or ""},
            )

        log.info(
            "Append complete",
            extra={
                "extra_fields": {
                    "op": "append_blocks",
                    "page_id": target,
                    "chunks": result.chunk_count,
                    "blocks": result.total_blocks,
                }
            },
        )
        return result

    async def create_page(
        self,
        parent: ParentReference,
        properties: dict[str, Any],
    ) -> PageCreateResult:
        """Create a page under *parent* with *properties*.

        The parent object is rebuilt from *parent* for every transport call,
        so each path receives its own structured dict.

        Raises
        ------
        SerializationHazardError
            If *parent* is not a :class:`ParentReference` or *properties*
            is not a dict.
        CreatePageError
            When both the MCP and HTTP paths fail.
        """
        if not isinstance(parent, ParentReference):
            raise SerializationHazardError(
                message=f"parent must be a ParentReference, got {type(parent).__name__}",
                context={"tool": "create_page", "argument": "parent"},
            )
        _guard_structured("create_page", {"properties": properties})

        outcome = await run_strategies(
            "create_page",
            [
                Strategy(
                    "mcp",
                    lambda: self._tools.call_tool(
                        "create_page",
                        {"parent": parent.to_dict(), "properties": properties},
                    ),
                ),
                Strategy(
                    "http",
                    lambda: self._pages.create(parent.to_dict(), properties),
                ),
            ],
            metrics=self._metrics,
            passthrough=(SerializationHazardError,),
        )

        if not outcome.succeeded:
            raise CreatePageError(
                message=f"Failed to create page: {outcome.summary()}",
                context={"parent": parent.to_dict(), "attempts": outcome.summary()},
                cause=outcome.last_error,
            )

        response = outcome.value or {}
        page_id = response.get("id")
        log.info(
            "Page created",
            extra={
                "extra_fields": {
                    "op": "create_page",
                    "page_id": page_id,
                    "transport": outcome.winner,
                }
            },
        )
        return PageCreateResult(
            page_id=page_id,
            url=response.get("url", ""),
            transport=outcome.winner or "",
            response=response,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Query a database over MCP.  No HTTP fallback.

        Raises
        ------
        QueryError
            On any failure of the tool call.
        """
        target = normalize_id(database_id)
        arguments: dict[str, Any] = {"database_id": target}
        if filter:
            _guard_structured("query_database", {"filter": filter})
            arguments["filter"] = filter

        try:
            return await self._tools.call_tool("query_database", arguments)
        except Exception as exc:
            raise QueryError(
                message=f"Failed to query database: {exc}",
                context={"database_id": target},
                cause=exc,
            ) from exc

    async def get_page_blocks(self, page_id: str) -> list[dict[str, Any]]:
        """Fetch a page's top-level blocks over MCP.  No HTTP fallback.

        Raises
        ------
        FetchError
            On any failure of the tool call.
        """
        target = normalize_id(page_id)
        try:
            response = await self._tools.call_tool("get_block_children", {"block_id": target})
        except Exception as exc:
            raise FetchError(
                message=f"Failed to get page blocks: {exc}",
                context={"page_id": target},
                cause=exc,
            ) from exc
        results = response.get("results", [])
        return [r for r in results if isinstance(r, dict)]
