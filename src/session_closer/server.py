"""MCP server exposing the session closer as tools.

Run over stdio by an editor or agent host::

    session-closer --project-root /path/to/project

Every tool returns a JSON document with a ``success`` flag.  Failures are
reported as ``{"success": false, "error": ...}`` instead of raising, so the
host always gets a readable payload.  Logs go to stderr; stdout carries
only the MCP protocol.
"""

from __future__ import annotations

import argparse
import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from session_closer.config import SessionCloserConfig
from session_closer.observability import get_logger
from session_closer.orchestrator import SessionCloser

log = get_logger("session_closer.server")

DEFAULT_CONVERSATION_SUMMARY = "Session work completed. Review conversation history for details."

mcp = FastMCP("session-closer")

_closer: SessionCloser | None = None


def configure(closer: SessionCloser) -> None:
    """Install the orchestrator the tools delegate to."""
    global _closer
    _closer = closer


def get_closer() -> SessionCloser:
    if _closer is None:
        raise RuntimeError("session closer not configured; call configure() first")
    return _closer


def _payload(data: dict[str, Any]) -> str:
    return json.dumps(data, indent=2)


def _failure(op: str, exc: Exception) -> str:
    log.exception("Tool failed", extra={"extra_fields": {"op": op}})
    return _payload({"success": False, "error": str(exc)})


@mcp.tool()
async def end_session(conversationSummary: str = "") -> str:
    """Close the current session: update the session summary, record it in
    Notion, update Agent OS files, sync all context files and commit to git.

    Args:
        conversationSummary: Free-text summary of what happened this session.
    """
    try:
        result = await get_closer().close_session(
            conversationSummary or DEFAULT_CONVERSATION_SUMMARY
        )
    except Exception as exc:
        return _failure("end_session", exc)
    return _payload({
        "success": result.success,
        "summary": result.summary.to_dict(),
        "filesUpdated": result.files_updated,
        "gitCommit": result.git_commit,
        "message": "Session closed successfully! All context files synced and changes committed.",
    })


@mcp.tool()
async def sync_context_files() -> str:
    """Sync claude.md, gemini.md, agents.md and .cursor/context.md without
    closing the session."""
    try:
        files_updated = await get_closer().sync_context_files()
    except Exception as exc:
        return _failure("sync_context_files", exc)
    return _payload({
        "success": True,
        "filesUpdated": files_updated,
        "message": "Context files synced successfully!",
    })


@mcp.tool()
async def update_session_summary(summary: str = "") -> str:
    """Append an entry to .agent-os/session-summary.md without a full close.

    Args:
        summary: Optional free-text summary to extract the entry from.
    """
    try:
        path = await get_closer().update_session_summary(summary)
    except Exception as exc:
        return _failure("update_session_summary", exc)
    return _payload({"success": True, "file": path, "message": "Session summary updated!"})


@mcp.tool()
async def create_notion_entry(
    markdownContent: str,
    pageId: str | None = None,
    databaseId: str | None = None,
    title: str | None = None,
    date: str | None = None,
    project: str | None = None,
) -> str:
    """Create a Notion entry from markdown.

    Appends to an existing page when pageId is given, otherwise creates a
    page in the database.  Content is written in chunks of at most 100
    blocks.

    Args:
        markdownContent: Markdown to convert into Notion blocks.
        pageId: Page to append to.
        databaseId: Database to create the page in.
        title: Page title; defaults to the first heading.
        date: Page date (YYYY-MM-DD); defaults to the first date found.
        project: Project label.
    """
    if not markdownContent:
        return _payload({"success": False, "error": "markdownContent is required"})
    result = await get_closer().create_notion_entry(
        markdownContent,
        page_id=pageId,
        database_id=databaseId,
        title=title,
        date=date,
        project=project,
    )
    if not result.success:
        return _payload({"success": False, "error": result.error})
    message = (
        f"Notion entry created/updated successfully! Page ID: {result.page_id}"
        if result.page_id
        else "Notion entry created successfully!"
    )
    return _payload({"success": True, "pageId": result.page_id, "message": message})


def resolve_project_root(explicit: str | None, environ: Mapping[str, str]) -> Path:
    """``--project-root``, else ``CURSOR_WORKSPACE``, else ``WORKSPACE_FOLDER``, else cwd."""
    root = explicit or environ.get("CURSOR_WORKSPACE") or environ.get("WORKSPACE_FOLDER")
    return Path(root) if root else Path.cwd()


def main(argv: list[str] | None = None) -> None:
    """Run the session-closer MCP server over stdio."""
    parser = argparse.ArgumentParser(description="Session Closer MCP Server")
    parser.add_argument(
        "--project-root",
        default=None,
        help="Project directory (defaults to CURSOR_WORKSPACE, WORKSPACE_FOLDER or cwd)",
    )
    args = parser.parse_args(argv)

    root = resolve_project_root(args.project_root, os.environ)
    config = SessionCloserConfig.from_env(os.environ, workspace=os.environ.get("CURSOR_WORKSPACE") or root)
    configure(SessionCloser(root, config))

    log.info(
        "Session Closer MCP server running on stdio",
        extra={"extra_fields": {"op": "serve", "project_root": str(root)}},
    )
    mcp.run()


if __name__ == "__main__":
    main()
