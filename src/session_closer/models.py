"""Public data models for session-closer.

This module contains the session summary, the typed parent reference used
when creating pages, and every result type returned by the client and the
orchestrator.  All types are plain dataclasses; the summary and the parent
reference are frozen so they cannot drift between construction and use.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from session_closer.utils.ids import normalize_id

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """Notion block types produced by the markdown converter."""

    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    PARAGRAPH = "paragraph"


class ParentType(str, Enum):
    """Where a newly created page lives."""

    DATABASE = "database_id"
    """The page is a row of a database (collection)."""

    PAGE = "page_id"
    """The page is nested under another page."""

    WORKSPACE = "workspace"
    """The page sits at the workspace root."""


# ---------------------------------------------------------------------------
# Parent reference
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParentReference:
    """Typed pointer to the parent of a new page.

    Attributes
    ----------
    type:
        The kind of parent.
    id:
        Database or page id.  Must be set for ``DATABASE`` and ``PAGE``
        parents and is ignored for ``WORKSPACE``.
    """

    type: ParentType
    id: str | None = None

    def __post_init__(self) -> None:
        if self.type is not ParentType.WORKSPACE and not self.id:
            raise ValueError(f"{self.type.value} parent requires an id")

    @classmethod
    def database(cls, database_id: str) -> ParentReference:
        return cls(ParentType.DATABASE, database_id)

    @classmethod
    def page(cls, page_id: str) -> ParentReference:
        return cls(ParentType.PAGE, page_id)

    @classmethod
    def workspace(cls) -> ParentReference:
        return cls(ParentType.WORKSPACE)

    def to_dict(self) -> dict[str, Any]:
        """Build a fresh Notion ``parent`` object with a normalised id.

        A new dict is returned on every call so each transport receives its
        own structured value.
        """
        if self.type is ParentType.WORKSPACE:
            return {"type": "workspace", "workspace": True}
        assert self.id is not None
        return {"type": self.type.value, self.type.value: normalize_id(self.id)}


# ---------------------------------------------------------------------------
# Session summary
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Decision:
    """One architecture or process decision recorded during a session."""

    date: str
    status: str
    details: str
    context: str
    rationale: str
    consequences: tuple[str, ...] = ()


@dataclass(frozen=True)
class SessionSummary:
    """Everything gathered about one work session.

    Built once per close request from the free-text summary plus the
    working-tree diff, and never mutated afterwards.

    Attributes
    ----------
    timestamp:
        ISO-8601 UTC timestamp of the close request.
    accomplishments, blockers, next_steps, files_changed:
        Ordered lines extracted from the summary (or the diff).
    decisions:
        Ordered decision records.
    """

    timestamp: str
    accomplishments: tuple[str, ...] = ()
    decisions: tuple[Decision, ...] = ()
    blockers: tuple[str, ...] = ()
    next_steps: tuple[str, ...] = ()
    files_changed: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view used by the MCP server responses."""
        return {
            "timestamp": self.timestamp,
            "accomplishments": list(self.accomplishments),
            "decisions": [
                {
                    "date": d.date,
                    "status": d.status,
                    "details": d.details,
                    "context": d.context,
                    "rationale": d.rationale,
                    "consequences": list(d.consequences),
                }
                for d in self.decisions
            ],
            "blockers": list(self.blockers),
            "nextSteps": list(self.next_steps),
            "filesChanged": list(self.files_changed),
        }


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class AppendResult:
    """Result of :meth:`NotionSessionClient.append_blocks`.

    Attributes
    ----------
    chunk_count:
        Number of write requests issued.
    total_blocks:
        Number of blocks written.
    responses:
        One normalised response per chunk, in order.
    """

    chunk_count: int
    total_blocks: int
    responses: list[dict[str, Any]] = field(default_factory=list)

    @property
    def response(self) -> dict[str, Any] | None:
        """The single response when the append fit in one chunk."""
        if self.chunk_count == 1 and self.responses:
            return self.responses[0]
        return None


@dataclass
class PageCreateResult:
    """Result of :meth:`NotionSessionClient.create_page`.

    Attributes
    ----------
    page_id:
        Id of the created page, when the transport reported one.
    url:
        Page URL, when reported.
    transport:
        Name of the strategy that succeeded (``"mcp"`` or ``"http"``).
    response:
        The normalised response body.
    """

    page_id: str | None
    url: str
    transport: str
    response: dict[str, Any] = field(default_factory=dict)


@dataclass
class NotionEntryResult:
    """Outcome of a direct ``create_notion_entry`` request."""

    success: bool
    page_id: str | None = None
    error: str | None = None


@dataclass
class SessionCloseResult:
    """Outcome of a full session close."""

    success: bool
    summary: SessionSummary
    files_updated: list[str] = field(default_factory=list)
    git_commit: str | None = None
