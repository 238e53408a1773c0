"""Page properties for the session-tracker database.

The target database has a fixed, externally defined schema:

=====================  =========
Property               Type
=====================  =========
Session Title          title
Date                   date
Accomplishments        rich_text
Next Steps             rich_text
Blockers               rich_text
Decisions Made         rich_text
Files Changed          rich_text
Complete               checkbox
Follow-up Required     checkbox
Project                select
=====================  =========

Properties are built as fresh dicts at the point of use.  Optional
rich-text properties are omitted when their source list is empty.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from session_closer.models import SessionSummary

ALLOWED_PROJECTS: frozenset[str] = frozenset({
    "Dissertation",
    "Research",
    "Work",
    "Personal",
    "Instruction",
    "Side Project",
    "Consulting",
    "Administrative",
    "Development",
    "Planning",
})

DEFAULT_PROJECT = "Development"

DEFAULT_TITLE = "Session Summary"


def coerce_project(project: str | None) -> str:
    """Return *project* if it is an allowed label, else ``"Development"``."""
    if project in ALLOWED_PROJECTS:
        return project  # type: ignore[return-value]
    return DEFAULT_PROJECT


def _rich_text(items: Sequence[str]) -> dict[str, Any]:
    return {"rich_text": [{"text": {"content": "\n".join(items)}}]}


def date_from_timestamp(timestamp: str | None) -> str:
    """``YYYY-MM-DD`` for an ISO timestamp, or today (UTC) when unparseable."""
    if timestamp:
        try:
            return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).date().isoformat()
        except ValueError:
            pass
    return datetime.now(timezone.utc).date().isoformat()


def build_session_properties(
    summary: SessionSummary,
    project: str | None = None,
    title: str | None = None,
    date: str | None = None,
) -> dict[str, Any]:
    """Build the database row properties for one session.

    Parameters
    ----------
    summary:
        The session to describe.
    project:
        Requested ``Project`` label; coerced via :func:`coerce_project`.
    title:
        Explicit title; defaults to the first accomplishment, or
        ``"Session Summary"``.
    date:
        Explicit ``YYYY-MM-DD``; defaults to the summary's timestamp date.

    Returns
    -------
    dict
        A new properties dict ready for ``create_page``.
    """
    effective_title = title or (summary.accomplishments[0] if summary.accomplishments else DEFAULT_TITLE)

    properties: dict[str, Any] = {
        "Session Title": {"title": [{"text": {"content": effective_title}}]},
        "Date": {"date": {"start": date or date_from_timestamp(summary.timestamp)}},
        "Complete": {"checkbox": False},
        "Follow-up Required": {"checkbox": False},
    }

    if summary.accomplishments:
        properties["Accomplishments"] = _rich_text(summary.accomplishments)
    if summary.next_steps:
        properties["Next Steps"] = _rich_text(summary.next_steps)
    if summary.blockers:
        properties["Blockers"] = _rich_text(summary.blockers)
    if summary.decisions:
        properties["Decisions Made"] = _rich_text([d.details for d in summary.decisions])
    if summary.files_changed:
        properties["Files Changed"] = _rich_text(summary.files_changed)

    properties["Project"] = {"select": {"name": coerce_project(project)}}
    return properties
