"""Session-summary extraction, formatting and parsing.

Free text goes in and a :class:`SessionSummary` comes out.  Extraction is
keyword based and line oriented; it never fails, it only finds less.

The markdown written to ``.agent-os/session-summary.md`` is produced by
:func:`format_session_entry` and read back by
:func:`parse_summary_markdown`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from session_closer.models import Decision, SessionSummary

_ACCOMPLISHMENT_RE = re.compile(r"✅|completed|finished|implemented|created|added", re.IGNORECASE)
_BLOCKER_RE = re.compile(r"blocked|blocker|issue|problem|error", re.IGNORECASE)
_NEXT_STEP_RE = re.compile(r"next|todo|fixme", re.IGNORECASE)
_DECISION_RE = re.compile(r"decision[:\s]+(.+)", re.IGNORECASE)
_ISO_DATE_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")

DEFAULT_ACCOMPLISHMENT = "Work completed"


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _matching_lines(text: str, pattern: re.Pattern[str]) -> list[str]:
    return [line.strip() for line in text.split("\n") if pattern.search(line)]


def extract_accomplishments(text: str) -> list[str]:
    """Lines that look like finished work; ``["Work completed"]`` if none."""
    found = _matching_lines(text, _ACCOMPLISHMENT_RE)
    return found or [DEFAULT_ACCOMPLISHMENT]


def extract_blockers(text: str) -> list[str]:
    return _matching_lines(text, _BLOCKER_RE)


def extract_next_steps(text: str) -> list[str]:
    return _matching_lines(text, _NEXT_STEP_RE)


def extract_decisions(text: str, date: str | None = None) -> list[Decision]:
    """One accepted :class:`Decision` per ``decision: ...`` line."""
    decisions: list[Decision] = []
    for line in text.split("\n"):
        match = _DECISION_RE.search(line)
        if match is None:
            continue
        decisions.append(
            Decision(
                date=date or today(),
                status="accepted",
                details=match.group(1).strip(),
                context="Session discussion",
                rationale="Discussed during session",
            )
        )
    return decisions


def build_summary(
    text: str,
    files_changed: Iterable[str] = (),
    timestamp: str | None = None,
) -> SessionSummary:
    """Build the immutable summary for one close request."""
    ts = timestamp or datetime.now(timezone.utc).isoformat()
    return SessionSummary(
        timestamp=ts,
        accomplishments=tuple(extract_accomplishments(text)),
        decisions=tuple(extract_decisions(text, date=ts[:10])),
        blockers=tuple(extract_blockers(text)),
        next_steps=tuple(extract_next_steps(text)),
        files_changed=tuple(files_changed),
    )


# ---------------------------------------------------------------------------
# Markdown rendering
# ---------------------------------------------------------------------------

def _bullets(items: Sequence[str], empty: str | None = None) -> str:
    if not items and empty is not None:
        return f"- {empty}"
    return "\n".join(f"- {item}" for item in items)


def _display_time(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return timestamp


def format_session_entry(summary: SessionSummary) -> str:
    """Render the markdown entry appended to the session-summary file."""
    return (
        f"## Session: {_display_time(summary.timestamp)}\n"
        "\n"
        "### Accomplishments\n"
        f"{_bullets(summary.accomplishments)}\n"
        "\n"
        "### Decisions Made\n"
        f"{_bullets([d.details for d in summary.decisions], empty='None')}\n"
        "\n"
        "### Blockers\n"
        f"{_bullets(summary.blockers, empty='None')}\n"
        "\n"
        "### Next Steps\n"
        f"{_bullets(summary.next_steps)}\n"
        "\n"
        "### Files Changed\n"
        f"{_bullets(summary.files_changed)}\n"
        "\n"
        "---\n"
    )


# ---------------------------------------------------------------------------
# Markdown parsing
# ---------------------------------------------------------------------------

_SECTION_HEADINGS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("### Accomplishments",), "accomplishments"),
    (("### Decisions Made", "### Key Decisions"), "decisions"),
    (("### Blockers",), "blockers"),
    (("### Next Steps",), "next_steps"),
    (("### Files Changed", "### Changed Files"), "files_changed"),
)


def _section_for(line: str) -> str | None:
    for prefixes, name in _SECTION_HEADINGS:
        if line.startswith(prefixes):
            return name
    return None


def parse_summary_markdown(content: str, timestamp: str | None = None) -> SessionSummary:
    """Recover a summary from session-summary markdown.

    Bullets (``- `` or ``* ``) under the known ``###`` headings are
    collected; any other heading ends the current section.  Entries that
    are just ``None`` are treated as empty.  Decision lines may be bulleted
    or plain.
    """
    sections: dict[str, list[str]] = {name: [] for _, name in _SECTION_HEADINGS}
    current: str | None = None

    for raw in content.split("\n"):
        line = raw.strip()
        if line.startswith("#"):
            current = _section_for(line)
            continue
        if current is None or not line:
            continue
        if line.startswith(("- ", "* ")):
            item = line[2:].strip()
        elif current == "decisions":
            item = line
        else:
            continue
        if item and item != "None":
            sections[current].append(item)

    date = today()
    return SessionSummary(
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        accomplishments=tuple(sections["accomplishments"]),
        decisions=tuple(
            Decision(
                date=date,
                status="Active",
                details=details,
                context="From session summary",
                rationale="",
            )
            for details in sections["decisions"]
        ),
        blockers=tuple(sections["blockers"]),
        next_steps=tuple(sections["next_steps"]),
        files_changed=tuple(sections["files_changed"]),
    )


def first_heading(markdown: str) -> str | None:
    """Text of the first ``# `` heading, if any."""
    for raw in markdown.split("\n"):
        line = raw.strip()
        if line.startswith("# "):
            return line[2:].strip() or None
    return None


def first_iso_date(markdown: str) -> str | None:
    """First ``YYYY-MM-DD`` occurring in *markdown*, if any."""
    match = _ISO_DATE_RE.search(markdown)
    return match.group(1) if match else None


# ---------------------------------------------------------------------------
# Commit messages
# ---------------------------------------------------------------------------

def commit_type(summary: SessionSummary) -> str:
    """Conventional-commit type inferred from the accomplishments."""
    checks = (
        ("feat", re.compile(r"feat|feature|add", re.IGNORECASE)),
        ("fix", re.compile(r"fix|bug|error", re.IGNORECASE)),
        ("docs", re.compile(r"doc|readme", re.IGNORECASE)),
    )
    for name, pattern in checks:
        if any(pattern.search(a) for a in summary.accomplishments):
            return name
    return "chore"


def commit_message(summary: SessionSummary, files_updated: Sequence[str]) -> str:
    short = summary.accomplishments[0] if summary.accomplishments else "Session work"
    details = "\n".join(summary.accomplishments)
    files = "\n".join(f"- {f}" for f in files_updated)
    return f"{commit_type(summary)}: {short}\n\n{details}\n\nFiles changed:\n{files}"
