"""Project-file collaborators.

:class:`ProjectWorkspace` owns every path the session closer reads or
writes under the project root:

* ``.agent-os/session-summary.md`` -- append-only session log.
* ``.agent-os/product/{mission,roadmap,decisions,tech-stack}.md`` --
  Agent OS product files, updated only when they already exist.
* ``claude.md``, ``gemini.md``, ``agents.md``, ``.cursor/context.md`` --
  assistant context files regenerated from the product files and the
  latest session.

All paths returned to callers are relative to the project root.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from session_closer.models import Decision, SessionSummary
from session_closer.summary import format_session_entry, today

SUMMARY_FILE = ".agent-os/session-summary.md"
ROADMAP_FILE = ".agent-os/product/roadmap.md"
DECISIONS_FILE = ".agent-os/product/decisions.md"
MISSION_FILE = ".agent-os/product/mission.md"
TECH_STACK_FILE = ".agent-os/product/tech-stack.md"

SUMMARY_HEADER = "# Session Summary\n\n"

# Written only when present, except the last one which is always created.
CONTEXT_FILES: tuple[str, ...] = ("claude.md", "gemini.md", "agents.md", ".cursor/context.md")
ALWAYS_WRITTEN_CONTEXT = ".cursor/context.md"

_PHASE_RE = re.compile(r"## Phase \d+[:\s]+(.+?)(?:\n|$)", re.IGNORECASE)
_DONE_RE = re.compile(r"\[x\]", re.IGNORECASE)
_CHECKBOX_RE = re.compile(r"\[[x\s]\]", re.IGNORECASE)


@dataclass
class AgentOSContext:
    """Product files read from ``.agent-os/product``."""

    mission: str | None = None
    roadmap: str | None = None
    tech_stack: str | None = None
    decisions: list[Decision] = field(default_factory=list)


def parse_decisions(content: str) -> list[Decision]:
    """Parse ``## Decision:`` sections written by :meth:`append_decisions`."""
    decisions: list[Decision] = []
    for block in content.split("## Decision:")[1:]:
        details = re.search(r"\*\*Decision:\*\*\s*(.+?)(?:\n|$)", block, re.IGNORECASE)
        if details is None:
            # Sections written by this module carry the details in the heading.
            heading = block.split("\n", 1)[0].strip()
            if not heading:
                continue
            detail_text = heading
        else:
            detail_text = details.group(1).strip()
        date = re.search(r"\*\*Date:\*\*\s*(.+?)(?:\n|$)", block, re.IGNORECASE)
        rationale = re.search(r"\*\*Rationale:\*\*\s*(.+?)(?:\n|$)", block, re.IGNORECASE)
        decisions.append(
            Decision(
                date=date.group(1).strip() if date else today(),
                status="accepted",
                details=detail_text,
                context="From decisions.md",
                rationale=rationale.group(1).strip() if rationale else "",
            )
        )
    return decisions


def format_decision(decision: Decision) -> str:
    consequences = ", ".join(decision.consequences) or "None"
    return (
        f"\n## Decision: {decision.details}\n"
        "\n"
        f"**Date:** {decision.date}\n"
        f"**Status:** {decision.status}\n"
        f"**Context:** {decision.context}\n"
        f"**Rationale:** {decision.rationale}\n"
        f"**Consequences:** {consequences}\n"
    )


class ProjectWorkspace:
    """File-level collaborator rooted at one project directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path(self, relative: str) -> Path:
        return self.root / relative

    def read_if_exists(self, relative: str) -> str | None:
        target = self.path(relative)
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    @property
    def project_name(self) -> str:
        return self.root.resolve().name

    # -- session summary ----------------------------------------------------

    def append_session_entry(self, summary: SessionSummary) -> str:
        """Append the formatted entry, creating the file with a header."""
        target = self.path(SUMMARY_FILE)
        target.parent.mkdir(parents=True, exist_ok=True)
        existing = self.read_if_exists(SUMMARY_FILE)
        if existing is None:
            existing = SUMMARY_HEADER
        target.write_text(existing + "\n" + format_session_entry(summary), encoding="utf-8")
        return SUMMARY_FILE

    def read_summary(self) -> str | None:
        return self.read_if_exists(SUMMARY_FILE)

    # -- product files ------------------------------------------------------

    def update_roadmap(self, summary: SessionSummary) -> bool:
        """Tick ``[ ] <accomplishment>`` items.  Returns ``False`` if absent."""
        content = self.read_if_exists(ROADMAP_FILE)
        if content is None:
            return False
        for accomplishment in summary.accomplishments:
            pattern = re.compile(r"\[ \](\s*" + re.escape(accomplishment) + ")", re.IGNORECASE)
            content = pattern.sub(r"[x]\1", content)
        self.path(ROADMAP_FILE).write_text(content, encoding="utf-8")
        return True

    def append_decisions(self, decisions: Sequence[Decision]) -> bool:
        """Append decision sections.  Returns ``False`` if absent or nothing to add."""
        if not decisions:
            return False
        content = self.read_if_exists(DECISIONS_FILE)
        if content is None:
            return False
        addition = "\n".join(format_decision(d) for d in decisions)
        self.path(DECISIONS_FILE).write_text(content + "\n" + addition, encoding="utf-8")
        return True

    def read_agent_os_context(self) -> AgentOSContext:
        decisions = self.read_if_exists(DECISIONS_FILE)
        return AgentOSContext(
            mission=self.read_if_exists(MISSION_FILE),
            roadmap=self.read_if_exists(ROADMAP_FILE),
            tech_stack=self.read_if_exists(TECH_STACK_FILE),
            decisions=parse_decisions(decisions) if decisions else [],
        )

    # -- context files ------------------------------------------------------

    def sync_context_files(self, summary: SessionSummary) -> list[str]:
        """Regenerate context files; returns the relative paths written."""
        context = generate_unified_context(
            self.read_agent_os_context(), summary, self.project_name
        )
        written: list[str] = []
        for relative in CONTEXT_FILES:
            target = self.path(relative)
            if relative != ALWAYS_WRITTEN_CONTEXT and not target.exists():
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(context, encoding="utf-8")
            written.append(relative)
        return written


# ---------------------------------------------------------------------------
# Unified context rendering
# ---------------------------------------------------------------------------

def current_phase(agent_os: AgentOSContext) -> str:
    if agent_os.roadmap:
        match = _PHASE_RE.search(agent_os.roadmap)
        if match:
            return match.group(1).strip()
    return "In Progress"


def progress(agent_os: AgentOSContext) -> str:
    if agent_os.roadmap:
        done = len(_DONE_RE.findall(agent_os.roadmap))
        total = len(_CHECKBOX_RE.findall(agent_os.roadmap))
        if done and total:
            return f"{round(done / total * 100)}%"
    return "Ongoing"


def _format_key_decisions(decisions: Sequence[Decision]) -> str:
    if not decisions:
        return "None recorded"
    return "\n".join(f"- **{d.details}** ({d.date}): {d.rationale}" for d in decisions)


def _session_date(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return timestamp


def generate_unified_context(
    agent_os: AgentOSContext,
    summary: SessionSummary,
    project_name: str,
) -> str:
    """Render the shared context document for assistant context files."""
    recent_work = "\n".join(summary.accomplishments) or "Session work completed"
    if summary.next_steps:
        next_steps = "\n".join(f"- [ ] {s}" for s in summary.next_steps)
    elif agent_os.roadmap:
        next_steps = "See roadmap for next steps"
    else:
        next_steps = "Continue development"

    return (
        f"# Project: {project_name}\n"
        "\n"
        "## Overview\n"
        f"{agent_os.mission or 'Development project'}\n"
        "\n"
        "## Current Status\n"
        f"- Phase: {current_phase(agent_os)}\n"
        f"- Progress: {progress(agent_os)}\n"
        f"- Last session: {_session_date(summary.timestamp)}\n"
        "\n"
        "## Recent Work\n"
        f"{recent_work}\n"
        "\n"
        "## Technology Stack\n"
        f"{agent_os.tech_stack or 'See tech-stack.md'}\n"
        "\n"
        "## Key Decisions\n"
        f"{_format_key_decisions(agent_os.decisions)}\n"
        "\n"
        "## Project Structure\n"
        "```\n"
        "project/\n"
        "├── .agent-os/\n"
        "│   ├── product/\n"
        "│   └── specs/\n"
        "└── [app structure]\n"
        "```\n"
        "\n"
        "## Next Steps\n"
        f"{next_steps}\n"
        "\n"
        "## Related Documents\n"
        "- `.agent-os/product/mission.md`: Product mission\n"
        "- `.agent-os/product/roadmap.md`: Development roadmap\n"
        "- `.agent-os/product/decisions.md`: Decision log\n"
        "- `.agent-os/session-summary.md`: Session history\n"
    )
