"""Session orchestrator.

:class:`SessionCloser` turns a free-text session summary into local file
updates, a best-effort Notion record and a git commit.  The local steps are
authoritative; the Notion step never aborts a close.

Usage::

    from session_closer import SessionCloser, SessionCloserConfig

    closer = SessionCloser("/path/to/project", SessionCloserConfig.from_env(os.environ))
    result = await closer.close_session("Implemented the parser. Next: tests")
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from session_closer.client import NotionSessionClient
from session_closer.config import SessionCloserConfig
from session_closer.converter import markdown_to_blocks
from session_closer.errors import SessionCloserConfigError, SessionCloserError
from session_closer.fallback import Strategy, run_strategies
from session_closer.legacy import run_legacy_script
from session_closer.models import (
    NotionEntryResult,
    ParentReference,
    SessionCloseResult,
    SessionSummary,
)
from session_closer.observability import get_logger
from session_closer.properties import DEFAULT_TITLE, build_session_properties
from session_closer.summary import (
    build_summary,
    commit_message,
    first_heading,
    first_iso_date,
    parse_summary_markdown,
    today,
)
from session_closer.utils.ids import normalize_id
from session_closer.vcs import GitRepository
from session_closer.workspace import ProjectWorkspace

log = get_logger("session_closer.orchestrator")

ClientFactory = Callable[[SessionCloserConfig], NotionSessionClient]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SessionCloser:
    """Close work sessions for one project.

    Parameters
    ----------
    project_root:
        Directory holding ``.agent-os`` and the context files.
    config:
        Notion and legacy-script configuration.
    client_factory:
        Builds the Notion client for one request.  Defaults to
        :class:`NotionSessionClient`.
    """

    def __init__(
        self,
        project_root: str | Path,
        config: SessionCloserConfig,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.root = Path(project_root)
        self.config = config
        self.workspace = ProjectWorkspace(self.root)
        self.git = GitRepository(self.root)
        self._client_factory: ClientFactory = client_factory or NotionSessionClient

    # ------------------------------------------------------------------
    # Full close
    # ------------------------------------------------------------------

    async def close_session(self, conversation_summary: str) -> SessionCloseResult:
        """Record the session everywhere it belongs.

        Steps run in order: build the summary, append it to the session
        file, record it in Notion (best effort), update the Agent OS product
        files, sync the context files, and commit.

        Raises
        ------
        OSError
            If a local file cannot be written.
        """
        files_changed = await asyncio.to_thread(self.git.changed_files)
        summary = build_summary(conversation_summary, files_changed, timestamp=_now())

        files_updated = [self.workspace.append_session_entry(summary)]

        await self.record_in_notion(summary)

        if self.workspace.update_roadmap(summary):
            files_updated.append(".agent-os/product/roadmap.md")
        if self.workspace.append_decisions(summary.decisions):
            files_updated.append(".agent-os/product/decisions.md")

        files_updated.extend(self.workspace.sync_context_files(summary))

        git_commit: str | None = None
        if self.git.is_repo():
            git_commit = await asyncio.to_thread(
                self.git.commit, commit_message(summary, files_updated)
            )

        log.info(
            "Session closed",
            extra={
                "extra_fields": {
                    "op": "close_session",
                    "files_updated": len(files_updated),
                    "committed": git_commit is not None,
                }
            },
        )
        return SessionCloseResult(
            success=True,
            summary=summary,
            files_updated=files_updated,
            git_commit=git_commit,
        )

    # ------------------------------------------------------------------
    # Notion step
    # ------------------------------------------------------------------

    async def record_in_notion(self, summary: SessionSummary) -> bool:
        """Try the client path, then the legacy script.  Never raises.

        Returns
        -------
        bool
            ``True`` when one of the paths recorded the session.
        """
        try:
            outcome = await run_strategies(
                "notion_entry",
                [
                    Strategy("client", lambda: self._record_via_client(summary)),
                    Strategy("legacy_script", self._record_via_legacy_script),
                ],
                metrics=self.config.metrics,
                passthrough=(SessionCloserConfigError,),
            )
        except SessionCloserConfigError as exc:
            log.info(
                "Notion not configured, skipping entry",
                extra={"extra_fields": {"op": "notion_entry", "reason": exc.message}},
            )
            return False

        if not outcome.succeeded:
            log.warning(
                "Failed to record session in Notion",
                extra={"extra_fields": {"op": "notion_entry", "attempts": outcome.summary()}},
            )
            return False
        return bool(outcome.value)

    async def _record_via_client(self, summary: SessionSummary) -> bool:
        page_id = self.config.page_id
        database_id = self.config.database_id
        if not page_id and not database_id:
            raise SessionCloserConfigError(
                message="Neither NOTION_PAGE_ID nor NOTION_DATABASE_ID configured",
            )
        self.config.require_token()

        async with self._client_factory(self.config) as client:
            if page_id:
                content = self.workspace.read_summary()
                if not content:
                    return False
                await client.append_blocks(page_id, markdown_to_blocks(content))
            else:
                assert database_id is not None
                await client.create_page(
                    ParentReference.database(database_id),
                    build_session_properties(summary, project=self.config.project),
                )
        return True

    async def _record_via_legacy_script(self) -> bool:
        return await asyncio.to_thread(run_legacy_script, self.config, self.root)

    # ------------------------------------------------------------------
    # Direct operations
    # ------------------------------------------------------------------

    async def create_notion_entry(
        self,
        markdown: str,
        page_id: str | None = None,
        database_id: str | None = None,
        title: str | None = None,
        date: str | None = None,
        project: str | None = None,
    ) -> NotionEntryResult:
        """Write *markdown* to Notion.

        With a page target (explicit or configured) the converted blocks are
        appended to that page.  Otherwise a page is created in the database
        and the blocks are appended to the new page.  An explicit page id
        wins over any database id.

        Returns
        -------
        NotionEntryResult
            ``success=False`` with the error message on any failure.  When
            the page was created but its content could not be appended,
            ``page_id`` still names the new page.
        """
        try:
            return await self._create_notion_entry(
                markdown, page_id, database_id, title, date, project
            )
        except SessionCloserError as exc:
            log.warning(
                "Notion entry failed",
                extra={"extra_fields": {"op": "create_notion_entry", "code": exc.code}},
            )
            return NotionEntryResult(success=False, error=exc.message)
        except Exception as exc:
            log.exception(
                "Notion entry failed",
                extra={"extra_fields": {"op": "create_notion_entry"}},
            )
            return NotionEntryResult(success=False, error=str(exc))

    async def _create_notion_entry(
        self,
        markdown: str,
        page_id: str | None,
        database_id: str | None,
        title: str | None,
        date: str | None,
        project: str | None,
    ) -> NotionEntryResult:
        target_page = page_id or (None if database_id else self.config.page_id)
        target_database = database_id or self.config.database_id
        if not target_page and not target_database:
            raise SessionCloserConfigError(
                message="Either pageId or databaseId must be provided",
            )
        self.config.require_token()

        blocks = markdown_to_blocks(markdown)

        async with self._client_factory(self.config) as client:
            if target_page:
                await client.append_blocks(target_page, blocks)
                return NotionEntryResult(success=True, page_id=normalize_id(target_page))

            assert target_database is not None
            parsed = parse_summary_markdown(markdown, timestamp=_now())
            properties = build_session_properties(
                parsed,
                project=project or self.config.project,
                title=title or first_heading(markdown) or DEFAULT_TITLE,
                date=date or first_iso_date(markdown) or today(),
            )
            created = await client.create_page(
                ParentReference.database(target_database), properties
            )
            if created.page_id:
                try:
                    await client.append_blocks(created.page_id, blocks)
                except SessionCloserError as exc:
                    log.warning(
                        "Page created but content append failed",
                        extra={
                            "extra_fields": {
                                "op": "create_notion_entry",
                                "page_id": created.page_id,
                                "code": exc.code,
                            }
                        },
                    )
                    return NotionEntryResult(
                        success=False, page_id=created.page_id, error=exc.message
                    )
            return NotionEntryResult(success=True, page_id=created.page_id)

    async def sync_context_files(self) -> list[str]:
        """Regenerate the context files without closing the session."""
        summary = SessionSummary(timestamp=_now(), accomplishments=("Context files synced",))
        return self.workspace.sync_context_files(summary)

    async def update_session_summary(self, summary_text: str = "") -> str:
        """Append an entry to the session file without a full close.

        Returns
        -------
        str
            The relative path of the session file.
        """
        if summary_text:
            files_changed = await asyncio.to_thread(self.git.changed_files)
            summary = build_summary(summary_text, files_changed, timestamp=_now())
        else:
            summary = SessionSummary(timestamp=_now())
        return self.workspace.append_session_entry(summary)
