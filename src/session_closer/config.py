"""Configuration for session-closer.

:class:`SessionCloserConfig` captures every tuneable knob: the Notion
credential and targets, the HTTP fallback settings, and the command used to
launch the MCP tool server.  Library code never reads ``os.environ``; the
environment is consulted exactly once, at the process boundary, through
:meth:`SessionCloserConfig.from_env`.

Credential resolution order (first non-empty wins):

1. an explicit ``token`` argument,
2. ``NOTION_API_TOKEN``,
3. ``NOTION_API_KEY``,
4. ``NOTION_TOKEN``,
5. a ``NOTION_API_KEY=...`` line in ``<workspace>/keys.txt``.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from session_closer.errors import SessionCloserConfigError

TOKEN_ENV_VARS: tuple[str, ...] = ("NOTION_API_TOKEN", "NOTION_API_KEY", "NOTION_TOKEN")
"""Environment variables searched for the Notion token, in priority order."""

DEFAULT_MCP_COMMAND = "docker"

DEFAULT_MCP_ARGS: list[str] = ["run", "-i", "--rm", "-e", "NOTION_API_TOKEN", "mcp/notion:latest"]

DEFAULT_PROJECT = "Development"

_KEY_FILE_RE = re.compile(r"NOTION_API_KEY\s*=\s*([^\n]+)")


def read_key_file(workspace: str | Path) -> str | None:
    """Return the Notion key from ``<workspace>/keys.txt``, or ``None``.

    Surrounding single or double quotes are stripped from the value.
    """
    keys_path = Path(workspace) / "keys.txt"
    if not keys_path.is_file():
        return None
    try:
        content = keys_path.read_text(encoding="utf-8")
    except OSError:
        return None
    match = _KEY_FILE_RE.search(content)
    if match is None:
        return None
    value = match.group(1).strip().strip("'\"")
    return value or None


def resolve_token(
    explicit: str | None = None,
    environ: Mapping[str, str] | None = None,
    workspace: str | Path | None = None,
) -> str | None:
    """Resolve the Notion credential in documented priority order."""
    if explicit:
        return explicit
    source: Mapping[str, str] = environ or {}
    for name in TOKEN_ENV_VARS:
        value = source.get(name, "").strip()
        if value:
            return value
    if workspace is not None:
        return read_key_file(workspace)
    return None


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class SessionCloserConfig:
    """Complete configuration for the Notion client and the orchestrator.

    Parameters
    ----------
    token:
        Notion integration token.  Never logged.
    page_id:
        Default page to append session entries to (append mode).
    database_id:
        Default database to create session pages in (create mode).
        Ignored when ``page_id`` is also set.
    project:
        Label for the ``Project`` select property.  Coerced to
        ``"Development"`` when outside the allowed set.
    notion_version:
        Value of the ``Notion-Version`` header on direct HTTP requests.
    base_url:
        API root URL for the HTTP fallback.  Override for proxies or tests.
    timeout_seconds:
        Bounded timeout for every HTTP fallback request.
    retry_max_attempts:
        Total attempts per HTTP request for 429/5xx and network errors.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    max_blocks_per_request:
        Chunk size for appends.  Notion accepts at most 100.
    mcp_command:
        Executable that starts the MCP tool server.
    mcp_args:
        Arguments for ``mcp_command``.
    mcp_env:
        Extra environment for the MCP child process.  The token is always
        injected as ``NOTION_API_TOKEN``.
    workspace:
        Root used for the legacy-script fallback.
    legacy_script:
        Path (relative to ``workspace``) of the legacy entry script.
    legacy_timeout_seconds:
        Timeout for the legacy script.
    metrics:
        Optional :class:`~session_closer.observability.MetricsHook`.
    """

    # ── Credential & targets ────────────────────────────────────────────
    token: str = ""

    page_id: str | None = None

    database_id: str | None = None

    project: str = DEFAULT_PROJECT

    # ── HTTP fallback ───────────────────────────────────────────────────
    notion_version: str = "2022-06-28"

    base_url: str = "https://api.notion.com/v1"

    timeout_seconds: float = 30.0

    retry_max_attempts: int = 3

    retry_base_delay: float = 1.0

    retry_max_delay: float = 10.0

    max_blocks_per_request: int = 100

    # ── MCP transport ───────────────────────────────────────────────────
    mcp_command: str = DEFAULT_MCP_COMMAND

    mcp_args: list[str] = field(default_factory=lambda: list(DEFAULT_MCP_ARGS))

    mcp_env: dict[str, str] = field(default_factory=dict)

    # ── Legacy fallback ─────────────────────────────────────────────────
    workspace: str | None = None

    legacy_script: str = "Automation/scripts/create_daily_task_session_from_summary.py"

    legacy_timeout_seconds: float = 30.0

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not 1 <= self.max_blocks_per_request <= 100:
            raise ValueError(
                f"max_blocks_per_request must be within 1..100, got {self.max_blocks_per_request}"
            )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        workspace: str | Path | None = None,
        **overrides: Any,
    ) -> SessionCloserConfig:
        """Build a config from an environment mapping.

        This is the only place environment variables are read.  Explicit
        *overrides* win over anything found in *environ*.
        """
        ws = workspace or environ.get("CURSOR_WORKSPACE") or None
        values: dict[str, Any] = {
            "token": resolve_token(overrides.pop("token", None), environ, ws) or "",
            "page_id": environ.get("NOTION_PAGE_ID", "").strip() or None,
            "database_id": environ.get("NOTION_DATABASE_ID", "").strip() or None,
            "project": environ.get("NOTION_PROJECT", "").strip() or DEFAULT_PROJECT,
            "workspace": str(ws) if ws is not None else None,
        }
        values.update(overrides)
        return cls(**values)

    def require_token(self) -> str:
        """Return the token or raise :class:`SessionCloserConfigError`."""
        if not self.token:
            raise SessionCloserConfigError(
                message="Notion API key not found",
                context={"missing": list(TOKEN_ENV_VARS) + ["keys.txt"]},
            )
        return self.token

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"SessionCloserConfig({', '.join(parts)})"
