"""session_closer -- close work sessions into local files, Notion and git.

Public re-exports
-----------------

* **Orchestrator:** :class:`SessionCloser`
* **Client:** :class:`NotionSessionClient`
* **Configuration:** :class:`SessionCloserConfig`
* **Errors:** Every :class:`SessionCloserError` subclass and :class:`ErrorCode`
* **Models:** All result dataclasses, enums, and supporting types

Usage::

    import os
    from session_closer import SessionCloser, SessionCloserConfig

    closer = SessionCloser(".", SessionCloserConfig.from_env(os.environ))
    result = await closer.close_session("Implemented the exporter. Next: docs")
"""

from __future__ import annotations

# ── Clients ────────────────────────────────────────────────────────────
from session_closer.client import NotionSessionClient

# ── Configuration ───────────────────────────────────────────────────────
from session_closer.config import SessionCloserConfig

# ── Errors ──────────────────────────────────────────────────────────────
from session_closer.errors import (
    AppendError,
    ChunkPartialFailureWarning,
    CreatePageError,
    ErrorCode,
    FetchError,
    LegacyScriptError,
    PartialAppendError,
    QueryError,
    SerializationHazardError,
    SessionCloserConfigError,
    SessionCloserConnectionError,
    SessionCloserError,
    SessionCloserNetworkError,
    SessionCloserToolError,
)

# ── Models ──────────────────────────────────────────────────────────────
from session_closer.models import (
    AppendResult,
    BlockType,
    Decision,
    NotionEntryResult,
    PageCreateResult,
    ParentReference,
    ParentType,
    SessionCloseResult,
    SessionSummary,
)

# ── Orchestrator ────────────────────────────────────────────────────────
from session_closer.orchestrator import SessionCloser

__all__ = [
    # Orchestrator
    "SessionCloser",
    # Client
    "NotionSessionClient",
    # Config
    "SessionCloserConfig",
    # Errors
    "AppendError",
    "ChunkPartialFailureWarning",
    "CreatePageError",
    "ErrorCode",
    "FetchError",
    "LegacyScriptError",
    "PartialAppendError",
    "QueryError",
    "SerializationHazardError",
    "SessionCloserConfigError",
    "SessionCloserConnectionError",
    "SessionCloserError",
    "SessionCloserNetworkError",
    "SessionCloserToolError",
    # Models
    "AppendResult",
    "BlockType",
    "Decision",
    "NotionEntryResult",
    "PageCreateResult",
    "ParentReference",
    "ParentType",
    "SessionCloseResult",
    "SessionSummary",
]

__version__ = "0.1.0"
