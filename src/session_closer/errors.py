"""Full error hierarchy for session-closer.

Every public error class inherits from :class:`SessionCloserError`.  Each
carries a machine-readable ``code`` (from :class:`ErrorCode`), a
human-readable ``message``, an optional structured ``context`` dict, and an
optional ``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.

:class:`ChunkPartialFailureWarning` is the one non-exception member: it is
emitted through :mod:`warnings` when a multi-chunk append stops partway.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    CONNECTION_ERROR = "CONNECTION_ERROR"
    SERIALIZATION_HAZARD = "SERIALIZATION_HAZARD"
    TOOL_INVOCATION_ERROR = "TOOL_INVOCATION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    APPEND_ERROR = "APPEND_ERROR"
    PARTIAL_APPEND = "PARTIAL_APPEND"
    CREATE_PAGE_ERROR = "CREATE_PAGE_ERROR"
    QUERY_ERROR = "QUERY_ERROR"
    FETCH_ERROR = "FETCH_ERROR"
    LEGACY_SCRIPT_ERROR = "LEGACY_SCRIPT_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class SessionCloserError(Exception):
    """Base exception for all session-closer errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class SessionCloserConnectionError(SessionCloserError):
    """The MCP tool session could not be started or the handshake failed.

    Context keys: ``command``, ``args``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONNECTION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class SerializationHazardError(SessionCloserError):
    """A structured tool argument was flattened to a string before the wire.

    This signals a programming error and is never routed to a fallback
    transport.

    Context keys: ``tool``, ``argument``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SERIALIZATION_HAZARD,
            message=message,
            context=context,
            cause=cause,
        )


class SessionCloserToolError(SessionCloserError):
    """The remote MCP tool returned an error-flagged result.

    Context keys: ``tool``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.TOOL_INVOCATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class SessionCloserNetworkError(SessionCloserError):
    """The direct HTTP path failed (non-2xx response or transport failure).

    Context keys: ``method``, ``path``, ``status_code``, ``body``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class SessionCloserConfigError(SessionCloserError):
    """No Notion target or no credential could be resolved.

    Raised before any network activity.

    Context keys: ``missing``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Operation errors
# ---------------------------------------------------------------------------

class AppendError(SessionCloserError):
    """Every transport failed for a chunk of an append.

    Context keys: ``page_id``, ``chunk_index``, ``chunk_count``,
    ``attempts``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.APPEND_ERROR,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class PartialAppendError(AppendError):
    """An append failed after at least one earlier chunk was written.

    The committed prefix is not rolled back; callers must assume it is
    already visible on the page.

    Context keys: ``page_id``, ``chunk_index``, ``chunk_count``,
    ``chunks_committed``, ``blocks_committed``, ``attempts``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            context=context,
            cause=cause,
            code=ErrorCode.PARTIAL_APPEND,
        )


class CreatePageError(SessionCloserError):
    """Both the MCP and HTTP paths failed to create a page.

    Context keys: ``parent``, ``attempts``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CREATE_PAGE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class QueryError(SessionCloserError):
    """A database query through the MCP session failed.

    Context keys: ``database_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.QUERY_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class FetchError(SessionCloserError):
    """Fetching a page's blocks through the MCP session failed.

    Context keys: ``page_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.FETCH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class LegacyScriptError(SessionCloserError):
    """The legacy entry-creation script exited non-zero or timed out.

    Context keys: ``script``, ``returncode``, ``stderr``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.LEGACY_SCRIPT_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------

class ChunkPartialFailureWarning(UserWarning):
    """A chunked append stopped partway; earlier chunks remain on the page."""
