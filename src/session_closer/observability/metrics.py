"""Metrics hook protocol and no-op default implementation.

session-closer emits counters and timings around remote calls.  By default a
:class:`NoopMetricsHook` is used; supply any object satisfying
:class:`MetricsHook` through ``SessionCloserConfig(metrics=...)`` to route
them to a real backend.

Emitted metric names:

* ``session_closer.requests_total``        -- counter (HTTP path)
* ``session_closer.retries_total``         -- counter (HTTP path)
* ``session_closer.request_duration_ms``   -- timing (HTTP path)
* ``session_closer.tool_calls_total``      -- counter (MCP path)
* ``session_closer.fallback_total``        -- counter
* ``session_closer.chunks_written_total``  -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy."""

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
