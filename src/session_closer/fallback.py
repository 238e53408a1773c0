"""Ordered retry-with-a-different-strategy runner.

Both fallback layers use this module: the client tries the MCP tool call
and then the direct HTTP request for one logical operation, and the
orchestrator tries the client path and then the legacy script.  Each
strategy is an awaitable factory; the first one that returns without raising
wins and the rest are never started.

Every attempt is recorded as a :class:`StrategyOutcome` so callers (and
tests) can inspect exactly which paths ran and why they failed.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from session_closer.observability import NoopMetricsHook, get_logger

log = get_logger("session_closer.fallback")

T = TypeVar("T")


@dataclass(frozen=True)
class Strategy(Generic[T]):
    """A named way of performing an operation."""

    name: str
    run: Callable[[], Awaitable[T]]


@dataclass
class StrategyOutcome:
    """What happened when one strategy was tried."""

    name: str
    ok: bool
    error: Exception | None = None

    def describe(self) -> str:
        if self.ok:
            return f"{self.name}: ok"
        return f"{self.name}: {self.error}"


@dataclass
class FallbackResult(Generic[T]):
    """Aggregate outcome of :func:`run_strategies`.

    Attributes
    ----------
    value:
        Return value of the winning strategy, or ``None``.
    winner:
        Name of the winning strategy, or ``None`` when all failed.
    attempts:
        One outcome per strategy actually tried, in order.
    """

    value: T | None = None
    winner: str | None = None
    attempts: list[StrategyOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.winner is not None

    @property
    def last_error(self) -> Exception | None:
        for outcome in reversed(self.attempts):
            if outcome.error is not None:
                return outcome.error
        return None

    def summary(self) -> str:
        return "; ".join(o.describe() for o in self.attempts)


async def run_strategies(
    op: str,
    strategies: Sequence[Strategy[T]],
    *,
    metrics: Any | None = None,
    passthrough: tuple[type[BaseException], ...] = (),
) -> FallbackResult[T]:
    """Try *strategies* in order until one succeeds.

    Parameters
    ----------
    op:
        Operation name used in logs and metric tags.
    strategies:
        Strategies to try, most preferred first.
    metrics:
        Optional metrics hook; ``session_closer.fallback_total`` is
        incremented each time a later strategy is tried.
    passthrough:
        Exception types that must propagate immediately instead of
        triggering the next strategy.

    Returns
    -------
    FallbackResult
        Never raises for strategy failures; inspect ``succeeded``.
    """
    hook = metrics if metrics is not None else NoopMetricsHook()
    result: FallbackResult[T] = FallbackResult()

    for index, strategy in enumerate(strategies):
        if index > 0:
            hook.increment(
                "session_closer.fallback_total",
                tags={"op": op, "strategy": strategy.name},
            )
        try:
            value = await strategy.run()
        except passthrough:
            raise
        except Exception as exc:
            result.attempts.append(StrategyOutcome(strategy.name, ok=False, error=exc))
            log.warning(
                "Strategy failed",
                extra={
                    "extra_fields": {
                        "op": op,
                        "strategy": strategy.name,
                        "error": str(exc),
                        "remaining": len(strategies) - index - 1,
                    }
                },
            )
            continue

        result.attempts.append(StrategyOutcome(strategy.name, ok=True))
        result.value = value
        result.winner = strategy.name
        return result

    return result
