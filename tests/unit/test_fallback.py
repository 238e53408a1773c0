"""Tests for the ordered strategy-fallback runner."""

from __future__ import annotations

from typing import Any

import pytest

from session_closer.errors import SerializationHazardError
from session_closer.fallback import Strategy, run_strategies


class RecordingMetricsHook:
    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []

    def increment(self, name, value=1, tags=None):
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(self, name, ms, tags=None):
        pass


def succeed(value, log):
    async def run():
        log.append(value)
        return value
    return run


def fail(message, log, exc_type=RuntimeError):
    async def run():
        log.append(message)
        raise exc_type(message)
    return run


class TestRunStrategies:
    async def test_first_success_wins_and_rest_never_run(self):
        ran = []
        result = await run_strategies(
            "op",
            [Strategy("a", succeed("A", ran)), Strategy("b", succeed("B", ran))],
        )
        assert result.succeeded
        assert result.value == "A"
        assert result.winner == "a"
        assert ran == ["A"]
        assert [o.name for o in result.attempts] == ["a"]

    async def test_falls_back_in_order(self):
        ran = []
        result = await run_strategies(
            "op",
            [Strategy("mcp", fail("boom", ran)), Strategy("http", succeed("ok", ran))],
        )
        assert result.winner == "http"
        assert result.value == "ok"
        assert ran == ["boom", "ok"]
        assert [(o.name, o.ok) for o in result.attempts] == [("mcp", False), ("http", True)]
        assert str(result.attempts[0].error) == "boom"

    async def test_all_fail_returns_without_raising(self):
        ran = []
        result = await run_strategies(
            "op",
            [Strategy("a", fail("first", ran)), Strategy("b", fail("second", ran))],
        )
        assert not result.succeeded
        assert result.value is None
        assert str(result.last_error) == "second"
        assert result.summary() == "a: first; b: second"

    async def test_passthrough_propagates_immediately(self):
        ran = []
        with pytest.raises(SerializationHazardError):
            await run_strategies(
                "op",
                [
                    Strategy(
                        "a",
                        fail("hazard", ran, exc_type=lambda m: SerializationHazardError(message=m)),
                    ),
                    Strategy("b", succeed("never", ran)),
                ],
                passthrough=(SerializationHazardError,),
            )
        assert ran == ["hazard"]

    async def test_fallback_metric_emitted_for_later_strategies(self):
        hook = RecordingMetricsHook()
        ran = []
        await run_strategies(
            "append_blocks",
            [Strategy("mcp", fail("x", ran)), Strategy("http", succeed("ok", ran))],
            metrics=hook,
        )
        assert hook.increments == [
            {
                "name": "session_closer.fallback_total",
                "value": 1,
                "tags": {"op": "append_blocks", "strategy": "http"},
            }
        ]

    async def test_no_strategies(self):
        result = await run_strategies("op", [])
        assert not result.succeeded
        assert result.attempts == []
        assert result.last_error is None
