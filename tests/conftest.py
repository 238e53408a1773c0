"""Shared test fixtures for the session-closer test suite."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from session_closer.config import SessionCloserConfig
from session_closer.notion_api.http_transport import NotionHttpTransport

PAGE_ID = "a1b2c3d4e5f6a1b2c3d4e5f6a1b2c3d4"
PAGE_UUID = "a1b2c3d4-e5f6-a1b2-c3d4-e5f6a1b2c3d4"
DATABASE_ID = "0123456789abcdef0123456789abcdef"
DATABASE_UUID = "01234567-89ab-cdef-0123-456789abcdef"


def make_config(**overrides: Any) -> SessionCloserConfig:
    """Return a SessionCloserConfig tuned for fast, deterministic tests."""
    defaults: dict[str, Any] = dict(
        token="test-token-1234",
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )
    defaults.update(overrides)
    return SessionCloserConfig(**defaults)


class FakeToolTransport:
    """In-memory stand-in for the MCP tool session.

    ``failures`` maps a tool name to an exception raised on every call, or
    to a callable ``(arguments) -> Exception | None`` deciding per call.
    ``responses`` maps a tool name to the dict returned on success.
    ``connect_error`` is raised by every connect attempt, as when the tool
    server cannot be started.  ``call_tool`` connects lazily, like
    :class:`McpToolTransport`.
    """

    def __init__(
        self,
        failures: dict[str, Exception | Callable[[dict[str, Any]], Exception | None]] | None = None,
        responses: dict[str, dict[str, Any]] | None = None,
        connect_error: Exception | None = None,
    ) -> None:
        self.failures = failures or {}
        self.connect_error = connect_error
        self.responses = responses or {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.connect_calls = 0
        self.close_calls = 0
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        self._connected = True

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        if not self._connected:
            await self.connect()
        self.calls.append((name, arguments))
        failure = self.failures.get(name)
        if callable(failure) and not isinstance(failure, Exception):
            failure = failure(arguments)
        if failure is not None:
            raise failure
        return self.responses.get(name, {"object": "list", "results": []})

    async def close(self) -> None:
        self.close_calls += 1
        self._connected = False


class RecordingHandler:
    """``httpx.MockTransport`` handler that records requests.

    ``statuses`` is consumed one entry per request; when it runs out every
    further request gets ``default_status``.
    """

    def __init__(
        self,
        statuses: list[int] | None = None,
        body: dict[str, Any] | None = None,
        default_status: int = 200,
    ) -> None:
        self.statuses = list(statuses or [])
        self.body = body if body is not None else {"object": "list", "results": []}
        self.default_status = default_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses.pop(0) if self.statuses else self.default_status
        if 200 <= status < 300:
            return httpx.Response(status, json=self.body)
        return httpx.Response(status, json={"object": "error", "code": "err", "message": f"status {status}"})

    def json_bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def make_http_transport(
    config: SessionCloserConfig,
    handler: Callable[[httpx.Request], httpx.Response],
) -> NotionHttpTransport:
    client = httpx.AsyncClient(
        base_url=config.base_url,
        transport=httpx.MockTransport(handler),
    )
    return NotionHttpTransport(config, client=client)


@pytest.fixture
def config() -> SessionCloserConfig:
    """Default test configuration with a dummy token."""
    return make_config()


@pytest.fixture
def tools() -> FakeToolTransport:
    return FakeToolTransport()


@pytest.fixture
def http_handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def isolated_git(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run git with a fixed identity and no user or system config."""
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", "/dev/null")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for role in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{role}_NAME", "Session Closer Tests")
        monkeypatch.setenv(f"GIT_{role}_EMAIL", "tests@example.com")
