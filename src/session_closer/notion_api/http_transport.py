"""Direct HTTP transport for the Notion REST API.

This is the fallback path: it carries the same logical payload as the MCP
tool call, but as an explicit JSON body, so nested objects such as
``parent`` can never be flattened on the way.

Request lifecycle:

1. Send the request with ``Authorization`` and ``Notion-Version`` headers
   and a bounded timeout.
2. On ``2xx`` -- return the parsed JSON response.
3. On ``429`` / ``5xx`` / network error -- back off and retry while the
   :class:`RetryPolicy` allows.
4. Otherwise -- raise :class:`SessionCloserNetworkError` carrying the status
   code and the response body text.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from session_closer.config import SessionCloserConfig
from session_closer.errors import SessionCloserNetworkError
from session_closer.observability import NoopMetricsHook, get_logger

from .retries import RetryPolicy, parse_retry_after

log = get_logger("session_closer.http")


def _error_for_response(response: httpx.Response, method: str, path: str) -> SessionCloserNetworkError:
    """Build the error raised for a non-2xx response."""
    body_text = response.text[:1000]
    try:
        body = response.json()
    except ValueError:
        body = {}
    notion_message = body.get("message", body_text) if isinstance(body, dict) else body_text
    notion_code = body.get("code", "") if isinstance(body, dict) else ""
    return SessionCloserNetworkError(
        message=f"Notion API error {response.status_code} on {method} {path}: {notion_message}",
        context={
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "notion_code": notion_code,
            "body": body_text,
        },
    )


class NotionHttpTransport:
    """Asynchronous HTTP transport with auth headers, timeout and retries.

    Parameters
    ----------
    config:
        A :class:`SessionCloserConfig`; ``token`` must be set before the
        first request.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests inject one backed by
        ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: SessionCloserConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._policy = RetryPolicy.from_config(config)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.require_token()}",
            "Notion-Version": self._config.notion_version,
            "Content-Type": "application/json",
        }

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Execute an HTTP request against the Notion API.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST``, ``PATCH``).
        path:
            API path relative to ``base_url`` (e.g. ``/pages``).
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request`; use ``json=``
            for bodies.

        Returns
        -------
        dict
            Parsed JSON response body (``{}`` for empty bodies).

        Raises
        ------
        SessionCloserConfigError
            When no token is configured (before any I/O).
        SessionCloserNetworkError
            On a non-retryable status, or when retries are exhausted.
        """
        headers = self._headers()
        attempt = 0

        while True:
            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, headers=headers, **kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                self._metrics.increment(
                    "session_closer.requests_total",
                    tags={"method": method, "status": "error"},
                )
                log.warning(
                    "Request network error",
                    extra={
                        "extra_fields": {
                            "op": "request",
                            "method": method,
                            "path": path,
                            "attempt": attempt + 1,
                            "error": str(exc),
                        }
                    },
                )
                if not self._policy.should_retry(attempt, exception=exc):
                    raise SessionCloserNetworkError(
                        message=f"Network error on {method} {path}: {exc}",
                        context={"method": method, "path": path, "attempt": attempt + 1},
                        cause=exc,
                    ) from exc
                await self._sleep_before_retry(method, attempt, "network_error")
                attempt += 1
                continue

            elapsed_ms = (time.monotonic() - t0) * 1000
            status = response.status_code
            self._metrics.increment(
                "session_closer.requests_total",
                tags={"method": method, "status": str(status)},
            )
            self._metrics.timing(
                "session_closer.request_duration_ms",
                elapsed_ms,
                tags={"method": method, "status": str(status)},
            )

            if 200 <= status < 300:
                if status == 204 or not response.content:
                    return {}
                result: dict[str, Any] = response.json()
                return result

            if not self._policy.should_retry(attempt, status_code=status):
                raise _error_for_response(response, method, path)

            retry_after = parse_retry_after(response) if status == 429 else None
            log.warning(
                "Retrying Notion request",
                extra={
                    "extra_fields": {
                        "op": "request",
                        "method": method,
                        "path": path,
                        "status_code": status,
                        "retry_after": retry_after,
                        "attempt": attempt + 1,
                    }
                },
            )
            reason = "rate_limited" if status == 429 else "server_error"
            await self._sleep_before_retry(method, attempt, reason, retry_after)
            attempt += 1

    async def _sleep_before_retry(
        self,
        method: str,
        attempt: int,
        reason: str,
        retry_after: float | None = None,
    ) -> None:
        self._metrics.increment(
            "session_closer.retries_total",
            tags={"method": method, "reason": reason},
        )
        await asyncio.sleep(self._policy.backoff(attempt, retry_after))

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> NotionHttpTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
