"""Retry policy for the direct HTTP path.

The MCP tool path is never retried in place; its failure routes the same
payload to HTTP instead.  The HTTP path itself retries transient failures
(429, 5xx, timeouts, connection errors) a bounded number of times.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

import httpx

from session_closer.config import SessionCloserConfig

# HTTP status codes that are safe to retry.
RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Network-level exceptions that warrant a retry.
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Attributes
    ----------
    max_attempts:
        Total attempts including the first request.
    base_delay:
        Delay before the second attempt, in seconds.
    max_delay:
        Cap applied to every computed delay, including ``Retry-After``.
    jitter:
        Scale each delay randomly into 50-100 % of its value.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: bool = True

    @classmethod
    def from_config(cls, config: SessionCloserConfig) -> RetryPolicy:
        return cls(
            max_attempts=config.retry_max_attempts,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
        )

    def should_retry(
        self,
        attempt: int,
        status_code: int | None = None,
        exception: Exception | None = None,
    ) -> bool:
        """Decide whether attempt number *attempt* (0-indexed) may be repeated."""
        if attempt + 1 >= self.max_attempts:
            return False
        if exception is not None:
            return isinstance(exception, RETRYABLE_EXCEPTIONS)
        return status_code in RETRYABLE_STATUSES

    def backoff(self, attempt: int, retry_after: float | None = None) -> float:
        """Seconds to wait before the attempt following *attempt*."""
        if retry_after is not None:
            delay = min(retry_after, self.max_delay)
        else:
            delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random() * 0.5
        return delay


def parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None
