"""Tests for the direct HTTP transport, retry policy and endpoint wrappers.

Covers:
- parse_retry_after / RetryPolicy
- NotionHttpTransport.request (headers, success, error context, retries)
- BlockAPI.append_children / PageAPI.create request shapes
"""

from __future__ import annotations

import httpx
import pytest
from conftest import RecordingHandler, make_config, make_http_transport

from session_closer.errors import (
    ErrorCode,
    SessionCloserConfigError,
    SessionCloserNetworkError,
)
from session_closer.notion_api import BlockAPI, PageAPI, RetryPolicy
from session_closer.notion_api.retries import parse_retry_after

# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------

class TestParseRetryAfter:
    def test_numeric_header(self):
        assert parse_retry_after(httpx.Response(429, headers={"retry-after": "5"})) == 5.0

    def test_invalid_header(self):
        assert parse_retry_after(httpx.Response(429, headers={"retry-after": "soon"})) is None

    def test_missing_header(self):
        assert parse_retry_after(httpx.Response(429)) is None


class TestRetryPolicy:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable_statuses(self, status):
        assert RetryPolicy().should_retry(0, status_code=status)

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409])
    def test_client_errors_not_retried(self, status):
        assert not RetryPolicy().should_retry(0, status_code=status)

    def test_attempts_are_bounded(self):
        policy = RetryPolicy(max_attempts=3)
        assert policy.should_retry(1, status_code=503)
        assert not policy.should_retry(2, status_code=503)

    def test_network_exceptions_retried(self):
        exc = httpx.ConnectError("refused")
        assert RetryPolicy().should_retry(0, exception=exc)

    def test_other_exceptions_not_retried(self):
        assert not RetryPolicy().should_retry(0, exception=ValueError("x"))

    def test_backoff_is_exponential_and_capped(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=5.0, jitter=False)
        assert [policy.backoff(a) for a in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_retry_after_capped(self):
        policy = RetryPolicy(max_delay=3.0, jitter=False)
        assert policy.backoff(0, retry_after=60) == 3.0

    def test_jitter_stays_within_half_to_full(self):
        policy = RetryPolicy(base_delay=2.0, max_delay=10.0, jitter=True)
        for _ in range(50):
            assert 1.0 <= policy.backoff(0) <= 2.0

    def test_from_config(self):
        policy = RetryPolicy.from_config(make_config(retry_max_attempts=5, retry_base_delay=0.5))
        assert policy.max_attempts == 5
        assert policy.base_delay == 0.5


# ---------------------------------------------------------------------------
# NotionHttpTransport
# ---------------------------------------------------------------------------

class TestRequest:
    async def test_sends_auth_and_version_headers(self):
        handler = RecordingHandler(body={"id": "page-1"})
        transport = make_http_transport(make_config(), handler)
        result = await transport.request("POST", "/pages", json={"a": 1})

        assert result == {"id": "page-1"}
        request = handler.requests[0]
        assert request.headers["Authorization"] == "Bearer test-token-1234"
        assert request.headers["Notion-Version"] == "2022-06-28"
        assert request.headers["Content-Type"] == "application/json"
        assert request.url.path == "/v1/pages"

    async def test_empty_body_returns_empty_dict(self):
        transport = make_http_transport(make_config(), lambda req: httpx.Response(204))
        assert await transport.request("PATCH", "/blocks/x/children") == {}

    async def test_missing_token_raises_before_io(self):
        handler = RecordingHandler()
        transport = make_http_transport(make_config(token=""), handler)
        with pytest.raises(SessionCloserConfigError):
            await transport.request("POST", "/pages", json={})
        assert handler.requests == []

    async def test_client_error_carries_status_and_body(self):
        handler = RecordingHandler(statuses=[400])
        transport = make_http_transport(make_config(), handler)
        with pytest.raises(SessionCloserNetworkError) as exc_info:
            await transport.request("POST", "/pages", json={})

        err = exc_info.value
        assert err.code == ErrorCode.NETWORK_ERROR
        assert err.context["status_code"] == 400
        assert "status 400" in err.context["body"]
        assert "400" in str(err)
        assert len(handler.requests) == 1

    async def test_server_error_retried_then_succeeds(self):
        handler = RecordingHandler(statuses=[503, 500], body={"ok": True})
        transport = make_http_transport(make_config(), handler)
        assert await transport.request("GET", "/users/me") == {"ok": True}
        assert len(handler.requests) == 3

    async def test_retries_exhausted(self):
        handler = RecordingHandler(default_status=429)
        transport = make_http_transport(make_config(retry_max_attempts=2), handler)
        with pytest.raises(SessionCloserNetworkError) as exc_info:
            await transport.request("GET", "/users/me")
        assert exc_info.value.context["status_code"] == 429
        assert len(handler.requests) == 2

    async def test_network_error_wrapped_after_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        transport = make_http_transport(make_config(retry_max_attempts=2), handler)
        with pytest.raises(SessionCloserNetworkError) as exc_info:
            await transport.request("GET", "/users/me")
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        assert len(calls) == 2

    async def test_context_manager_closes_client(self):
        transport = make_http_transport(make_config(), RecordingHandler())
        async with transport:
            pass
        assert transport._client.is_closed


# ---------------------------------------------------------------------------
# Endpoint wrappers
# ---------------------------------------------------------------------------

class TestEndpoints:
    async def test_append_children_request_shape(self):
        handler = RecordingHandler(body={"results": [{"id": "b1"}, {"id": "b2"}]})
        blocks = BlockAPI(make_http_transport(make_config(), handler))
        children = [{"type": "paragraph", "paragraph": {"rich_text": []}}]

        response = await blocks.append_children("page-uuid", children)

        request = handler.requests[0]
        assert request.method == "PATCH"
        assert request.url.path == "/v1/blocks/page-uuid/children"
        assert handler.json_bodies() == [{"children": children}]
        assert response == {"results": [{"id": "b1"}, {"id": "b2"}]}

    async def test_create_page_sends_parent_as_object(self):
        handler = RecordingHandler(body={"id": "new-page"})
        pages = PageAPI(make_http_transport(make_config(), handler))
        parent = {"type": "database_id", "database_id": "db-uuid"}

        await pages.create(parent, {"Session Title": {"title": []}})

        body = handler.json_bodies()[0]
        assert body["parent"] == parent
        assert isinstance(body["parent"], dict)
        assert handler.requests[0].method == "POST"
        assert handler.requests[0].url.path == "/v1/pages"
