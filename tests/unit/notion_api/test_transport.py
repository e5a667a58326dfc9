"""Unit tests for notionwire/notion_api/transport.py.

Covers:
- _parse_retry_after
- _raise_for_status
- _dump_payload
- _page_request
- NotionTransport.request (success, 4xx errors, retry logic, debug dump,
  rate limiter gating, headers and body encoding)
- NotionTransport.page_fetcher (GET and POST endpoints)
- NotionTransport.close / context manager
- AsyncNotionTransport equivalents
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from conftest import list_page, make_config, make_response

from notionwire.errors import (
    NotionwireAuthError,
    NotionwireConflictError,
    NotionwireNetworkError,
    NotionwireNotFoundError,
    NotionwirePermissionError,
    NotionwireRateLimitWaitError,
    NotionwireRetryExhaustedError,
    NotionwireValidationError,
)
from notionwire.notion_api.rate_limit import AsyncRateLimiter, RateLimiter
from notionwire.notion_api.transport import (
    AsyncNotionTransport,
    NotionTransport,
    _dump_payload,
    _page_request,
    _parse_retry_after,
    _raise_for_status,
)

# ---------------------------------------------------------------------------
# _parse_retry_after
# ---------------------------------------------------------------------------

class TestParseRetryAfter:
    def test_numeric_string_returns_float(self):
        assert _parse_retry_after(make_response(429, headers={"Retry-After": "3"})) == 3.0

    def test_fractional_value(self):
        assert _parse_retry_after(make_response(429, headers={"Retry-After": "0.25"})) == 0.25

    def test_missing_header_returns_none(self):
        assert _parse_retry_after(make_response(429)) is None

    @pytest.mark.parametrize("raw", ["soon", "Wed, 21 Oct 2015 07:28:00 GMT", ""])
    def test_unparseable_returns_none(self, raw):
        assert _parse_retry_after(make_response(429, headers={"Retry-After": raw})) is None


# ---------------------------------------------------------------------------
# _raise_for_status
# ---------------------------------------------------------------------------

class TestRaiseForStatus:
    @pytest.mark.parametrize(
        ("status", "exc_type"),
        [
            (400, NotionwireValidationError),
            (401, NotionwireAuthError),
            (403, NotionwirePermissionError),
            (404, NotionwireNotFoundError),
            (409, NotionwireConflictError),
            (422, NotionwireValidationError),
        ],
    )
    def test_status_maps_to_error(self, status, exc_type):
        resp = make_response(status, {"code": "some_code", "message": "nope"})
        with pytest.raises(exc_type) as exc_info:
            _raise_for_status(resp, "GET", "/pages/abc")
        ctx = exc_info.value.context
        assert ctx["status_code"] == status
        assert ctx["notion_code"] == "some_code"
        assert ctx["method"] == "GET"
        assert ctx["path"] == "/pages/abc"
        assert exc_info.value.status_code == status

    def test_message_extracted_from_body(self):
        resp = make_response(400, {"code": "validation_error", "message": "title is required"})
        with pytest.raises(NotionwireValidationError, match="title is required") as exc_info:
            _raise_for_status(resp, "POST", "/pages")
        assert exc_info.value.context["body"]["code"] == "validation_error"

    def test_non_json_body_falls_back_to_text(self):
        resp = httpx.Response(400, content=b"<html>Bad Request</html>")
        resp.request = httpx.Request("GET", "https://api.notion.com/v1/test")
        with pytest.raises(NotionwireValidationError, match="Bad Request") as exc_info:
            _raise_for_status(resp, "GET", "/x")
        assert exc_info.value.context["notion_code"] == ""

    def test_non_object_json_body(self):
        resp = httpx.Response(404, content=b"[1, 2]")
        resp.request = httpx.Request("GET", "https://api.notion.com/v1/test")
        with pytest.raises(NotionwireNotFoundError):
            _raise_for_status(resp, "GET", "/x")


# ---------------------------------------------------------------------------
# _dump_payload
# ---------------------------------------------------------------------------

class TestDumpPayload:
    def test_dump_with_payload_and_response(self, capsys):
        _dump_payload("POST", "https://api.notion.com/v1/pages", {"a": 1}, 200, {"id": "p"})
        dump = json.loads(capsys.readouterr().err)
        assert dump == {
            "method": "POST",
            "url": "https://api.notion.com/v1/pages",
            "request_body": {"a": 1},
            "response_status": 200,
            "response_body": {"id": "p"},
        }

    def test_dump_without_payload(self, capsys):
        _dump_payload("GET", "https://api.notion.com/v1/users/me", None, 200, None)
        dump = json.loads(capsys.readouterr().err)
        assert "request_body" not in dump
        assert "response_body" not in dump

    def test_token_is_redacted(self, capsys):
        token = "ntn_secret_value_9876"
        _dump_payload("POST", "/x", {"note": f"leaked {token}"}, 200, None, token=token)
        err = capsys.readouterr().err
        assert token not in err
        assert "...9876" in err


# ---------------------------------------------------------------------------
# _page_request
# ---------------------------------------------------------------------------

class TestPageRequest:
    def test_get_puts_paging_in_params(self):
        kwargs = _page_request("GET", {"block_id": "b"}, None, 50, "cur")
        assert kwargs == {"params": {"block_id": "b", "page_size": 50, "start_cursor": "cur"}}

    def test_first_page_has_no_cursor(self):
        kwargs = _page_request("GET", None, None, 100, None)
        assert kwargs == {"params": {"page_size": 100}}

    def test_post_puts_paging_in_body(self):
        kwargs = _page_request("post", None, {"filter": {"x": 1}}, 25, "c2")
        assert kwargs == {"json": {"filter": {"x": 1}, "page_size": 25, "start_cursor": "c2"}}

    def test_caller_dicts_not_mutated(self):
        params = {"name": "x"}
        body = {"query": "q"}
        _page_request("GET", params, None, 10, "c")
        _page_request("POST", None, body, 10, "c")
        assert params == {"name": "x"}
        assert body == {"query": "q"}


# ---------------------------------------------------------------------------
# NotionTransport.request
# ---------------------------------------------------------------------------

class TestNotionTransportRequest:
    def _transport(self, **overrides) -> NotionTransport:
        return NotionTransport(make_config(**overrides))

    def test_200_returns_json(self):
        transport = self._transport()
        with patch.object(transport._client, "request", return_value=make_response(200, {"id": "x"})):
            assert transport.request("GET", "/pages/x") == {"id": "x"}

    def test_204_returns_empty_dict(self):
        transport = self._transport()
        with patch.object(transport._client, "request", return_value=make_response(204)):
            assert transport.request("DELETE", "/blocks/x") == {}

    def test_kwargs_forwarded_to_client(self):
        transport = self._transport()
        with patch.object(transport._client, "request", return_value=make_response(200, {})) as req:
            transport.request("POST", "/pages", json={"a": 1}, params={"b": "2"})
        req.assert_called_once_with("POST", "/pages", json={"a": 1}, params={"b": "2"})

    @pytest.mark.parametrize(
        ("status", "exc_type"),
        [
            (400, NotionwireValidationError),
            (401, NotionwireAuthError),
            (403, NotionwirePermissionError),
            (404, NotionwireNotFoundError),
            (409, NotionwireConflictError),
        ],
    )
    def test_4xx_raises_immediately(self, status, exc_type):
        transport = self._transport()
        with patch.object(
            transport._client, "request", return_value=make_response(status, {"message": "m"}),
        ) as req:
            with pytest.raises(exc_type):
                transport.request("GET", "/pages/x")
        assert req.call_count == 1

    def test_429_retried_and_eventually_exhausted(self):
        transport = self._transport(retry_max_attempts=3)
        with patch.object(transport._client, "request", return_value=make_response(429)) as req:
            with pytest.raises(NotionwireRetryExhaustedError) as exc_info:
                transport.request("GET", "/users")
        assert req.call_count == 3
        assert exc_info.value.context == {"attempts": 3, "last_status_code": 429}

    def test_429_retry_after_drives_sleep(self):
        transport = self._transport(retry_max_delay=60.0)
        responses = [
            make_response(429, headers={"Retry-After": "1.5"}),
            make_response(200, {"ok": True}),
        ]
        with (
            patch.object(transport._client, "request", side_effect=responses),
            patch("notionwire.notion_api.transport.time.sleep") as sleep,
        ):
            assert transport.request("GET", "/users") == {"ok": True}
        sleep.assert_called_once_with(1.5)

    def test_500_retried_success_on_second_attempt(self):
        transport = self._transport()
        responses = [make_response(500), make_response(200, {"id": "ok"})]
        with patch.object(transport._client, "request", side_effect=responses) as req:
            assert transport.request("GET", "/pages/x") == {"id": "ok"}
        assert req.call_count == 2

    def test_503_retry_exhausted(self):
        transport = self._transport(retry_max_attempts=2)
        with patch.object(transport._client, "request", return_value=make_response(503)):
            with pytest.raises(NotionwireRetryExhaustedError) as exc_info:
                transport.request("GET", "/pages/x")
        assert exc_info.value.context["last_status_code"] == 503

    def test_timeout_retried_then_success(self):
        transport = self._transport()
        side_effect = [httpx.ReadTimeout("slow"), make_response(200, {"id": "ok"})]
        with patch.object(transport._client, "request", side_effect=side_effect) as req:
            assert transport.request("GET", "/pages/x") == {"id": "ok"}
        assert req.call_count == 2

    def test_network_error_on_final_attempt_raises_network_error(self):
        transport = self._transport(retry_max_attempts=2)
        err = httpx.ConnectError("connection refused")
        with patch.object(transport._client, "request", side_effect=err) as req:
            with pytest.raises(NotionwireNetworkError) as exc_info:
                transport.request("GET", "/pages/x")
        assert req.call_count == 2
        assert exc_info.value.context["attempt"] == 2
        assert exc_info.value.cause is err
        assert exc_info.value.__cause__ is err

    def test_single_attempt_network_error(self):
        transport = self._transport(retry_max_attempts=1)
        with patch.object(transport._client, "request", side_effect=httpx.ConnectError("x")):
            with pytest.raises(NotionwireNetworkError):
                transport.request("GET", "/pages/x")

    def test_every_attempt_goes_through_limiter(self):
        limiter = RateLimiter(100, 1.0)
        transport = NotionTransport(make_config(), rate_limiter=limiter)
        responses = [make_response(500), httpx.ConnectError("x"), make_response(200, {})]
        with (
            patch.object(transport._client, "request", side_effect=responses),
            patch.object(limiter, "run_gated", wraps=limiter.run_gated) as gated,
        ):
            transport.request("GET", "/users/me")
        assert gated.call_count == 3
        assert limiter.requests_in_window == 3

    def test_limiter_wait_error_not_retried(self):
        transport = self._transport(
            rate_limit_requests=1, rate_limit_window_seconds=10.0, rate_limit_max_wait=0.01,
        )
        with patch.object(transport._client, "request", return_value=make_response(200, {})) as req:
            transport.request("GET", "/users/me")
            with pytest.raises(NotionwireRateLimitWaitError):
                transport.request("GET", "/users/me")
        assert req.call_count == 1

    def test_shared_limiter(self):
        limiter = RateLimiter(10, 1.0)
        first = NotionTransport(make_config(), rate_limiter=limiter)
        second = NotionTransport(make_config(), rate_limiter=limiter)
        assert first.rate_limiter is second.rate_limiter is limiter

    def test_metrics_emitted(self):
        metrics = MagicMock()
        transport = self._transport(metrics=metrics)
        responses = [make_response(429), make_response(200, {})]
        with patch.object(transport._client, "request", side_effect=responses):
            transport.request("GET", "/users")
        counters = [c.args[0] for c in metrics.increment.call_args_list]
        assert counters.count("notionwire.requests_total") == 2
        assert "notionwire.rate_limited_total" in counters
        metrics.increment.assert_any_call(
            "notionwire.retries_total",
            tags={"method": "GET", "path": "/users", "reason": "rate_limited"},
        )
        timings = [c.args[0] for c in metrics.timing.call_args_list]
        assert "notionwire.request_duration_ms" in timings

    def test_debug_dump_payload_writes_to_stderr(self, capsys):
        transport = self._transport(debug_dump_payload=True)
        with patch.object(transport._client, "request", return_value=make_response(200, {"id": "p"})):
            transport.request("POST", "/pages", json={"note": "test-token-1234"})
        err = capsys.readouterr().err
        assert '"response_status": 200' in err
        assert "test-token-1234" not in err

    def test_no_debug_dump_when_disabled(self, capsys):
        transport = self._transport()
        with patch.object(transport._client, "request", return_value=make_response(200, {})):
            transport.request("POST", "/pages", json={"a": 1})
        assert "request_body" not in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Wire format (through httpx.MockTransport)
# ---------------------------------------------------------------------------

class TestWireFormat:
    def _transport(self, handler) -> NotionTransport:
        return NotionTransport(make_config(), http_transport=httpx.MockTransport(handler))

    def test_auth_and_version_headers(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        self._transport(handler).request("GET", "/users/me")
        request = seen[0]
        assert request.headers["Authorization"] == "Bearer test-token-1234"
        assert request.headers["Notion-Version"] == "2025-09-03"
        assert request.url == "https://api.notion.com/v1/users/me"

    def test_json_body_has_json_content_type(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        self._transport(handler).request("PATCH", "/pages/p", json={"in_trash": True})
        assert seen[0].headers["Content-Type"] == "application/json"
        assert json.loads(seen[0].content) == {"in_trash": True}

    def test_multipart_body_has_multipart_content_type(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"status": "pending"})

        self._transport(handler).request(
            "POST", "/file_uploads/u/send",
            files={"file": ("a.txt", b"hello", "text/plain")},
            data={"part_number": "1"},
        )
        content_type = seen[0].headers["Content-Type"]
        assert content_type.startswith("multipart/form-data; boundary=")
        seen[0].read()
        assert b"hello" in seen[0].content
        assert b'name="part_number"' in seen[0].content


# ---------------------------------------------------------------------------
# page_fetcher
# ---------------------------------------------------------------------------

class TestNotionTransportPageFetcher:
    def test_get_endpoint_sends_cursor_as_query(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            if "start_cursor" in request.url.params:
                return httpx.Response(200, json=list_page([{"id": "b"}]))
            return httpx.Response(200, json=list_page([{"id": "a"}], next_cursor="c1"))

        transport = NotionTransport(make_config(page_size=50),
                                    http_transport=httpx.MockTransport(handler))
        fetch = transport.page_fetcher("GET", "/blocks/x/children")
        first = fetch(None)
        second = fetch(first.next_cursor)

        assert first.results == [{"id": "a"}] and first.has_more
        assert second.results == [{"id": "b"}] and not second.has_more
        assert seen[0].url.params["page_size"] == "50"
        assert "start_cursor" not in seen[0].url.params
        assert seen[1].url.params["start_cursor"] == "c1"

    def test_post_endpoint_sends_cursor_in_body(self):
        bodies: list[dict] = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=list_page([]))

        caller_body = {"filter": {"property": "Done", "checkbox": {"equals": True}}}
        transport = NotionTransport(make_config(), http_transport=httpx.MockTransport(handler))
        fetch = transport.page_fetcher("POST", "/data_sources/d/query", json=caller_body,
                                       page_size=10)
        fetch("abc")

        assert bodies[0] == {**caller_body, "page_size": 10, "start_cursor": "abc"}
        assert "start_cursor" not in caller_body

    def test_custom_results_key(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", return_value=make_response(
            200, {"object": "list", "templates": [{"id": "t"}], "has_more": False},
        )):
            page = transport.page_fetcher("GET", "/x", results_key="templates")(None)
        assert page.results == [{"id": "t"}]

    def test_counts_pages(self):
        metrics = MagicMock()
        transport = NotionTransport(make_config(metrics=metrics))
        with patch.object(transport._client, "request", return_value=make_response(200, list_page([]))):
            transport.page_fetcher("GET", "/users")(None)
        metrics.increment.assert_any_call("notionwire.pages_fetched_total", tags={"path": "/users"})


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestNotionTransportLifecycle:
    def test_close_calls_client_close(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "close") as close:
            transport.close()
        close.assert_called_once()

    def test_context_manager_closes_on_exception(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "close") as close:
            with pytest.raises(RuntimeError):
                with transport:
                    raise RuntimeError("boom")
        close.assert_called_once()


# ---------------------------------------------------------------------------
# AsyncNotionTransport
# ---------------------------------------------------------------------------

class TestAsyncNotionTransport:
    def _transport(self, **overrides) -> AsyncNotionTransport:
        return AsyncNotionTransport(make_config(**overrides))

    async def test_200_returns_json(self):
        transport = self._transport()
        with patch.object(transport._client, "request",
                          new=AsyncMock(return_value=make_response(200, {"id": "x"}))):
            assert await transport.request("GET", "/pages/x") == {"id": "x"}

    async def test_404_raises(self):
        transport = self._transport()
        with patch.object(transport._client, "request",
                          new=AsyncMock(return_value=make_response(404, {}))):
            with pytest.raises(NotionwireNotFoundError):
                await transport.request("GET", "/pages/x")

    async def test_500_then_success(self):
        transport = self._transport()
        mock = AsyncMock(side_effect=[make_response(502), make_response(200, {"ok": 1})])
        with patch.object(transport._client, "request", new=mock):
            assert await transport.request("GET", "/x") == {"ok": 1}
        assert mock.await_count == 2

    async def test_retry_exhausted(self):
        transport = self._transport(retry_max_attempts=2)
        mock = AsyncMock(return_value=make_response(500))
        with patch.object(transport._client, "request", new=mock):
            with pytest.raises(NotionwireRetryExhaustedError):
                await transport.request("GET", "/x")
        assert mock.await_count == 2

    async def test_network_error_final_attempt(self):
        transport = self._transport(retry_max_attempts=2)
        mock = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        with patch.object(transport._client, "request", new=mock):
            with pytest.raises(NotionwireNetworkError):
                await transport.request("GET", "/x")
        assert mock.await_count == 2

    async def test_retry_after_drives_sleep(self):
        transport = self._transport(retry_max_delay=60.0)
        mock = AsyncMock(side_effect=[
            make_response(429, headers={"Retry-After": "2"}),
            make_response(200, {}),
        ])
        with (
            patch.object(transport._client, "request", new=mock),
            patch("notionwire.notion_api.transport.asyncio.sleep", new=AsyncMock()) as sleep,
        ):
            await transport.request("GET", "/x")
        sleep.assert_awaited_once_with(2.0)

    async def test_every_attempt_goes_through_limiter(self):
        limiter = AsyncRateLimiter(100, 1.0)
        transport = AsyncNotionTransport(make_config(), rate_limiter=limiter)
        mock = AsyncMock(side_effect=[make_response(503), make_response(200, {})])
        with patch.object(transport._client, "request", new=mock):
            await transport.request("GET", "/x")
        assert limiter.requests_in_window == 2

    async def test_page_fetcher_with_mock_transport(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=list_page([{"id": 1}], next_cursor="n"))

        transport = AsyncNotionTransport(make_config(),
                                         http_transport=httpx.MockTransport(handler))
        page = await transport.page_fetcher("GET", "/comments", params={"block_id": "b"})("c0")
        assert page.next_cursor == "n"
        assert seen[0].url.params["block_id"] == "b"
        assert seen[0].url.params["start_cursor"] == "c0"
        await transport.close()

    async def test_async_context_manager_closes(self):
        transport = self._transport()
        with patch.object(transport._client, "aclose", new=AsyncMock()) as aclose:
            async with transport:
                pass
        aclose.assert_awaited_once()
