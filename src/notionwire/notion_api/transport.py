"""Sync and async HTTP transports for the Notion API.

Each transport handles the full request lifecycle:

1. Wait for the rate limiter to admit the attempt (:meth:`run_gated`).
2. Send the HTTP request with auth and version headers.
3. On ``2xx`` -- return the parsed JSON response.
4. On ``429`` -- honour ``Retry-After`` (when configured), sleep, and retry.
5. On ``5xx`` / network error -- exponential backoff and retry.
6. On non-retryable ``4xx`` -- raise the appropriate typed error immediately.
7. On max attempts exceeded -- raise :class:`NotionwireRetryExhaustedError`.

Retries live here, outside the limiter: every retry is a fresh admission.
The transports also build the ``fetch_page`` callables consumed by
:mod:`notionwire.notion_api.pagination`.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from notionwire.config import NotionConfig
from notionwire.errors import (
    NotionwireAuthError,
    NotionwireConflictError,
    NotionwireNetworkError,
    NotionwireNotFoundError,
    NotionwirePermissionError,
    NotionwireRetryExhaustedError,
    NotionwireValidationError,
)
from notionwire.observability import NoopMetricsHook, get_logger

from .pagination import PaginatedPage
from .rate_limit import AsyncRateLimiter, RateLimiter
from .retries import _RETRYABLE_STATUSES, compute_backoff, should_retry

log = get_logger("notionwire.transport")

_BODY_METHODS = frozenset({"POST", "PATCH"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the :class:`NotionwireAPIError` subclass matching a 4xx response
    that should **not** be retried.
    """
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    notion_message = body.get("message", response.text[:500])
    notion_code = body.get("code", "")
    context: dict[str, Any] = {
        "status_code": status,
        "notion_code": notion_code,
        "method": method,
        "path": path,
    }

    if status == 400:
        raise NotionwireValidationError(
            message=f"Validation error on {method} {path}: {notion_message}",
            context={**context, "body": body},
        )
    if status == 401:
        raise NotionwireAuthError(
            message=f"Authentication failed on {method} {path}: {notion_message}",
            context=context,
        )
    if status == 403:
        raise NotionwirePermissionError(
            message=f"Permission denied on {method} {path}: {notion_message}",
            context=context,
        )
    if status == 404:
        raise NotionwireNotFoundError(
            message=f"Resource not found on {method} {path}: {notion_message}",
            context=context,
        )
    if status == 409:
        raise NotionwireConflictError(
            message=f"Conflict on {method} {path}: {notion_message}",
            context=context,
        )

    # Any other client error is reported as a validation error.
    raise NotionwireValidationError(
        message=f"Client error {status} on {method} {path}: {notion_message}",
        context={**context, "body": body},
    )


def _dump_payload(
    method: str,
    url: str,
    payload: dict | None,
    response_status: int | None,
    response_body: Any | None,
    token: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from notionwire.utils.redact import redact

    dump: dict[str, Any] = {
        "method": method,
        "url": url,
    }
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, token), indent=2, default=str),
        file=sys.stderr,
    )


def _page_request(
    method: str,
    params: dict[str, Any] | None,
    json: dict[str, Any] | None,
    page_size: int,
    cursor: str | None,
) -> dict[str, Any]:
    """Request kwargs for one page; cursor and size go where *method* expects."""
    paging: dict[str, Any] = {"page_size": page_size}
    if cursor is not None:
        paging["start_cursor"] = cursor

    kwargs: dict[str, Any] = {}
    if method.upper() in _BODY_METHODS:
        kwargs["json"] = {**(json or {}), **paging}
        if params:
            kwargs["params"] = dict(params)
    else:
        kwargs["params"] = {**(params or {}), **paging}
        if json is not None:
            kwargs["json"] = dict(json)
    return kwargs


# ---------------------------------------------------------------------------
# Shared request bookkeeping (used by both sync and async transports)
# ---------------------------------------------------------------------------

class _TransportBase:
    """Configuration, client headers and retry bookkeeping shared by both
    transports.  Subclasses own the HTTP client and the limiter.
    """

    _config: NotionConfig

    def __init__(self, config: NotionConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    @property
    def config(self) -> NotionConfig:
        return self._config

    @property
    def metrics(self) -> Any:
        return self._metrics

    def _client_kwargs(self) -> dict[str, Any]:
        # No client-wide Content-Type: httpx sets JSON or multipart per request.
        return {
            "base_url": self._config.base_url,
            "headers": {
                "Authorization": f"Bearer {self._config.token}",
                "Notion-Version": self._config.notion_version,
            },
            "timeout": httpx.Timeout(self._config.timeout_seconds),
            "proxy": self._config.http_proxy,
        }

    def _backoff(self, attempt: int, retry_after: float | None = None) -> float:
        return compute_backoff(
            attempt,
            base=self._config.retry_base_delay,
            maximum=self._config.retry_max_delay,
            jitter_factor=self._config.retry_jitter_factor,
            strategy=self._config.retry_strategy,
            retry_after=retry_after,
            respect_retry_after=self._config.retry_respect_retry_after,
        )

    def _on_network_error(
        self, method: str, path: str, exc: Exception, attempt: int,
    ) -> float:
        """Record a network failure.

        Returns the backoff delay (seconds) if the request should be retried.
        Raises :class:`NotionwireNetworkError` if retries are exhausted.
        """
        self._metrics.increment(
            "notionwire.requests_total",
            tags={"method": method, "path": path, "status": "error"},
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
        if should_retry(None, exc, attempt, self._config.retry_max_attempts):
            self._metrics.increment(
                "notionwire.retries_total",
                tags={"method": method, "path": path, "reason": "network_error"},
            )
            return self._backoff(attempt)
        raise NotionwireNetworkError(
            message=f"Network error on {method} {path}: {exc}",
            context={"url": path, "attempt": attempt + 1},
            cause=exc,
        ) from exc

    def _on_response(
        self,
        method: str,
        path: str,
        response: httpx.Response,
        elapsed_ms: float,
        json_payload: Any,
        attempt: int,
    ) -> float | None:
        """Classify a response.

        Returns ``None`` on success, or the delay before the next attempt for
        a retryable status.  Raises a typed error for non-retryable statuses
        and :class:`NotionwireRetryExhaustedError` when attempts run out.
        """
        status = response.status_code
        tags = {"method": method, "path": path, "status": str(status)}
        self._metrics.increment("notionwire.requests_total", tags=tags)
        self._metrics.timing("notionwire.request_duration_ms", elapsed_ms, tags=tags)

        if self._config.debug_dump_payload:
            try:
                resp_body = response.json()
            except ValueError:
                resp_body = response.text[:1000]
            _dump_payload(
                method, str(response.url), json_payload, status, resp_body,
                token=self._config.token,
            )

        if 200 <= status < 300:
            return None

        if status not in _RETRYABLE_STATUSES:
            _raise_for_status(response, method, path)

        max_attempts = self._config.retry_max_attempts
        if not should_retry(status, None, attempt, max_attempts):
            raise NotionwireRetryExhaustedError(
                message=(
                    f"All {max_attempts} attempts exhausted for {method} {path} "
                    f"(last status: {status})"
                ),
                context={"attempts": max_attempts, "last_status_code": status},
            )

        retry_after: float | None = None
        reason = "server_error"
        if status == 429:
            retry_after = _parse_retry_after(response)
            reason = "rate_limited"
            self._metrics.increment(
                "notionwire.rate_limited_total",
                tags={"method": method, "path": path},
            )
            log.warning(
                "Rate limited by Notion API",
                extra={
                    "extra_fields": {
                        "op": "request",
                        "method": method,
                        "path": path,
                        "status_code": 429,
                        "retry_after": retry_after,
                        "attempt": attempt + 1,
                    }
                },
            )

        self._metrics.increment(
            "notionwire.retries_total",
            tags={"method": method, "path": path, "reason": reason},
        )
        return self._backoff(attempt, retry_after)

    @staticmethod
    def _decode(response: httpx.Response) -> dict:
        # Some endpoints return 204 with no body.
        if response.status_code == 204 or not response.content:
            return {}
        result: dict = response.json()
        return result


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class NotionTransport(_TransportBase):
    """Synchronous HTTP transport with auth, retry, and rate limiting.

    Parameters
    ----------
    config:
        A :class:`NotionConfig` instance controlling all transport behaviour.
    rate_limiter:
        Limiter to gate requests through.  Defaults to a new
        :class:`RateLimiter` built from *config*; pass one explicitly to share
        a budget between clients.
    http_transport:
        Optional :class:`httpx.BaseTransport` (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: NotionConfig,
        rate_limiter: RateLimiter | None = None,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(config)
        self._limiter = rate_limiter if rate_limiter is not None else RateLimiter(
            config.rate_limit_requests,
            config.rate_limit_window_seconds,
            max_wait=config.rate_limit_max_wait,
            metrics=self._metrics,
        )
        self._client = httpx.Client(transport=http_transport, **self._client_kwargs())

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._limiter

    # -- public API --------------------------------------------------------

    def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute an HTTP request against the Notion API.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST``, ``PATCH``, ``DELETE``).
        path:
            API path relative to ``base_url`` (e.g. ``/pages``).
        **kwargs:
            Forwarded to :meth:`httpx.Client.request`.  Use ``json=`` for
            JSON bodies, ``files=`` / ``data=`` for multipart forms, and
            ``params=`` for query strings.

        Returns
        -------
        dict
            Parsed JSON response body.

        Raises
        ------
        NotionwireAuthError
            On 401 responses.
        NotionwirePermissionError
            On 403 responses.
        NotionwireNotFoundError
            On 404 responses.
        NotionwireValidationError
            On 400 and other non-retryable 4xx responses.
        NotionwireConflictError
            On 409 responses.
        NotionwireRetryExhaustedError
            When all retry attempts have been exhausted.
        NotionwireNetworkError
            On transport-level failures after exhausting retries.
        NotionwireRateLimitWaitError
            When ``rate_limit_max_wait`` is configured and elapses.
        """
        json_payload = kwargs.get("json")
        attempt = 0

        while True:
            try:
                response, elapsed_ms = self._limiter.run_gated(
                    lambda: self._send(method, path, kwargs)
                )
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                time.sleep(self._on_network_error(method, path, exc, attempt))
                attempt += 1
                continue

            delay = self._on_response(method, path, response, elapsed_ms, json_payload, attempt)
            if delay is None:
                return self._decode(response)
            time.sleep(delay)
            attempt += 1

    def _send(self, method: str, path: str, kwargs: dict[str, Any]) -> tuple[httpx.Response, float]:
        t0 = time.monotonic()
        response = self._client.request(method, path, **kwargs)
        return response, (time.monotonic() - t0) * 1000

    def page_fetcher(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        page_size: int | None = None,
        results_key: str = "results",
    ) -> Callable[[str | None], PaginatedPage[dict]]:
        """Return a ``fetch_page(cursor)`` callable for a list endpoint.

        For ``GET`` endpoints the cursor and page size are sent as query
        parameters; for ``POST`` endpoints they are merged into the JSON
        body.  The caller's *params* and *json* are never mutated.
        *results_key* names the response array holding the items.
        """
        size = page_size or self._config.page_size

        def fetch_page(cursor: str | None) -> PaginatedPage[dict]:
            data = self.request(method, path, **_page_request(method, params, json, size, cursor))
            self._metrics.increment("notionwire.pages_fetched_total", tags={"path": path})
            return PaginatedPage.from_response(data, results_key)

        return fetch_page

    def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> NotionTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncNotionTransport(_TransportBase):
    """Asynchronous HTTP transport with auth, retry, and rate limiting.

    Mirrors :class:`NotionTransport` but uses ``httpx.AsyncClient``, an
    :class:`AsyncRateLimiter` and ``asyncio.sleep`` for non-blocking I/O.
    """

    def __init__(
        self,
        config: NotionConfig,
        rate_limiter: AsyncRateLimiter | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config)
        self._limiter = rate_limiter if rate_limiter is not None else AsyncRateLimiter(
            config.rate_limit_requests,
            config.rate_limit_window_seconds,
            max_wait=config.rate_limit_max_wait,
            metrics=self._metrics,
        )
        self._client = httpx.AsyncClient(transport=http_transport, **self._client_kwargs())

    @property
    def rate_limiter(self) -> AsyncRateLimiter:
        return self._limiter

    # -- public API --------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute an HTTP request against the Notion API (async).

        See :meth:`NotionTransport.request` for full documentation; the
        semantics are identical but all blocking calls are replaced with
        async equivalents.
        """
        json_payload = kwargs.get("json")
        attempt = 0

        while True:
            try:
                response, elapsed_ms = await self._limiter.run_gated(
                    lambda: self._send(method, path, kwargs)
                )
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                await asyncio.sleep(self._on_network_error(method, path, exc, attempt))
                attempt += 1
                continue

            delay = self._on_response(method, path, response, elapsed_ms, json_payload, attempt)
            if delay is None:
                return self._decode(response)
            await asyncio.sleep(delay)
            attempt += 1

    async def _send(
        self, method: str, path: str, kwargs: dict[str, Any],
    ) -> tuple[httpx.Response, float]:
        t0 = time.monotonic()
        response = await self._client.request(method, path, **kwargs)
        return response, (time.monotonic() - t0) * 1000

    def page_fetcher(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        page_size: int | None = None,
        results_key: str = "results",
    ) -> Callable[[str | None], Awaitable[PaginatedPage[dict]]]:
        """Async equivalent of :meth:`NotionTransport.page_fetcher`."""
        size = page_size or self._config.page_size

        async def fetch_page(cursor: str | None) -> PaginatedPage[dict]:
            data = await self.request(
                method, path, **_page_request(method, params, json, size, cursor)
            )
            self._metrics.increment("notionwire.pages_fetched_total", tags={"path": path})
            return PaginatedPage.from_response(data, results_key)

        return fetch_page

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncNotionTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
