"""notionwire -- Typed sync and async client for the Notion REST API.

Public re-exports
-----------------

* **Clients:** :class:`NotionClient`, :class:`AsyncNotionClient`
* **Configuration:** :class:`NotionConfig`
* **Core:** :class:`RateLimiter`, :class:`AsyncRateLimiter`,
  :class:`PaginatedPage` and the pagination functions
* **Errors:** Every :class:`NotionwireError` subclass and :class:`ErrorCode`

Usage::

    from notionwire import NotionClient

    client = NotionClient(token="ntn_xxx")
    for page in client.search.iter_search("Roadmap", filter_type="page"):
        print(page["id"])
"""

from __future__ import annotations

from notionwire.async_client import AsyncNotionClient

# ── Clients ────────────────────────────────────────────────────────────
from notionwire.client import NotionClient

# ── Configuration ───────────────────────────────────────────────────────
from notionwire.config import NotionConfig

# ── Errors ──────────────────────────────────────────────────────────────
from notionwire.errors import (
    ErrorCode,
    NotionwireAPIError,
    NotionwireAuthError,
    NotionwireConflictError,
    NotionwireError,
    NotionwireMalformedPaginationError,
    NotionwireNetworkError,
    NotionwireNotFoundError,
    NotionwirePaginationError,
    NotionwirePaginationLimitError,
    NotionwirePermissionError,
    NotionwireRateLimitWaitError,
    NotionwireRetryExhaustedError,
    NotionwireUploadError,
    NotionwireUploadTimeoutError,
    NotionwireValidationError,
)

# ── Core ────────────────────────────────────────────────────────────────
from notionwire.notion_api.pagination import (
    PaginatedPage,
    async_collect_all,
    async_stream_items,
    async_stream_pages,
    collect_all,
    stream_items,
    stream_pages,
)
from notionwire.notion_api.rate_limit import AsyncRateLimiter, RateLimiter
from notionwire.notion_api.retries import RetryStrategy

__version__ = "0.1.0"

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "NotionClient",
    "AsyncNotionClient",
    # Configuration
    "NotionConfig",
    "RetryStrategy",
    # Core
    "RateLimiter",
    "AsyncRateLimiter",
    "PaginatedPage",
    "collect_all",
    "stream_items",
    "stream_pages",
    "async_collect_all",
    "async_stream_items",
    "async_stream_pages",
    # Error base + code enum
    "NotionwireError",
    "ErrorCode",
    # API / transport errors
    "NotionwireAPIError",
    "NotionwireValidationError",
    "NotionwireAuthError",
    "NotionwirePermissionError",
    "NotionwireNotFoundError",
    "NotionwireConflictError",
    "NotionwireRetryExhaustedError",
    "NotionwireNetworkError",
    # Core errors
    "NotionwireRateLimitWaitError",
    "NotionwirePaginationError",
    "NotionwirePaginationLimitError",
    "NotionwireMalformedPaginationError",
    # Upload errors
    "NotionwireUploadError",
    "NotionwireUploadTimeoutError",
]
