"""notionwire.notion_api -- Notion API transport and endpoint wrappers.

This sub-package provides:

* :mod:`.rate_limit` -- Rolling-window rate limiters (sync and async).
* :mod:`.pagination` -- Cursor pagination: eager collection and lazy streams.
* :mod:`.retries` -- Retry decision logic and backoff.
* :mod:`.transport` -- HTTP transport with auth, retries, and rate limiting.
* :mod:`.pages`, :mod:`.blocks`, :mod:`.databases`, :mod:`.data_sources`,
  :mod:`.users`, :mod:`.comments`, :mod:`.search`, :mod:`.files` --
  resource wrappers.
"""

from __future__ import annotations

from .blocks import AsyncBlockAPI, BlockAPI
from .comments import AsyncCommentAPI, CommentAPI
from .data_sources import AsyncDataSourceAPI, DataSourceAPI
from .databases import AsyncDatabaseAPI, DatabaseAPI
from .files import AsyncFileAPI, FileAPI
from .pages import AsyncPageAPI, PageAPI
from .pagination import (
    PaginatedPage,
    PaginationRun,
    async_collect_all,
    async_stream_items,
    async_stream_pages,
    collect_all,
    stream_items,
    stream_pages,
)
from .rate_limit import AsyncRateLimiter, RateLimiter
from .retries import RetryStrategy, compute_backoff, should_retry
from .search import AsyncSearchAPI, SearchAPI
from .transport import AsyncNotionTransport, NotionTransport
from .users import AsyncUserAPI, UserAPI

__all__ = [
    "AsyncBlockAPI",
    "AsyncCommentAPI",
    "AsyncDataSourceAPI",
    "AsyncDatabaseAPI",
    "AsyncFileAPI",
    "AsyncNotionTransport",
    "AsyncPageAPI",
    "AsyncRateLimiter",
    "AsyncSearchAPI",
    "AsyncUserAPI",
    "BlockAPI",
    "CommentAPI",
    "DataSourceAPI",
    "DatabaseAPI",
    "FileAPI",
    "NotionTransport",
    "PageAPI",
    "PaginatedPage",
    "PaginationRun",
    "RateLimiter",
    "RetryStrategy",
    "SearchAPI",
    "UserAPI",
    "async_collect_all",
    "async_stream_items",
    "async_stream_pages",
    "collect_all",
    "compute_backoff",
    "should_retry",
    "stream_items",
    "stream_pages",
]
