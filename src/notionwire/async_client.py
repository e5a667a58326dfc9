"""Asynchronous Notion client.

:class:`AsyncNotionClient` mirrors :class:`NotionClient` but every I/O
method is an ``async def`` coroutine and every lazy listing is an async
iterator.

Usage::

    import asyncio
    from notionwire import AsyncNotionClient

    async def main():
        async with AsyncNotionClient(token="ntn_xxx") as client:
            async for row in client.data_sources.iter_query("<data_source_id>"):
                print(row["id"])

    asyncio.run(main())
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from notionwire.config import NotionConfig
from notionwire.notion_api.blocks import AsyncBlockAPI
from notionwire.notion_api.comments import AsyncCommentAPI
from notionwire.notion_api.data_sources import AsyncDataSourceAPI
from notionwire.notion_api.databases import AsyncDatabaseAPI
from notionwire.notion_api.files import AsyncFileAPI
from notionwire.notion_api.pages import AsyncPageAPI
from notionwire.notion_api.rate_limit import AsyncRateLimiter
from notionwire.notion_api.search import AsyncSearchAPI
from notionwire.notion_api.transport import AsyncNotionTransport
from notionwire.notion_api.users import AsyncUserAPI

T = TypeVar("T")


class AsyncNotionClient:
    """Asynchronous Notion API client.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**
    rate_limiter:
        Optional :class:`AsyncRateLimiter` shared with other clients.
    http_transport:
        Optional :class:`httpx.AsyncBaseTransport`, mainly for tests.
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`NotionConfig`.
    """

    def __init__(
        self,
        token: str,
        *,
        rate_limiter: AsyncRateLimiter | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = NotionConfig(token=token, **kwargs)
        self._transport = AsyncNotionTransport(
            self._config, rate_limiter=rate_limiter, http_transport=http_transport,
        )
        self.pages = AsyncPageAPI(self._transport)
        self.blocks = AsyncBlockAPI(self._transport)
        self.databases = AsyncDatabaseAPI(self._transport)
        self.data_sources = AsyncDataSourceAPI(self._transport)
        self.users = AsyncUserAPI(self._transport)
        self.comments = AsyncCommentAPI(self._transport)
        self.search = AsyncSearchAPI(self._transport)
        self.file_uploads = AsyncFileAPI(self._transport)

    @property
    def config(self) -> NotionConfig:
        return self._config

    @property
    def rate_limiter(self) -> AsyncRateLimiter:
        return self._transport.rate_limiter

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Send a raw request through the client's transport."""
        return await self._transport.request(method, path, **kwargs)

    async def run_gated(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Await *operation* under this client's rate limit."""
        return await self._transport.rate_limiter.run_gated(operation)

    async def close(self) -> None:
        """Close the HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncNotionClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
