"""User API wrappers for the Notion API."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

from notionwire.config import BULK_MAX_PAGES

from .pagination import async_collect_all, async_stream_items, collect_all, stream_items
from .transport import AsyncNotionTransport, NotionTransport


def _page_params(start_cursor: str | None, page_size: int | None) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if start_cursor is not None:
        params["start_cursor"] = start_cursor
    if page_size is not None:
        params["page_size"] = page_size
    return params


class UserAPI:
    """Synchronous wrapper for the Notion Users API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve(self, user_id: str) -> dict[str, Any]:
        """Retrieve a person or bot user by ID."""
        return self._transport.request("GET", f"/users/{user_id}")

    def me(self) -> dict[str, Any]:
        """Retrieve the bot user behind the integration token."""
        return self._transport.request("GET", "/users/me")

    def list(
        self,
        start_cursor: str | None = None,
        page_size: int | None = None,
    ) -> dict[str, Any]:
        """Fetch a single page of workspace users.

        Returns the raw list object (``results``, ``next_cursor``,
        ``has_more``) so callers can drive pagination themselves.
        """
        return self._transport.request(
            "GET", "/users", params=_page_params(start_cursor, page_size),
        )

    def list_all(self, *, max_pages: int = BULK_MAX_PAGES) -> list[dict[str, Any]]:
        """Return every user in the workspace."""
        return collect_all(self._transport.page_fetcher("GET", "/users"), max_pages)

    def iter_users(self) -> Iterator[dict[str, Any]]:
        """Lazily yield every user in the workspace."""
        return stream_items(self._transport.page_fetcher("GET", "/users"))


class AsyncUserAPI:
    """Asynchronous wrapper for the Notion Users API.

    Mirrors :class:`UserAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, user_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/users/{user_id}")

    async def me(self) -> dict[str, Any]:
        return await self._transport.request("GET", "/users/me")

    async def list(
        self,
        start_cursor: str | None = None,
        page_size: int | None = None,
    ) -> dict[str, Any]:
        """Fetch a single page of workspace users (async)."""
        return await self._transport.request(
            "GET", "/users", params=_page_params(start_cursor, page_size),
        )

    async def list_all(self, *, max_pages: int = BULK_MAX_PAGES) -> list[dict[str, Any]]:
        return await async_collect_all(self._transport.page_fetcher("GET", "/users"), max_pages)

    def iter_users(self) -> AsyncIterator[dict[str, Any]]:
        return async_stream_items(self._transport.page_fetcher("GET", "/users"))
