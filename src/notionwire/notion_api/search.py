"""Search API wrappers for the Notion API.

``POST /search`` finds pages and data sources shared with the integration
by title.  Results can be narrowed with ``filter_type`` (``"page"`` or
``"data_source"``) and ordered by ``last_edited_time``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

from notionwire.config import BULK_MAX_PAGES

from .pagination import async_collect_all, async_stream_items, collect_all, stream_items
from .transport import AsyncNotionTransport, NotionTransport

_FILTER_VALUES = frozenset({"page", "data_source"})
_SORT_DIRECTIONS = frozenset({"ascending", "descending"})


def build_search_body(
    query: str | None = None,
    filter_type: str | None = None,
    sort_direction: str | None = None,
) -> dict[str, Any]:
    """Build a ``/search`` request body.

    Raises
    ------
    ValueError
        For a *filter_type* other than ``"page"`` / ``"data_source"`` or a
        *sort_direction* other than ``"ascending"`` / ``"descending"``.
    """
    body: dict[str, Any] = {}
    if query:
        body["query"] = query
    if filter_type is not None:
        if filter_type not in _FILTER_VALUES:
            raise ValueError(
                f"filter_type must be one of {sorted(_FILTER_VALUES)}, got {filter_type!r}"
            )
        body["filter"] = {"property": "object", "value": filter_type}
    if sort_direction is not None:
        if sort_direction not in _SORT_DIRECTIONS:
            raise ValueError(
                f"sort_direction must be one of {sorted(_SORT_DIRECTIONS)}, "
                f"got {sort_direction!r}"
            )
        body["sort"] = {"timestamp": "last_edited_time", "direction": sort_direction}
    return body


class SearchAPI:
    """Synchronous wrapper for the Notion Search API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def search(
        self,
        query: str | None = None,
        *,
        filter_type: str | None = None,
        sort_direction: str | None = None,
        start_cursor: str | None = None,
        page_size: int | None = None,
    ) -> dict[str, Any]:
        """Fetch a single page of search results.

        Returns the raw list object (``results``, ``next_cursor``,
        ``has_more``).
        """
        body = build_search_body(query, filter_type, sort_direction)
        if start_cursor is not None:
            body["start_cursor"] = start_cursor
        if page_size is not None:
            body["page_size"] = page_size
        return self._transport.request("POST", "/search", json=body)

    def search_all(
        self,
        query: str | None = None,
        *,
        filter_type: str | None = None,
        sort_direction: str | None = None,
        max_pages: int = BULK_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        """Return every search result."""
        fetch = self._transport.page_fetcher(
            "POST", "/search", json=build_search_body(query, filter_type, sort_direction),
        )
        return collect_all(fetch, max_pages)

    def iter_search(
        self,
        query: str | None = None,
        *,
        filter_type: str | None = None,
        sort_direction: str | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Lazily yield search results."""
        fetch = self._transport.page_fetcher(
            "POST", "/search", json=build_search_body(query, filter_type, sort_direction),
        )
        return stream_items(fetch)


class AsyncSearchAPI:
    """Asynchronous wrapper for the Notion Search API.

    Mirrors :class:`SearchAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def search(
        self,
        query: str | None = None,
        *,
        filter_type: str | None = None,
        sort_direction: str | None = None,
        start_cursor: str | None = None,
        page_size: int | None = None,
    ) -> dict[str, Any]:
        body = build_search_body(query, filter_type, sort_direction)
        if start_cursor is not None:
            body["start_cursor"] = start_cursor
        if page_size is not None:
            body["page_size"] = page_size
        return await self._transport.request("POST", "/search", json=body)

    async def search_all(
        self,
        query: str | None = None,
        *,
        filter_type: str | None = None,
        sort_direction: str | None = None,
        max_pages: int = BULK_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        fetch = self._transport.page_fetcher(
            "POST", "/search", json=build_search_body(query, filter_type, sort_direction),
        )
        return await async_collect_all(fetch, max_pages)

    def iter_search(
        self,
        query: str | None = None,
        *,
        filter_type: str | None = None,
        sort_direction: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        fetch = self._transport.page_fetcher(
            "POST", "/search", json=build_search_body(query, filter_type, sort_direction),
        )
        return async_stream_items(fetch)
