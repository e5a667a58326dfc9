"""Data source API wrappers for the Notion API.

A data source holds the property schema and the rows (pages) of a
database.  Querying is the bulk read path of the API and can return up to
100 rows per page, so :meth:`DataSourceAPI.query` is bounded by
:data:`~notionwire.config.BULK_MAX_PAGES` pages by default.  Use
:meth:`DataSourceAPI.iter_query` to process large result sets without
holding them in memory.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

from notionwire.config import BULK_MAX_PAGES, CHILDREN_MAX_PAGES

from .pagination import (
    PaginatedPage,
    async_collect_all,
    async_stream_items,
    async_stream_pages,
    collect_all,
    stream_items,
    stream_pages,
)
from .transport import AsyncNotionTransport, NotionTransport


def _query_request(
    filter: dict[str, Any] | None,
    sorts: list[dict[str, Any]] | None,
    extra: dict[str, Any],
) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Split query arguments into the JSON body and the query string.

    Notion reads ``filter_properties`` from the query string only.
    """
    body: dict[str, Any] = dict(extra)
    filter_properties = body.pop("filter_properties", None)
    if filter is not None:
        body["filter"] = filter
    if sorts is not None:
        body["sorts"] = sorts
    params = None if filter_properties is None else {"filter_properties": list(filter_properties)}
    return body, params


def _template_params(name: str | None) -> dict[str, Any] | None:
    return {"name": name} if name is not None else None


class DataSourceAPI:
    """Synchronous wrapper for the Notion Data Sources API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        title: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Add a data source to an existing database.

        Parameters
        ----------
        parent:
            ``{"type": "database_id", "database_id": "..."}``.
        properties:
            Property schema of the new data source.
        title:
            Optional rich text title.
        """
        body: dict[str, Any] = {"parent": parent, "properties": properties, **extra}
        if title is not None:
            body["title"] = title
        return self._transport.request("POST", "/data_sources", json=body)

    def retrieve(self, data_source_id: str) -> dict[str, Any]:
        """Retrieve a data source and its property schema."""
        return self._transport.request("GET", f"/data_sources/{data_source_id}")

    def update(self, data_source_id: str, **fields: Any) -> dict[str, Any]:
        """Update a data source's ``title``, ``properties`` or ``in_trash``."""
        return self._transport.request(
            "PATCH", f"/data_sources/{data_source_id}", json=fields,
        )

    def query(
        self,
        data_source_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        *,
        max_pages: int = BULK_MAX_PAGES,
        **extra: Any,
    ) -> list[dict[str, Any]]:
        """Return every row matching *filter*, in *sorts* order.

        Parameters
        ----------
        data_source_id:
            The UUID of the data source to query.
        filter:
            Notion filter object, passed through verbatim.
        sorts:
            Notion sort objects, passed through verbatim.
        max_pages:
            Ceiling on the number of API pages fetched.
        **extra:
            Additional body fields such as ``archived``.  A
            ``filter_properties`` list of property IDs is sent in the query
            string to limit the properties returned per row.

        Raises
        ------
        NotionwirePaginationLimitError
            If the result set spans more than *max_pages* pages.
        """
        return collect_all(self._query_fetcher(data_source_id, filter, sorts, extra), max_pages)

    def iter_query(
        self,
        data_source_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> Iterator[dict[str, Any]]:
        """Lazily yield the rows of a query."""
        return stream_items(self._query_fetcher(data_source_id, filter, sorts, extra))

    def iter_query_pages(
        self,
        data_source_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> Iterator[PaginatedPage[dict]]:
        """Lazily yield whole pages of query results."""
        return stream_pages(self._query_fetcher(data_source_id, filter, sorts, extra))

    def list_templates(
        self,
        data_source_id: str,
        name: str | None = None,
        *,
        max_pages: int = CHILDREN_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        """Return the page templates of a data source.

        *name* filters templates by a case-insensitive substring.
        """
        fetch = self._transport.page_fetcher(
            "GET",
            f"/data_sources/{data_source_id}/templates",
            params=_template_params(name),
            results_key="templates",
        )
        return collect_all(fetch, max_pages)

    def _query_fetcher(self, data_source_id, filter, sorts, extra):
        body, params = _query_request(filter, sorts, extra)
        return self._transport.page_fetcher(
            "POST", f"/data_sources/{data_source_id}/query", params=params, json=body,
        )


class AsyncDataSourceAPI:
    """Asynchronous wrapper for the Notion Data Sources API.

    Mirrors :class:`DataSourceAPI` but all methods are coroutines and the
    iterators are async iterators.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        title: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Add a data source to an existing database (async)."""
        body: dict[str, Any] = {"parent": parent, "properties": properties, **extra}
        if title is not None:
            body["title"] = title
        return await self._transport.request("POST", "/data_sources", json=body)

    async def retrieve(self, data_source_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/data_sources/{data_source_id}")

    async def update(self, data_source_id: str, **fields: Any) -> dict[str, Any]:
        return await self._transport.request(
            "PATCH", f"/data_sources/{data_source_id}", json=fields,
        )

    async def query(
        self,
        data_source_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        *,
        max_pages: int = BULK_MAX_PAGES,
        **extra: Any,
    ) -> list[dict[str, Any]]:
        """Return every row matching *filter* (async).

        See :meth:`DataSourceAPI.query` for parameter documentation.
        """
        return await async_collect_all(
            self._query_fetcher(data_source_id, filter, sorts, extra), max_pages,
        )

    def iter_query(
        self,
        data_source_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> AsyncIterator[dict[str, Any]]:
        return async_stream_items(self._query_fetcher(data_source_id, filter, sorts, extra))

    def iter_query_pages(
        self,
        data_source_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> AsyncIterator[PaginatedPage[dict]]:
        return async_stream_pages(self._query_fetcher(data_source_id, filter, sorts, extra))

    async def list_templates(
        self,
        data_source_id: str,
        name: str | None = None,
        *,
        max_pages: int = CHILDREN_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        fetch = self._transport.page_fetcher(
            "GET",
            f"/data_sources/{data_source_id}/templates",
            params=_template_params(name),
            results_key="templates",
        )
        return await async_collect_all(fetch, max_pages)

    def _query_fetcher(self, data_source_id, filter, sorts, extra):
        body, params = _query_request(filter, sorts, extra)
        return self._transport.page_fetcher(
            "POST", f"/data_sources/{data_source_id}/query", params=params, json=body,
        )
