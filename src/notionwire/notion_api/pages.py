"""Page API wrappers for the Notion API.

Provides :class:`PageAPI` (sync) and :class:`AsyncPageAPI` (async) thin
wrappers around the Notion ``/pages`` endpoints.  Both delegate all HTTP
concerns (auth, retries, rate limiting) to the underlying transport.

Property values with many items (relations, rollups, people) are paginated
by ``GET /pages/{id}/properties/{property_id}``; the ``*_property_items``
methods walk that listing.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

from notionwire.config import CHILDREN_MAX_PAGES

from .pagination import async_collect_all, async_stream_items, collect_all, stream_items
from .transport import AsyncNotionTransport, NotionTransport


def _create_body(
    parent: dict[str, Any],
    properties: dict[str, Any],
    children: list[dict[str, Any]] | None,
    extra: dict[str, Any],
) -> dict[str, Any]:
    body: dict[str, Any] = {"parent": parent, "properties": properties, **extra}
    if children is not None:
        body["children"] = children
    return body


def _update_body(
    properties: dict[str, Any] | None,
    archived: bool | None,
    extra: dict[str, Any],
) -> dict[str, Any]:
    body: dict[str, Any] = dict(extra)
    if properties is not None:
        body["properties"] = properties
    if archived is not None:
        body["archived"] = archived
    return body


class PageAPI:
    """Synchronous wrapper for the Notion Pages API.

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
        children: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Create a new page.

        Parameters
        ----------
        parent:
            Parent object, e.g. ``{"page_id": "..."}`` or
            ``{"data_source_id": "..."}``.
        properties:
            Page properties.  For pages under another page the minimal
            required shape is
            ``{"title": [{"text": {"content": "Page title"}}]}``.
        children:
            Optional list of block objects to append as page content (at
            most 100; use :meth:`BlockAPI.append_children` for more).
        **extra:
            Additional top-level fields such as ``icon``, ``cover`` or
            ``template``.

        Returns
        -------
        dict
            The created page object as returned by the Notion API.
        """
        body = _create_body(parent, properties, children, extra)
        return self._transport.request("POST", "/pages", json=body)

    def retrieve(self, page_id: str) -> dict[str, Any]:
        """Retrieve a page by its ID."""
        return self._transport.request("GET", f"/pages/{page_id}")

    def update(
        self,
        page_id: str,
        properties: dict[str, Any] | None = None,
        archived: bool | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Update a page's properties, icon, cover or archive status.

        Parameters
        ----------
        page_id:
            The UUID of the page to update.
        properties:
            Updated property values.  Only specified properties are changed;
            omitted properties are left untouched.
        archived:
            Legacy alias of ``in_trash`` still accepted by the API.  Prefer
            :meth:`archive` / :meth:`restore`.
        **extra:
            Additional top-level fields (``icon``, ``cover``, ``in_trash``).

        Returns
        -------
        dict
            The updated page object.
        """
        body = _update_body(properties, archived, extra)
        return self._transport.request("PATCH", f"/pages/{page_id}", json=body)

    def archive(self, page_id: str) -> dict[str, Any]:
        """Move a page to the trash.  Notion has no hard delete; trashed
        pages can still be retrieved and restored."""
        return self.update(page_id, in_trash=True)

    def restore(self, page_id: str) -> dict[str, Any]:
        """Restore a page from the trash."""
        return self.update(page_id, in_trash=False)

    def retrieve_property_items(
        self,
        page_id: str,
        property_id: str,
        *,
        max_pages: int = CHILDREN_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        """Return every item of a paginated page property.

        Raises
        ------
        NotionwirePaginationLimitError
            If the property spans more than *max_pages* pages.
        """
        fetch = self._transport.page_fetcher(
            "GET", f"/pages/{page_id}/properties/{property_id}",
        )
        return collect_all(fetch, max_pages)

    def iter_property_items(self, page_id: str, property_id: str) -> Iterator[dict[str, Any]]:
        """Lazily yield the items of a paginated page property."""
        fetch = self._transport.page_fetcher(
            "GET", f"/pages/{page_id}/properties/{property_id}",
        )
        return stream_items(fetch)


class AsyncPageAPI:
    """Asynchronous wrapper for the Notion Pages API.

    Mirrors :class:`PageAPI` but all methods are coroutines.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport` instance.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def create(
        self,
        parent: dict[str, Any],
        properties: dict[str, Any],
        children: list[dict[str, Any]] | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Create a new page (async).

        See :meth:`PageAPI.create` for parameter documentation.
        """
        body = _create_body(parent, properties, children, extra)
        return await self._transport.request("POST", "/pages", json=body)

    async def retrieve(self, page_id: str) -> dict[str, Any]:
        """Retrieve a page by its ID (async)."""
        return await self._transport.request("GET", f"/pages/{page_id}")

    async def update(
        self,
        page_id: str,
        properties: dict[str, Any] | None = None,
        archived: bool | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Update a page (async).

        See :meth:`PageAPI.update` for parameter documentation.
        """
        body = _update_body(properties, archived, extra)
        return await self._transport.request("PATCH", f"/pages/{page_id}", json=body)

    async def archive(self, page_id: str) -> dict[str, Any]:
        return await self.update(page_id, in_trash=True)

    async def restore(self, page_id: str) -> dict[str, Any]:
        return await self.update(page_id, in_trash=False)

    async def retrieve_property_items(
        self,
        page_id: str,
        property_id: str,
        *,
        max_pages: int = CHILDREN_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        """Return every item of a paginated page property (async).

        See :meth:`PageAPI.retrieve_property_items`.
        """
        fetch = self._transport.page_fetcher(
            "GET", f"/pages/{page_id}/properties/{property_id}",
        )
        return await async_collect_all(fetch, max_pages)

    def iter_property_items(
        self, page_id: str, property_id: str,
    ) -> AsyncIterator[dict[str, Any]]:
        """Lazily yield the items of a paginated page property (async)."""
        fetch = self._transport.page_fetcher(
            "GET", f"/pages/{page_id}/properties/{property_id}",
        )
        return async_stream_items(fetch)
