"""Block API wrappers for the Notion API.

Provides :class:`BlockAPI` (sync) and :class:`AsyncBlockAPI` (async) thin
wrappers around the Notion ``/blocks`` endpoints.

Children are exposed three ways: :meth:`~BlockAPI.get_children` collects
them eagerly (bounded by ``max_pages``), :meth:`~BlockAPI.iter_children`
streams them one by one and :meth:`~BlockAPI.iter_children_pages` streams
whole API pages.  :meth:`~BlockAPI.append_children` accepts any number of
blocks and sends them in batches of at most 100.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

from notionwire.config import CHILDREN_MAX_PAGES
from notionwire.utils.chunk import chunk_children

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


def extract_block_ids(response: dict[str, Any]) -> list[str]:
    """Extract block IDs from an ``append_children`` API response.

    Parameters
    ----------
    response:
        The JSON dict returned by
        ``PATCH /blocks/{id}/children``.

    Returns
    -------
    list[str]
        The ``id`` values of each block in the ``results`` array.
    """
    results = response.get("results", [])
    return [r["id"] for r in results if "id" in r]


def _append_body(batch: list[dict[str, Any]], after: str | None) -> dict[str, Any]:
    body: dict[str, Any] = {"children": batch}
    if after is not None:
        body["after"] = after
    return body


def _next_after(response: dict[str, Any], after: str | None) -> str | None:
    """Anchor for the next batch: the last block just appended.

    Without an explicit *after* Notion appends at the end, so chaining is
    only needed when the caller asked for an insertion point.
    """
    if after is None:
        return None
    ids = extract_block_ids(response)
    return ids[-1] if ids else after


def _merge_batches(responses: list[dict[str, Any]]) -> dict[str, Any]:
    if not responses:
        return {"object": "list", "results": [], "next_cursor": None, "has_more": False}
    merged = dict(responses[-1])
    merged["results"] = [item for r in responses for item in r.get("results", [])]
    return merged


class BlockAPI:
    """Synchronous wrapper for the Notion Blocks API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def retrieve(self, block_id: str) -> dict[str, Any]:
        """Retrieve a single block by its ID.

        Parameters
        ----------
        block_id:
            The UUID of the block to retrieve.

        Returns
        -------
        dict
            The full block object.
        """
        return self._transport.request("GET", f"/blocks/{block_id}")

    def update(self, block_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update a block's content.

        Parameters
        ----------
        block_id:
            The UUID of the block to update.
        payload:
            The update payload, typically ``{block_type: {rich_text: [...], ...}}``.
            Only the fields included in the payload are modified.

        Returns
        -------
        dict
            The updated block object.
        """
        return self._transport.request("PATCH", f"/blocks/{block_id}", json=payload)

    def delete(self, block_id: str) -> dict[str, Any]:
        """Delete (archive) a block."""
        return self._transport.request("DELETE", f"/blocks/{block_id}")

    def get_children(
        self,
        block_id: str,
        *,
        max_pages: int = CHILDREN_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        """Retrieve all children of a block, auto-paginating.

        Parameters
        ----------
        block_id:
            The UUID of the parent block (or page).
        max_pages:
            Ceiling on the number of API pages fetched.

        Returns
        -------
        list[dict]
            All child block objects in order.

        Raises
        ------
        NotionwirePaginationLimitError
            If the children span more than *max_pages* pages.
        """
        fetch = self._transport.page_fetcher("GET", f"/blocks/{block_id}/children")
        return collect_all(fetch, max_pages)

    def iter_children(self, block_id: str) -> Iterator[dict[str, Any]]:
        """Lazily yield the children of a block, one API page at a time."""
        return stream_items(self._transport.page_fetcher("GET", f"/blocks/{block_id}/children"))

    def iter_children_pages(self, block_id: str) -> Iterator[PaginatedPage[dict]]:
        """Lazily yield whole pages of children."""
        return stream_pages(self._transport.page_fetcher("GET", f"/blocks/{block_id}/children"))

    def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
        after: str | None = None,
    ) -> dict[str, Any]:
        """Append child blocks to a parent block or page.

        Parameters
        ----------
        block_id:
            The UUID of the parent block (or page) to append to.
        children:
            Block objects to append.  Lists longer than 100 are sent as
            consecutive requests of at most 100 blocks each.
        after:
            Optional UUID of an existing child block.  The new children
            are inserted immediately after it, in order.  If ``None``,
            children are appended at the end.

        Returns
        -------
        dict
            The last API response with ``results`` holding every appended
            block across all batches.
        """
        responses: list[dict[str, Any]] = []
        for batch in chunk_children(children):
            response = self._transport.request(
                "PATCH", f"/blocks/{block_id}/children", json=_append_body(batch, after),
            )
            responses.append(response)
            after = _next_after(response, after)
        return _merge_batches(responses)


class AsyncBlockAPI:
    """Asynchronous wrapper for the Notion Blocks API.

    Mirrors :class:`BlockAPI` but all methods are coroutines.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport` instance.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, block_id: str) -> dict[str, Any]:
        """Retrieve a single block by its ID (async).

        See :meth:`BlockAPI.retrieve` for parameter documentation.
        """
        return await self._transport.request("GET", f"/blocks/{block_id}")

    async def update(self, block_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update a block's content (async).

        See :meth:`BlockAPI.update` for parameter documentation.
        """
        return await self._transport.request("PATCH", f"/blocks/{block_id}", json=payload)

    async def delete(self, block_id: str) -> dict[str, Any]:
        """Delete (archive) a block (async)."""
        return await self._transport.request("DELETE", f"/blocks/{block_id}")

    async def get_children(
        self,
        block_id: str,
        *,
        max_pages: int = CHILDREN_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        """Retrieve all children of a block, auto-paginating (async).

        See :meth:`BlockAPI.get_children` for parameter documentation.
        """
        fetch = self._transport.page_fetcher("GET", f"/blocks/{block_id}/children")
        return await async_collect_all(fetch, max_pages)

    def iter_children(self, block_id: str) -> AsyncIterator[dict[str, Any]]:
        return async_stream_items(
            self._transport.page_fetcher("GET", f"/blocks/{block_id}/children")
        )

    def iter_children_pages(self, block_id: str) -> AsyncIterator[PaginatedPage[dict]]:
        return async_stream_pages(
            self._transport.page_fetcher("GET", f"/blocks/{block_id}/children")
        )

    async def append_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
        after: str | None = None,
    ) -> dict[str, Any]:
        """Append child blocks to a parent block or page (async).

        Batches are sent one after another so that their order is kept.
        See :meth:`BlockAPI.append_children` for parameter documentation.
        """
        responses: list[dict[str, Any]] = []
        for batch in chunk_children(children):
            response = await self._transport.request(
                "PATCH", f"/blocks/{block_id}/children", json=_append_body(batch, after),
            )
            responses.append(response)
            after = _next_after(response, after)
        return _merge_batches(responses)
