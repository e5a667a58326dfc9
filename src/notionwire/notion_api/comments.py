"""Comment API wrappers for the Notion API.

Comments are attached either to a page (``parent``) or to an existing
discussion thread (``discussion_id``).  Listing is per block or page and is
bounded by :data:`~notionwire.config.COMMENTS_MAX_PAGES` pages.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

from notionwire.config import COMMENTS_MAX_PAGES

from .pagination import async_collect_all, async_stream_items, collect_all, stream_items
from .transport import AsyncNotionTransport, NotionTransport


def _create_body(
    rich_text: list[dict[str, Any]],
    parent: dict[str, Any] | None,
    discussion_id: str | None,
    extra: dict[str, Any],
) -> dict[str, Any]:
    if (parent is None) == (discussion_id is None):
        raise ValueError("Exactly one of parent or discussion_id must be given")
    body: dict[str, Any] = {"rich_text": rich_text, **extra}
    if parent is not None:
        body["parent"] = parent
    else:
        body["discussion_id"] = discussion_id
    return body


class CommentAPI:
    """Synchronous wrapper for the Notion Comments API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def create(
        self,
        rich_text: list[dict[str, Any]],
        *,
        parent: dict[str, Any] | None = None,
        discussion_id: str | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Create a comment on a page or reply in a discussion.

        Parameters
        ----------
        rich_text:
            Comment body as a rich text array.
        parent:
            ``{"page_id": "..."}`` to start a new discussion on a page.
        discussion_id:
            ID of an existing discussion thread to reply to.
        **extra:
            Additional fields such as ``attachments`` or ``display_name``.

        Raises
        ------
        ValueError
            Unless exactly one of *parent* and *discussion_id* is given.
        """
        body = _create_body(rich_text, parent, discussion_id, extra)
        return self._transport.request("POST", "/comments", json=body)

    def list(
        self,
        block_id: str,
        *,
        max_pages: int = COMMENTS_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        """Return every unresolved comment on a block or page."""
        fetch = self._transport.page_fetcher("GET", "/comments", params={"block_id": block_id})
        return collect_all(fetch, max_pages)

    def iter_comments(self, block_id: str) -> Iterator[dict[str, Any]]:
        """Lazily yield the comments on a block or page."""
        fetch = self._transport.page_fetcher("GET", "/comments", params={"block_id": block_id})
        return stream_items(fetch)


class AsyncCommentAPI:
    """Asynchronous wrapper for the Notion Comments API.

    Mirrors :class:`CommentAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def create(
        self,
        rich_text: list[dict[str, Any]],
        *,
        parent: dict[str, Any] | None = None,
        discussion_id: str | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Create a comment (async).

        See :meth:`CommentAPI.create` for parameter documentation.
        """
        body = _create_body(rich_text, parent, discussion_id, extra)
        return await self._transport.request("POST", "/comments", json=body)

    async def list(
        self,
        block_id: str,
        *,
        max_pages: int = COMMENTS_MAX_PAGES,
    ) -> list[dict[str, Any]]:
        fetch = self._transport.page_fetcher("GET", "/comments", params={"block_id": block_id})
        return await async_collect_all(fetch, max_pages)

    def iter_comments(self, block_id: str) -> AsyncIterator[dict[str, Any]]:
        fetch = self._transport.page_fetcher("GET", "/comments", params={"block_id": block_id})
        return async_stream_items(fetch)
