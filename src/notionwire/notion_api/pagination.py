"""Cursor pagination over Notion list endpoints.

Every Notion list endpoint returns an object of the form::

    {"object": "list", "results": [...], "next_cursor": "...", "has_more": true}

and accepts the cursor back as ``start_cursor``.  This module drives that
protocol given a *fetch_page* callable that maps a cursor (``None`` for the
first page) to a :class:`PaginatedPage`.  It knows nothing about HTTP; the
transport builds fetchers with :meth:`NotionTransport.page_fetcher`.

Three consumption modes are offered, each in a sync and an async flavour:

* :func:`collect_all` -- eager, bounded by ``max_pages``.
* :func:`stream_items` -- lazy, one item at a time.
* :func:`stream_pages` -- lazy, one page at a time.

The streams fetch a page only when the consumer asks for something past the
previous one, and stop fetching as soon as iteration stops.  All modes raise
:class:`NotionwireMalformedPaginationError` the moment a page claims
``has_more`` without a cursor to continue from.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from notionwire.errors import (
    NotionwireMalformedPaginationError,
    NotionwirePaginationLimitError,
)
from notionwire.observability import get_logger

T = TypeVar("T")

log = get_logger("notionwire.pagination")


@dataclass(frozen=True)
class PaginatedPage(Generic[T]):
    """One page of a cursor-paginated listing."""

    results: list[T] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False

    @classmethod
    def from_response(
        cls, data: dict[str, Any], results_key: str = "results",
    ) -> PaginatedPage[Any]:
        """Build a page from a raw Notion list object.

        Missing keys are read as an empty, final page.  *results_key* names
        the item array for endpoints that do not use ``results`` (data
        source templates list under ``templates``).
        """
        return cls(
            results=list(data.get(results_key) or []),
            next_cursor=data.get("next_cursor"),
            has_more=bool(data.get("has_more", False)),
        )


class PaginationRun:
    """Bookkeeping for a single pass over a cursor chain.

    A run starts with no cursor, advances once per received page and is
    finished after the last page.  Runs are not restartable.
    """

    __slots__ = ("cursor", "finished", "pages_fetched")

    def __init__(self) -> None:
        self.cursor: str | None = None
        self.pages_fetched = 0
        self.finished = False

    def advance(self, page: PaginatedPage[Any]) -> None:
        """Record *page* and move the cursor forward.

        Raises
        ------
        NotionwireMalformedPaginationError
            If *page* has ``has_more`` set but no usable ``next_cursor``.
        """
        self.pages_fetched += 1
        if not page.has_more:
            self.finished = True
            self.cursor = None
            return
        if not page.next_cursor:
            self.finished = True
            raise NotionwireMalformedPaginationError(
                message=(
                    f"Page {self.pages_fetched} reports has_more=true "
                    f"but carries no next_cursor"
                ),
                context={"pages_fetched": self.pages_fetched},
            )
        self.cursor = page.next_cursor

    def check_limit(self, max_pages: int) -> None:
        """Raise if another page is needed but *max_pages* is already spent."""
        if not self.finished and self.pages_fetched >= max_pages:
            log.warning(
                "Pagination limit reached",
                extra={
                    "extra_fields": {
                        "pages_fetched": self.pages_fetched,
                        "max_pages": max_pages,
                    }
                },
            )
            raise NotionwirePaginationLimitError(
                message=(
                    f"Stopped after {self.pages_fetched} pages with more "
                    f"results pending (max_pages={max_pages})"
                ),
                context={"pages_fetched": self.pages_fetched, "max_pages": max_pages},
            )


def _validate_max_pages(max_pages: int) -> None:
    if max_pages < 1:
        raise ValueError(f"max_pages must be >= 1, got {max_pages}")


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

def collect_all(
    fetch_page: Callable[[str | None], PaginatedPage[T]],
    max_pages: int,
) -> list[T]:
    """Fetch every page and return all items in API order.

    Parameters
    ----------
    fetch_page:
        Maps a cursor (``None`` for the first page) to a page.
    max_pages:
        Upper bound on the number of pages fetched.

    Raises
    ------
    NotionwirePaginationLimitError
        If ``max_pages`` pages were fetched and the last one still reports
        ``has_more``.  No partial result is returned.
    NotionwireMalformedPaginationError
        If a page reports ``has_more`` without a cursor.
    ValueError
        If *max_pages* is less than 1.
    """
    _validate_max_pages(max_pages)

    run = PaginationRun()
    items: list[T] = []
    while True:
        page = fetch_page(run.cursor)
        run.advance(page)
        items.extend(page.results)
        if run.finished:
            return items
        run.check_limit(max_pages)


def stream_pages(
    fetch_page: Callable[[str | None], PaginatedPage[T]],
) -> Iterator[PaginatedPage[T]]:
    """Lazily yield pages until the API reports the last one."""
    run = PaginationRun()
    while not run.finished:
        page = fetch_page(run.cursor)
        run.advance(page)
        yield page


def stream_items(
    fetch_page: Callable[[str | None], PaginatedPage[T]],
) -> Iterator[T]:
    """Lazily yield items across pages, fetching each page on demand."""
    for page in stream_pages(fetch_page):
        yield from page.results


# ---------------------------------------------------------------------------
# Async
# ---------------------------------------------------------------------------

async def async_collect_all(
    fetch_page: Callable[[str | None], Awaitable[PaginatedPage[T]]],
    max_pages: int,
) -> list[T]:
    """Async equivalent of :func:`collect_all`."""
    _validate_max_pages(max_pages)

    run = PaginationRun()
    items: list[T] = []
    while True:
        page = await fetch_page(run.cursor)
        run.advance(page)
        items.extend(page.results)
        if run.finished:
            return items
        run.check_limit(max_pages)


async def async_stream_pages(
    fetch_page: Callable[[str | None], Awaitable[PaginatedPage[T]]],
) -> AsyncIterator[PaginatedPage[T]]:
    """Async equivalent of :func:`stream_pages`."""
    run = PaginationRun()
    while not run.finished:
        page = await fetch_page(run.cursor)
        run.advance(page)
        yield page


async def async_stream_items(
    fetch_page: Callable[[str | None], Awaitable[PaginatedPage[T]]],
) -> AsyncIterator[T]:
    """Async equivalent of :func:`stream_items`."""
    async for page in async_stream_pages(fetch_page):
        for item in page.results:
            yield item
