"""Synchronous Notion client.

:class:`NotionClient` bundles one transport (and therefore one rate
limiter) with a wrapper per API resource.

Usage::

    from notionwire import NotionClient

    with NotionClient(token="ntn_xxx") as client:
        rows = client.data_sources.query("<data_source_id>")
        for block in client.blocks.iter_children("<page_id>"):
            print(block["type"])
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from notionwire.config import NotionConfig
from notionwire.notion_api.blocks import BlockAPI
from notionwire.notion_api.comments import CommentAPI
from notionwire.notion_api.data_sources import DataSourceAPI
from notionwire.notion_api.databases import DatabaseAPI
from notionwire.notion_api.files import FileAPI
from notionwire.notion_api.pages import PageAPI
from notionwire.notion_api.rate_limit import RateLimiter
from notionwire.notion_api.search import SearchAPI
from notionwire.notion_api.transport import NotionTransport
from notionwire.notion_api.users import UserAPI

T = TypeVar("T")


class NotionClient:
    """Synchronous Notion API client.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**
    rate_limiter:
        Optional :class:`RateLimiter` to share a request budget between
        several clients using the same integration.  By default each client
        gets its own limiter built from the configuration.
    http_transport:
        Optional :class:`httpx.BaseTransport`, mainly for tests.
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`NotionConfig`.
    """

    def __init__(
        self,
        token: str,
        *,
        rate_limiter: RateLimiter | None = None,
        http_transport: httpx.BaseTransport | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = NotionConfig(token=token, **kwargs)
        self._transport = NotionTransport(
            self._config, rate_limiter=rate_limiter, http_transport=http_transport,
        )
        self.pages = PageAPI(self._transport)
        self.blocks = BlockAPI(self._transport)
        self.databases = DatabaseAPI(self._transport)
        self.data_sources = DataSourceAPI(self._transport)
        self.users = UserAPI(self._transport)
        self.comments = CommentAPI(self._transport)
        self.search = SearchAPI(self._transport)
        self.file_uploads = FileAPI(self._transport)

    @property
    def config(self) -> NotionConfig:
        return self._config

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._transport.rate_limiter

    def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Send a raw request through the client's transport.

        Useful for endpoints without a dedicated wrapper.
        """
        return self._transport.request(method, path, **kwargs)

    def run_gated(self, operation: Callable[[], T]) -> T:
        """Run *operation* under this client's rate limit."""
        return self._transport.rate_limiter.run_gated(operation)

    def close(self) -> None:
        """Close the HTTP transport."""
        self._transport.close()

    def __enter__(self) -> NotionClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
