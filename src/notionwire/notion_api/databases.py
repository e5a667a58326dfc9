"""Database API wrappers for the Notion API.

Since API version ``2025-09-03`` a database is a container of one or more
data sources; rows and schemas live on the data source (see
:mod:`.data_sources`).  These wrappers cover the container itself.
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncNotionTransport, NotionTransport


def _create_body(
    parent: dict[str, Any],
    title: list[dict[str, Any]] | None,
    properties: dict[str, Any] | None,
    extra: dict[str, Any],
) -> dict[str, Any]:
    body: dict[str, Any] = {"parent": parent, **extra}
    if title is not None:
        body["title"] = title
    if properties is not None:
        body["initial_data_source"] = {"properties": properties}
    return body


class DatabaseAPI:
    """Synchronous wrapper for the Notion Databases API.

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
        title: list[dict[str, Any]] | None = None,
        properties: dict[str, Any] | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Create a database.

        Parameters
        ----------
        parent:
            Parent page, e.g. ``{"type": "page_id", "page_id": "..."}``.
        title:
            Rich text array used as the database title.
        properties:
            Property schema of the initial data source.
        **extra:
            Additional top-level fields (``icon``, ``cover``, ``is_inline``).

        Returns
        -------
        dict
            The created database object.
        """
        body = _create_body(parent, title, properties, extra)
        return self._transport.request("POST", "/databases", json=body)

    def retrieve(self, database_id: str) -> dict[str, Any]:
        """Retrieve a database, including the list of its data sources."""
        return self._transport.request("GET", f"/databases/{database_id}")

    def update(self, database_id: str, **fields: Any) -> dict[str, Any]:
        """Update top-level database fields (``title``, ``icon``, ...)."""
        return self._transport.request("PATCH", f"/databases/{database_id}", json=fields)

    def archive(self, database_id: str) -> dict[str, Any]:
        """Move a database to the trash."""
        return self.update(database_id, in_trash=True)


class AsyncDatabaseAPI:
    """Asynchronous wrapper for the Notion Databases API.

    Mirrors :class:`DatabaseAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def create(
        self,
        parent: dict[str, Any],
        title: list[dict[str, Any]] | None = None,
        properties: dict[str, Any] | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        """Create a database (async).

        See :meth:`DatabaseAPI.create` for parameter documentation.
        """
        body = _create_body(parent, title, properties, extra)
        return await self._transport.request("POST", "/databases", json=body)

    async def retrieve(self, database_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/databases/{database_id}")

    async def update(self, database_id: str, **fields: Any) -> dict[str, Any]:
        return await self._transport.request("PATCH", f"/databases/{database_id}", json=fields)

    async def archive(self, database_id: str) -> dict[str, Any]:
        return await self.update(database_id, in_trash=True)
