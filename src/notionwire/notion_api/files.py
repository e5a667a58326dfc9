"""File upload API wrappers for the Notion API.

Provides :class:`FileAPI` (sync) and :class:`AsyncFileAPI` (async) wrappers
for the Notion file-upload lifecycle:

1. **Create upload** -- reserve an upload (``single_part``, ``multi_part``
   or ``external_url`` mode).
2. **Send part(s)** -- post the bytes as a multipart form, one request per
   part for multi-part uploads.
3. **Complete upload** -- finalise a multi-part upload.
4. **Retrieve upload** -- poll the upload's status.

:meth:`FileAPI.upload_file` drives the whole sequence: files up to
:data:`~notionwire.config.MULTI_PART_THRESHOLD_BYTES` go in one request,
larger ones are split into parts of
:data:`~notionwire.config.DEFAULT_PART_SIZE_BYTES`.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import AsyncIterator, Iterator
from typing import Any

from notionwire.config import (
    DEFAULT_PART_SIZE_BYTES,
    MAX_FILE_SIZE_BYTES,
    MAX_UPLOAD_PARTS,
    MULTI_PART_THRESHOLD_BYTES,
)
from notionwire.errors import (
    NotionwireError,
    NotionwireUploadError,
    NotionwireUploadTimeoutError,
)
from notionwire.observability import get_logger
from notionwire.utils.chunk import split_parts

from .pagination import async_stream_items, stream_items
from .transport import AsyncNotionTransport, NotionTransport

log = get_logger("notionwire.files")

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Terminal failure statuses reported by GET /file_uploads/{id}.
_FAILED_STATUSES = frozenset({"failed", "expired"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _create_body(
    mode: str,
    filename: str | None,
    content_type: str | None,
    number_of_parts: int | None,
    external_url: str | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"mode": mode}
    if filename is not None:
        body["filename"] = filename
    if content_type is not None:
        body["content_type"] = content_type
    if number_of_parts is not None:
        body["number_of_parts"] = number_of_parts
    if external_url is not None:
        body["external_url"] = external_url
    return body


def _send_kwargs(
    data: bytes,
    filename: str,
    content_type: str | None,
    part_number: int | None,
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "files": {"file": (filename, data, content_type or DEFAULT_CONTENT_TYPE)},
    }
    if part_number is not None:
        kwargs["data"] = {"part_number": str(part_number)}
    return kwargs


def plan_upload(
    size_bytes: int,
    filename: str,
    part_size: int = DEFAULT_PART_SIZE_BYTES,
) -> int | None:
    """Validate an upload and return its part count.

    Returns ``None`` for a single-part upload, otherwise the number of
    parts.

    Raises
    ------
    NotionwireUploadError
        If *filename* is blank, the file exceeds
        :data:`~notionwire.config.MAX_FILE_SIZE_BYTES`, or it would need more
        than :data:`~notionwire.config.MAX_UPLOAD_PARTS` parts.
    ValueError
        If *part_size* is less than 1.
    """
    if part_size < 1:
        raise ValueError(f"part_size must be >= 1, got {part_size}")
    context = {"filename": filename, "size_bytes": size_bytes}
    if not filename or not filename.strip():
        raise NotionwireUploadError(message="Upload filename must not be blank", context=context)
    if size_bytes > MAX_FILE_SIZE_BYTES:
        raise NotionwireUploadError(
            message=(
                f"File {filename!r} is {size_bytes} bytes; "
                f"the limit is {MAX_FILE_SIZE_BYTES} bytes"
            ),
            context=context,
        )
    if size_bytes <= MULTI_PART_THRESHOLD_BYTES:
        return None

    parts = math.ceil(size_bytes / part_size)
    if parts > MAX_UPLOAD_PARTS:
        raise NotionwireUploadError(
            message=(
                f"File {filename!r} would need {parts} parts of {part_size} bytes; "
                f"at most {MAX_UPLOAD_PARTS} are allowed"
            ),
            context={**context, "number_of_parts": parts},
        )
    return parts


def _part_failed(
    upload_id: str, filename: str, part_number: int, exc: Exception,
) -> NotionwireUploadError:
    return NotionwireUploadError(
        message=f"Sending part {part_number} of {filename!r} failed: {exc}",
        context={"upload_id": upload_id, "filename": filename, "part_number": part_number},
        cause=exc,
    )


def _check_status(upload: dict[str, Any], upload_id: str) -> bool:
    """``True`` once uploaded; raises on a terminal failure status."""
    status = upload.get("status")
    if status == "uploaded":
        return True
    if status in _FAILED_STATUSES:
        raise NotionwireUploadError(
            message=f"File upload {upload_id} ended with status {status!r}",
            context={"upload_id": upload_id, "status": status},
        )
    return False


def _timed_out(upload_id: str, timeout: float, status: Any) -> NotionwireUploadTimeoutError:
    return NotionwireUploadTimeoutError(
        message=f"File upload {upload_id} not ready after {timeout}s (status {status!r})",
        context={"upload_id": upload_id, "timeout_seconds": timeout, "last_status": status},
    )


def _log_upload(filename: str, size_bytes: int, parts: int | None) -> None:
    log.debug(
        "Starting file upload",
        extra={
            "extra_fields": {
                "filename": filename,
                "size_bytes": size_bytes,
                "mode": "single_part" if parts is None else "multi_part",
                "number_of_parts": parts or 1,
            }
        },
    )


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

class FileAPI:
    """Synchronous wrapper for the Notion File Uploads API.

    Parameters
    ----------
    transport:
        A configured :class:`NotionTransport` instance.
    """

    def __init__(self, transport: NotionTransport) -> None:
        self._transport = transport

    def create(
        self,
        mode: str = "single_part",
        filename: str | None = None,
        content_type: str | None = None,
        number_of_parts: int | None = None,
        external_url: str | None = None,
    ) -> dict[str, Any]:
        """Create a new file upload.

        Parameters
        ----------
        mode:
            ``"single_part"`` (default), ``"multi_part"`` or
            ``"external_url"``.
        filename:
            The file name (e.g. ``"photo.png"``); required for multi-part.
        content_type:
            MIME type of the file (e.g. ``"image/png"``).
        number_of_parts:
            Part count, multi-part mode only.
        external_url:
            Public HTTPS URL to import, ``external_url`` mode only.

        Returns
        -------
        dict
            The upload object, including ``id`` and ``status``.
        """
        body = _create_body(mode, filename, content_type, number_of_parts, external_url)
        return self._transport.request("POST", "/file_uploads", json=body)

    def send(
        self,
        upload_id: str,
        data: bytes,
        *,
        filename: str = "file",
        content_type: str | None = None,
        part_number: int | None = None,
    ) -> dict[str, Any]:
        """Send file content (or one part of it) as a multipart form.

        *part_number* is 1-based and only used for multi-part uploads.
        """
        return self._transport.request(
            "POST",
            f"/file_uploads/{upload_id}/send",
            **_send_kwargs(data, filename, content_type, part_number),
        )

    def complete(self, upload_id: str) -> dict[str, Any]:
        """Complete a multi-part upload once every part has been sent."""
        return self._transport.request("POST", f"/file_uploads/{upload_id}/complete")

    def retrieve(self, upload_id: str) -> dict[str, Any]:
        """Retrieve the current status of a file upload."""
        return self._transport.request("GET", f"/file_uploads/{upload_id}")

    def list(
        self,
        start_cursor: str | None = None,
        page_size: int | None = None,
    ) -> dict[str, Any]:
        """Fetch a single page of file uploads (raw list object)."""
        params: dict[str, Any] = {}
        if start_cursor is not None:
            params["start_cursor"] = start_cursor
        if page_size is not None:
            params["page_size"] = page_size
        return self._transport.request("GET", "/file_uploads", params=params)

    def iter_uploads(self) -> Iterator[dict[str, Any]]:
        """Lazily yield every file upload of the integration."""
        return stream_items(self._transport.page_fetcher("GET", "/file_uploads"))

    def import_external(
        self,
        filename: str,
        external_url: str,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        """Ask Notion to import a file from a public URL.

        The import runs asynchronously on Notion's side; use
        :meth:`wait_until_uploaded` to wait for it.
        """
        return self.create(
            mode="external_url",
            filename=filename,
            content_type=content_type,
            external_url=external_url,
        )

    def upload_file(
        self,
        data: bytes,
        filename: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
        *,
        part_size: int = DEFAULT_PART_SIZE_BYTES,
    ) -> dict[str, Any]:
        """Upload *data* end to end and return the final upload object.

        Parts of a multi-part upload are sent in order, one at a time.

        Raises
        ------
        NotionwireUploadError
            If validation fails or a part cannot be sent.
        """
        parts = plan_upload(len(data), filename, part_size)
        _log_upload(filename, len(data), parts)

        if parts is None:
            upload = self.create(filename=filename, content_type=content_type)
            return self.send(upload["id"], data, filename=filename, content_type=content_type)

        upload = self.create(
            mode="multi_part",
            filename=filename,
            content_type=content_type,
            number_of_parts=parts,
        )
        upload_id = upload["id"]
        for part_number, chunk in enumerate(split_parts(data, part_size), start=1):
            try:
                self.send(
                    upload_id, chunk,
                    filename=filename, content_type=content_type, part_number=part_number,
                )
            except NotionwireError as exc:
                raise _part_failed(upload_id, filename, part_number, exc) from exc
            self._transport.metrics.increment("notionwire.upload_parts_total")
        return self.complete(upload_id)

    def wait_until_uploaded(
        self,
        upload_id: str,
        *,
        timeout: float = 10.0,
        poll_interval: float = 0.5,
    ) -> dict[str, Any]:
        """Poll an upload until its status is ``uploaded``.

        Raises
        ------
        NotionwireUploadError
            If the upload ends up ``failed`` or ``expired``.
        NotionwireUploadTimeoutError
            If it is not ready within *timeout* seconds.
        """
        deadline = time.monotonic() + timeout
        while True:
            upload = self.retrieve(upload_id)
            if _check_status(upload, upload_id):
                return upload
            if time.monotonic() + poll_interval > deadline:
                raise _timed_out(upload_id, timeout, upload.get("status"))
            time.sleep(poll_interval)


# ---------------------------------------------------------------------------
# Async
# ---------------------------------------------------------------------------

class AsyncFileAPI:
    """Asynchronous wrapper for the Notion File Uploads API.

    Mirrors :class:`FileAPI` but all methods are coroutines.  Multi-part
    uploads send up to ``upload_max_concurrent_parts`` parts at once.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport` instance.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def create(
        self,
        mode: str = "single_part",
        filename: str | None = None,
        content_type: str | None = None,
        number_of_parts: int | None = None,
        external_url: str | None = None,
    ) -> dict[str, Any]:
        """Create a new file upload (async).

        See :meth:`FileAPI.create` for parameter documentation.
        """
        body = _create_body(mode, filename, content_type, number_of_parts, external_url)
        return await self._transport.request("POST", "/file_uploads", json=body)

    async def send(
        self,
        upload_id: str,
        data: bytes,
        *,
        filename: str = "file",
        content_type: str | None = None,
        part_number: int | None = None,
    ) -> dict[str, Any]:
        return await self._transport.request(
            "POST",
            f"/file_uploads/{upload_id}/send",
            **_send_kwargs(data, filename, content_type, part_number),
        )

    async def complete(self, upload_id: str) -> dict[str, Any]:
        return await self._transport.request("POST", f"/file_uploads/{upload_id}/complete")

    async def retrieve(self, upload_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", f"/file_uploads/{upload_id}")

    async def list(
        self,
        start_cursor: str | None = None,
        page_size: int | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if start_cursor is not None:
            params["start_cursor"] = start_cursor
        if page_size is not None:
            params["page_size"] = page_size
        return await self._transport.request("GET", "/file_uploads", params=params)

    def iter_uploads(self) -> AsyncIterator[dict[str, Any]]:
        return async_stream_items(self._transport.page_fetcher("GET", "/file_uploads"))

    async def import_external(
        self,
        filename: str,
        external_url: str,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        return await self.create(
            mode="external_url",
            filename=filename,
            content_type=content_type,
            external_url=external_url,
        )

    async def upload_file(
        self,
        data: bytes,
        filename: str,
        content_type: str = DEFAULT_CONTENT_TYPE,
        *,
        part_size: int = DEFAULT_PART_SIZE_BYTES,
    ) -> dict[str, Any]:
        """Upload *data* end to end (async).

        Parts are sent concurrently, at most ``upload_max_concurrent_parts``
        at a time; each still passes through the rate limiter.  If any part
        fails the remaining sends are cancelled and the upload is not
        completed.
        """
        parts = plan_upload(len(data), filename, part_size)
        _log_upload(filename, len(data), parts)

        if parts is None:
            upload = await self.create(filename=filename, content_type=content_type)
            return await self.send(
                upload["id"], data, filename=filename, content_type=content_type,
            )

        upload = await self.create(
            mode="multi_part",
            filename=filename,
            content_type=content_type,
            number_of_parts=parts,
        )
        upload_id = upload["id"]
        semaphore = asyncio.Semaphore(self._transport.config.upload_max_concurrent_parts)

        async def send_part(part_number: int, chunk: bytes) -> None:
            async with semaphore:
                try:
                    await self.send(
                        upload_id, chunk,
                        filename=filename, content_type=content_type, part_number=part_number,
                    )
                except NotionwireError as exc:
                    raise _part_failed(upload_id, filename, part_number, exc) from exc
            self._transport.metrics.increment("notionwire.upload_parts_total")

        tasks = [
            asyncio.ensure_future(send_part(n, chunk))
            for n, chunk in enumerate(split_parts(data, part_size), start=1)
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return await self.complete(upload_id)

    async def wait_until_uploaded(
        self,
        upload_id: str,
        *,
        timeout: float = 10.0,
        poll_interval: float = 0.5,
    ) -> dict[str, Any]:
        """Poll an upload until its status is ``uploaded`` (async).

        See :meth:`FileAPI.wait_until_uploaded`.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            upload = await self.retrieve(upload_id)
            if _check_status(upload, upload_id):
                return upload
            if loop.time() + poll_interval > deadline:
                raise _timed_out(upload_id, timeout, upload.get("status"))
            await asyncio.sleep(poll_interval)
