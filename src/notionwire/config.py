"""Client configuration for notionwire.

:class:`NotionConfig` is a plain dataclass that captures every tuneable knob
exposed by the library.  Instances are shared by :class:`NotionClient` and
:class:`AsyncNotionClient`.

The module also carries the Notion API limits the resource wrappers rely on
and the default pagination ceilings for each kind of endpoint:

* :data:`MAX_PAGE_SIZE` -- largest ``page_size`` any list endpoint accepts.
* :data:`MAX_CHILDREN_PER_REQUEST` -- blocks per ``append_children`` call.
* :data:`BULK_MAX_PAGES` / :data:`CHILDREN_MAX_PAGES` /
  :data:`COMMENTS_MAX_PAGES` -- safety ceilings for eager pagination.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Literal

# ---------------------------------------------------------------------------
# API limits
# ---------------------------------------------------------------------------

MAX_PAGE_SIZE: int = 100
"""Maximum ``page_size`` accepted by paginated Notion endpoints."""

MAX_CHILDREN_PER_REQUEST: int = 100
"""Maximum number of blocks per ``PATCH /blocks/{id}/children`` call."""

MAX_FILE_SIZE_BYTES: int = 500 * 1024 * 1024
"""Largest file the File Uploads API accepts (500 MiB)."""

MULTI_PART_THRESHOLD_BYTES: int = 20 * 1024 * 1024
"""Files larger than this are sent with a multi-part upload (20 MiB)."""

DEFAULT_PART_SIZE_BYTES: int = 5 * 1024 * 1024
"""Part size used when splitting a multi-part upload (5 MiB)."""

MAX_UPLOAD_PARTS: int = 1000
"""Upper bound on ``number_of_parts`` for a multi-part upload."""

# ---------------------------------------------------------------------------
# Pagination ceilings
# ---------------------------------------------------------------------------

BULK_MAX_PAGES: int = 1000
"""Ceiling for bulk listings (queries, search, users, uploads)."""

CHILDREN_MAX_PAGES: int = 100
"""Ceiling for child enumerations (block children, property items)."""

COMMENTS_MAX_PAGES: int = 50
"""Ceiling for comment threads."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class NotionConfig:
    """Complete configuration for a notionwire client.

    Every parameter has a sensible default so that the only *required*
    value is ``token``.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**  Never logged.
    notion_version:
        Value of the ``Notion-Version`` header sent with every request.
    base_url:
        API root URL.  Override for proxy or testing environments.
    rate_limit_requests:
        Maximum number of requests admitted inside one rate-limit window.
    rate_limit_window_seconds:
        Length of the rolling rate-limit window in seconds.
    rate_limit_max_wait:
        Optional upper bound (seconds) on how long a request may queue for
        rate-limit capacity.  ``None`` waits indefinitely.
    retry_max_attempts:
        Maximum number of attempts per request for retryable errors
        (``429``, ``5xx``, network failures).
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on the computed backoff delay.
    retry_jitter_factor:
        Symmetric jitter applied to backoff delays, between ``0.0`` and
        ``1.0`` (``0.1`` means plus/minus 10 %).
    retry_strategy:
        Backoff profile.

        * ``"conservative"`` -- 50 % longer delays.
        * ``"balanced"`` -- plain exponential backoff.
        * ``"aggressive"`` -- 30 % shorter delays.
        * ``"custom"`` -- no modifier; tune the numeric knobs directly.
    retry_respect_retry_after:
        Use the server's ``Retry-After`` header on ``429`` responses instead
        of the computed backoff.
    page_size:
        ``page_size`` sent with paginated requests.
    upload_max_concurrent_parts:
        Maximum number of multi-part upload parts in flight at once (async
        client only).
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~notionwire.observability.MetricsHook` backend.
    debug_dump_payload:
        Write the (redacted) request and response payloads to *stderr*.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    notion_version: str = "2025-09-03"

    base_url: str = "https://api.notion.com/v1"

    # ── Rate limiting ───────────────────────────────────────────────────
    rate_limit_requests: int = 3

    rate_limit_window_seconds: float = 1.0

    rate_limit_max_wait: float | None = None

    # ── Retry ───────────────────────────────────────────────────────────
    retry_max_attempts: int = 4

    retry_base_delay: float = 1.0

    retry_max_delay: float = 30.0

    retry_jitter_factor: float = 0.1

    retry_strategy: Literal["conservative", "balanced", "aggressive", "custom"] = "balanced"

    retry_respect_retry_after: bool = True

    # ── Pagination & uploads ────────────────────────────────────────────
    page_size: int = MAX_PAGE_SIZE

    upload_max_concurrent_parts: int = 4

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if self.rate_limit_requests < 1:
            raise ValueError(f"rate_limit_requests must be >= 1, got {self.rate_limit_requests}")
        if self.rate_limit_window_seconds <= 0:
            raise ValueError(
                f"rate_limit_window_seconds must be > 0, got {self.rate_limit_window_seconds}"
            )
        if self.rate_limit_max_wait is not None and self.rate_limit_max_wait < 0:
            raise ValueError(f"rate_limit_max_wait must be >= 0, got {self.rate_limit_max_wait}")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < self.retry_base_delay:
            raise ValueError(
                f"retry_max_delay must be >= retry_base_delay, got {self.retry_max_delay}"
            )
        if not 0.0 <= self.retry_jitter_factor <= 1.0:
            raise ValueError(
                f"retry_jitter_factor must be between 0.0 and 1.0, got {self.retry_jitter_factor}"
            )
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(
                f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}"
            )
        if self.upload_max_concurrent_parts < 1:
            raise ValueError(
                "upload_max_concurrent_parts must be >= 1, "
                f"got {self.upload_max_concurrent_parts}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"NotionConfig({', '.join(parts)})"
