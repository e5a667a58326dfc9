"""Error hierarchy for the notionwire client.

Every public error class inherits from :class:`NotionwireError`.  Each carries
a machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

The hierarchy separates three kinds of failure so callers can pick a recovery
strategy:

* the remote API rejected the request (:class:`NotionwireAPIError` family),
* the request never produced a usable response (network / retries),
* the pagination engine or rate limiter refused to continue.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the client can raise."""

    API_ERROR = "API_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMIT_WAIT_EXHAUSTED = "RATE_LIMIT_WAIT_EXHAUSTED"
    PAGINATION_LIMIT_EXCEEDED = "PAGINATION_LIMIT_EXCEEDED"
    MALFORMED_PAGINATION_RESPONSE = "MALFORMED_PAGINATION_RESPONSE"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    UPLOAD_TIMEOUT = "UPLOAD_TIMEOUT"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionwireError(Exception):
    """Base exception for all notionwire errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Remote API errors
# ---------------------------------------------------------------------------

class NotionwireAPIError(NotionwireError):
    """The Notion API answered with a non-retryable error status.

    Context keys: ``status_code``, ``notion_code``, plus subclass-specific
    keys.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.API_ERROR,
    ) -> None:
        super().__init__(code=code, message=message, context=context, cause=cause)

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")


class NotionwireValidationError(NotionwireAPIError):
    """Notion API returned 400 (or another unmapped 4xx).

    Context keys: ``status_code``, ``notion_code``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, context, cause, code=ErrorCode.VALIDATION_ERROR)


class NotionwireAuthError(NotionwireAPIError):
    """Notion API returned 401: the integration token is invalid or expired."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, context, cause, code=ErrorCode.AUTH_ERROR)


class NotionwirePermissionError(NotionwireAPIError):
    """Notion API returned 403: the integration lacks access.

    Context keys: ``operation``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, context, cause, code=ErrorCode.PERMISSION_ERROR)


class NotionwireNotFoundError(NotionwireAPIError):
    """Notion API returned 404: the resource does not exist or is not shared.

    Context keys: ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, context, cause, code=ErrorCode.NOT_FOUND)


class NotionwireConflictError(NotionwireAPIError):
    """Notion API returned 409: a concurrent edit conflicted with this one."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, context, cause, code=ErrorCode.CONFLICT)


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class NotionwireRetryExhaustedError(NotionwireError):
    """All retry attempts have been exhausted for a retryable request.

    Context keys: ``attempts``, ``last_status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RETRY_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )


class NotionwireNetworkError(NotionwireError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Rate limiter and pagination errors
# ---------------------------------------------------------------------------

class NotionwireRateLimitWaitError(NotionwireError):
    """A caller queued on the rate limiter for longer than ``max_wait``.

    Only raised when the limiter was built with a ``max_wait`` bound.

    Context keys: ``waited_seconds``, ``max_wait``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RATE_LIMIT_WAIT_EXHAUSTED,
            message=message,
            context=context,
            cause=cause,
        )


class NotionwirePaginationError(NotionwireError):
    """Base class for errors raised by the pagination engine."""


class NotionwirePaginationLimitError(NotionwirePaginationError):
    """Eager pagination reached its page ceiling before the API signalled
    the last page.

    Either the result set is larger than expected (raise ``max_pages``) or
    the cursor chain never ends.

    Context keys: ``pages_fetched``, ``max_pages``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PAGINATION_LIMIT_EXCEEDED,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def pages_fetched(self) -> int:
        return self.context["pages_fetched"]

    @property
    def max_pages(self) -> int:
        return self.context["max_pages"]


class NotionwireMalformedPaginationError(NotionwirePaginationError):
    """The API reported ``has_more=true`` without a ``next_cursor``.

    Context keys: ``pages_fetched``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MALFORMED_PAGINATION_RESPONSE,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class NotionwireUploadError(NotionwireError):
    """A file upload could not be created, sent or completed.

    Context keys: ``upload_id``, ``filename``, ``status``, ``size_bytes``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        code: str = ErrorCode.UPLOAD_ERROR,
    ) -> None:
        super().__init__(code=code, message=message, context=context, cause=cause)


class NotionwireUploadTimeoutError(NotionwireUploadError):
    """A file upload did not reach the ``uploaded`` status in time.

    Context keys: ``upload_id``, ``timeout_seconds``, ``last_status``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, context, cause, code=ErrorCode.UPLOAD_TIMEOUT)
