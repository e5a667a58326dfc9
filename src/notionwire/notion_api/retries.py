"""Retry decision logic and backoff computation.

This module provides the pure functions used by the transport layer:

* :func:`should_retry` -- decide whether a failed request is retryable.
* :func:`compute_backoff` -- compute the delay before the next retry attempt.

Retries happen around the rate limiter, never inside it: each retry attempt
is admitted by the limiter like any other request.
"""

from __future__ import annotations

import random
from enum import Enum

import httpx

# HTTP status codes that are safe to retry.
_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Network-level exceptions that warrant a retry.
_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


class RetryStrategy(str, Enum):
    """How aggressively backoff delays are scaled."""

    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"
    CUSTOM = "custom"

    @property
    def delay_modifier(self) -> float:
        return _DELAY_MODIFIERS[self]


_DELAY_MODIFIERS: dict[RetryStrategy, float] = {
    RetryStrategy.CONSERVATIVE: 1.5,
    RetryStrategy.BALANCED: 1.0,
    RetryStrategy.AGGRESSIVE: 0.7,
    RetryStrategy.CUSTOM: 1.0,
}


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether a request should be retried.

    Parameters
    ----------
    status_code:
        HTTP status code from the response, or ``None`` if the request never
        received a response (e.g. network timeout).
    exception:
        The exception that was raised, or ``None`` if a response was received.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Maximum total attempts allowed (including the initial request).

    Returns
    -------
    bool
        ``True`` if the request should be retried; ``False`` otherwise.
    """
    if attempt + 1 >= max_attempts:
        return False

    if exception is not None:
        return isinstance(exception, _RETRYABLE_EXCEPTIONS)

    if status_code is not None:
        return status_code in _RETRYABLE_STATUSES

    return False


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 30.0,
    jitter_factor: float = 0.1,
    strategy: RetryStrategy | str = RetryStrategy.BALANCED,
    retry_after: float | None = None,
    respect_retry_after: bool = True,
) -> float:
    """Compute the delay before the next retry attempt.

    When the server sent ``Retry-After`` and *respect_retry_after* is set,
    that value is used as-is (capped at *maximum*).  Otherwise the delay is
    ``base * 2**attempt`` scaled by the strategy's modifier, then jittered by
    up to ``+/- jitter_factor`` of its value and capped at *maximum*.

    Parameters
    ----------
    attempt:
        The current attempt number (0-indexed).
    base:
        Base delay in seconds for exponential backoff.
    maximum:
        Maximum delay cap in seconds.
    jitter_factor:
        Fraction of the delay used as symmetric random jitter (``0`` disables).
    strategy:
        A :class:`RetryStrategy` or its string value.
    retry_after:
        Value of the ``Retry-After`` header (in seconds), if present.
    respect_retry_after:
        Whether *retry_after* overrides the computed delay.

    Returns
    -------
    float
        Delay in seconds before the next retry should be issued; never
        negative.
    """
    if retry_after is not None and respect_retry_after:
        return max(0.0, min(retry_after, maximum))

    delay = base * (2 ** attempt) * RetryStrategy(strategy).delay_modifier
    if jitter_factor > 0:
        delay += delay * jitter_factor * random.uniform(-1.0, 1.0)

    return max(0.0, min(delay, maximum))
