"""Client-side request pacing for the Notion API.

Notion allows an average of three requests per second per integration.  The
limiters in this module keep every outbound request inside that budget:
at most ``max_requests`` admissions within any rolling window of
``window_seconds``.

Both :class:`RateLimiter` (threads) and :class:`AsyncRateLimiter` (asyncio
tasks) share the same admission rules:

1. Admissions older than the window are dropped before every decision, which
   is what "resetting" the window amounts to.
2. A caller is admitted when fewer than ``max_requests`` admissions remain in
   the window.
3. Otherwise it sleeps until the oldest admission leaves the window and
   checks again.  Sleeping happens on a condition variable, never by polling.

Waiting callers queue in arrival order.  Each caller draws a ticket and only
the ticket at the head of the queue may be admitted, so capacity that frees
up is handed out first-come-first-served and is re-validated by every caller
after it wakes.  A caller that gives up (``max_wait`` elapsed, or its task
was cancelled) hands its place to the next ticket without touching the
admission log.

The limiter only gates; the wrapped operation runs outside the lock and its
result or exception reaches the caller untouched.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from notionwire.errors import NotionwireRateLimitWaitError
from notionwire.observability import NoopMetricsHook, get_logger

T = TypeVar("T")

log = get_logger("notionwire.rate_limit")


class _AdmissionLog:
    """Admission timestamps plus the FIFO ticket queue.

    Not thread-safe on its own: callers must hold the owning limiter's lock.
    """

    __slots__ = ("_abandoned", "_admitted", "_next_ticket", "_serving", "max_requests", "window")

    def __init__(self, max_requests: int, window_seconds: float) -> None:
        if max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got {max_requests}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")

        self.max_requests = max_requests
        self.window = window_seconds
        self._admitted: deque[float] = deque()
        self._next_ticket = 0
        self._serving = 0
        self._abandoned: set[int] = set()

    # -- window ------------------------------------------------------------

    def expire(self, now: float) -> None:
        while self._admitted and now - self._admitted[0] >= self.window:
            self._admitted.popleft()

    def try_admit(self, now: float) -> float:
        """Record an admission at *now* and return ``0.0``, or return the
        number of seconds until a slot frees up."""
        self.expire(now)
        if len(self._admitted) < self.max_requests:
            self._admitted.append(now)
            return 0.0
        return self.window - (now - self._admitted[0])

    def in_window(self, now: float) -> int:
        self.expire(now)
        return len(self._admitted)

    def oldest(self, now: float) -> float | None:
        self.expire(now)
        return self._admitted[0] if self._admitted else None

    # -- queue -------------------------------------------------------------

    def take_ticket(self) -> int:
        ticket = self._next_ticket
        self._next_ticket += 1
        return ticket

    def is_head(self, ticket: int) -> bool:
        return ticket == self._serving

    def release(self, ticket: int) -> None:
        """Leave the queue, either after admission or after giving up."""
        if ticket != self._serving:
            self._abandoned.add(ticket)
            return
        self._serving += 1
        while self._serving in self._abandoned:
            self._abandoned.discard(self._serving)
            self._serving += 1

    @property
    def depth(self) -> int:
        return self._next_ticket - self._serving - len(self._abandoned)


class _LimiterBase:
    """Configuration, introspection and reporting shared by both limiters."""

    def __init__(
        self,
        max_requests: int = 3,
        window_seconds: float = 1.0,
        *,
        max_wait: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: Any | None = None,
    ) -> None:
        if max_wait is not None and max_wait < 0:
            raise ValueError(f"max_wait must be >= 0, got {max_wait}")

        self._log = _AdmissionLog(max_requests, window_seconds)
        self._max_wait = max_wait
        self._clock = clock
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    @property
    def max_requests(self) -> int:
        return self._log.max_requests

    @property
    def window_seconds(self) -> float:
        return self._log.window

    @property
    def max_wait(self) -> float | None:
        return self._max_wait

    @property
    def requests_in_window(self) -> int:
        """Admissions inside the current window (a point-in-time snapshot)."""
        return self._log.in_window(self._clock())

    @property
    def window_start(self) -> float | None:
        """Clock value of the oldest admission still inside the window."""
        return self._log.oldest(self._clock())

    @property
    def queue_depth(self) -> int:
        """Callers currently queued or being admitted."""
        return self._log.depth

    def _timeout(self, delay: float | None, start: float, now: float) -> float | None:
        """How long to sleep before re-checking; ``None`` waits for a notify.

        Raises :class:`NotionwireRateLimitWaitError` once ``max_wait`` is spent.
        """
        if self._max_wait is None:
            return delay
        remaining = start + self._max_wait - now
        if remaining <= 0:
            raise NotionwireRateLimitWaitError(
                message=(
                    f"Waited {now - start:.3f}s for rate-limit capacity "
                    f"(max_wait={self._max_wait}s)"
                ),
                context={"waited_seconds": now - start, "max_wait": self._max_wait},
            )
        return remaining if delay is None else min(delay, remaining)

    def _report(self, waited: float) -> None:
        if waited <= 0:
            return
        self._metrics.timing("notionwire.rate_limit_wait_ms", waited * 1000)
        log.debug(
            "Rate limit wait",
            extra={
                "extra_fields": {
                    "waited_ms": round(waited * 1000, 1),
                    "queue_depth": self._log.depth,
                }
            },
        )


class RateLimiter(_LimiterBase):
    """Thread-safe limiter for the synchronous client.

    Parameters
    ----------
    max_requests:
        Admissions allowed inside one window.
    window_seconds:
        Length of the rolling window in seconds.
    max_wait:
        Optional bound on the time a caller may queue.  ``None`` (the
        default) waits indefinitely.
    clock:
        Monotonic clock returning seconds.  Injectable for tests.
    metrics:
        Optional :class:`~notionwire.observability.MetricsHook`.
    """

    def __init__(
        self,
        max_requests: int = 3,
        window_seconds: float = 1.0,
        *,
        max_wait: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: Any | None = None,
    ) -> None:
        super().__init__(
            max_requests, window_seconds, max_wait=max_wait, clock=clock, metrics=metrics,
        )
        self._cond = threading.Condition()

    def acquire(self) -> float:
        """Block until admitted.  Returns the seconds spent waiting.

        Raises
        ------
        NotionwireRateLimitWaitError
            When ``max_wait`` is configured and elapses first.
        """
        start = self._clock()
        queued = False
        with self._cond:
            ticket = self._log.take_ticket()
            self._metrics.gauge("notionwire.rate_limit_queue_depth", self._log.depth)
            try:
                while True:
                    now = self._clock()
                    delay = self._log.try_admit(now) if self._log.is_head(ticket) else None
                    if delay is not None and delay <= 0:
                        break
                    timeout = self._timeout(delay, start, now)
                    queued = True
                    self._cond.wait(timeout)
            finally:
                self._log.release(ticket)
                self._cond.notify_all()

        waited = self._clock() - start
        if queued:
            self._report(waited)
        return waited

    def run_gated(self, operation: Callable[[], T]) -> T:
        """Run *operation* once the limiter admits it and return its result."""
        self.acquire()
        return operation()


class AsyncRateLimiter(_LimiterBase):
    """Limiter for the asyncio client.

    Same parameters and admission rules as :class:`RateLimiter`; waiting
    suspends the task on an :class:`asyncio.Condition` instead of blocking a
    thread.  Cancelling a queued task releases its place in the queue.
    """

    def __init__(
        self,
        max_requests: int = 3,
        window_seconds: float = 1.0,
        *,
        max_wait: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: Any | None = None,
    ) -> None:
        super().__init__(
            max_requests, window_seconds, max_wait=max_wait, clock=clock, metrics=metrics,
        )
        self._cond = asyncio.Condition()

    async def acquire(self) -> float:
        """Suspend until admitted.  Returns the seconds spent waiting.

        Raises
        ------
        NotionwireRateLimitWaitError
            When ``max_wait`` is configured and elapses first.
        """
        start = self._clock()
        queued = False
        async with self._cond:
            ticket = self._log.take_ticket()
            self._metrics.gauge("notionwire.rate_limit_queue_depth", self._log.depth)
            try:
                while True:
                    now = self._clock()
                    delay = self._log.try_admit(now) if self._log.is_head(ticket) else None
                    if delay is not None and delay <= 0:
                        break
                    timeout = self._timeout(delay, start, now)
                    queued = True
                    try:
                        await asyncio.wait_for(self._cond.wait(), timeout)
                    except asyncio.TimeoutError:
                        pass
            finally:
                self._log.release(ticket)
                self._cond.notify_all()

        waited = self._clock() - start
        if queued:
            self._report(waited)
        return waited

    async def run_gated(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Await *operation* once the limiter admits it and return its result."""
        await self.acquire()
        return await operation()
