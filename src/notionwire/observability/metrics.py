"""Metrics hook protocol and the no-op default.

The transport, rate limiter and pagination engine report counters and
timings through a :class:`MetricsHook`.  Without a user-supplied backend a
:class:`NoopMetricsHook` is used, so call-sites never need ``None`` checks.

Emitted metric names:

* ``notionwire.requests_total``        -- counter, tagged by method/path/status
* ``notionwire.retries_total``         -- counter, tagged by reason
* ``notionwire.rate_limited_total``    -- counter (HTTP 429 responses)
* ``notionwire.request_duration_ms``   -- timing
* ``notionwire.rate_limit_wait_ms``    -- timing (client-side queueing)
* ``notionwire.rate_limit_queue_depth`` -- gauge
* ``notionwire.pages_fetched_total``   -- counter (pagination)
* ``notionwire.upload_parts_total``    -- counter (multi-part uploads)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol any metrics backend must satisfy.

    *tags* are plain ``str -> str`` mappings; backends translate them into
    Datadog tags, Prometheus labels, StatsD suffixes, and so on.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment the counter *name* by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration of *ms* milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set the gauge *name* to *value*."""
        ...


class NoopMetricsHook:
    """Metrics backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
