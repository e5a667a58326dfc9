"""Shared test fixtures for the notionwire test suite."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from notionwire.config import NotionConfig


@pytest.fixture
def config() -> NotionConfig:
    """Default test configuration with a dummy token."""
    return NotionConfig(token="test_token_1234")


@pytest.fixture
def fast_config() -> NotionConfig:
    """Configuration tuned for fast, deterministic transport tests."""
    return make_config()


def make_config(**overrides) -> NotionConfig:
    """Return a NotionConfig whose retries and rate limit never block."""
    defaults = dict(
        token="test-token-1234",
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter_factor=0.0,
        rate_limit_requests=10_000,
    )
    defaults.update(overrides)
    return NotionConfig(**defaults)


def make_response(
    status_code: int = 200,
    body: dict | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    """Build a minimal httpx.Response with a request attached."""
    content = json.dumps(body).encode() if body is not None else b""
    resp = httpx.Response(status_code, content=content, headers=headers or {})
    resp.request = httpx.Request("GET", "https://api.notion.com/v1/test")
    return resp


class RecordingHandler:
    """``httpx.MockTransport`` handler that records requests and answers
    from a route table of ``(METHOD, path) -> body | list[body] | callable``.
    """

    def __init__(self, routes: dict[tuple[str, str], object]) -> None:
        self.routes = {key: (list(v) if isinstance(v, list) else v) for key, v in routes.items()}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1")
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"object": "error", "code": "object_not_found",
                                             "message": f"no route {request.method} {path}"})
        if isinstance(route, list):
            body = route.pop(0)
        elif callable(route):
            body = route(request)
        else:
            body = route
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, json=body)

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) if r.content else {} for r in self.requests]


def list_page(results: list, next_cursor: str | None = None, **extra) -> dict:
    """A Notion list object."""
    return {
        "object": "list",
        "results": results,
        "next_cursor": next_cursor,
        "has_more": next_cursor is not None,
        **extra,
    }


@pytest.fixture
def make_handler() -> Callable[[dict], RecordingHandler]:
    return RecordingHandler
