"""Tests for NotionConfig validation and the exported API limits."""

from __future__ import annotations

import pytest

from notionwire.config import (
    BULK_MAX_PAGES,
    CHILDREN_MAX_PAGES,
    COMMENTS_MAX_PAGES,
    MAX_CHILDREN_PER_REQUEST,
    MAX_PAGE_SIZE,
    NotionConfig,
)


class TestDefaults:
    def test_defaults(self, config):
        assert config.rate_limit_requests == 3
        assert config.rate_limit_window_seconds == 1.0
        assert config.rate_limit_max_wait is None
        assert config.page_size == MAX_PAGE_SIZE
        assert config.retry_strategy == "balanced"
        assert config.base_url == "https://api.notion.com/v1"

    def test_page_ceilings(self):
        assert (BULK_MAX_PAGES, CHILDREN_MAX_PAGES, COMMENTS_MAX_PAGES) == (1000, 100, 50)
        assert MAX_CHILDREN_PER_REQUEST == 100


class TestValidation:
    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("rate_limit_requests", 0),
            ("rate_limit_window_seconds", 0.0),
            ("rate_limit_max_wait", -1.0),
            ("retry_max_attempts", 0),
            ("retry_base_delay", -0.5),
            ("retry_jitter_factor", 1.5),
            ("page_size", 0),
            ("page_size", MAX_PAGE_SIZE + 1),
            ("upload_max_concurrent_parts", 0),
            ("timeout_seconds", 0),
        ],
    )
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValueError, match=field):
            NotionConfig(token="t", **{field: value})

    def test_max_delay_below_base_rejected(self):
        with pytest.raises(ValueError, match="retry_max_delay"):
            NotionConfig(token="t", retry_base_delay=5.0, retry_max_delay=1.0)

    def test_insecure_remote_base_url_rejected(self):
        with pytest.raises(ValueError, match="insecure HTTP"):
            NotionConfig(token="t", base_url="http://api.example.com/v1")

    def test_local_http_allowed(self):
        cfg = NotionConfig(token="t", base_url="http://localhost:8080/v1")
        assert cfg.base_url.startswith("http://localhost")


class TestRepr:
    def test_token_masked(self):
        text = repr(NotionConfig(token="ntn_supersecret_abcd"))
        assert "ntn_supersecret" not in text
        assert "token='...abcd'" in text

    def test_short_token_fully_masked(self):
        assert "token='****'" in repr(NotionConfig(token="ab"))
