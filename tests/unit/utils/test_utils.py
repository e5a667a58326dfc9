"""Tests for utils/chunk.py and utils/redact.py"""

from __future__ import annotations

import pytest

from notionwire.utils import chunk_children, redact, split_parts
from notionwire.utils.redact import MAX_STRING_LENGTH

# ---------------------------------------------------------------------------
# chunk_children
# ---------------------------------------------------------------------------


class TestChunkChildren:
    def test_empty_list_yields_no_batches(self):
        assert chunk_children([]) == []

    def test_under_limit_single_batch(self):
        blocks = [{"n": i} for i in range(5)]
        assert chunk_children(blocks) == [blocks]

    def test_default_batch_size_is_100(self):
        batches = chunk_children([{"n": i} for i in range(250)])
        assert [len(b) for b in batches] == [100, 100, 50]

    def test_exact_multiple(self):
        assert [len(b) for b in chunk_children([{}] * 200)] == [100, 100]

    def test_custom_size_preserves_order(self):
        blocks = [{"n": i} for i in range(7)]
        batches = chunk_children(blocks, size=3)
        assert [b["n"] for batch in batches for b in batch] == list(range(7))
        assert [len(b) for b in batches] == [3, 3, 1]

    def test_invalid_size(self):
        with pytest.raises(ValueError, match="size"):
            chunk_children([{}], size=0)


# ---------------------------------------------------------------------------
# split_parts
# ---------------------------------------------------------------------------


class TestSplitParts:
    def test_last_part_may_be_shorter(self):
        assert split_parts(b"abcdefg", 3) == [b"abc", b"def", b"g"]

    def test_exact_multiple(self):
        assert split_parts(b"abcdef", 3) == [b"abc", b"def"]

    def test_empty_data_is_one_empty_part(self):
        assert split_parts(b"", 5) == [b""]

    def test_invalid_part_size(self):
        with pytest.raises(ValueError, match="part_size"):
            split_parts(b"abc", 0)


# ---------------------------------------------------------------------------
# redact
# ---------------------------------------------------------------------------


class TestRedact:
    def test_authorization_header_masked(self):
        assert redact({"Authorization": "Bearer ntn_abc123"}) == {"Authorization": "<redacted>"}

    def test_sensitive_key_keeps_token_suffix(self):
        token = "ntn_0123456789wxyz"
        assert redact({"api_token": token}, token) == {"api_token": "<redacted:...wxyz>"}

    def test_token_scrubbed_from_nested_strings(self):
        token = "ntn_0123456789wxyz"
        payload = {"results": [{"note": f"copied {token} here"}], "n": 3}
        result = redact(payload, token)
        assert result["results"][0]["note"] == "copied <redacted:...wxyz> here"
        assert result["n"] == 3

    def test_bearer_values_scrubbed_anywhere(self):
        result = redact({"log": "sent Bearer abc.def to server"})
        assert result["log"] == "sent Bearer <redacted> to server"

    def test_binary_replaced_with_size(self):
        assert redact({"file": b"\x89PNG\r\n"}) == {"file": "<binary:6_bytes>"}

    def test_tuples_become_lists(self):
        assert redact({"file": ("a.png", b"xx", "image/png")}) == {
            "file": ["a.png", "<binary:2_bytes>", "image/png"],
        }

    def test_long_strings_truncated(self):
        text = "x" * (MAX_STRING_LENGTH + 10)
        result = redact({"body": text})["body"]
        assert result.startswith("x" * MAX_STRING_LENGTH)
        assert result.endswith(f"<truncated:{MAX_STRING_LENGTH + 10}_chars>")

    def test_input_not_mutated(self):
        payload = {"token": "secret", "nested": {"password": "pw"}}
        redact(payload)
        assert payload == {"token": "secret", "nested": {"password": "pw"}}

    def test_short_token_gets_plain_placeholder(self):
        assert redact({"note": "abc"}, token="abc") == {"note": "<redacted>"}
