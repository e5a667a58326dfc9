"""Split request payloads into pieces the Notion API accepts.

* :func:`chunk_children` batches block lists for ``append_children``, which
  takes at most 100 blocks per call.
* :func:`split_parts` cuts file content into multi-part upload parts.
"""

from __future__ import annotations

from typing import Any

from notionwire.config import MAX_CHILDREN_PER_REQUEST


def chunk_children(
    blocks: list[dict[str, Any]],
    size: int = MAX_CHILDREN_PER_REQUEST,
) -> list[list[dict[str, Any]]]:
    """Split *blocks* into consecutive batches of at most *size* items.

    An empty input returns an empty list (not ``[[]]``).

    Raises
    ------
    ValueError
        If *size* is less than 1.
    """
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")

    return [blocks[i : i + size] for i in range(0, len(blocks), size)]


def split_parts(data: bytes, part_size: int) -> list[bytes]:
    """Split *data* into parts of *part_size* bytes; the last may be shorter.

    Empty *data* yields a single empty part, since an upload always sends at
    least one part.

    Raises
    ------
    ValueError
        If *part_size* is less than 1.
    """
    if part_size < 1:
        raise ValueError(f"part_size must be >= 1, got {part_size}")
    if not data:
        return [b""]
    return [data[i : i + part_size] for i in range(0, len(data), part_size)]
