from .chunk import chunk_children, split_parts
from .redact import redact

__all__ = [
    "chunk_children",
    "redact",
    "split_parts",
]
