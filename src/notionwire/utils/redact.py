"""Scrub credentials and binary blobs from payloads before they are logged.

Debug dumps of requests and responses pass through :func:`redact`, which
applies these rules to a deep copy of the payload:

* values under credential-like keys (``authorization``, ``token``,
  ``secret``, ...) are masked, keeping at most the last four characters of
  the known integration token;
* the integration token is scrubbed from every string in the tree;
* ``bytes`` values (file upload parts) become ``<binary:N_bytes>``;
* strings longer than :data:`MAX_STRING_LENGTH` are truncated.
"""

from __future__ import annotations

import re
from typing import Any

_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
    "cookie",
    "api_key",
    "api-key",
})

_BEARER_RE = re.compile(r"(Bearer\s+)\S+")

MAX_STRING_LENGTH = 2000


def _placeholder(token: str | None) -> str:
    if token and len(token) >= 8:
        return f"<redacted:...{token[-4:]}>"
    return "<redacted>"


def _scrub(value: str, token: str | None) -> str:
    if token and token in value:
        value = value.replace(token, _placeholder(token))
    return _BEARER_RE.sub(lambda m: f"{m.group(1)}<redacted>", value)


def _is_sensitive(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    lowered = key.lower()
    return any(pattern in lowered for pattern in _SENSITIVE_KEY_PATTERNS)


def _redact(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return {
            k: (_placeholder(token) if _is_sensitive(k) else _redact(v, token))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item, token) for item in value]
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<binary:{len(value)}_bytes>"
    if isinstance(value, str):
        value = _scrub(value, token)
        if len(value) > MAX_STRING_LENGTH:
            return value[:MAX_STRING_LENGTH] + f"...<truncated:{len(value)}_chars>"
        return value
    return value


def redact(payload: dict[str, Any], token: str | None = None) -> dict[str, Any]:
    """Return a redacted copy of *payload*; the input is never mutated.

    >>> redact({"Authorization": "Bearer ntn_abc123"})
    {'Authorization': '<redacted>'}
    >>> redact({"file": b"\\x89PNG"})
    {'file': '<binary:4_bytes>'}
    """
    return _redact(payload, token)
