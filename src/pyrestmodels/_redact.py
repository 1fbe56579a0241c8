"""Helpers for safe debug logging.

Entity payloads routinely carry credentials (user passwords, API tokens)
when resources such as accounts or sessions are saved, and request headers
carry the bearer token or session cookie. This module masks those values
before request/response traces are emitted in DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

REDACTED = "<redacted>"

_SENSITIVE_VALUE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "password_confirmation",
        "current_password",
        "token",
        "access_token",
        "refresh_token",
        "api_key",
        "apikey",
        "secret",
        "client_secret",
    }
)

#: Header names whose value is a credential. ``Authorization`` keeps its scheme.
_SENSITIVE_HEADERS: frozenset[str] = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
    }
)

_MAX_DEPTH = 20


def redact_header(name: str, value: str) -> str:
    """Mask a header value, keeping the auth scheme (``Bearer <redacted>``)."""
    lowered = name.lower()
    if lowered not in _SENSITIVE_HEADERS:
        return value
    if lowered.endswith("authorization"):
        scheme, _, credentials = value.partition(" ")
        if credentials:
            return f"{scheme} {REDACTED}"
    return REDACTED


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {name: redact_header(name, value) for name, value in headers.items()}


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of a JSON-like *value* suitable for debug logs.

    Credential fields are masked at any depth, long strings are truncated
    and raw bytes are summarized by length.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if isinstance(value, Mapping):
        return {
            str(key): _redact_entry(str(key), item, max_string=max_string, depth=_depth + 1)
            for key, item in value.items()
        }

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Sequence):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]

    if value is None or isinstance(value, (int, float, bool)):
        return value

    return repr(value)


def _redact_entry(key: str, value: Any, *, max_string: int, depth: int) -> Any:
    lowered = key.lower()
    if lowered in _SENSITIVE_VALUE_KEYS:
        return REDACTED
    if lowered in _SENSITIVE_HEADERS and isinstance(value, str):
        return redact_header(key, value)
    if lowered in _SENSITIVE_HEADERS:
        return REDACTED
    return redact_for_log(value, max_string=max_string, _depth=depth)
