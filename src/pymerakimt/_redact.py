"""Helpers for safe debug logging of Dashboard API traffic.

The API key travels in a request header; response bodies carry no
credentials but can be large, so they are only shortened.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pymerakimt._constants import API_KEY_HEADER

_SECRET_HEADERS: frozenset[str] = frozenset({API_KEY_HEADER.lower(), "authorization"})


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of *headers* with the API key masked, keeping its last 4 characters."""
    redacted: dict[str, str] = {}
    for name, value in headers.items():
        if name.lower() in _SECRET_HEADERS:
            redacted[name] = f"<redacted>{value[-4:]}" if len(value) > 8 else "<redacted>"
        else:
            redacted[name] = value
    return redacted


def shorten_body(body: Any, *, limit: int = 512) -> str:
    """Compact JSON rendering of *body*, cut to *limit* characters."""
    text = body if isinstance(body, str) else json.dumps(body, separators=(",", ":"), default=str)
    if len(text) > limit:
        return f"{text[:limit]}…<{len(text) - limit} more chars>"
    return text
