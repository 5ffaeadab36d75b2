"""Utilities: path templating, identifier de-duplication, safe logging."""

from __future__ import annotations

import re
from typing import Any, Iterable, List
from urllib.parse import quote

REDACTED = "***REDACTED***"

_BEARER_RE = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)
_LONG_HEX_RE = re.compile(r"\b[0-9a-fA-F]{24,}\b")
_JWT_RE = re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+")

# Max body length kept in warning logs
BODY_PREVIEW_CHARS = 120


def redact_text(text: str) -> str:
    """Redact bearer tokens, JWTs and long hex strings from a text string."""
    if not text:
        return text
    result = _BEARER_RE.sub(r"\1" + REDACTED, text)
    result = _JWT_RE.sub(REDACTED, result)
    result = _LONG_HEX_RE.sub(REDACTED, result)
    return result


def body_preview(text: str, limit: int = BODY_PREVIEW_CHARS) -> str:
    """Single-line, truncated, redacted response body for log messages."""
    if not text:
        return ""
    return redact_text(text[:limit].replace("\n", " "))


def expand_pattern(pattern: str, identifier: str) -> str:
    """Substitute a URL-encoded identifier for ``{team_id}``."""
    return pattern.replace("{team_id}", quote(identifier, safe="!~*'()"))


def unique(values: Iterable[Any]) -> List[Any]:
    """De-duplicate while keeping first-seen order."""
    seen = set()
    out: List[Any] = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out
