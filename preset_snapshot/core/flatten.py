"""Audit-log field flattening for the inspection view.

Converts one raw audit event into an ordered list of ``(dotted.path, display)``
rows.  The top-level ``params`` and ``query_context`` payloads are left out
of the generic walk and shown by a dedicated payload viewer instead; the same
keys nested deeper (``details.params``) are walked like any other field.
"""

from __future__ import annotations

import json
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel

EXCLUDED_TOP_LEVEL: FrozenSet[str] = frozenset({"params", "query_context"})
PAYLOAD_KEYS = ("params", "query_context")

MAX_STRING_DISPLAY = 500
MAX_ARRAY_DISPLAY = 120
MAX_SUMMARY_KEYS = 5
MULTILINE_MIN_CHARS = 160
PREVIEW_CHARS = 120

_MISSING = object()


class FlatField(BaseModel):
    path: str
    value: Any = None
    display: str
    multiline: bool = False


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def format_value(value: Any) -> str:
    """One-line display text for a field value."""
    if value is None:
        return "null"
    if isinstance(value, str):
        return value[:MAX_STRING_DISPLAY] + "…" if len(value) > MAX_STRING_DISPLAY else value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        if not value:
            return "[]"
        text = _compact(value)
        return text[:MAX_ARRAY_DISPLAY] + ("…" if len(text) > MAX_ARRAY_DISPLAY else "")
    if isinstance(value, dict):
        keys = list(value.keys())
        more = "…" if len(keys) > MAX_SUMMARY_KEYS else ""
        return "{" + ",".join(str(k) for k in keys[:MAX_SUMMARY_KEYS]) + more + "}"
    return str(value)


def is_multiline(value: Any) -> bool:
    """Long strings that look like serialized JSON get a text block."""
    if not isinstance(value, str) or len(value) <= MULTILINE_MIN_CHARS:
        return False
    return any(c in value for c in "{[") and any(c in value for c in "}]")


def flatten_pairs(
    record: Dict[str, Any],
    *,
    exclude_top_level: FrozenSet[str] = EXCLUDED_TOP_LEVEL,
    separator: str = ".",
    _prefix: str = "",
    _depth: int = 0,
) -> List[Tuple[str, Any]]:
    """Depth-first ``(path, value)`` pairs.

    Dicts emit a summary row for their own path and are then recursed into;
    lists, scalars and ``None`` end the walk at their path.
    """
    out: List[Tuple[str, Any]] = []
    for k, v in record.items():
        if _depth == 0 and k in exclude_top_level:
            continue
        path = f"{_prefix}{separator}{k}" if _prefix else str(k)
        out.append((path, v))
        if isinstance(v, dict):
            out.extend(
                flatten_pairs(
                    v,
                    exclude_top_level=exclude_top_level,
                    separator=separator,
                    _prefix=path,
                    _depth=_depth + 1,
                )
            )
    return out


def flatten_record(
    record: Any, *, exclude_top_level: FrozenSet[str] = EXCLUDED_TOP_LEVEL
) -> List[FlatField]:
    """Inspection rows for one audit event (empty for non-dict input)."""
    if not isinstance(record, dict):
        return []
    return [
        FlatField(path=path, value=value, display=format_value(value), multiline=is_multiline(value))
        for path, value in flatten_pairs(record, exclude_top_level=exclude_top_level)
    ]


# ── Payload viewer ───────────────────────────────────────────────

def find_payload(record: Dict[str, Any], key: str) -> Any:
    """Top-level ``key`` if present (even when null), else ``details.<key>``.

    Returns ``None`` only when the key is present with a null value; a
    missing payload is reported by ``has_payload``.
    """
    value = record.get(key, _MISSING)
    if value is _MISSING:
        details = record.get("details")
        if isinstance(details, dict):
            value = details.get(key, _MISSING)
    return None if value is _MISSING else value


def has_payload(record: Dict[str, Any], key: str) -> bool:
    if key in record:
        return True
    details = record.get("details")
    return isinstance(details, dict) and key in details


def parse_structured(raw: Any) -> Any:
    """Decode stringified JSON payloads; other values pass through."""
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def payload_preview(raw: Any, limit: int = PREVIEW_CHARS) -> str:
    if raw is None:
        return "null"
    text = raw if isinstance(raw, str) else _compact(raw)
    return text[:limit] + ("…" if len(text) > limit else "")


def payload_fields(raw: Any) -> Optional[List[Tuple[str, str]]]:
    """Key/value rows of a decoded payload, or None if it is not an object."""
    obj = parse_structured(raw)
    if not isinstance(obj, dict):
        return None
    rows: List[Tuple[str, str]] = []
    for k, v in obj.items():
        if isinstance(v, (dict, list)):
            rows.append((str(k), json.dumps(v, indent=2, ensure_ascii=False, default=str)))
        else:
            rows.append((str(k), format_value(v) if not isinstance(v, str) else v))
    return rows
