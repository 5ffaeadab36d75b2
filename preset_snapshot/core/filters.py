"""Time-range and workspace filters for audit events."""

from __future__ import annotations

import datetime
import re
from typing import Any, Dict, Iterable, List, Optional

from preset_snapshot.core.records import TIMESTAMP, Record, resolve, workspace_of
from preset_snapshot.core.search import search

ALL_WORKSPACES = "ALL"
PREFERRED_WORKSPACES = ["Production", "Pre-Production", "Sandbox", "unknown"]

RANGE_DAYS: Dict[str, int] = {"week": 7, "month": 30, "year": 365}

_FRACTION_RE = re.compile(r"(\.\d+)")


def parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Returns None for missing or unparseable values.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat accepts at most 6 fractional digits on older Pythons.
    text = _FRACTION_RE.sub(lambda m: m.group(1)[:7].ljust(7, "0"), text, count=1)
    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def range_cutoff(range_name: str, now: Optional[datetime.datetime] = None) -> datetime.datetime:
    if range_name not in RANGE_DAYS:
        raise ValueError(f"Unknown range {range_name!r}; expected one of {sorted(RANGE_DAYS)}")
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return now - datetime.timedelta(days=RANGE_DAYS[range_name])


def in_range(record: Record, cutoff: datetime.datetime) -> bool:
    """Only a parseable timestamp older than ``cutoff`` excludes a record."""
    ts = parse_timestamp(resolve(record, TIMESTAMP))
    return ts is None or ts >= cutoff


def workspace_options(records: Iterable[Record]) -> List[str]:
    """``ALL``, then preferred workspaces present, then the rest alphabetically.

    Names are de-duplicated case-insensitively; the first spelling seen wins.
    """
    found: Dict[str, str] = {}
    for record in records:
        name = workspace_of(record)
        found.setdefault(name.casefold(), name)

    ordered = [ALL_WORKSPACES]
    for preferred in PREFERRED_WORKSPACES:
        match = found.pop(preferred.casefold(), None)
        if match is not None:
            ordered.append(match)
    ordered.extend(sorted(found.values(), key=lambda s: (s.casefold(), s)))
    return ordered


def filter_events(
    records: Iterable[Record],
    *,
    query: str = "",
    workspace: str = ALL_WORKSPACES,
    range_name: str = "week",
    now: Optional[datetime.datetime] = None,
) -> List[Record]:
    """Apply workspace, free-text and time-range filters in that order."""
    cutoff = range_cutoff(range_name, now)
    out: List[Record] = []
    for record in records:
        if workspace != ALL_WORKSPACES and workspace_of(record) != workspace:
            continue
        if query and not search(record, query):
            continue
        if not in_range(record, cutoff):
            continue
        out.append(record)
    return out
