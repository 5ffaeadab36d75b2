"""Deep free-text search over snapshot records."""

from __future__ import annotations

from typing import Any, Iterable, List


def _leaf_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def search(obj: Any, query: str) -> bool:
    """Case-insensitive substring match anywhere inside ``obj``.

    Walks dicts (values only) and lists depth-first and stops at the first
    matching scalar leaf.  An empty query matches everything; ``None``
    leaves never match.
    """
    if not query:
        return True
    needle = query.lower()

    def visit(value: Any) -> bool:
        if value is None:
            return False
        if isinstance(value, (str, int, float, bool)):
            return needle in _leaf_text(value).lower()
        if isinstance(value, dict):
            return any(visit(v) for v in value.values())
        if isinstance(value, (list, tuple)):
            return any(visit(v) for v in value)
        return False

    return visit(obj)


def search_all(records: Iterable[Any], query: str) -> List[Any]:
    if not query:
        return list(records)
    return [r for r in records if search(r, query)]
