"""Response envelope normalization.

The Preset API wraps record arrays differently per endpoint and version
(bare array, ``{"data": [...]}``, ``{"result": [...]}``, ``{"payload": ...}``
and unknown wrappers).  ``extract_records`` runs an ordered list of
extraction strategies and returns the first match.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from preset_sdk.errors import ShapeError

# Known wrapper locations, in priority order.
WRAPPER_PATHS: Tuple[Tuple[str, ...], ...] = (
    ("data",),
    ("result",),
    ("payload",),
    ("payload", "data"),
    ("logs",),
)


@dataclass(frozen=True)
class Shape:
    """What the records of one logical resource look like."""

    name: str
    predicate: Callable[[Any], bool]
    key_hint: Optional[str] = None

    def matches(self, items: List[Any]) -> bool:
        return any(self.predicate(item) for item in items)


def _has(item: Any, *keys: str) -> bool:
    return isinstance(item, dict) and any(k in item for k in keys)


TEAM = Shape(
    name="teams",
    predicate=lambda o: _has(o, "id") and _has(o, "name", "slug"),
    key_hint="team",
)
MEMBER = Shape(
    name="team_members",
    predicate=lambda o: _has(o, "user_id", "email", "user"),
    key_hint="member",
)
AUDIT_LOG = Shape(
    name="audit_logs",
    predicate=lambda o: _has(o, "action", "event", "timestamp"),
    key_hint="log",
)
USER = Shape(
    name="users",
    predicate=lambda o: _has(o, "id") and _has(o, "username", "email"),
    key_hint="user",
)
ROLE = Shape(
    name="roles",
    predicate=lambda o: _has(o, "id") and _has(o, "name"),
    key_hint="role",
)


def _dig(body: Any, path: Tuple[str, ...]) -> Any:
    node = body
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


# ── Strategies ───────────────────────────────────────────────────

def _bare_array(body: Any, shape: Shape) -> Optional[List[Any]]:
    if isinstance(body, list):
        return body
    return None


def _known_wrapper(body: Any, shape: Shape) -> Optional[List[Any]]:
    for path in WRAPPER_PATHS:
        value = _dig(body, path)
        if isinstance(value, list) and value:
            return value
    return None


def _hinted_key(body: Any, shape: Shape) -> Optional[List[Any]]:
    if not isinstance(body, dict) or not shape.key_hint:
        return None
    for key, value in body.items():
        if shape.key_hint in key.lower() and isinstance(value, list) and value:
            return value
    return None


def _shape_scan(body: Any, shape: Shape) -> Optional[List[Any]]:
    if not isinstance(body, dict):
        return None
    for value in body.values():
        if isinstance(value, list) and shape.matches(value):
            return value
    return None


Strategy = Callable[[Any, Shape], Optional[List[Any]]]

STRATEGIES: List[Tuple[str, Strategy]] = [
    ("bare_array", _bare_array),
    ("known_wrapper", _known_wrapper),
    ("hinted_key", _hinted_key),
    ("shape_scan", _shape_scan),
]


def extract_records(body: Any, shape: Shape) -> List[Dict[str, Any]]:
    """Return the record array inside ``body``.

    Raises:
        ShapeError: if no strategy finds an array.  A bare empty array is
            returned as ``[]`` rather than raising.
    """
    for _name, strategy in STRATEGIES:
        found = strategy(body, shape)
        if found is not None:
            return found
    keys = sorted(body.keys()) if isinstance(body, dict) else type(body).__name__
    raise ShapeError(f"no {shape.name} array found in response (keys: {keys})")


def extract_nonempty(body: Any, shape: Shape) -> List[Dict[str, Any]]:
    """Like ``extract_records`` but an empty result also raises ``ShapeError``."""
    items = extract_records(body, shape)
    if not items:
        raise ShapeError(f"empty {shape.name} array")
    return items
