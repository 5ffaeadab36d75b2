"""Field resolution over loosely-typed snapshot records.

Every logical attribute (actor, action, workspace, ...) is an explicit,
ordered chain of candidate field paths.  The first value that is present
and non-empty wins.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

Record = Dict[str, Any]
FieldPath = Tuple[str, ...]

UNKNOWN_WORKSPACE = "unknown"
UNKNOWN_USER = "Unknown"

TIMESTAMP: Sequence[FieldPath] = (("timestamp",),)
ACTION: Sequence[FieldPath] = (("action",), ("event",), ("type",))
ENTITY_TYPE: Sequence[FieldPath] = (("entity_type",), ("object_type",), ("resource_type",))
ENTITY_NAME: Sequence[FieldPath] = (("entity_name",), ("object_name",))
ENTITY_ID: Sequence[FieldPath] = (("entity_id",), ("object_id",), ("resource_id",))
WORKSPACE: Sequence[FieldPath] = (("workspace_title",), ("workspace_name",))

# ``user`` only counts when it is a plain string; a nested user object
# contributes through ``user.email``.
USER_IDENTITY: Sequence[FieldPath] = (("user",), ("user", "email"), ("user_email",))
ACTOR: Sequence[FieldPath] = tuple(USER_IDENTITY) + (("actor",),)

MEMBER_USER_ID: Sequence[FieldPath] = (("user_id",), ("id",), ("user", "id"))
ROLE_NAME: Sequence[FieldPath] = (("team_role_name",), ("team_role", "name"))


def _present(value: Any) -> bool:
    return value is not None and value != "" and value is not False


def get_path(record: Any, path: FieldPath) -> Any:
    node = record
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def resolve(record: Any, chain: Sequence[FieldPath], default: Any = None) -> Any:
    """First present value along ``chain``, else ``default``."""
    for path in chain:
        value = get_path(record, path)
        if path == ("user",) and not isinstance(value, str):
            continue
        if _present(value):
            return value
    return default


def action_of(record: Record) -> Optional[str]:
    return resolve(record, ACTION)


def actor_of(record: Record) -> Optional[str]:
    return resolve(record, ACTOR)


def user_label(record: Record) -> str:
    """Actor identity used for analytics (``Unknown`` when absent)."""
    return str(resolve(record, USER_IDENTITY, UNKNOWN_USER))


def workspace_of(record: Record) -> str:
    value = resolve(record, WORKSPACE, UNKNOWN_WORKSPACE)
    return str(value).strip() or UNKNOWN_WORKSPACE


def display(value: Any, placeholder: str = "—") -> str:
    """Table cell text for an optional value."""
    if not _present(value):
        return placeholder
    return str(value)


def format_timestamp(value: Any) -> str:
    """``2024-05-01T10:11:12.123Z`` → ``2024-05-01 10:11:12``."""
    if not isinstance(value, str) or not value:
        return "—"
    text = value.replace("T", " ", 1)
    dot = text.find(".")
    return text[:dot] if dot != -1 else text
