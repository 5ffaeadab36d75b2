"""Users, roles and member counts derived from flattened team members.

Used when the legacy users/roles listings were not fetched (or came back
empty): the membership records already carry enough to rebuild both.
"""

from __future__ import annotations

from typing import Any, Dict, List

from preset_snapshot.core.records import MEMBER_USER_ID, ROLE_NAME, Record, get_path, resolve


def derive_users(users: List[Record], members: List[Record]) -> List[Record]:
    """Fetched users if any, else members de-duplicated on user id."""
    if users:
        return users
    by_id: Dict[Any, Record] = {}
    for m in members:
        user_id = resolve(m, MEMBER_USER_ID)
        if user_id is None or user_id in by_id:
            continue
        nested = m.get("user") if isinstance(m.get("user"), dict) else {}
        by_id[user_id] = {
            "id": user_id,
            "first_name": m.get("first_name") or nested.get("first_name"),
            "last_name": m.get("last_name") or nested.get("last_name"),
            "email": m.get("email") or nested.get("email"),
            "username": m.get("username") or nested.get("username"),
            "roles": m.get("roles") or [],
            "user_type": m.get("user_type"),
            "team_role": resolve(m, ROLE_NAME),
        }
    return list(by_id.values())


def derive_roles(roles: List[Record], members: List[Record]) -> List[Record]:
    """Fetched roles if any, else the distinct team role names."""
    if roles:
        return roles
    seen: Dict[str, Record] = {}
    for m in members:
        name = resolve(m, ROLE_NAME)
        if name and name not in seen:
            seen[name] = {"id": name, "name": name}
    return list(seen.values())


def member_counts(members: List[Record]) -> Dict[Any, int]:
    """Members per ``_team_id``."""
    counts: Dict[Any, int] = {}
    for m in members:
        key = m.get("_team_id")
        if key is None:
            continue
        counts[key] = counts.get(key, 0) + 1
    return counts


def team_id_of(team: Record) -> Any:
    return team.get("id") or team.get("uuid")


def full_name(record: Record) -> str:
    parts = [get_path(record, ("first_name",)), get_path(record, ("last_name",))]
    return " ".join(str(p) for p in parts if p)
