"""Sample snapshot records shared by the viewer and CLI tests."""

from __future__ import annotations

import datetime
from pathlib import Path

from preset_snapshot.core.io import write_json

NOW = datetime.datetime(2024, 6, 15, 12, 0, tzinfo=datetime.timezone.utc)

TEAMS = [
    {"id": 7, "name": "data-team", "title": "Data Team"},
    {"id": 8, "name": "ops", "title": "Ops"},
]

TEAM_MEMBERS = [
    {
        "id": 100, "user_id": 1, "email": "alice@x.io", "first_name": "Alice", "last_name": "A",
        "team_role_name": "Admin", "user_type": "human", "_team_id": 7, "_team_identifier_used": "data-team",
    },
    {
        "id": 101, "user_id": 2, "email": "bob@x.io", "first_name": "Bob", "last_name": "B",
        "team_role": {"name": "Analyst"}, "_team_id": 7, "_team_identifier_used": "data-team",
    },
    {
        "id": 102, "user_id": 1, "email": "alice@x.io", "first_name": "Alice", "last_name": "A",
        "team_role_name": "Analyst", "_team_id": 8, "_team_identifier_used": "ops",
    },
]

AUDIT_LOGS = [
    {
        "timestamp": "2024-06-14T10:00:00.123Z", "user": "alice@x.io", "action": "chart:view",
        "entity_type": "chart", "entity_name": "Revenue", "entity_id": 11, "workspace_title": "Production",
    },
    {
        "timestamp": "2024-06-13T10:00:00Z", "user": {"email": "bob@x.io"}, "action": "chart:view",
        "entity_name": "Revenue", "workspace_title": "Sandbox",
    },
    {
        "timestamp": "2024-06-12T10:00:00Z", "user_email": "alice@x.io", "action": "dashboard:view",
        "entity_name": "Sales", "workspace_name": "Production",
    },
    {
        "timestamp": "2024-06-07T11:00:00Z", "user": "carol@x.io", "action": "chart:view",
        "entity_name": "Old", "workspace_title": "Analytics",
    },
    {
        "timestamp": "not-a-date", "actor": "svc", "event": "login",
        "params": {"x": 1}, "details": {"query_context": "{\"datasource\": \"7__table\", \"queries\": []}"},
    },
]


def write_snapshot_dir(root: Path, *, users=None, roles=None, audit_logs=AUDIT_LOGS) -> Path:
    write_json(root / "teams.json", TEAMS)
    write_json(root / "team_members.json", TEAM_MEMBERS)
    write_json(root / "audit_logs.json", audit_logs)
    if users is not None:
        write_json(root / "users.json", users)
    if roles is not None:
        write_json(root / "roles.json", roles)
    write_json(root / "summary.json", {
        "teams": {"generated_at": "2024-06-15T12:00:00.000Z", "count": 2, "data": [7, 8]},
    })
    return root
