"""Roster tables for the teams, members, users and roles views."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from preset_snapshot.core.derive import full_name, member_counts, team_id_of
from preset_snapshot.core.io import write_csv, write_yaml
from preset_snapshot.core.loader import Dashboard
from preset_snapshot.core.records import ROLE_NAME, Record, display, resolve
from preset_snapshot.core.search import search_all

console = Console()


def _add(table: Table, *cells: str) -> None:
    table.add_row(*(escape(c) for c in cells))


def _join(values: Any) -> str:
    if isinstance(values, list):
        return ", ".join(str(v) for v in values)
    return "—"


def teams_table(teams: List[Record], members: List[Record]) -> Table:
    counts = member_counts(members)
    table = Table(title="Teams")
    for col in ("ID", "Name", "Title", "Members"):
        table.add_column(col)
    for t in teams:
        team_id = team_id_of(t)
        _add(table, display(team_id), display(t.get("name")), display(t.get("title")), str(counts.get(team_id, 0)))
    return table


def members_table(members: List[Record]) -> Table:
    table = Table(title="Team Members")
    for col in ("User ID", "Name", "Email", "Role", "Type"):
        table.add_column(col)
    for m in members:
        _add(
            table,
            display(m.get("user_id") or m.get("id")),
            full_name(m) or "—",
            display(m.get("email")),
            display(resolve(m, ROLE_NAME)),
            display(m.get("user_type")),
        )
    return table


def users_table(users: List[Record]) -> Table:
    table = Table(title="Users")
    for col in ("ID", "Name", "Email", "Username", "Roles"):
        table.add_column(col)
    for u in users:
        _add(
            table,
            display(u.get("id")),
            full_name(u) or "—",
            display(u.get("email")),
            display(u.get("username")),
            _join(u.get("roles")),
        )
    return table


def roles_table(roles: List[Record]) -> Table:
    table = Table(title="Roles")
    for col in ("ID", "Name", "Permissions"):
        table.add_column(col)
    for r in roles:
        _add(table, display(r.get("id")), display(r.get("name")), _join(r.get("permissions")))
    return table


def _emit(table: Table, rows: List[Record], empty: str) -> None:
    console.print(table)
    if not rows:
        console.print(f"[dim]{empty}[/dim]")


# ── Commands ─────────────────────────────────────────────────────

def show_teams(dashboard: Dashboard, query: str = "") -> List[Record]:
    teams, members = dashboard.teams()
    rows = search_all(teams, query)
    _emit(teams_table(rows, members), rows, "No records.")
    return rows


def show_members(dashboard: Dashboard, query: str = "") -> List[Record]:
    _teams, members = dashboard.teams()
    rows = search_all(members, query)
    _emit(members_table(rows), rows, "No records.")
    return rows


def show_users(dashboard: Dashboard, query: str = "") -> List[Record]:
    rows = search_all(dashboard.users(), query)
    _emit(users_table(rows), rows, "No users match.")
    return rows


def show_roles(dashboard: Dashboard, query: str = "") -> List[Record]:
    rows = search_all(dashboard.roles(), query)
    _emit(roles_table(rows), rows, "No roles match.")
    return rows


def export_rows(
    dashboard: Dashboard,
    view: str,
    out: Optional[str] = None,
    fmt: str = "csv",
    query: str = "",
) -> Optional[Path]:
    """Export the filtered ``teams`` or ``members`` view to CSV or YAML.

    Returns None (and writes nothing) when no rows match.
    """
    teams, members = dashboard.teams()
    sources: Dict[str, List[Record]] = {"teams": teams, "members": members}
    if view not in sources:
        raise ValueError(f"Unknown view {view!r}; expected 'teams' or 'members'")
    if fmt not in ("csv", "yaml"):
        raise ValueError(f"Unknown format {fmt!r}; expected 'csv' or 'yaml'")

    rows = search_all(sources[view], query)
    if not rows:
        console.print("[yellow]Nothing to export.[/yellow]")
        return None
    path = Path(out or f"{view}-export.{fmt}")
    if path.suffix != f".{fmt}":
        path = path.with_name(path.name + f".{fmt}")
    written = write_csv(path, rows) if fmt == "csv" else write_yaml(path, rows)
    console.print(f"[green]Exported {len(rows)} rows to {written}[/green]")
    return written
