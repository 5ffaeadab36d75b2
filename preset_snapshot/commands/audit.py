"""preset-snapshot audit — audit-log table and single-event inspection."""

from __future__ import annotations

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from preset_snapshot.core.flatten import (
    PAYLOAD_KEYS,
    find_payload,
    flatten_record,
    has_payload,
    payload_fields,
    payload_preview,
)
from preset_snapshot.core.loader import Dashboard
from preset_snapshot.core.records import (
    ENTITY_ID,
    ENTITY_NAME,
    ENTITY_TYPE,
    WORKSPACE,
    Record,
    action_of,
    actor_of,
    display,
    format_timestamp,
    resolve,
)
from preset_snapshot.core.search import search_all

console = Console()


def has_details(record: Record) -> bool:
    return any(record.get(k) is not None for k in PAYLOAD_KEYS) or bool(record.get("details"))


def audit_table(logs: List[Record]) -> Table:
    table = Table(title="Audit Logs")
    for col in ("#", "Timestamp", "User", "Action", "Entity Type", "Entity Name", "Entity ID", "Workspace", "More"):
        table.add_column(col)
    for idx, log in enumerate(logs):
        cells = [
            str(idx),
            format_timestamp(log.get("timestamp")),
            display(actor_of(log)),
            display(action_of(log)),
            display(resolve(log, ENTITY_TYPE)),
            display(resolve(log, ENTITY_NAME)),
            display(resolve(log, ENTITY_ID)),
            display(resolve(log, WORKSPACE)),
            "yes" if has_details(log) else "—",
        ]
        table.add_row(*(escape(c) for c in cells))
    return table


def show_audit(dashboard: Dashboard, query: str = "") -> List[Record]:
    rows = search_all(dashboard.audit_logs(), query)
    console.print(audit_table(rows))
    if not rows:
        console.print("[dim]No logs.[/dim]")
    return rows


def _payload_panel(record: Record, key: str, expand: bool) -> Panel:
    raw = find_payload(record, key)
    if not expand:
        return Panel(escape(payload_preview(raw)), title=key, border_style="dim")
    fields = payload_fields(raw)
    if fields is None:
        return Panel(escape(payload_preview(raw, limit=10_000)), title=key)
    table = Table(show_header=False, box=None)
    table.add_column(style="dim")
    table.add_column()
    for k, v in fields:
        table.add_row(escape(k), escape(v))
    if not fields:
        table.add_row("", "[dim]Empty object[/dim]")
    return Panel(table, title=key)


def inspect_event(
    dashboard: Dashboard, index: int, query: str = "", expand: bool = False
) -> Optional[Record]:
    """Print every field of one event (by its index in the filtered table)."""
    rows = search_all(dashboard.audit_logs(), query)
    if index < 0 or index >= len(rows):
        console.print(f"[red]No audit event #{index} ({len(rows)} events).[/red]")
        return None
    record = rows[index]

    table = Table(title=f"Audit event #{index} — all fields", show_header=False)
    table.add_column(style="dim", no_wrap=True)
    table.add_column()
    fields = flatten_record(record)
    for f in fields:
        if f.multiline:
            table.add_row(escape(f.path), Syntax(f.value, "json", word_wrap=True))
        else:
            table.add_row(escape(f.path), escape(f.display))
    if not fields:
        table.add_row("", "[dim]No fields.[/dim]")
    console.print(table)

    present = [k for k in PAYLOAD_KEYS if has_payload(record, k)]
    for key in present:
        console.print(_payload_panel(record, key, expand))
    if not present:
        console.print("[dim]No params/query_context present.[/dim]")
    return record
