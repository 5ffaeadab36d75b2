"""preset-snapshot analytics — ranked bar charts over filtered audit events."""

from __future__ import annotations

import datetime
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from preset_snapshot.core.aggregate import DEFAULT_TOP_N, AnalyticsSeries, BarDatum, compute_analytics
from preset_snapshot.core.filters import ALL_WORKSPACES, RANGE_DAYS, filter_events, workspace_options
from preset_snapshot.core.loader import Dashboard

console = Console()

BAR_WIDTH = 30

CHART_TITLES = [
    ("chart_views", "Top Chart Views", "count"),
    ("dashboard_views", "Top Dashboard Views", "count"),
    ("active_users", "Most Active Users", "events"),
    ("action_counts", "Action Breakdown", "count"),
]


def bar_table(title: str, data: List[BarDatum], value_label: str = "count") -> Optional[Table]:
    """Horizontal bar chart as a table; None for an empty series."""
    if not data:
        return None
    max_val = max(d.value for d in data)
    table = Table(title=title, title_justify="left")
    table.add_column("Label")
    table.add_column("", min_width=BAR_WIDTH)
    table.add_column(value_label, justify="right")
    for d in data:
        width = max(1, round(d.value / max_val * BAR_WIDTH)) if max_val else 0
        table.add_row(escape(d.label), "[cyan]" + "█" * width + "[/cyan]", str(d.value))
    return table


def analytics_report(
    logs: List[Dict[str, Any]],
    *,
    query: str = "",
    workspace: str = ALL_WORKSPACES,
    range_name: str = "week",
    top: int = DEFAULT_TOP_N,
    now: Optional[datetime.datetime] = None,
) -> Dict[str, Any]:
    """Filtered event count, workspace options and top-N series as a dict."""
    events = filter_events(logs, query=query, workspace=workspace, range_name=range_name, now=now)
    series = compute_analytics(events).top(top)
    return {
        "range": range_name,
        "workspace": workspace,
        "workspaces": workspace_options(logs),
        "events": len(events),
        "series": series.model_dump(),
    }


def show_analytics(
    dashboard: Dashboard,
    *,
    query: str = "",
    workspace: str = ALL_WORKSPACES,
    range_name: str = "week",
    top: int = DEFAULT_TOP_N,
) -> Dict[str, Any]:
    report = analytics_report(
        dashboard.audit_logs(), query=query, workspace=workspace, range_name=range_name, top=top
    )
    options = "  ".join(
        f"[reverse]{escape(ws)}[/reverse]" if ws == workspace else escape(ws)
        for ws in report["workspaces"]
    )
    console.print(f"Workspaces: {options}")

    if not report["events"]:
        console.print("[dim]No audit log entries for selection.[/dim]")
        return report
    console.print(f"[dim]{report['events']} events (last {RANGE_DAYS[range_name]} days)[/dim]")

    series = AnalyticsSeries(**report["series"])
    for attr, title, value_label in CHART_TITLES:
        table = bar_table(title, getattr(series, attr), value_label)
        if table is not None:
            console.print(table)
    return report
