"""Ranked counting series for the analytics view."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from preset_snapshot.core.records import Record, action_of, user_label

CHART_VIEW = "chart:view"
DASHBOARD_VIEW = "dashboard:view"
DEFAULT_TOP_N = 10


class BarDatum(BaseModel):
    label: str
    value: int
    extra: Optional[str] = None


class AnalyticsSeries(BaseModel):
    chart_views: List[BarDatum] = Field(default_factory=list)
    dashboard_views: List[BarDatum] = Field(default_factory=list)
    active_users: List[BarDatum] = Field(default_factory=list)
    action_counts: List[BarDatum] = Field(default_factory=list)

    def top(self, n: int = DEFAULT_TOP_N) -> "AnalyticsSeries":
        """Each series truncated to its ``n`` largest entries."""
        return AnalyticsSeries(
            chart_views=top_n(self.chart_views, n),
            dashboard_views=top_n(self.dashboard_views, n),
            active_users=top_n(self.active_users, n),
            action_counts=top_n(self.action_counts, n),
        )


def ranked(counts: Dict[str, int]) -> List[BarDatum]:
    """Sort descending by count; ties keep first-seen order."""
    items = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [BarDatum(label=label, value=value) for label, value in items]


def top_n(series: List[BarDatum], n: int = DEFAULT_TOP_N) -> List[BarDatum]:
    return list(series[: max(n, 0)])


def _bump(counts: Dict[str, int], key: str) -> None:
    counts[key] = counts.get(key, 0) + 1


def compute_analytics(records: Iterable[Record]) -> AnalyticsSeries:
    """Count chart views, dashboard views, active users and actions."""
    charts: Dict[str, int] = {}
    dashboards: Dict[str, int] = {}
    users: Dict[str, int] = {}
    actions: Dict[str, int] = {}

    for record in records:
        action = action_of(record)
        if action:
            _bump(actions, str(action))
        _bump(users, user_label(record))
        entity = record.get("entity_name")
        if not entity:
            continue
        if action == CHART_VIEW:
            _bump(charts, str(entity))
        elif action == DASHBOARD_VIEW:
            _bump(dashboards, str(entity))

    return AnalyticsSeries(
        chart_views=ranked(charts),
        dashboard_views=ranked(dashboards),
        active_users=ranked(users),
        action_counts=ranked(actions),
    )
