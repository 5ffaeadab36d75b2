"""Pydantic models for fetch results and the snapshot summary."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ── Probing ──────────────────────────────────────────────────────

class ProbeResult(BaseModel):
    """First successful candidate for one logical resource."""

    label: str
    endpoint: str
    items: List[Any]
    raw: Any = None
    pages: int = 1


class TeamFetch(BaseModel):
    """Outcome of the per-team fan-out for one sub-resource."""

    team_key: Any = None
    identifier: Optional[str] = None
    endpoint: Optional[str] = None
    records: List[Any] = Field(default_factory=list)
    raw: Any = None

    @property
    def ok(self) -> bool:
        return self.endpoint is not None


# ── Summary ──────────────────────────────────────────────────────

class SummaryEntry(BaseModel):
    generated_at: str
    count: int
    data: List[Any]

    @classmethod
    def of(cls, records: List[Dict[str, Any]], generated_at: str) -> "SummaryEntry":
        samples = []
        for record in records[:3]:
            sample = record.get("id") if isinstance(record, dict) else None
            if sample is None and isinstance(record, dict):
                sample = record.get("name")
            samples.append(sample if sample is not None else "sample")
        return cls(generated_at=generated_at, count=len(records), data=samples)
