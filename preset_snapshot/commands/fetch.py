"""preset-snapshot fetch — pull a snapshot from the Preset API into JSON files."""

from __future__ import annotations

import datetime
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from rich.console import Console
from rich.table import Table

from preset_sdk.client import PresetClient, team_identifiers
from preset_sdk.models import SummaryEntry
from preset_snapshot.core.io import ensure_dir, write_json
from preset_snapshot.core.loader import (
    AUDIT_LOGS_FILE,
    ROLES_FILE,
    SUMMARY_FILE,
    TEAM_MEMBERS_FILE,
    TEAMS_FILE,
    USERS_FILE,
)
from preset_snapshot.core.settings import FetchSettings, load_settings

logger = logging.getLogger("preset.fetch")
console = Console(stderr=True)

AUTH_DEBUG_FILE = "_auth_debug.json"
TEAMS_RAW_FILE = "_teams_raw.json"


@dataclass
class FetchResult:
    """Everything one fetch run produced."""

    output_dir: Path
    generated_at: str
    teams: List[Any] = field(default_factory=list)
    team_members: List[Any] = field(default_factory=list)
    users: List[Any] = field(default_factory=list)
    roles: List[Any] = field(default_factory=list)
    audit_logs: List[Any] = field(default_factory=list)
    files: List[Path] = field(default_factory=list)

    def resources(self) -> Dict[str, List[Any]]:
        return {
            "users": self.users,
            "roles": self.roles,
            "teams": self.teams,
            "team_members": self.team_members,
            "audit_logs": self.audit_logs,
        }

    def summary(self) -> Dict[str, Any]:
        return {
            name: SummaryEntry.of(records, self.generated_at).model_dump()
            for name, records in self.resources().items()
        }


def _now_iso(now: Optional[datetime.datetime] = None) -> str:
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _dump_name(key: Any) -> str:
    return "_team_members_raw_" + re.sub(r"[^\w.-]", "_", str(key)) + ".json"


def collect(client: PresetClient, settings: FetchSettings, result: FetchResult) -> None:
    """Fetch every resource into ``result``; failures degrade to empty lists."""
    if settings.fetch_users:
        result.users = client.fetch_users()
    if settings.fetch_roles:
        result.roles = client.fetch_roles()

    teams_probe = client.fetch_teams(settings.teams_endpoint)
    result.teams = teams_probe.items if teams_probe else []
    logger.info("teams: fetched %d", len(result.teams))
    if settings.debug_teams and teams_probe is not None:
        result.files.append(write_json(result.output_dir / TEAMS_RAW_FILE, teams_probe.raw))

    for team in result.teams:
        if not isinstance(team, dict) or not team_identifiers(team):
            continue
        members = client.fetch_team_members(team, settings.team_members_pattern)
        result.team_members.extend(members.records)
        if settings.debug_team_members and members.ok:
            result.files.append(write_json(result.output_dir / _dump_name(members.team_key), members.raw))

        logs = client.fetch_audit_logs(team)
        result.audit_logs.extend(logs.records)

    if settings.debug_auth and client.auth_payload is not None:
        result.files.append(write_json(result.output_dir / AUTH_DEBUG_FILE, client.auth_payload))


def write_snapshot(result: FetchResult) -> List[Path]:
    """Write the five resource arrays and ``summary.json``."""
    out = result.output_dir
    written = [
        write_json(out / USERS_FILE, result.users),
        write_json(out / ROLES_FILE, result.roles),
        write_json(out / TEAMS_FILE, result.teams),
        write_json(out / TEAM_MEMBERS_FILE, result.team_members),
        write_json(out / AUDIT_LOGS_FILE, result.audit_logs),
        write_json(out / SUMMARY_FILE, result.summary()),
    ]
    result.files.extend(written)
    return written


def run(
    settings: Optional[FetchSettings] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
    now: Optional[datetime.datetime] = None,
) -> FetchResult:
    """Fetch a snapshot and write it to ``settings.output_dir``.

    Raises:
        ConfigError: if API token or secret is missing (before any request).
    """
    settings = settings or load_settings()
    settings.require_credentials()
    logger.debug("fetch settings %r", settings)

    result = FetchResult(output_dir=ensure_dir(settings.output_dir), generated_at=_now_iso(now))
    with PresetClient(
        base_url=settings.api_base,
        api_token=settings.api_token,
        api_secret=settings.api_secret,
        bearer=settings.bearer or None,
        transport=transport,
    ) as client:
        collect(client, settings, result)
    write_snapshot(result)

    logger.info(
        "Wrote (users:%d) (roles:%d) (teams:%d) (team_members:%d) (audit_logs:%d)",
        len(result.users), len(result.roles), len(result.teams),
        len(result.team_members), len(result.audit_logs),
    )
    return result


def print_result(result: FetchResult) -> None:
    table = Table(title=f"Snapshot written to {result.output_dir}")
    table.add_column("Resource", style="bold")
    table.add_column("Records", justify="right")
    for name, records in result.resources().items():
        table.add_row(name, str(len(records)))
    console.print(table)
