"""Centralized fetch settings.

Reads ``PRESET_*`` environment variables once per run. Never exposes
secrets in repr or serialization.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from preset_sdk.client import DEFAULT_BASE_URL, TEAM_MEMBERS_PATTERN, TEAMS_ENDPOINT
from preset_sdk.errors import ConfigError

DEFAULT_OUTPUT_DIR = "public/data"


def _bool_env(key: str, default: bool = False) -> bool:
    """Feature toggles are enabled only by the literal ``"1"``."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.strip() == "1"


def _str_env(key: str, default: str = "") -> str:
    val = os.environ.get(key)
    if val is None or not val.strip():
        return default
    return val.strip()


@dataclass(frozen=True)
class FetchSettings:
    """Immutable fetch configuration. Safe to log; secrets are masked."""

    # ── Credentials ────────────────────────────────────────────────
    api_token: str = ""
    api_secret: str = ""
    bearer: str = ""

    # ── Endpoints ──────────────────────────────────────────────────
    api_base: str = DEFAULT_BASE_URL
    teams_endpoint: str = TEAMS_ENDPOINT
    team_members_pattern: str = TEAM_MEMBERS_PATTERN

    # ── Legacy resources ───────────────────────────────────────────
    fetch_users: bool = False
    fetch_roles: bool = False

    # ── Debug dumps ────────────────────────────────────────────────
    debug_auth: bool = False
    debug_teams: bool = False
    debug_team_members: bool = False

    # ── Output ─────────────────────────────────────────────────────
    output_dir: str = DEFAULT_OUTPUT_DIR

    def __repr__(self) -> str:
        return (
            f"FetchSettings(api_base={self.api_base!r}, "
            f"api_token={'***' if self.api_token else ''!r}, "
            f"api_secret={'***' if self.api_secret else ''!r}, "
            f"bearer={'***' if self.bearer else ''!r}, "
            f"fetch_users={self.fetch_users}, fetch_roles={self.fetch_roles}, "
            f"output_dir={self.output_dir!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe dict with credentials masked."""
        return {
            "api_token": "configured" if self.api_token else "not set",
            "api_secret": "configured" if self.api_secret else "not set",
            "bearer": "configured" if self.bearer else "not set",
            "api_base": self.api_base,
            "teams_endpoint": self.teams_endpoint,
            "team_members_pattern": self.team_members_pattern,
            "fetch_users": self.fetch_users,
            "fetch_roles": self.fetch_roles,
            "debug_auth": self.debug_auth,
            "debug_teams": self.debug_teams,
            "debug_team_members": self.debug_team_members,
            "output_dir": self.output_dir,
        }

    def require_credentials(self) -> None:
        """Raise ConfigError unless both API token and secret are set."""
        missing = [
            name for name, value in (
                ("PRESET_API_TOKEN", self.api_token),
                ("PRESET_API_SECRET", self.api_secret),
            ) if not value
        ]
        if missing:
            raise ConfigError(f"Missing {' or '.join(missing)}")


def load_settings(output_dir: Optional[str] = None, **overrides: Any) -> FetchSettings:
    """Load settings from the environment with optional overrides.

    Args:
        output_dir: Override the output directory
        **overrides: Additional field overrides

    Returns:
        FetchSettings instance
    """
    settings = FetchSettings(
        api_token=os.environ.get("PRESET_API_TOKEN", ""),
        api_secret=os.environ.get("PRESET_API_SECRET", ""),
        bearer=os.environ.get("PRESET_BEARER", ""),
        api_base=_str_env("PRESET_API_BASE", DEFAULT_BASE_URL),
        teams_endpoint=_str_env("PRESET_TEAMS_ENDPOINT", TEAMS_ENDPOINT),
        team_members_pattern=_str_env("PRESET_TEAM_MEMBERS_PATTERN", TEAM_MEMBERS_PATTERN),
        fetch_users=_bool_env("PRESET_FETCH_USERS"),
        fetch_roles=_bool_env("PRESET_FETCH_ROLES"),
        debug_auth=_bool_env("PRESET_DEBUG_AUTH"),
        debug_teams=_bool_env("PRESET_DEBUG_TEAMS"),
        debug_team_members=_bool_env("PRESET_DEBUG_TEAM_MEMBERS"),
    )
    if output_dir is not None:
        settings = replace(settings, output_dir=output_dir)
    if overrides:
        settings = replace(settings, **overrides)
    return settings
