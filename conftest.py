"""Repo-wide test fixtures.

Snapshots and restores PRESET_* environment variables between tests so
credentials and feature toggles set by one test never leak into the next.
"""

from __future__ import annotations

import os

import pytest

_SENSITIVE_ENV_VARS = [
    "PRESET_API_TOKEN",
    "PRESET_API_SECRET",
    "PRESET_BEARER",
    "PRESET_API_BASE",
    "PRESET_TEAMS_ENDPOINT",
    "PRESET_TEAM_MEMBERS_PATTERN",
    "PRESET_FETCH_USERS",
    "PRESET_FETCH_ROLES",
    "PRESET_DEBUG_AUTH",
    "PRESET_DEBUG_TEAMS",
    "PRESET_DEBUG_TEAM_MEMBERS",
]


@pytest.fixture(autouse=True)
def _restore_env():
    """Snapshot sensitive env vars before each test and restore after."""
    snapshot = {}
    for var in _SENSITIVE_ENV_VARS:
        val = os.environ.get(var)
        if val is not None:
            snapshot[var] = val

    yield

    for var in _SENSITIVE_ENV_VARS:
        if var in snapshot:
            os.environ[var] = snapshot[var]
        else:
            os.environ.pop(var, None)
