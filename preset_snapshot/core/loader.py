"""Snapshot loading for the viewer.

``HttpSnapshotLoader`` reads the published JSON files over HTTP, trying the
same candidate locations a browser would (configured base path, site root,
page-relative, fixed deployment path) with a cache-busting parameter.
``LocalSnapshotLoader`` reads the fetch output directory directly.
``Dashboard`` holds one load cycle per ``refresh_key``.
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx

from preset_snapshot.core.derive import derive_roles, derive_users
from preset_snapshot.core.io import read_json
from preset_snapshot.core.records import Record

logger = logging.getLogger("preset.viewer")

TEAMS_FILE = "teams.json"
TEAM_MEMBERS_FILE = "team_members.json"
USERS_FILE = "users.json"
ROLES_FILE = "roles.json"
AUDIT_LOGS_FILE = "audit_logs.json"
SUMMARY_FILE = "summary.json"

DEPLOYMENT_PATH = "/preset-analytics-app/"


class SnapshotLoadError(Exception):
    """A required snapshot file could not be read from any location."""

    def __init__(self, file: str, attempts: List[str]) -> None:
        self.file = file
        self.attempts = attempts
        super().__init__(f"All fetch attempts failed for {file}:\n" + "\n".join(attempts))


def candidate_paths(file: str, base_path: str = "/", deployment_path: str = DEPLOYMENT_PATH) -> List[str]:
    """Ordered, de-duplicated locations for ``file``."""
    base = re.sub(r"/+", "/", base_path or "/")
    if not base.endswith("/"):
        base += "/"
    deploy = re.sub(r"/+", "/", "/" + deployment_path.strip("/") + "/")
    names = [
        f"{base}data/{file}",
        f"/data/{file}",
        f"data/{file}",
        f"{deploy}data/{file}",
    ]
    out: List[str] = []
    for n in names:
        if n not in out:
            out.append(n)
    return out


class HttpSnapshotLoader:
    """Load snapshot files from a static site.

    ``site_url`` is the page URL the dashboard is served from; relative
    candidates resolve against it the way a browser would.
    """

    def __init__(
        self,
        site_url: str,
        base_path: str = "/",
        deployment_path: str = DEPLOYMENT_PATH,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._site = httpx.URL(site_url)
        self._base_path = base_path
        self._deployment_path = deployment_path
        self._clock = clock
        self._client = httpx.Client(transport=transport)

    def close(self) -> None:
        self._client.close()

    def candidate_urls(self, file: str) -> List[httpx.URL]:
        cache_bust = f"ck={int(self._clock() * 1000)}"
        return [
            self._site.join(f"{path}?{cache_bust}")
            for path in candidate_paths(file, self._base_path, self._deployment_path)
        ]

    def load(self, file: str, optional: bool = False) -> Any:
        """First successful JSON body; ``[]`` for optional files that are missing."""
        attempts: List[str] = []
        for url in self.candidate_urls(file):
            try:
                resp = self._client.get(url, headers={"Cache-Control": "no-store"})
            except httpx.HTTPError as e:
                attempts.append(f"{url} -> {e}")
                continue
            if not resp.is_success:
                attempts.append(f"{url} -> {resp.status_code}")
                continue
            try:
                return resp.json()
            except ValueError as e:
                attempts.append(f"{url} -> invalid JSON ({e})")
        if optional:
            logger.debug("optional file unavailable file=%s attempts=%d", file, len(attempts))
            return []
        raise SnapshotLoadError(file, attempts)


class LocalSnapshotLoader:
    """Load snapshot files from the fetch output directory."""

    def __init__(self, data_dir: Union[str, Path]) -> None:
        self._data_dir = Path(data_dir)

    def close(self) -> None:
        pass

    def load(self, file: str, optional: bool = False) -> Any:
        path = self._data_dir / file
        try:
            return read_json(path)
        except FileNotFoundError:
            error = f"{path} -> not found"
        except (OSError, ValueError) as e:
            error = f"{path} -> {e}"
        if optional:
            logger.debug("optional file unavailable file=%s reason=%s", file, error)
            return []
        raise SnapshotLoadError(file, [error])


def _records(data: Any) -> List[Record]:
    if not isinstance(data, list):
        return []
    return [r for r in data if isinstance(r, dict)]


class Dashboard:
    """Read-only view state over one snapshot.

    Loaded files are cached for the current ``refresh_key``; ``refresh()``
    bumps the key and drops the cache so the next access reloads everything.
    A load that finishes after a newer refresh started is discarded.
    """

    def __init__(self, loader: Any) -> None:
        self._loader = loader
        self.refresh_key = 0
        self._cache: Dict[Tuple[str, bool], Any] = {}

    def close(self) -> None:
        self._loader.close()

    def __enter__(self) -> "Dashboard":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def refresh(self) -> int:
        self.refresh_key += 1
        self._cache = {}
        return self.refresh_key

    def dataset(self, file: str, optional: bool = False) -> Any:
        key = (file, optional)
        while key not in self._cache:
            generation = self.refresh_key
            data = self._loader.load(file, optional=optional)
            if generation != self.refresh_key:
                logger.debug(
                    "stale load discarded file=%s generation=%d current=%d",
                    file, generation, self.refresh_key,
                )
                continue
            self._cache[key] = data
        return self._cache[key]

    # ── Views ────────────────────────────────────────────────────

    def teams(self) -> Tuple[List[Record], List[Record]]:
        """Teams and team members; both files are required."""
        teams = _records(self.dataset(TEAMS_FILE))
        members = _records(self.dataset(TEAM_MEMBERS_FILE))
        return teams, members

    def users(self) -> List[Record]:
        users = _records(self.dataset(USERS_FILE, optional=True))
        members = _records(self.dataset(TEAM_MEMBERS_FILE, optional=True))
        return derive_users(users, members)

    def roles(self) -> List[Record]:
        roles = _records(self.dataset(ROLES_FILE, optional=True))
        members = _records(self.dataset(TEAM_MEMBERS_FILE, optional=True))
        return derive_roles(roles, members)

    def audit_logs(self) -> List[Record]:
        return _records(self.dataset(AUDIT_LOGS_FILE, optional=True))

    def summary(self) -> Dict[str, Any]:
        data = self.dataset(SUMMARY_FILE, optional=True)
        return data if isinstance(data, dict) else {}
