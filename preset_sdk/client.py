"""PresetClient — best-effort snapshot client for the Preset API.

The upstream API shape is not stable, so every logical resource is fetched
by probing an ordered list of candidate endpoints and accepting the first
that answers with a recognizable record array.  Failures never abort the
run: they are logged and the resource degrades to an empty list.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from preset_sdk.auth import (
    AuthState,
    Session,
    basic_auth_header,
    build_auth_headers,
    exchange_payloads,
    session_from_response,
)
from preset_sdk.errors import (
    ApiError,
    AuthFailedError,
    BadRequestError,
    NotFoundError,
    ServerError,
    ShapeError,
    UnauthorizedError,
)
from preset_sdk.models import ProbeResult, TeamFetch
from preset_sdk.normalize import AUDIT_LOG, MEMBER, ROLE, TEAM, USER, Shape, extract_nonempty
from preset_sdk.utils import body_preview, expand_pattern, unique

logger = logging.getLogger("preset.sdk")

DEFAULT_BASE_URL = "https://api.app.preset.io"
AUTH_PATH = "/v1/auth/"

DEFAULT_PAGE_SIZE = 100
MAX_PAGES = 50

TEAMS_ENDPOINT = "/v1/teams/"
TEAM_MEMBERS_PATTERN = "/v1/teams/{team_id}/memberships"
TEAM_MEMBERS_FALLBACKS = [
    "/v1/teams/{team_id}/memberships/",
    "/v1/teams/{team_id}/members",
    "/v1/teams/{team_id}/members/",
    "/v1/teams/{team_id}/users",
    "/v1/teams/{team_id}/users/",
]
AUDIT_LOG_PATTERNS = ["/v2/audit/teams/{team_id}/logs"]
USER_ENDPOINTS = ["/api/v1/user/", "/api/v1/users", "/v1/users"]
ROLE_ENDPOINTS = ["/api/v1/role/", "/api/v1/roles", "/v1/roles"]

# Promoted from the embedded ``user`` object of a membership record.
PROMOTED_USER_FIELDS = ("email", "first_name", "last_name", "username")

# Errors that mean "this candidate failed, try the next one".
_CANDIDATE_ERRORS = (ApiError, ShapeError, httpx.HTTPError, ValueError)


# ── Team helpers ─────────────────────────────────────────────────

def team_identifiers(team: Dict[str, Any]) -> List[str]:
    """Candidate identifiers for a team: name, numeric id, UUID (de-duplicated)."""
    name = team.get("name") or team.get("slug") or team.get("title")
    numeric = team.get("id") or team.get("team_id")
    uuid = team.get("uuid")
    return unique(str(v) for v in (name, numeric, uuid) if v is not None)


def team_key(team: Dict[str, Any]) -> Any:
    """Provenance key recorded on fetched sub-records: numeric id, else name."""
    numeric = team.get("id") or team.get("team_id")
    if numeric is not None:
        return numeric
    return team.get("name") or team.get("slug") or team.get("title")


def flatten_membership(member: Dict[str, Any], key: Any, identifier: str) -> Dict[str, Any]:
    """Promote the embedded user's fields to the top level and tag provenance."""
    user = member.get("user") if isinstance(member.get("user"), dict) else {}
    row = dict(member)
    row["_team_id"] = key
    row["_team_identifier_used"] = identifier
    for field in PROMOTED_USER_FIELDS:
        value = user.get(field)
        if value is not None:
            row[field] = value
    for candidate in (user.get("id"), member.get("user_id"), member.get("id")):
        if candidate is not None:
            row["user_id"] = candidate
            break
    team_role = member.get("team_role")
    if isinstance(team_role, dict) and team_role.get("name") is not None:
        row["team_role_name"] = team_role["name"]
    return row


def _is_paged_envelope(body: Any) -> bool:
    return isinstance(body, dict) and isinstance(body.get("result"), list)


# ── Client ───────────────────────────────────────────────────────

class PresetClient:
    """Synchronous, single-run client for the Preset API.

    Usage::

        from preset_sdk import PresetClient

        with PresetClient(api_token="...", api_secret="...") as c:
            teams = c.fetch_teams().items
            for team in teams:
                members = c.fetch_team_members(team).records

    Not safe for concurrent use: the session state belongs to one run.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_token: Optional[str] = None,
        api_secret: Optional[str] = None,
        bearer: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._api_secret = api_secret
        self._client = httpx.Client(base_url=self._base_url, transport=transport)
        self.session = Session.bearer(bearer) if bearer else Session.unauthenticated()
        self.auth_payload: Any = None

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PresetClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ── Authentication ───────────────────────────────────────────

    def authenticate(self) -> Session:
        """Run the credential exchange once; later calls reuse the outcome."""
        if self.session.attempted:
            return self.session
        if not (self._api_token and self._api_secret):
            logger.error("auth_failed reason=missing_credentials")
            self.session = Session.failed()
            return self.session

        primary, legacy = exchange_payloads(self._api_token, self._api_secret)
        session = self._exchange_post(primary, legacy)
        if session is None:
            session = self._exchange_basic()
        if session is None:
            logger.error("auth_failed endpoint=%s reason=no_token_or_cookie", AUTH_PATH)
            session = Session.failed()
        elif session.state is AuthState.COOKIE:
            logger.info("auth_ok mode=cookie (no token in response)")
        else:
            logger.info("auth_ok mode=bearer")
        self.session = session
        return session

    def _exchange_post(self, primary: Dict[str, str], legacy: Dict[str, str]) -> Optional[Session]:
        try:
            resp = self._client.post(AUTH_PATH, json=primary)
            if resp.status_code == 400:
                logger.info("auth_post_rejected status=400 retry=legacy_fields")
                resp = self._client.post(AUTH_PATH, json=legacy)
        except httpx.HTTPError as e:
            logger.warning("auth_post_error error=%s", e)
            return None
        return self._session_from(resp, "post")

    def _exchange_basic(self) -> Optional[Session]:
        try:
            resp = self._client.get(
                AUTH_PATH, headers=basic_auth_header(self._api_token or "", self._api_secret or "")
            )
        except httpx.HTTPError as e:
            logger.warning("auth_basic_error error=%s", e)
            return None
        return self._session_from(resp, "basic")

    def _session_from(self, resp: httpx.Response, scheme: str) -> Optional[Session]:
        if not resp.is_success:
            logger.warning(
                "auth_%s_failed status=%s body=%s",
                scheme, resp.status_code, body_preview(resp.text),
            )
            return None
        try:
            body = resp.json()
        except ValueError:
            body = None
        if self.auth_payload is None:
            self.auth_payload = body
        session = session_from_response(resp, body)
        if session is None:
            logger.warning("auth_%s_no_credential status=%s", scheme, resp.status_code)
        return session

    # ── Internal helpers ─────────────────────────────────────────

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        headers.update(build_auth_headers(self.session))
        return headers

    def _raise_for_status(self, resp: httpx.Response, endpoint: str) -> None:
        if resp.is_success:
            return
        message = body_preview(resp.text) or resp.reason_phrase
        code = resp.status_code
        if code == 400:
            raise BadRequestError(code, message, endpoint=endpoint)
        if code in (401, 403):
            raise UnauthorizedError(code, message, endpoint=endpoint)
        if code == 404:
            raise NotFoundError(code, message, endpoint=endpoint)
        if code >= 500:
            raise ServerError(code, message, endpoint=endpoint)
        raise ApiError(code, message, endpoint=endpoint)

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        """Authenticated GET.  Skipped (``AuthFailedError``) once auth has failed."""
        session = self.authenticate()
        if not session.usable:
            raise AuthFailedError(f"request skipped, no credentials: {endpoint}")
        resp = self._client.get(endpoint, params=params, headers=self._headers())
        self._raise_for_status(resp, endpoint)
        return resp

    def _get_records(
        self, endpoint: str, shape: Shape, params: Optional[Dict[str, Any]] = None
    ) -> Tuple[List[Any], Any]:
        body = self._get(endpoint, params=params).json()
        return extract_nonempty(body, shape), body

    def _fetch_pages(self, endpoint: str, shape: Shape, page_size: int) -> Tuple[List[Any], Any, int]:
        out: List[Any] = []
        first_body: Any = None
        pages = 0
        for page in range(1, MAX_PAGES + 1):
            params = {"q": json.dumps({"page": page, "page_size": page_size})}
            try:
                items, body = self._get_records(endpoint, shape, params=params)
            except (NotFoundError, ShapeError):
                if page == 1:
                    raise
                break
            pages = page
            if first_body is None:
                first_body = body
            out.extend(items)
            # Only a {"result": [...]} envelope honors q; anything else is the whole list.
            if not _is_paged_envelope(body) or len(items) < page_size:
                break
        else:
            logger.warning("pagination_capped endpoint=%s pages=%d", endpoint, MAX_PAGES)
        return out, first_body, pages

    # ── Probing ──────────────────────────────────────────────────

    def probe(
        self,
        label: str,
        candidates: Sequence[str],
        shape: Shape,
        *,
        paginated: bool = False,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Optional[ProbeResult]:
        """Try each candidate endpoint in order; return the first success.

        Returns None when every candidate fails.
        """
        for endpoint in unique(candidates):
            try:
                if paginated:
                    items, body, pages = self._fetch_pages(endpoint, shape, page_size)
                else:
                    items, body = self._get_records(endpoint, shape)
                    pages = 1
            except AuthFailedError:
                logger.warning("%s: skipped, authentication failed", label)
                return None
            except NotFoundError as e:
                logger.warning("%s: 404 %s body=%s", label, endpoint, e.message)
                continue
            except _CANDIDATE_ERRORS as e:
                logger.warning("%s: endpoint failed %s -> %s", label, endpoint, e)
                continue
            logger.info("%s: fetched %d records from %s", label, len(items), endpoint)
            return ProbeResult(label=label, endpoint=endpoint, items=items, raw=body, pages=pages)
        logger.error("%s: all candidate endpoints failed", label)
        return None

    def probe_items(self, label: str, candidates: Sequence[str], shape: Shape, **kwargs: Any) -> List[Any]:
        result = self.probe(label, candidates, shape, **kwargs)
        return result.items if result else []

    def _fan_out(
        self, label: str, team: Dict[str, Any], patterns: Sequence[str], shape: Shape
    ) -> TeamFetch:
        """Identifier outer loop, pattern inner loop; stop at the first success."""
        key = team_key(team)
        for identifier in team_identifiers(team):
            for pattern in unique(patterns):
                endpoint = expand_pattern(pattern, identifier)
                try:
                    items, body = self._get_records(endpoint, shape)
                except AuthFailedError:
                    logger.warning("%s: %s skipped, authentication failed", label, key)
                    return TeamFetch(team_key=key)
                except NotFoundError:
                    logger.warning("%s: %s 404 %s", label, identifier, endpoint)
                    continue
                except _CANDIDATE_ERRORS as e:
                    logger.warning("%s: %s failed %s -> %s", label, identifier, endpoint, e)
                    continue
                logger.info("%s: team %s via %s -> %d", label, key, endpoint, len(items))
                return TeamFetch(
                    team_key=key, identifier=identifier, endpoint=endpoint, records=items, raw=body
                )
        logger.warning("%s: team %s all patterns failed", label, key)
        return TeamFetch(team_key=key)

    # ── Public API ───────────────────────────────────────────────

    def fetch_teams(self, endpoint: str = TEAMS_ENDPOINT) -> Optional[ProbeResult]:
        """GET the teams list (configured endpoint, then the default)."""
        return self.probe("teams", [endpoint, TEAMS_ENDPOINT], TEAM)

    def fetch_team_members(
        self, team: Dict[str, Any], pattern: str = TEAM_MEMBERS_PATTERN
    ) -> TeamFetch:
        """Memberships of one team, flattened and tagged with provenance."""
        patterns = [pattern, TEAM_MEMBERS_PATTERN] + TEAM_MEMBERS_FALLBACKS
        result = self._fan_out("team_members", team, patterns, MEMBER)
        if result.ok:
            result.records = [
                flatten_membership(m, result.team_key, result.identifier or "")
                for m in result.records
                if isinstance(m, dict)
            ]
        return result

    def fetch_audit_logs(self, team: Dict[str, Any]) -> TeamFetch:
        """Audit log events of one team, tagged with provenance."""
        result = self._fan_out("audit_logs", team, AUDIT_LOG_PATTERNS, AUDIT_LOG)
        if result.ok:
            result.records = [
                {**entry, "_team_id": result.team_key, "_team_identifier_used": result.identifier}
                for entry in result.records
                if isinstance(entry, dict)
            ]
        return result

    def fetch_users(self, page_size: int = DEFAULT_PAGE_SIZE) -> List[Any]:
        """Legacy users listing (paginated)."""
        return self.probe_items("users", USER_ENDPOINTS, USER, paginated=True, page_size=page_size)

    def fetch_roles(self, page_size: int = DEFAULT_PAGE_SIZE) -> List[Any]:
        """Legacy roles listing (paginated)."""
        return self.probe_items("roles", ROLE_ENDPOINTS, ROLE, paginated=True, page_size=page_size)
