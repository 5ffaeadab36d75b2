"""Session state and credential extraction for the Preset API.

A ``Session`` is an immutable value with one of four states:

    unauthenticated -> bearer | cookie | failed

The client replaces its session on every transition instead of mutating
module-level globals, so each transition can be tested on its own.
"""

from __future__ import annotations

import base64
import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx


class AuthState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    BEARER = "bearer"
    COOKIE = "cookie"
    FAILED = "auth_failed"


@dataclass(frozen=True)
class Session:
    """Current authentication state of one fetch run."""

    state: AuthState = AuthState.UNAUTHENTICATED
    token: Optional[str] = None
    cookie: Optional[str] = None

    @classmethod
    def unauthenticated(cls) -> "Session":
        return cls()

    @classmethod
    def bearer(cls, token: str) -> "Session":
        return cls(state=AuthState.BEARER, token=token)

    @classmethod
    def with_cookie(cls, cookie: str) -> "Session":
        return cls(state=AuthState.COOKIE, cookie=cookie)

    @classmethod
    def failed(cls) -> "Session":
        return cls(state=AuthState.FAILED)

    @property
    def attempted(self) -> bool:
        return self.state is not AuthState.UNAUTHENTICATED

    @property
    def usable(self) -> bool:
        return self.state in (AuthState.BEARER, AuthState.COOKIE)

    def __repr__(self) -> str:
        return (
            f"Session(state={self.state.value!r}, "
            f"token={'***' if self.token else None!r}, "
            f"cookie={'***' if self.cookie else None!r})"
        )


# Checked in order; the first non-empty value wins.
TOKEN_BODY_PATHS: Tuple[Tuple[str, ...], ...] = (
    ("jwt",),
    ("access_token",),
    ("token",),
    ("id_token",),
    ("payload", "access_token"),
    ("payload", "token"),
    ("data", "jwt"),
    ("data", "access_token"),
    ("result", "jwt"),
    ("result", "token"),
)

TOKEN_HEADER = "x-access-token"


def _dig(body: Any, path: Iterable[str]) -> Any:
    node = body
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def extract_token(body: Any, headers: Optional[httpx.Headers] = None) -> Optional[str]:
    """Find a bearer token in an auth response body, then in its headers."""
    if body is None:
        return None
    for path in TOKEN_BODY_PATHS:
        value = _dig(body, path)
        if value:
            return str(value)
    if headers is not None:
        auth = headers.get("authorization", "")
        if auth.lower().startswith("bearer "):
            return auth.split()[-1]
        x_token = headers.get(TOKEN_HEADER)
        if x_token:
            return x_token
    return None


def capture_cookie(headers: httpx.Headers) -> Optional[str]:
    """Reduce every ``Set-Cookie`` header to ``name=value`` pairs joined by ``; ``."""
    pairs: List[str] = []
    for raw in headers.get_list("set-cookie"):
        pair = raw.split(";", 1)[0].strip()
        if pair:
            pairs.append(pair)
    return "; ".join(pairs) if pairs else None


def basic_auth_header(api_token: str, api_secret: str) -> Dict[str, str]:
    raw = f"{api_token}:{api_secret}".encode("utf-8")
    return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}


def exchange_payloads(api_token: str, api_secret: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Return the primary and legacy JSON bodies for the credential exchange."""
    primary = {"name": api_token, "secret": api_secret}
    legacy = {"api_token": api_token, "api_secret": api_secret}
    return primary, legacy


def build_auth_headers(session: Session) -> Dict[str, str]:
    """Return the credential header for the session's current state."""
    if session.state is AuthState.BEARER and session.token:
        return {"Authorization": f"Bearer {session.token}"}
    if session.state is AuthState.COOKIE and session.cookie:
        return {"Cookie": session.cookie}
    return {}


def session_from_response(resp: httpx.Response, body: Any) -> Optional[Session]:
    """Derive a bearer or cookie session from a successful auth response."""
    token = extract_token(body, resp.headers)
    if token:
        return Session.bearer(token)
    cookie = capture_cookie(resp.headers)
    if cookie:
        return Session.with_cookie(cookie)
    return None
