"""Tests for the credential exchange and session state machine."""

from __future__ import annotations

import base64
import json

import httpx

from preset_sdk.auth import (
    AuthState,
    Session,
    build_auth_headers,
    capture_cookie,
    extract_token,
)

TEAMS = [{"id": 1, "name": "alpha"}]


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


class TestExtractToken:
    def test_top_level_jwt(self):
        assert extract_token({"jwt": "a"}) == "a"

    def test_nested_payload_access_token(self):
        assert extract_token({"payload": {"access_token": "b"}}) == "b"

    def test_order_prefers_top_level(self):
        assert extract_token({"token": "top", "data": {"jwt": "nested"}}) == "top"

    def test_result_token(self):
        assert extract_token({"result": {"token": "r"}}) == "r"

    def test_authorization_header_fallback(self):
        headers = httpx.Headers({"Authorization": "Bearer hdr"})
        assert extract_token({"other": 1}, headers) == "hdr"

    def test_x_access_token_header(self):
        headers = httpx.Headers({"x-access-token": "xat"})
        assert extract_token({}, headers) == "xat"

    def test_nothing_found(self):
        assert extract_token({"message": "ok"}, httpx.Headers()) is None

    def test_none_body(self):
        assert extract_token(None) is None


class TestCaptureCookie:
    def test_multiple_set_cookie_headers(self):
        headers = httpx.Headers([
            ("set-cookie", "session=abc; Path=/; HttpOnly"),
            ("set-cookie", "csrf=xyz; Secure"),
        ])
        assert capture_cookie(headers) == "session=abc; csrf=xyz"

    def test_no_cookies(self):
        assert capture_cookie(httpx.Headers()) is None


class TestSession:
    def test_repr_masks_secrets(self):
        s = Session.bearer("super-secret-token")
        assert "super-secret-token" not in repr(s)
        assert "***" in repr(s)

    def test_states(self):
        assert not Session.unauthenticated().attempted
        assert Session.bearer("t").usable
        assert Session.with_cookie("a=b").usable
        failed = Session.failed()
        assert failed.attempted and not failed.usable
        assert failed.state.value == "auth_failed"

    def test_headers_per_state(self):
        assert build_auth_headers(Session.bearer("t")) == {"Authorization": "Bearer t"}
        assert build_auth_headers(Session.with_cookie("a=b")) == {"Cookie": "a=b"}
        assert build_auth_headers(Session.failed()) == {}


class TestExchange:
    def test_primary_body_fields(self, api, make_client):
        client = make_client()
        session = client.authenticate()
        assert session.state is AuthState.BEARER
        assert session.token == "tok-123"
        posts = api.hits("POST", "/v1/auth/")
        assert len(posts) == 1
        assert _body(posts[0]) == {"name": "key", "secret": "shh"}

    def test_400_retries_once_with_legacy_fields(self, api, make_client):
        def auth(request):
            if "name" in _body(request):
                return httpx.Response(400, json={"message": "bad"})
            return httpx.Response(200, json={"access_token": "legacy-tok"})

        api.on("POST", "/v1/auth/", auth)
        session = make_client().authenticate()
        posts = api.hits("POST", "/v1/auth/")
        assert len(posts) == 2
        assert _body(posts[1]) == {"api_token": "key", "api_secret": "shh"}
        assert session.token == "legacy-tok"

    def test_basic_fallback_after_two_rejections(self, api, make_client):
        api.on("POST", "/v1/auth/", lambda _r: httpx.Response(400, text="bad"))
        api.on("GET", "/v1/auth/", lambda _r: httpx.Response(200, json={"jwt": "basic-tok"}))
        session = make_client().authenticate()
        assert len(api.hits("POST", "/v1/auth/")) == 2
        gets = api.hits("GET", "/v1/auth/")
        assert len(gets) == 1
        expected = base64.b64encode(b"key:shh").decode()
        assert gets[0].headers["authorization"] == f"Basic {expected}"
        assert session.token == "basic-tok"

    def test_cookie_session_is_sent_on_requests(self, api, make_client):
        api.on("POST", "/v1/auth/", lambda _r: httpx.Response(
            200, json={"message": "ok"}, headers=[("set-cookie", "session=abc; Path=/")]
        ))
        api.json_route("/v1/teams/", TEAMS)
        client = make_client()
        result = client.fetch_teams()
        assert client.session.state is AuthState.COOKIE
        assert result is not None and result.items == TEAMS
        get = api.hits("GET", "/v1/teams/")[0]
        assert get.headers["cookie"] == "session=abc"
        assert "authorization" not in get.headers

    def test_exchange_is_memoized(self, api, make_client):
        api.json_route("/v1/teams/", TEAMS)
        client = make_client()
        client.fetch_teams()
        client.fetch_teams()
        assert len(api.hits("POST", "/v1/auth/")) == 1
        assert api.hits("GET", "/v1/teams/")[0].headers["authorization"] == "Bearer tok-123"

    def test_first_auth_payload_kept(self, api, make_client):
        client = make_client()
        client.authenticate()
        assert client.auth_payload == {"payload": {"access_token": "tok-123"}}

    def test_auth_failed_skips_requests(self, api, make_client):
        api.on("POST", "/v1/auth/", lambda _r: httpx.Response(401, text="nope"))
        api.on("GET", "/v1/auth/", lambda _r: httpx.Response(401, text="nope"))
        api.json_route("/v1/teams/", TEAMS)
        client = make_client()
        assert client.fetch_teams() is None
        assert client.fetch_users() == []
        assert client.session.state is AuthState.FAILED
        assert api.data_requests() == []
        assert not api.hits("GET", "/v1/teams/")
        # Failure is memoized too.
        assert len(api.hits("POST", "/v1/auth/")) == 1

    def test_missing_credentials_fail_without_requests(self, api, make_client):
        client = make_client(api_token="", api_secret="")
        assert client.authenticate().state is AuthState.FAILED
        assert api.requests == []

    def test_preconfigured_bearer_skips_exchange(self, api, make_client):
        api.json_route("/v1/teams/", TEAMS)
        client = make_client(bearer="given")
        client.fetch_teams()
        assert not api.hits("POST", "/v1/auth/")
        assert api.hits("GET", "/v1/teams/")[0].headers["authorization"] == "Bearer given"
