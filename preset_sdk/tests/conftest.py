"""Shared test fixtures for Preset SDK tests.

Every client is wired to an ``httpx.MockTransport``, never the network.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from preset_sdk import PresetClient

BASE_URL = "https://api.test"


class FakeApi:
    """Route table plus request log for a MockTransport."""

    def __init__(self) -> None:
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []
        self.token = "tok-123"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.method} {request.url.path}"
        if key in self.routes:
            return self.routes[key](request)
        if request.method == "POST" and request.url.path == "/v1/auth/":
            return httpx.Response(200, json={"payload": {"access_token": self.token}})
        return httpx.Response(404, text="not found")

    def on(self, method: str, path: str, fn: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[f"{method} {path}"] = fn

    def json_route(self, path: str, body: Any, status: int = 200) -> None:
        self.on("GET", path, lambda _r: httpx.Response(status, json=body))

    def hits(self, method: str, path: Optional[str] = None) -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and (path is None or r.url.path == path)
        ]

    def data_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path != "/v1/auth/"]


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def make_client(api):
    clients: List[PresetClient] = []

    def _make(**kwargs: Any) -> PresetClient:
        kwargs.setdefault("api_token", "key")
        kwargs.setdefault("api_secret", "shh")
        client = PresetClient(base_url=BASE_URL, transport=httpx.MockTransport(api.handler), **kwargs)
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.close()
