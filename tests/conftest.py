"""Shared test fixtures for authcore.

Provides an in-memory fake core served through :class:`httpx.MockTransport`
so client tests never touch the network. The fake records every request it
receives for later assertions.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Optional

import httpx
import pytest

from authcore.models import AppInfo, ConnectionConfig

API_KEY = "81ed5e4b-33e2-4feb-a223-b9022f3e2b91"
CORE_URI = "https://core.example"

Route = Callable[[httpx.Request], httpx.Response]


class FakeCore:
    """Minimal stand-in for the core's HTTP API.

    Routes are keyed by ``(method, path)`` where *path* is relative to
    ``base_path``. ``"*"`` as method matches any verb.

    Attributes:
        requests: Every request received, in arrival order.
        discovery_delay: Seconds ``/apiversion`` waits before answering,
            used to force overlapping negotiations.
    """

    def __init__(self, base_path: str = "/auth", versions: Optional[list[str]] = None) -> None:
        self.base_path = base_path
        self.versions = ["2.14"] if versions is None else versions
        self.requests: list[httpx.Request] = []
        self.discovery_delay = 0.0
        self.routes: dict[tuple[str, str], Route] = {
            ("GET", "/apiversion"): lambda r: httpx.Response(
                200, json={"versions": self.versions}
            ),
            ("GET", "/config"): lambda r: httpx.Response(
                200, json={"status": "NOT_ALLOWED"}
            ),
            ("GET", "/telemetry"): lambda r: httpx.Response(
                200,
                json={"exists": False, "telemetryId": "cec902d6-d2c0-4bcd-9a51-129112882343"},
            ),
            ("POST", "/user/remove"): lambda r: httpx.Response(200, json={"status": "OK"}),
            ("*", "/hello"): lambda r: httpx.Response(200, text="Hello\n"),
        }

    def route(self, method: str, path: str, handler: Route) -> None:
        self.routes[(method, path)] = handler

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"{self.base_path}{path}"]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if not path.startswith(self.base_path):
            return httpx.Response(404, text="Not found")
        relative = path[len(self.base_path):]
        if relative == "/apiversion" and self.discovery_delay:
            await asyncio.sleep(self.discovery_delay)
        handler = self.routes.get((request.method, relative)) or self.routes.get(
            ("*", relative)
        )
        if handler is None:
            return httpx.Response(404, text="Not found")
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture
def core() -> FakeCore:
    """A fresh fake core rooted at ``/auth``."""
    return FakeCore()


@pytest.fixture
def app_info() -> AppInfo:
    return AppInfo(app_name="test-app")


@pytest.fixture
def connection() -> ConnectionConfig:
    """Connection to the fake core, already rooted at ``/auth``."""
    return ConnectionConfig(uri=CORE_URI, api_key=API_KEY).rooted_at("/auth")


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Clear every ``AUTHCORE_*`` variable so tests never see real settings."""
    from authcore.config import CONFIG_ENV_VAR, ENV_FIELDS

    for var in [*ENV_FIELDS, CONFIG_ENV_VAR, "AUTHCORE_API_KEY"]:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
