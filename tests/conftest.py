"""Shared fixtures: settings and a fake Atlassian site."""

import json
from typing import Any, Optional

import httpx
import pytest

from shared.config import AtlassianSettings, Settings

BASE_URL = "https://example.atlassian.net"


class FakeAtlassian:
    """
    In-memory stand-in for an Atlassian site.

    Routes are keyed by (method, path). Every request is recorded so tests
    can assert on call counts, query strings and bodies.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self._failures: dict[tuple[str, str], Exception] = {}

    def add(self, method: str, path: str, status_code: int = 200, body: Any = None) -> None:
        self._routes[(method, path)] = (status_code, body)

    def fail(self, method: str, path: str, error: Exception) -> None:
        self._failures[(method, path)] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)

        if key in self._failures:
            raise self._failures[key]

        if key not in self._routes:
            return httpx.Response(404, json={"message": f"No route for {key}"})

        status_code, body = self._routes[key]
        if body is None:
            return httpx.Response(status_code)
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_json(self) -> Optional[Any]:
        content = self.requests[-1].content
        return json.loads(content) if content else None


@pytest.fixture
def credentials() -> AtlassianSettings:
    return AtlassianSettings(
        url=BASE_URL + "/",
        api_mail="bot@example.com",
        api_key="s3cret-token",
    )


@pytest.fixture
def settings(credentials: AtlassianSettings) -> Settings:
    return Settings(atlassian=credentials)


@pytest.fixture
def fake() -> FakeAtlassian:
    return FakeAtlassian()


@pytest.fixture
def router(settings: Settings, fake: FakeAtlassian):
    from confluence_mcp.main import create_router

    return create_router(settings, fake.transport)
