from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config
from core.router import build_route_table

TEST_HOSTS = {
    "d1": "d1.api.example.com",
    "d10": "d10.api.example.com",
    "i1": "i1.api.example.com",
}


class RecordingLogger:
    """RequestLogger that keeps every event in memory."""

    def __init__(self):
        self.proxied: list[tuple[str, str, str, str]] = []
        self.redirects: list[tuple[str, str, str | None]] = []
        self.errors: list[tuple[str, int, str]] = []
        self.disconnects: list[tuple[str, str]] = []

    def log_proxy(self, prefix, method, path, target_url, headers=()):
        self.proxied.append((prefix, method, path, target_url))

    def log_redirect(self, prefix, location, rewritten):
        self.redirects.append((prefix, location, rewritten))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))

    def log_disconnect(self, prefix, path):
        self.disconnects.append((prefix, path))


def upstream_response(status_code: int = 200, body: bytes = b"", headers=None) -> httpx.Response:
    """Unread upstream response, as a real transport would return it."""
    return httpx.Response(status_code, headers=headers, stream=httpx.ByteStream(body))


class Upstream:
    """Mock upstream that records requests and answers with a handler."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: upstream_response(
            200, b"upstream ok", {"content-type": "text/plain"}
        )

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(await request.aread())
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def route_table():
    return build_route_table(TEST_HOSTS)


@pytest.fixture
def client(logger, upstream, route_table):
    app = create_app(Config(), logger, route_table, transport=httpx.MockTransport(upstream))
    with TestClient(app) as test_client:
        yield test_client
