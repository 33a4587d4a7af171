"""
Pytest configuration and shared fixtures for the test suite.

Provides sample frames, a fake MiniParse WebSocket server and a Pushover
notifier backed by an in-memory HTTP transport.
"""

import json
from dataclasses import replace
from typing import List, Optional

import httpx
import pytest
import pytest_asyncio
from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed

from partywatch.config.settings import (
    ENV_VARS,
    ApplicationSettings,
    ConnectionSettings,
    PushoverSettings,
)
from partywatch.parser.categorizer import NotificationToggles
from partywatch.streaming.notifier import PushoverNotifier

TIMESTAMP = "2024-01-01T00:00:00.000000000Z"


class FakeMiniParse:
    """In-process stand-in for the ACT/IINACT MiniParse endpoint."""

    def __init__(self):
        self.frames: List[str] = []
        self.hold_open = False
        self.connections = 0
        self.close_codes: List[Optional[int]] = []
        self.port: Optional[int] = None

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    async def handler(self, websocket):
        self.connections += 1
        for frame in self.frames:
            await websocket.send(frame)

        if self.hold_open:
            try:
                async for _ in websocket:
                    pass
            except ConnectionClosed:
                pass

        self.close_codes.append(websocket.close_code)


class RecordingTransport:
    """Answers every request with a fixed status and remembers it."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"status": 1, "request": "test"})

    @property
    def payloads(self) -> List[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Keep the developer's environment and config files out of the tests."""
    for var in ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_chat_frame():
    """Build a raw Chat frame as the MiniParse endpoint sends it."""

    def _make(code: str, line: str, name: str = "", timestamp: str = TIMESTAMP, marker: str = "00"):
        return json.dumps({"msgtype": "Chat", "msg": f"{marker}|{timestamp}|{code}|{name}|{line}"})

    return _make


@pytest.fixture
def all_toggles():
    return NotificationToggles(fill=True, disband=True, join=True, leave=True)


@pytest.fixture
def settings(all_toggles):
    """Settings with credentials and every notification enabled."""
    return ApplicationSettings(
        connection=ConnectionSettings(close_grace=1.0),
        pushover=PushoverSettings(app_token="app-token", user_key="user-key"),
        toggles=all_toggles,
    )


@pytest.fixture
def pushover():
    return RecordingTransport()


@pytest_asyncio.fixture
async def notifier(settings, pushover):
    client = httpx.AsyncClient(transport=httpx.MockTransport(pushover))
    async with PushoverNotifier(settings.pushover, client=client) as notifier:
        yield notifier
    await client.aclose()


@pytest_asyncio.fixture
async def miniparse():
    fake = FakeMiniParse()
    async with serve(fake.handler, "127.0.0.1", 0) as server:
        fake.port = server.sockets[0].getsockname()[1]
        yield fake


@pytest.fixture
def stream_settings(settings, miniparse):
    """Settings pointing at the fake MiniParse server."""
    return replace(
        settings,
        connection=replace(settings.connection, server_address=miniparse.address),
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "websocket: mark test as WebSocket related")
