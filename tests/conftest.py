"""
Test Configuration
==================

Pytest fixtures and test doubles for the camera viewer.

FakeSocket mimics the parts of a websockets client connection the
session manager uses: async iteration, close(code=...), close_code.
FakeConnector hands out FakeSockets and records every connect call.
"""

import asyncio
import base64
import json

import pytest
from websockets.exceptions import ConnectionClosedError

from camera_viewer.session import SessionManager


_CLOSED = object()


class FakeSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.close_code = None
        self.closed_with = None
        self._queue: asyncio.Queue = asyncio.Queue()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = code
        if self.close_code is None:
            self.close_code = code
        self._queue.put_nowait(_CLOSED)

    # Server-side helpers

    def feed(self, message) -> None:
        """Deliver a message; dicts are JSON-encoded."""
        if isinstance(message, dict):
            message = json.dumps(message)
        self._queue.put_nowait(message)

    def drop(self, code: int) -> None:
        """Server closes the connection with a close frame."""
        self.close_code = code
        self._queue.put_nowait(_CLOSED)

    def fail(self) -> None:
        """Connection dies without a close frame."""
        self.close_code = 1006
        self._queue.put_nowait(ConnectionClosedError(None, None))

    @property
    def is_open(self) -> bool:
        return self.close_code is None


class FakeConnector:
    """Connector returning FakeSockets, optionally failing or stalling."""

    def __init__(self) -> None:
        self.sockets = []
        self.calls = 0
        self.fail_with = None
        self.gate = None

    async def __call__(self, url: str) -> FakeSocket:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        socket = FakeSocket(url)
        self.sockets.append(socket)
        return socket

    @property
    def latest(self) -> FakeSocket:
        return self.sockets[-1]

    @property
    def open_sockets(self):
        return [s for s in self.sockets if s.is_open]


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def manager(connector, clock):
    """SessionManager wired to fakes, with a short reconnect delay."""
    return SessionManager(
        url="ws://camera.test:3001",
        reconnect_delay=0.05,
        tick_interval=60.0,
        connector=connector,
        clock=clock,
    )


@pytest.fixture
def jpeg_b64():
    """A tiny payload that is valid base64 (not a real JPEG)."""
    return base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg\xff\xd9").decode("ascii")


@pytest.fixture
def frame_message(jpeg_b64):
    """Build a frame message dict."""
    def build(camera_id="cam-1", data=None, timestamp=None, **stats):
        message = {"camera_id": camera_id, "data": data or jpeg_b64}
        if timestamp is not None:
            message["timestamp"] = timestamp
        if stats:
            message["stats"] = stats
        return message
    return build
