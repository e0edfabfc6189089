"""
Pytest fixtures for RPS Arena tests.

Async code runs under asyncio.run() with in-memory fakes:
- FakeSocket / FakeConnector stand in for websockets connections
- RecordingTransport captures what the session machine sends
- ManualTicker fires countdown ticks on demand
"""

import asyncio

import pytest
from websockets.exceptions import ConnectionClosedError

from ..config import ClientConfig
from ..engine_core import OpponentInfo, Score, SessionPhase, SessionState
from ..protocol import encode_inbound
from ..session import SessionMachine
from ..transport import ConnectionHandle

_CLOSED = object()
_HANG_UP = object()


class FakeSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self):
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: list[str] = []
        self.closed = False

    def feed(self, frame) -> None:
        """Queue a raw frame as if the server sent it."""
        self.incoming.put_nowait(frame)

    def feed_message(self, message) -> None:
        self.feed(encode_inbound(message))

    def hang_up(self) -> None:
        """Simulate the server dropping the connection."""
        self.incoming.put_nowait(_HANG_UP)

    def __aiter__(self):
        return self

    async def __anext__(self):
        frame = await self.incoming.get()
        if frame is _CLOSED:
            raise StopAsyncIteration
        if frame is _HANG_UP:
            self.closed = True
            raise ConnectionClosedError(None, None)
        return frame

    async def send(self, data: str) -> None:
        if self.closed:
            raise ConnectionClosedError(None, None)
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True
        self.incoming.put_nowait(_CLOSED)


class FakeConnector:
    """Replaces websockets.connect; records the URLs it was asked to open."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.urls: list[str] = []
        self.kwargs: list[dict] = []
        self.sockets: list[FakeSocket] = []

    async def __call__(self, url: str, **kwargs):
        self.urls.append(url)
        self.kwargs.append(kwargs)
        if self.fail:
            raise OSError("Connection refused")
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket

    @property
    def socket(self) -> FakeSocket:
        return self.sockets[-1]


class RecordingTransport:
    """Transport double for session machine tests."""

    def __init__(self):
        self.config = ClientConfig(server_url="ws://test")
        self.connected = True
        self.sent: list = []
        self.listeners: list = []

    def add_listener(self, handle, callback):
        self.listeners.append(callback)

        def unsubscribe():
            if callback in self.listeners:
                self.listeners.remove(callback)

        return unsubscribe

    async def send(self, handle, message) -> None:
        self.sent.append(message)

    def deliver(self, message) -> None:
        for listener in list(self.listeners):
            listener(message)

    @property
    def sent_types(self) -> list[str]:
        return [m.type for m in self.sent]


class ManualTicker:
    """Countdown ticker fired by the test instead of the event loop."""

    def __init__(self):
        self.callback = None
        self.starts = 0

    @property
    def running(self) -> bool:
        return self.callback is not None

    def start(self, callback) -> None:
        self.callback = callback
        self.starts += 1

    def stop(self) -> None:
        self.callback = None

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is not None:
                self.callback()


async def settle() -> None:
    """Let reader tasks process everything already queued."""
    for _ in range(10):
        await asyncio.sleep(0)


def run(coro):
    """Run a coroutine to completion in a fresh event loop."""
    return asyncio.run(coro)


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(server_url="ws://game.test", open_timeout=1.0)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def user_handle() -> ConnectionHandle:
    """An open, authenticated handle."""
    return ConnectionHandle(url="ws://test/ws", identity="token-abc", is_open=True)


@pytest.fixture
def guest_handle() -> ConnectionHandle:
    """An open, anonymous handle."""
    return ConnectionHandle(url="ws://test/ws", identity=None, is_open=True)


@pytest.fixture
def machine(recording_transport, user_handle, ticker) -> SessionMachine:
    """Session machine wired to a recording transport."""
    return SessionMachine(recording_transport, user_handle, ticker=ticker)


@pytest.fixture
def playing_state() -> SessionState:
    """Mid-match state: round 2 open, score 1-1."""
    return SessionState(
        phase=SessionPhase.PLAYING,
        opponent=OpponentInfo(username="bob", rating=1200),
        ranked=True,
        current_round=2,
        round_started=True,
        seconds_remaining=15,
        score=Score(mine=1, opponent=1),
    )
