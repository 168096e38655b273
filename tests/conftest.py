"""Shared fixtures: a recording presentation sink and a scripted transport."""

from __future__ import annotations

import json
from typing import Any, List, Tuple

import pytest

from checkers_client.client import CheckersClient
from checkers_client.config import ClientSettings
from checkers_client.connection import Transport, TransportEvents
from checkers_client.errors import SendError

# Opening position used by the reference server (grid[y][x]).
START_BOARD = [
    [0, 1, 0, 1, 0, 1, 0, 1],
    [1, 0, 1, 0, 1, 0, 1, 0],
    [0, 1, 0, 1, 0, 1, 0, 1],
    [0, 0, 0, 0, 0, 0, 0, 0],
    [0, 0, 0, 0, 0, 0, 0, 0],
    [2, 0, 2, 0, 2, 0, 2, 0],
    [0, 2, 0, 2, 0, 2, 0, 2],
    [2, 0, 2, 0, 2, 0, 2, 0],
]


def board_with(*pieces: Tuple[int, int, int]) -> List[List[int]]:
    """Empty grid with ``(x, y, value)`` placed."""
    grid = [[0] * 8 for _ in range(8)]
    for x, y, value in pieces:
        grid[y][x] = value
    return grid


class RecordingSink:
    """Presentation sink that remembers every call."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []

    def __getattr__(self, name: str):
        if not name.startswith("notify_"):
            raise AttributeError(name)

        def record(*args: Any) -> None:
            self.calls.append((name, args))

        return record

    def of(self, name: str) -> List[Tuple[Any, ...]]:
        return [args for call, args in self.calls if call == "notify_" + name]

    def last(self, name: str) -> Tuple[Any, ...]:
        return self.of(name)[-1]

    def messages(self) -> List[str]:
        return [text for text, _kind in self.of("transient_message")]


class FakeTransport(Transport):
    """Transport driven by the test instead of a socket."""

    def __init__(self, url: str, events: TransportEvents) -> None:
        super().__init__(url, events)
        self.started = False
        self.closed = False
        self.fail_send = False
        self.sent: List[str] = []

    async def start(self) -> None:
        self.started = True

    async def send(self, text: str) -> None:
        if self.fail_send:
            raise SendError("socket gone")
        self.sent.append(text)

    async def close(self) -> None:
        self.closed = True
        self.events.on_close()

    # ---- scripted server side ----

    def open(self) -> None:
        self.events.on_open()

    def deliver(self, payload: Any) -> None:
        self.events.on_message(payload if isinstance(payload, str) else json.dumps(payload))

    def drop(self) -> None:
        self.events.on_close()

    def fail(self, exc: BaseException) -> None:
        self.events.on_error(exc)

    def sent_json(self) -> List[Any]:
        return [json.loads(text) for text in self.sent]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def transports() -> List[FakeTransport]:
    return []


@pytest.fixture
def client(sink: RecordingSink, transports: List[FakeTransport]) -> CheckersClient:
    def factory(url: str, events: TransportEvents) -> FakeTransport:
        transport = FakeTransport(url, events)
        transports.append(transport)
        return transport

    settings = ClientSettings(server_url="ws://game.test/ws")
    return CheckersClient(sink, settings, transport_factory=factory)


def ack(player: int, total: int, ready: bool, current: int = 1, board=None) -> dict:
    message = {
        "type": "connection_ack",
        "yourPlayerNumber": player,
        "totalPlayers": total,
        "gameReady": ready,
        "currentPlayer": current,
    }
    if board is not None:
        message["board"] = board
    return message
