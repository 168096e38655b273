"""One live room connection at a time, and the transports that carry it."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional, Protocol, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import websockets
from websockets.exceptions import WebSocketException

from .errors import ProtocolError, SendError
from .protocol import InboundMessage, OutboundMessage, decode, encode

logger = logging.getLogger(__name__)

Frame = Union[str, bytes]


def build_room_url(server_url: str, room_id: str) -> str:
    """Return ``server_url`` with its ``room`` query parameter set to ``room_id``."""

    parts = urlsplit(server_url)
    query = [(k, v) for k, v in parse_qsl(parts.query) if k != "room"]
    query.append(("room", room_id))
    return urlunsplit(parts._replace(query=urlencode(query)))


# ---------- Transports ----------


class TransportEvents(Protocol):
    def on_open(self) -> None: ...

    def on_message(self, raw: Frame) -> None: ...

    def on_close(self) -> None: ...

    def on_error(self, exc: BaseException) -> None: ...


class Transport(ABC):
    """A bidirectional channel that reports its lifecycle through ``events``.

    ``on_close`` is reported exactly once per transport, after any ``on_error``.
    """

    def __init__(self, url: str, events: TransportEvents) -> None:
        self.url = url
        self.events = events

    @abstractmethod
    async def start(self) -> None:
        """Begin connecting without waiting for the handshake to finish."""

    @abstractmethod
    async def send(self, text: str) -> None:
        """Send one text frame, raising :class:`SendError` on failure."""

    @abstractmethod
    async def close(self) -> None:
        """Tear the channel down. Safe to call more than once."""


TransportFactory = Callable[[str, TransportEvents], Transport]


class WebSocketTransport(Transport):
    """Transport backed by the ``websockets`` asyncio client."""

    def __init__(self, url: str, events: TransportEvents) -> None:
        super().__init__(url, events)
        self._ws = None
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        try:
            async with websockets.connect(self.url) as ws:
                self._ws = ws
                self.events.on_open()
                async for raw in ws:
                    try:
                        self.events.on_message(raw)
                    except Exception:
                        # One bad frame must not end the read loop.
                        logger.exception("Failed to handle frame from %s", self.url)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            logger.error("WebSocket failure on %s: %s", self.url, exc)
            self.events.on_error(exc)
        finally:
            self._ws = None
            self.events.on_close()

    async def send(self, text: str) -> None:
        ws = self._ws
        if ws is None:
            raise SendError("WebSocket is not open")
        try:
            await ws.send(text)
        except (OSError, WebSocketException) as exc:
            raise SendError(f"WebSocket send failed: {exc}") from exc

    async def close(self) -> None:
        task = self._task
        if self._ws is not None:
            await self._ws.close()
        elif task is not None:
            task.cancel()
        if task is not None and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)


# ---------- Connection session ----------


class ConnectionState(Enum):
    CLOSED = "closed"
    CONNECTING = "connecting"
    OPEN = "open"


class ConnectionListener(Protocol):
    def connection_opened(self, room_id: str) -> None: ...

    def message_received(self, message: InboundMessage) -> None: ...

    def protocol_error(self, exc: ProtocolError) -> None: ...

    def connection_closed(self, room_id: str) -> None: ...

    def connection_error(self, exc: BaseException) -> None: ...


class _BoundEvents:
    """Routes one transport's events to the session while it is still current."""

    def __init__(self, session: "ConnectionSession", generation: int) -> None:
        self._session = session
        self._generation = generation

    def _current(self) -> bool:
        return self._generation == self._session._generation

    def on_open(self) -> None:
        if self._current():
            self._session._opened()

    def on_message(self, raw: Frame) -> None:
        if self._current():
            self._session._received(raw)

    def on_close(self) -> None:
        if self._current():
            self._session._closed()

    def on_error(self, exc: BaseException) -> None:
        if self._current():
            self._session._errored(exc)


class ConnectionSession:
    """Closed -> Connecting -> Open -> Closed, for one room at a time.

    Joining a room first tears down any existing connection, and events
    arriving from a replaced transport are dropped.
    """

    def __init__(
        self,
        server_url: str,
        listener: ConnectionListener,
        transport_factory: TransportFactory = WebSocketTransport,
    ) -> None:
        self.server_url = server_url
        self.listener = listener
        self.transport_factory = transport_factory
        self.state = ConnectionState.CLOSED
        self.room_id: Optional[str] = None
        self._transport: Optional[Transport] = None
        self._generation = 0

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    async def join(self, room_id: str) -> None:
        await self.close()

        self._generation += 1
        self.room_id = room_id
        url = build_room_url(self.server_url, room_id)
        transport = self.transport_factory(url, _BoundEvents(self, self._generation))
        self._transport = transport
        self.state = ConnectionState.CONNECTING
        logger.info("Joining room %r at %s", room_id, url)
        await transport.start()

    async def send(self, message: OutboundMessage) -> None:
        transport = self._transport
        if transport is None or not self.is_open:
            raise SendError("No open connection")
        text = encode(message)
        logger.debug("Sending %s", text)
        await transport.send(text)

    async def close(self) -> None:
        """Client-initiated close. The listener sees the same close as any other."""

        transport = self._transport
        if transport is None:
            return
        self._detach()
        await transport.close()
        self._notify_closed()

    # ---- transport events ----

    def _opened(self) -> None:
        self.state = ConnectionState.OPEN
        logger.info("Connected to room %r", self.room_id)
        self.listener.connection_opened(self.room_id)

    def _received(self, raw: Frame) -> None:
        try:
            message = decode(raw)
        except ProtocolError as exc:
            logger.warning("Dropping malformed message: %s", exc)
            self.listener.protocol_error(exc)
            return
        self.listener.message_received(message)

    def _closed(self) -> None:
        self._detach()
        self._notify_closed()

    def _errored(self, exc: BaseException) -> None:
        logger.error("Connection error in room %r: %s", self.room_id, exc)
        self.listener.connection_error(exc)

    def _detach(self) -> None:
        self._transport = None
        self._generation += 1
        self.state = ConnectionState.CLOSED

    def _notify_closed(self) -> None:
        logger.info("Disconnected from room %r", self.room_id)
        self.listener.connection_closed(self.room_id)
