"""The client façade: one room connection, one local game session."""

from __future__ import annotations

import logging
from typing import Optional

from .board import Coord
from .config import ClientSettings
from .connection import ConnectionSession, TransportFactory, WebSocketTransport
from .errors import ProtocolError, SendError
from .handler import MessageHandler
from .presentation import (
    NOTICE_ERROR,
    STATUS_CONNECTED,
    STATUS_DISCONNECTED,
    STATUS_ERROR,
    PresentationSink,
)
from .protocol import InboundMessage, OutboundMessage, PlayersRequest
from .selection import ClickResult, SelectionMachine
from .session import GameSession

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Connection error"
MALFORMED_MESSAGE = "Malformed message from server"


class CheckersClient:
    """Keeps a local mirror of a server-owned checkers game in sync.

    Inbound frames flow connection -> handler -> session -> sink. Clicks flow
    selection machine -> connection. The server is the only judge of move
    legality; nothing here applies a move locally.
    """

    def __init__(
        self,
        sink: PresentationSink,
        settings: Optional[ClientSettings] = None,
        transport_factory: TransportFactory = WebSocketTransport,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.sink = sink
        self.session = GameSession.create()
        self.handler = MessageHandler(self.session, sink)
        self.selection = SelectionMachine(
            self.session, allow_reselect=self.settings.allow_reselect
        )
        self.connection = ConnectionSession(
            self.settings.server_url, self, transport_factory
        )

    # ---- user actions ----

    async def join(self, room_id: Optional[str] = None) -> str:
        """Connect to ``room_id`` (the configured default when blank)."""

        room = (room_id or "").strip() or self.settings.default_room
        self.session.room_id = room
        await self.connection.join(room)
        return room

    async def click(self, x: int, y: int) -> ClickResult:
        before = self.session.selection
        result = self.selection.click(Coord(x, y), self.connection.is_open)
        if result.notice:
            self.sink.notify_transient_message(result.notice, NOTICE_ERROR)
        if self.session.selection != before:
            self.sink.notify_selection(self.session.selection)
        if result.move is not None:
            # The answering update can be handled before the send returns.
            self.sink.notify_awaiting(True)
            if not await self._send(result.move):
                self.sink.notify_awaiting(False)
        return result

    def cancel_selection(self) -> bool:
        """Drop the pending selection, if any."""

        if not self.selection.cancel():
            return False
        self.sink.notify_selection(None)
        return True

    async def request_players(self) -> bool:
        return await self._send(PlayersRequest())

    async def close(self) -> None:
        await self.connection.close()

    def refresh(self, turn_text: Optional[str] = None) -> None:
        """Push the whole session to the sink."""

        session = self.session
        self.sink.notify_players(session.connected_player_count, session.game_ready)
        self.sink.notify_turn_info(turn_text or session.turn_text(), session.is_my_turn)
        self.sink.notify_selection(session.selection)
        self.sink.notify_board(session.board.snapshot())

    async def _send(self, message: OutboundMessage) -> bool:
        try:
            await self.connection.send(message)
        except SendError as exc:
            logger.warning("Could not send %s: %s", message.type, exc)
            self.sink.notify_transient_message(CONNECTION_ERROR, NOTICE_ERROR)
            return False
        return True

    # ---- connection events ----

    def connection_opened(self, room_id: str) -> None:
        self.sink.notify_status(STATUS_CONNECTED, f"Connected to room: {room_id}")

    def message_received(self, message: InboundMessage) -> None:
        self.handler.handle(message)

    def protocol_error(self, exc: ProtocolError) -> None:
        self.sink.notify_transient_message(MALFORMED_MESSAGE, NOTICE_ERROR)

    def connection_closed(self, room_id: str) -> None:
        self.session.reset()
        self.sink.notify_status(STATUS_DISCONNECTED, "Disconnected")
        self.refresh(turn_text="Disconnected")

    def connection_error(self, exc: BaseException) -> None:
        self.sink.notify_status(STATUS_ERROR, CONNECTION_ERROR)
