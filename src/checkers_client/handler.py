"""Reducers that fold inbound server messages into the local session."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Type

from .presentation import NOTICE_ERROR, NOTICE_INFO, PresentationSink
from .protocol import (
    ConnectionAck,
    ErrorMessage,
    GameStart,
    InboundMessage,
    PlayersUpdate,
    StateUpdate,
    UnknownMessage,
)
from .session import PLAYERS_PER_GAME, GameSession

logger = logging.getLogger(__name__)


class MessageHandler:
    """Apply each decoded message to ``session`` and refresh ``sink``.

    Every reducer is idempotent: board updates replace the whole grid, and all
    metadata fields are assigned rather than accumulated. Messages are applied
    in arrival order, so the last snapshot wins.
    """

    def __init__(self, session: GameSession, sink: PresentationSink) -> None:
        self.session = session
        self.sink = sink
        self._reducers: Dict[Type, Callable] = {
            ConnectionAck: self._on_connection_ack,
            GameStart: self._on_game_start,
            PlayersUpdate: self._on_players_update,
            StateUpdate: self._on_update,
            ErrorMessage: self._on_error,
            UnknownMessage: self._on_unknown,
        }

    def handle(self, message: InboundMessage) -> None:
        logger.debug("Applying %s", message.type)
        self._reducers[type(message)](message)

    # ---- reducers ----

    def _on_connection_ack(self, message: ConnectionAck) -> None:
        session = self.session
        session.my_player_number = message.your_player_number
        session.connected_player_count = message.total_players
        session.game_ready = message.game_ready
        session.current_player_turn = message.current_player
        if message.board is not None:
            session.board.replace(message.board)
        self._drop_stale_selection()

        self.sink.notify_players(session.connected_player_count, session.game_ready)
        self.sink.notify_turn_info(session.turn_text(), session.is_my_turn)
        self.sink.notify_board(session.board.snapshot())

    def _on_game_start(self, message: GameStart) -> None:
        session = self.session
        session.game_ready = True
        session.connected_player_count = PLAYERS_PER_GAME

        text = "Your turn!" if message.your_turn else "Opponent's turn"
        self.sink.notify_turn_info(text, message.your_turn)
        self.sink.notify_players(session.connected_player_count, session.game_ready)
        self.sink.notify_transient_message("Game started!", NOTICE_INFO)

    def _on_players_update(self, message: PlayersUpdate) -> None:
        session = self.session
        session.connected_player_count = message.count
        session.game_ready = message.game_ready

        self.sink.notify_players(session.connected_player_count, session.game_ready)
        if not session.game_ready:
            self.sink.notify_turn_info(session.waiting_text(), False)

    def _on_update(self, message: StateUpdate) -> None:
        session = self.session
        captures = message.capture_coords()
        if captures:
            self.sink.notify_captures(captures)
        if message.message:
            logger.info("Server: %s", message.message)

        session.board.replace(message.board)
        session.current_player_turn = message.current_player
        self._drop_stale_selection()

        self.sink.notify_board(session.board.snapshot())
        self.sink.notify_turn_info(session.turn_text(), session.is_my_turn)

    def _on_error(self, message: ErrorMessage) -> None:
        self.sink.notify_transient_message(message.message, NOTICE_ERROR)

    def _on_unknown(self, message: UnknownMessage) -> None:
        logger.warning("Ignoring unknown message type %r", message.type)

    def _drop_stale_selection(self) -> None:
        if self.session.revalidate_selection():
            self.sink.notify_selection(None)
