"""Owned client-side game session: board mirror, metadata and selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .board import Board, Coord

UNASSIGNED_PLAYER = 0
FIRST_PLAYER = 1
PLAYERS_PER_GAME = 2


@dataclass
class GameSession:
    """Everything the client knows about the room it is connected to.

    A single instance is owned by :class:`~checkers_client.client.CheckersClient`
    and is reset in place whenever the connection goes away, so no stale board
    or turn state survives a disconnect.
    """

    board: Board = field(default_factory=Board)
    my_player_number: int = UNASSIGNED_PLAYER
    current_player_turn: int = FIRST_PLAYER
    connected_player_count: int = 0
    game_ready: bool = False
    room_id: Optional[str] = None
    selection: Optional[Coord] = None

    @classmethod
    def create(cls, room_id: Optional[str] = None) -> "GameSession":
        return cls(room_id=room_id)

    def reset(self) -> None:
        """Return to the pre-handshake defaults. The room id is left untouched."""

        self.board.reset()
        self.my_player_number = UNASSIGNED_PLAYER
        self.current_player_turn = FIRST_PLAYER
        self.connected_player_count = 0
        self.game_ready = False
        self.selection = None

    @property
    def is_my_turn(self) -> bool:
        return (
            self.my_player_number != UNASSIGNED_PLAYER
            and self.current_player_turn == self.my_player_number
        )

    def turn_text(self) -> str:
        return "Your turn!" if self.is_my_turn else "Opponent's turn"

    def waiting_text(self) -> str:
        return f"Waiting for opponent ({self.connected_player_count}/{PLAYERS_PER_GAME})"

    def revalidate_selection(self) -> bool:
        """Drop the selection if its cell no longer holds one of our pieces.

        Returns ``True`` when the selection was cleared.
        """

        if self.selection is None:
            return False
        if self.board.owned_by(self.selection, self.my_player_number):
            return False
        self.selection = None
        return True
