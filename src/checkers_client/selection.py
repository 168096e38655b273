"""Turns cell clicks into a selection or a move intent."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .board import Coord, Piece, in_bounds
from .protocol import MoveMessage
from .session import GameSession

NO_CONNECTION = "No connection to server"
GAME_NOT_READY = "Game not ready"
NOT_YOUR_TURN = "Not your turn!"
SELECT_EMPTY_CELL = "Select empty cell to move"
OFF_BOARD = "Cell is off the board"


class ClickOutcome(Enum):
    REJECTED = "rejected"  # a precondition failed, nothing changed
    IGNORED = "ignored"  # empty or opponent cell while idle
    SELECTED = "selected"
    DESELECTED = "deselected"
    KEPT = "kept"  # occupied target while a piece is selected
    MOVE = "move"


@dataclass(frozen=True)
class ClickResult:
    outcome: ClickOutcome
    notice: Optional[str] = None
    move: Optional[MoveMessage] = None


class SelectionMachine:
    """Two-state machine: idle, or one own piece selected.

    The machine never touches the transport. A ``MOVE`` result carries the
    message to send, and the selection is already cleared when it is returned,
    whether or not the send later succeeds.
    """

    def __init__(self, session: GameSession, allow_reselect: bool = False) -> None:
        self.session = session
        self.allow_reselect = allow_reselect

    @property
    def selected(self) -> Optional[Coord]:
        return self.session.selection

    def click(self, coord: Coord, connected: bool) -> ClickResult:
        session = self.session
        if not in_bounds(coord):
            return ClickResult(ClickOutcome.REJECTED, OFF_BOARD)
        if not connected:
            return ClickResult(ClickOutcome.REJECTED, NO_CONNECTION)
        if not session.game_ready:
            return ClickResult(ClickOutcome.REJECTED, GAME_NOT_READY)
        if not session.is_my_turn:
            return ClickResult(ClickOutcome.REJECTED, NOT_YOUR_TURN)

        # The board may have changed since the selection was made.
        session.revalidate_selection()

        origin = session.selection
        if origin is None:
            return self._select(coord)

        if coord == origin:
            session.selection = None
            return ClickResult(ClickOutcome.DESELECTED)

        if session.board.piece_at(coord) != Piece.EMPTY:
            if self.allow_reselect and session.board.owned_by(
                coord, session.my_player_number
            ):
                return self._select(coord)
            return ClickResult(ClickOutcome.KEPT, SELECT_EMPTY_CELL)

        session.selection = None
        return ClickResult(ClickOutcome.MOVE, move=MoveMessage.between(origin, coord))

    def cancel(self) -> bool:
        """Drop any selection. Returns ``True`` if one existed."""

        had_selection = self.session.selection is not None
        self.session.selection = None
        return had_selection

    def _select(self, coord: Coord) -> ClickResult:
        session = self.session
        if not session.board.owned_by(coord, session.my_player_number):
            return ClickResult(ClickOutcome.IGNORED)
        session.selection = coord
        return ClickResult(ClickOutcome.SELECTED)
