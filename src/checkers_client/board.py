"""Local mirror of the 8x8 checkers board."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, NamedTuple, Optional, Sequence, Tuple

BOARD_SIZE = 8

Grid = List[List[int]]


class Piece(IntEnum):
    """Cell occupancy values, encoded exactly as the server sends them."""

    EMPTY = 0
    BLACK_MAN = 1
    WHITE_MAN = 2
    BLACK_KING = 3
    WHITE_KING = 4


# Player 1 plays black, player 2 plays white.
PLAYER_PIECES = {
    1: frozenset({Piece.BLACK_MAN, Piece.BLACK_KING}),
    2: frozenset({Piece.WHITE_MAN, Piece.WHITE_KING}),
}


class Coord(NamedTuple):
    x: int
    y: int

    def to_wire(self) -> dict:
        return {"x": self.x, "y": self.y}


def owner_of(piece: Piece) -> Optional[int]:
    """Return the player number owning ``piece`` or ``None`` for an empty cell."""

    for player, pieces in PLAYER_PIECES.items():
        if piece in pieces:
            return player
    return None


def empty_grid() -> Grid:
    return [[Piece.EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]


def in_bounds(coord: Coord) -> bool:
    return 0 <= coord.x < BOARD_SIZE and 0 <= coord.y < BOARD_SIZE


@dataclass
class Board:
    # Row-major: grid[y][x]
    grid: Grid = field(default_factory=empty_grid)

    def piece_at(self, coord: Coord) -> Piece:
        if not in_bounds(coord):
            raise ValueError(f"Coordinate {tuple(coord)} is off the board")
        return Piece(self.grid[coord.y][coord.x])

    def owned_by(self, coord: Coord, player: int) -> bool:
        """True when the cell holds one of ``player``'s pieces."""
        return owner_of(self.piece_at(coord)) == player if player else False

    def replace(self, rows: Sequence[Sequence[int]]) -> None:
        """Swap in a complete snapshot; the board is never patched cell by cell."""

        if len(rows) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in rows):
            raise ValueError("Board snapshot must be 8x8")
        self.grid = [[Piece(value) for value in row] for row in rows]

    def reset(self) -> None:
        self.grid = empty_grid()

    def is_empty(self) -> bool:
        return all(cell == Piece.EMPTY for row in self.grid for cell in row)

    def snapshot(self) -> Tuple[Tuple[Piece, ...], ...]:
        """Immutable copy handed to the presentation layer."""
        return tuple(tuple(Piece(cell) for cell in row) for row in self.grid)
