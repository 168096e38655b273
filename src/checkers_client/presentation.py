"""Presentation boundary and a plain-text implementation of it."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Protocol, Sequence, Set, Tuple

from .board import BOARD_SIZE, Coord, Piece

logger = logging.getLogger(__name__)

BoardSnapshot = Tuple[Tuple[Piece, ...], ...]

STATUS_CONNECTED = "connected"
STATUS_DISCONNECTED = "disconnected"
STATUS_ERROR = "error"

NOTICE_ERROR = "error"
NOTICE_INFO = "info"


class PresentationSink(Protocol):
    """Everything the sync layer tells the UI. Implementations only read."""

    def notify_status(self, kind: str, detail: str) -> None: ...

    def notify_board(self, snapshot: BoardSnapshot) -> None: ...

    def notify_turn_info(self, text: str, is_my_turn: bool) -> None: ...

    def notify_players(self, count: int, ready: bool) -> None: ...

    def notify_captures(self, coords: Sequence[Coord]) -> None: ...

    def notify_transient_message(self, text: str, kind: str) -> None: ...

    def notify_selection(self, coord: Optional[Coord]) -> None: ...

    def notify_awaiting(self, waiting: bool) -> None: ...


GLYPHS = {
    Piece.EMPTY: ".",
    Piece.BLACK_MAN: "b",
    Piece.WHITE_MAN: "w",
    Piece.BLACK_KING: "B",
    Piece.WHITE_KING: "W",
}


class TerminalSink:
    """Text renderer used by the interactive client.

    Notices and capture highlights are removed by fire-and-forget timers. A
    timer that fires after the element is already gone does nothing.
    """

    def __init__(
        self,
        write: Callable[[str], None] = print,
        error_seconds: float = 3.0,
        info_seconds: float = 2.0,
        capture_seconds: float = 0.3,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._write = write
        self._durations = {NOTICE_ERROR: error_seconds, NOTICE_INFO: info_seconds}
        self._capture_seconds = capture_seconds
        self._loop = loop
        self.status: Tuple[str, str] = (STATUS_DISCONNECTED, "Disconnected")
        self.snapshot: Optional[BoardSnapshot] = None
        self.turn_info = ""
        self.players = "Players: 0/2"
        self.selected: Optional[Coord] = None
        self.awaiting = False
        self.highlighted: Set[Coord] = set()
        self.notices: List[Tuple[str, str]] = []

    # ---- PresentationSink ----

    def notify_status(self, kind: str, detail: str) -> None:
        self.status = (kind, detail)
        self._write(f"[{kind}] {detail}")

    def notify_board(self, snapshot: BoardSnapshot) -> None:
        self.snapshot = snapshot
        self.awaiting = False
        self._write(self.render())

    def notify_turn_info(self, text: str, is_my_turn: bool) -> None:
        self.turn_info = text
        self._write(f"{'>>' if is_my_turn else '..'} {text}")

    def notify_players(self, count: int, ready: bool) -> None:
        self.players = f"Players: {count}/2" + ("" if ready else " (waiting)")
        self._write(self.players)

    def notify_captures(self, coords: Sequence[Coord]) -> None:
        for coord in coords:
            self.highlighted.add(coord)
            self._write(f"captured at ({coord.x}, {coord.y})")
            self._later(self._capture_seconds, self.highlighted.discard, coord)

    def notify_transient_message(self, text: str, kind: str) -> None:
        notice = (kind, text)
        self.notices.append(notice)
        self._write(f"!! {text}" if kind == NOTICE_ERROR else f"-- {text}")
        self._later(self._durations.get(kind, 2.0), self._dismiss, notice)

    def notify_selection(self, coord: Optional[Coord]) -> None:
        self.selected = coord

    def notify_awaiting(self, waiting: bool) -> None:
        self.awaiting = waiting
        if waiting:
            self._write("waiting for server...")

    # ---- rendering ----

    def render(self) -> str:
        snapshot = self.snapshot
        lines = ["   " + " ".join(str(x) for x in range(BOARD_SIZE))]
        for y in range(BOARD_SIZE):
            cells = []
            for x in range(BOARD_SIZE):
                piece = snapshot[y][x] if snapshot else Piece.EMPTY
                glyph = GLYPHS[piece]
                if Coord(x, y) == self.selected:
                    glyph = "*"
                elif Coord(x, y) in self.highlighted:
                    glyph = "x"
                cells.append(glyph)
            lines.append(f"{y}  " + " ".join(cells))
        return "\n".join(lines)

    # ---- timers ----

    def _dismiss(self, notice: Tuple[str, str]) -> None:
        if notice in self.notices:
            self.notices.remove(notice)

    def _later(self, delay: float, callback: Callable, *args) -> None:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No loop: nothing can fire later, so drop immediately.
                logger.debug("No running loop, removing transient element now")
                callback(*args)
                return
        loop.call_later(delay, callback, *args)
