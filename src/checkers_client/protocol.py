"""Wire models for the room protocol.

Inbound envelopes are decoded once, at the connection boundary, into one of
the five known message models. Any other ``type`` becomes an
:class:`UnknownMessage` so the caller can log it and move on.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .board import BOARD_SIZE, Coord, Piece
from .errors import ProtocolError

Grid = List[List[int]]


def _check_grid(value: Grid) -> Grid:
    if len(value) != BOARD_SIZE or any(len(row) != BOARD_SIZE for row in value):
        raise ValueError(f"board must be {BOARD_SIZE}x{BOARD_SIZE}")
    for row in value:
        for cell in row:
            if not Piece.EMPTY <= cell <= Piece.WHITE_KING:
                raise ValueError(f"unknown cell value {cell}")
    return value


class ServerMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ConnectionAck(ServerMessage):
    """Handshake response sent to a freshly joined client."""

    type: Literal["connection_ack"]
    your_player_number: int = Field(alias="yourPlayerNumber", ge=0, le=2)
    total_players: int = Field(alias="totalPlayers", ge=0)
    game_ready: bool = Field(alias="gameReady")
    current_player: int = Field(alias="currentPlayer", ge=1, le=2)
    board: Optional[Grid] = None

    @field_validator("board")
    @classmethod
    def ensure_board_shape(cls, value: Optional[Grid]) -> Optional[Grid]:
        if value is None:
            return value
        return _check_grid(value)


class GameStart(ServerMessage):
    type: Literal["game_start"]
    your_turn: bool = Field(alias="yourTurn")
    message: Optional[str] = None


class PlayersUpdate(ServerMessage):
    type: Literal["players_update"]
    count: int = Field(ge=0)
    game_ready: bool = Field(alias="gameReady")


class StateUpdate(ServerMessage):
    """Authoritative post-move snapshot."""

    type: Literal["update"]
    board: Grid
    current_player: int = Field(alias="currentPlayer", ge=1, le=2)
    captures: List[Tuple[int, int]] = Field(default_factory=list)
    message: Optional[str] = None

    @field_validator("board")
    @classmethod
    def ensure_board_shape(cls, value: Grid) -> Grid:
        return _check_grid(value)

    @field_validator("captures", mode="before")
    @classmethod
    def null_captures_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def capture_coords(self) -> List[Coord]:
        return [Coord(x, y) for x, y in self.captures]


class ErrorMessage(ServerMessage):
    type: Literal["error"]
    message: str


class UnknownMessage(ServerMessage):
    """Envelope whose ``type`` this client does not understand."""

    type: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


KnownMessage = Annotated[
    Union[ConnectionAck, GameStart, PlayersUpdate, StateUpdate, ErrorMessage],
    Field(discriminator="type"),
]
InboundMessage = Union[
    ConnectionAck, GameStart, PlayersUpdate, StateUpdate, ErrorMessage, UnknownMessage
]

KNOWN_TYPES = frozenset(
    {"connection_ack", "game_start", "players_update", "update", "error"}
)

_KNOWN_ADAPTER: TypeAdapter = TypeAdapter(KnownMessage)


def decode(raw: Union[str, bytes]) -> InboundMessage:
    """Parse one inbound frame.

    Raises :class:`ProtocolError` when the frame is not a JSON object or a known
    message type fails validation.
    """

    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"Payload is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise ProtocolError("Payload is nested too deeply") from exc

    if not isinstance(data, dict):
        raise ProtocolError("Payload is not a JSON object")

    kind = data.get("type")
    if kind is not None and not isinstance(kind, str):
        raise ProtocolError(f"Message type must be a string, got {type(kind).__name__}")
    if kind not in KNOWN_TYPES:
        return UnknownMessage(type=kind, payload=data)

    try:
        return _KNOWN_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise ProtocolError(
            f"Invalid {kind!r} message ({exc.error_count()} error(s))"
        ) from exc


# ---------- Outbound ----------


class WireCoord(BaseModel):
    x: int = Field(ge=0, lt=BOARD_SIZE)
    y: int = Field(ge=0, lt=BOARD_SIZE)

    @classmethod
    def from_coord(cls, coord: Coord) -> "WireCoord":
        return cls(x=coord.x, y=coord.y)


class MoveMessage(BaseModel):
    """Move intent; the server alone decides whether it is legal."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: Literal["move"] = "move"
    from_: WireCoord = Field(alias="from")
    to: WireCoord

    @classmethod
    def between(cls, origin: Coord, target: Coord) -> "MoveMessage":
        return cls(from_=WireCoord.from_coord(origin), to=WireCoord.from_coord(target))


class PlayersRequest(BaseModel):
    """Ask the server for a fresh ``players_update``."""

    type: Literal["get_players"] = "get_players"


OutboundMessage = Union[MoveMessage, PlayersRequest]


def encode(message: OutboundMessage) -> str:
    return message.model_dump_json(by_alias=True)
