"""Tests for folding inbound messages into the session."""

import json

import pytest

from checkers_client.board import Coord, Piece
from checkers_client.handler import MessageHandler
from checkers_client.protocol import decode
from checkers_client.session import GameSession

from conftest import START_BOARD, RecordingSink, ack, board_with


@pytest.fixture
def session() -> GameSession:
    return GameSession.create("r1")


@pytest.fixture
def handler(session: GameSession, sink: RecordingSink) -> MessageHandler:
    return MessageHandler(session, sink)


def apply(handler: MessageHandler, payload: dict) -> None:
    handler.handle(decode(json.dumps(payload)))


def update(board, current=1, captures=None) -> dict:
    message = {"type": "update", "board": board, "currentPlayer": current}
    if captures is not None:
        message["captures"] = captures
    return message


def metadata(session: GameSession):
    return (
        session.my_player_number,
        session.current_player_turn,
        session.connected_player_count,
        session.game_ready,
    )


def test_connection_ack_sets_metadata(handler, session, sink):
    apply(handler, ack(1, 1, False, current=1))

    assert session.my_player_number == 1
    assert session.connected_player_count == 1
    assert session.game_ready is False
    assert session.current_player_turn == 1
    assert session.board.is_empty()
    assert sink.last("players") == (1, False)


def test_connection_ack_with_board_replaces_it(handler, session, sink):
    apply(handler, ack(2, 2, True, current=1, board=START_BOARD))

    assert session.board.piece_at(Coord(0, 5)) is Piece.WHITE_MAN
    assert sink.last("board")[0][0][1] is Piece.BLACK_MAN
    assert sink.last("turn_info") == ("Opponent's turn", False)


def test_game_start_marks_ready_without_touching_board(handler, session, sink):
    apply(handler, ack(1, 1, False, board=START_BOARD))
    before = session.board.snapshot()

    apply(handler, {"type": "game_start", "yourTurn": True})

    assert session.game_ready is True
    assert session.connected_player_count == 2
    assert session.board.snapshot() == before
    assert sink.last("turn_info") == ("Your turn!", True)
    assert sink.last("transient_message") == ("Game started!", "info")


def test_players_update_waiting_message(handler, session, sink):
    apply(handler, ack(1, 2, True))
    apply(handler, {"type": "players_update", "count": 1, "gameReady": False})

    assert session.connected_player_count == 1
    assert session.game_ready is False
    assert sink.last("players") == (1, False)
    assert sink.last("turn_info") == ("Waiting for opponent (1/2)", False)


def test_players_update_when_ready_has_no_waiting_message(handler, sink):
    apply(handler, {"type": "players_update", "count": 2, "gameReady": True})
    assert sink.of("turn_info") == []


def test_update_replaces_board_and_turn(handler, session, sink):
    apply(handler, ack(2, 2, True, current=1, board=START_BOARD))
    after = board_with((2, 4, 1), (1, 6, 2))

    apply(handler, update(after, current=2))

    assert session.current_player_turn == 2
    assert session.board.piece_at(Coord(2, 4)) is Piece.BLACK_MAN
    assert session.board.piece_at(Coord(0, 1)) is Piece.EMPTY
    assert sink.last("turn_info") == ("Your turn!", True)


def test_update_reports_captures_alongside_board(handler, sink):
    apply(handler, update(board_with((2, 5, 1)), current=2, captures=[[3, 4]]))

    names = [name for name, _ in sink.calls]
    assert sink.of("captures") == [([Coord(3, 4)],)]
    assert names.index("notify_captures") < names.index("notify_board")


def test_update_without_captures_emits_none(handler, sink):
    apply(handler, update(START_BOARD, captures=[]))
    assert sink.of("captures") == []


def test_update_is_idempotent(handler, session):
    apply(handler, ack(1, 2, True))
    payload = update(board_with((0, 0, 3), (7, 7, 4)), current=2)

    apply(handler, payload)
    once = (session.board.snapshot(), metadata(session))
    apply(handler, payload)

    assert (session.board.snapshot(), metadata(session)) == once


def test_last_snapshot_wins(handler, session):
    boards = [START_BOARD, board_with((1, 1, 1)), board_with((6, 6, 4))]
    apply(handler, ack(1, 1, False, board=boards[0]))
    apply(handler, update(boards[1], current=2))
    apply(handler, {"type": "players_update", "count": 2, "gameReady": True})
    apply(handler, update(boards[2], current=1))
    apply(handler, {"type": "error", "message": "Invalid move"})

    assert [list(row) for row in session.board.snapshot()] == boards[2]


def test_error_is_surfaced_verbatim_without_state_change(handler, session, sink):
    apply(handler, ack(1, 2, True, board=START_BOARD))
    session.selection = Coord(1, 2)
    before = (session.board.snapshot(), metadata(session))

    apply(handler, {"type": "error", "message": "Invalid move"})

    assert sink.last("transient_message") == ("Invalid move", "error")
    assert (session.board.snapshot(), metadata(session)) == before
    assert session.selection == Coord(1, 2)


def test_unknown_message_is_ignored(handler, session, sink):
    apply(handler, ack(1, 2, True, board=START_BOARD))
    calls = len(sink.calls)

    apply(handler, {"type": "chat", "text": "gg"})

    assert len(sink.calls) == calls
    assert session.my_player_number == 1


def test_update_clears_selection_of_lost_piece(handler, session, sink):
    apply(handler, ack(1, 2, True, board=board_with((2, 3, 1))))
    session.selection = Coord(2, 3)

    apply(handler, update(board_with((2, 3, 2)), current=1))

    assert session.selection is None
    assert sink.last("selection") == (None,)


def test_update_keeps_selection_of_owned_piece(handler, session, sink):
    apply(handler, ack(1, 2, True, board=board_with((2, 3, 1))))
    session.selection = Coord(2, 3)

    apply(handler, update(board_with((2, 3, 3)), current=1))

    assert session.selection == Coord(2, 3)
    assert sink.of("selection") == []
