"""Unit tests for /src/arena/board.py"""

import pytest

from src.arena.board import STARTING_POSITION_FEN, Board, apply_move
from src.arena.pieces import Piece, PieceType
from src.arena.square import Square
from src.core.exceptions import EmptySquareError
from src.core.shared_types import Color

EMPTY_FEN = "/".join(["8"] * 8)


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def test_initial_board_layout() -> None:
    """Black on top (rank 8), white at the bottom, the a-file first in every row."""
    grid = Board.initial().to_grid()
    assert grid[0] == ["r", "n", "b", "q", "k", "b", "n", "r"]
    assert grid[1] == ["p"] * 8
    assert all(row == [""] * 8 for row in grid[2:6])
    assert grid[6] == ["P"] * 8
    assert grid[7] == ["R", "N", "B", "Q", "K", "B", "N", "R"]


def test_initial_board_is_fresh_every_time() -> None:
    board = Board.initial()
    board.move_piece(sq("e2"), sq("e4"))
    assert Board.initial().to_fen() == STARTING_POSITION_FEN


@pytest.mark.parametrize(
    "fen",
    [
        STARTING_POSITION_FEN,
        EMPTY_FEN,
        "r3k2r/pppq1ppp/2npbn2/4p3/2B1P3/2NP1N2/PPP2PPP/R1BQ1RK1",
    ],
)
def test_fen_roundtrip(fen: str) -> None:
    assert Board.from_fen(fen).to_fen() == fen


@pytest.mark.parametrize(
    "square_name, color",
    [("a1", Color.WHITE), ("e2", Color.WHITE), ("d8", Color.BLACK), ("h7", Color.BLACK)],
)
def test_owner_from_piece_color(square_name: str, color: Color) -> None:
    assert Board.initial().owner(sq(square_name)) == color


def test_owner_of_empty_square_fails() -> None:
    with pytest.raises(EmptySquareError):
        Board.initial().owner(sq("e4"))


def test_move_piece_returns_captured() -> None:
    board = Board.initial()
    captured = board.move_piece(sq("d1"), sq("d7"))
    assert captured == Piece(PieceType.PAWN, Color.BLACK)
    assert board.piece(sq("d1")) is None
    assert board.piece(sq("d7")) == Piece(PieceType.QUEEN, Color.WHITE)


def test_move_from_empty_square_fails() -> None:
    with pytest.raises(EmptySquareError):
        Board.initial().move_piece(sq("e4"), sq("e5"))


def test_apply_move_leaves_original_untouched() -> None:
    board = Board.initial()
    moved = apply_move(board, sq("g1"), sq("f3"))
    assert board.to_fen() == STARTING_POSITION_FEN
    assert moved.to_fen() == "rnbqkbnr/pppppppp/8/8/8/5N2/PPPPPPPP/RNBQKB1R"


def test_apply_move_changes_exactly_two_squares() -> None:
    board = Board.initial()
    moved = apply_move(board, sq("b8"), sq("c6"))
    changed = [
        square for square in board.position if board.piece(square) != moved.piece(square)
    ]
    assert sorted(s.to_algebraic() for s in changed) == ["b8", "c6"]


@pytest.mark.parametrize("square_name", ["e1", "e8"])
def test_king_detection_either_color(square_name: str) -> None:
    assert Board.initial().is_king_at(sq(square_name))


@pytest.mark.parametrize("square_name", ["d1", "e4", "e7"])
def test_no_king_detected(square_name: str) -> None:
    assert not Board.initial().is_king_at(sq(square_name))
