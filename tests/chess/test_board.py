"""Unit tests for /src/chess/board.py"""

import pytest

from src.chess.board import EMPTY, EMPTY_FEN, STARTING_POSITION_FEN, Board
from src.chess.pieces import Piece, PieceType, Side
from src.chess.square import Square

MID_GAME_FEN = "r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R"


def test_creating_board_in_starting_position() -> None:
    board = Board.starting_position()
    assert board.piece(Square.from_algebraic("e1")) == Piece(PieceType.KING, Side.DOGS)
    assert board.piece(Square.from_algebraic("d8")) == Piece(PieceType.QUEEN, Side.CATS)
    for col in range(8):
        assert board.piece(Square(6, col)) == Piece(PieceType.PAWN, Side.DOGS)
        assert board.piece(Square(1, col)) == Piece(PieceType.PAWN, Side.CATS)
    for row in range(2, 6):
        for col in range(8):
            assert board.is_empty(Square(row, col))


def test_creating_empty_board() -> None:
    board = Board.empty()
    assert list(board.squares()) == []
    assert board.to_fen() == EMPTY_FEN


@pytest.mark.parametrize("fen", [STARTING_POSITION_FEN, EMPTY_FEN, MID_GAME_FEN, "8/8/8/3k4/8/8/8/4K3"])
def test_writing_board_to_fen(fen: str) -> None:
    assert Board.from_fen(fen).to_fen() == fen


@pytest.mark.parametrize(
    "fen",
    [
        "8/8/8/8/8/8/8",  # 7 rows
        "8/8/8/8/8/8/8/7",  # row short of a square
        "8/8/8/8/8/8/8/44P",  # row too long
    ],
)
def test_invalid_fen(fen: str) -> None:
    with pytest.raises(ValueError):
        Board.from_fen(fen)


def test_off_board_squares_read_as_empty() -> None:
    board = Board.starting_position()
    assert board.piece(Square(-1, 0)) == EMPTY
    assert board.piece(Square(8, 8)) == EMPTY


def test_locating_pieces() -> None:
    board = Board.starting_position()
    assert board.locate_pieces(PieceType.ROOK, Side.DOGS) == [
        Square.from_algebraic("a1"),
        Square.from_algebraic("h1"),
    ]
    assert len(board.locate_pieces(PieceType.PAWN)) == 16
    assert len(board.locate_side(Side.CATS)) == 16
    assert len(board.side_pieces(Side.DOGS)) == 16


def test_squares_in_row_major_order() -> None:
    board = Board.from_fen(MID_GAME_FEN)
    occupied = [square for square, _ in board.squares()]
    assert occupied == sorted(occupied)


@pytest.mark.parametrize("side, king_square", [(Side.DOGS, "e1"), (Side.CATS, "e8")])
def test_finding_the_king(side: Side, king_square: str) -> None:
    board = Board.starting_position()
    assert board.find_king(side) == Square.from_algebraic(king_square)


def test_no_king() -> None:
    assert Board.empty().find_king(Side.DOGS) is None


def test_board_is_immutable() -> None:
    """Every change gives a new board. The original is left as it was."""
    board = Board.starting_position()
    e2 = Square.from_algebraic("e2")
    e4 = Square.from_algebraic("e4")
    moved = board.move_piece(e2, e4)
    assert board.piece(e2) == Piece(PieceType.PAWN, Side.DOGS)
    assert board.is_empty(e4)
    assert moved.is_empty(e2)
    assert moved.piece(e4) == Piece(PieceType.PAWN, Side.DOGS)


def test_placing_and_removing() -> None:
    d4 = Square.from_algebraic("d4")
    board = Board.empty().place_piece(Piece.from_fen("q"), d4)
    assert board.piece(d4) == Piece(PieceType.QUEEN, Side.CATS)
    assert board.remove_piece(d4).is_empty(d4)


def test_signature_ignores_has_moved() -> None:
    """Repetition compares piece placement only"""
    e1 = Square.from_algebraic("e1")
    board = Board.starting_position()
    moved_king = board.place_piece(board.piece(e1).moved(), e1)
    assert board.signature() == moved_king.signature()


def test_signature_layout() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/8/4K3")
    rows = board.signature().split("/")
    assert len(rows) == 8
    assert rows[0] == "....BK..."
    assert rows[7] == "....WK..."
