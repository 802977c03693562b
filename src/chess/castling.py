"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass
from enum import Enum

from src.chess.square import Square

KING_SIDE_KING_COL = 6
KING_SIDE_ROOK_COL = 5
QUEEN_SIDE_KING_COL = 2
QUEEN_SIDE_ROOK_COL = 3


class CastlingDirection(Enum):
    """Values are the notation used in the move history."""

    KING_SIDE = "O-O"
    QUEEN_SIDE = "O-O-O"


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    NOTE: The castle is requested by moving the king onto its own rook, so the rook square is the requested destination.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @property
    def direction(self) -> CastlingDirection:
        return (
            CastlingDirection.KING_SIDE
            if self.rook_from.col > self.king_from.col
            else CastlingDirection.QUEEN_SIDE
        )

    def king_path(self) -> list[Square]:
        """The one- and two-step squares of the king toward the rook. None of them may be attacked."""
        step = 1 if self.direction == CastlingDirection.KING_SIDE else -1
        return [self.king_from.offset(0, step), self.king_from.offset(0, 2 * step)]


def castling_squares(king_square: Square, rook_square: Square) -> CastlingSquares:
    """Where king and rook end up when the king on `king_square` castles with the rook on `rook_square`"""
    if rook_square.col > king_square.col:
        king_col, rook_col = KING_SIDE_KING_COL, KING_SIDE_ROOK_COL
    else:
        king_col, rook_col = QUEEN_SIDE_KING_COL, QUEEN_SIDE_ROOK_COL
    return CastlingSquares(
        king_from=king_square,
        king_to=Square(king_square.row, king_col),
        rook_from=rook_square,
        rook_to=Square(rook_square.row, rook_col),
    )


def squares_between_on_row(from_square: Square, to_square: Square) -> list[Square]:
    """
    Find the squares in between the two squares specified that are on the same row

    Needed for checking if you can still castle (the caller will check which of those are empty etc.)
    """
    if from_square.row != to_square.row:
        raise ValueError(
            f"squares_between_on_row requires both squares to lie on the same row. \n from: {from_square}\n to:{to_square}"
        )

    low, high = sorted((from_square.col, to_square.col))
    return [Square(from_square.row, col) for col in range(low + 1, high)]
