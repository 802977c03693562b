"""
A square on the board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

from dataclasses import dataclass

# Chess board is always 8x8 (rows, columns).
BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True, order=True)
class Square:
    """
    (row, col) on the grid.

    Row 0 is the cats' back rank (rank 8), row 7 is the dogs' back rank (rank 1).
    Columns 0..7 are the files a..h.
    Ordering compares row first, then column: that is the generation order used everywhere.
    """

    row: int
    col: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a8' -> (0, 0), 'h1' -> (7, 7)"""
        col = ord(sq[0]) - ord("a")
        row = BOARD_DIMENSIONS[0] - int(sq[1])
        return cls(row, col)

    def to_algebraic(self) -> str:
        return f"{chr(self.col + ord('a'))}{BOARD_DIMENSIONS[0] - self.row}"

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )

    def offset(self, d_row: int, d_col: int) -> Square:
        return Square(self.row + d_row, self.col + d_col)

    @property
    def shade(self) -> int:
        """Square colour: 0 or 1. Two squares share a colour when their shades match."""
        return (self.row + self.col) % 2


ALL_SQUARES: tuple[Square, ...] = tuple(
    Square(row, col)
    for row in range(BOARD_DIMENSIONS[0])
    for col in range(BOARD_DIMENSIONS[1])
)
