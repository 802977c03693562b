"""The Board is the grid of pieces. It is a value: every change produces a new Board."""

from dataclasses import dataclass
from typing import Iterator, Self

from src.chess.pieces import Piece, PieceType, Side
from src.chess.square import ALL_SQUARES, BOARD_DIMENSIONS, Square

STARTING_POSITION_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
EMPTY_FEN = "/".join(["8"] * BOARD_DIMENSIONS[0])

EMPTY = Piece.empty()


@dataclass(frozen=True)
class Board:
    position: dict[Square, Piece]

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the placement part of a FEN string.

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * the cats (lower case) fill row 0 (rank 8) and row 1 with pawns
        * rows 2 through 5 are empty
        * the dogs (upper case) have their pawns on row 6 and pieces on row 7

        NOTE: FEN cannot express whether a piece has moved. All pieces start unmoved.
        """
        fen_by_rows = fen_str.split("/")
        if len(fen_by_rows) != BOARD_DIMENSIONS[0]:
            raise ValueError(f"Expected {BOARD_DIMENSIONS[0]} rows in {fen_str!r}")

        position: dict[Square, Piece] = {}
        for row, fen_one_row in enumerate(fen_by_rows):
            col = 0
            for character in fen_one_row:
                if character.isalpha():
                    position[Square(row, col)] = Piece.from_fen(character)
                    col += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    for _ in range(int(character)):
                        position[Square(row, col)] = EMPTY
                        col += 1
            if col != BOARD_DIMENSIONS[1]:
                raise ValueError(f"Row {row} of {fen_str!r} does not contain 8 squares")
        return cls(position)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_POSITION_FEN)

    @classmethod
    def empty(cls) -> Self:
        return cls.from_fen(EMPTY_FEN)

    def to_fen(self) -> str:
        """Rows are separated by slashes in FEN string."""
        return "/".join(self._row_to_fen(row) for row in range(BOARD_DIMENSIONS[0]))

    def _row_to_fen(self, row: int) -> str:
        fen_characters: list[str] = []
        empty_count = 0
        for col in range(BOARD_DIMENSIONS[1]):
            piece = self.piece(Square(row, col))

            if not piece.is_empty:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def signature(self) -> str:
        """Compact position signature for repetition detection. Ignores `has_moved`."""
        return "/".join(
            "".join(
                self.piece(Square(row, col)).signature()
                for col in range(BOARD_DIMENSIONS[1])
            )
            for row in range(BOARD_DIMENSIONS[0])
        )

    # --- QUERIES ---
    def piece(self, square: Square) -> Piece:
        """Off-board squares read as empty"""
        return self.position.get(square, EMPTY)

    def is_empty(self, square: Square) -> bool:
        return self.piece(square).is_empty

    def squares(self) -> Iterator[tuple[Square, Piece]]:
        """All occupied squares, ascending (row, col)"""
        for square in ALL_SQUARES:
            piece = self.piece(square)
            if not piece.is_empty:
                yield square, piece

    def locate_pieces(
        self, piece_type: PieceType, side: Side | None = None
    ) -> list[Square]:
        return [
            square
            for square, piece in self.squares()
            if piece.type == piece_type and (side is None or piece.side == side)
        ]

    def locate_side(self, side: Side) -> list[Square]:
        return [square for square, piece in self.squares() if piece.side == side]

    def find_king(self, side: Side) -> Square | None:
        kings = self.locate_pieces(PieceType.KING, side)
        return kings[0] if kings else None

    def side_pieces(self, side: Side) -> list[Piece]:
        return [piece for _, piece in self.squares() if piece.side == side]

    # --- DERIVING NEW BOARDS ---
    def with_pieces(self, changes: dict[Square, Piece]) -> Self:
        """New board with the given squares overwritten"""
        position = dict(self.position)
        position.update(changes)
        return type(self)(position)

    def place_piece(self, piece: Piece, square: Square) -> Self:
        return self.with_pieces({square: piece})

    def remove_piece(self, square: Square) -> Self:
        return self.with_pieces({square: EMPTY})

    def move_piece(self, from_square: Square, to_square: Square) -> Self:
        """Relocate whatever stands on `from_square`. No rules applied."""
        return self.with_pieces(
            {from_square: EMPTY, to_square: self.piece(from_square)}
        )
