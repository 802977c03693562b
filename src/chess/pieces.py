"""Defines the types of chess pieces and the two sides: the dogs (white) and the cats (black)"""

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Self


class PieceType(Enum):
    EMPTY = auto()
    PAWN = auto()
    KNIGHT = auto()
    BISHOP = auto()
    ROOK = auto()
    QUEEN = auto()
    KING = auto()


class Side(Enum):
    NONE = auto()
    DOGS = auto()
    CATS = auto()

    @property
    def opponent(self) -> "Side":
        if self == Side.DOGS:
            return Side.CATS
        if self == Side.CATS:
            return Side.DOGS
        return Side.NONE


AVAILABLE_SIDE_NAMES: list[str] = [side.name for side in Side if side != Side.NONE]

FEN_TO_PIECE: dict[str, PieceType] = {
    "p": PieceType.PAWN,
    "n": PieceType.KNIGHT,
    "b": PieceType.BISHOP,
    "r": PieceType.ROOK,
    "q": PieceType.QUEEN,
    "k": PieceType.KING,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}

# Pieces that need to remember whether they moved (castling rights, pawn double step)
TRACKS_FIRST_MOVE: frozenset[PieceType] = frozenset(
    [PieceType.PAWN, PieceType.KING, PieceType.ROOK]
)

# A pawn can be promoted into one of these
PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.ROOK,
    PieceType.QUEEN,
]


@dataclass(frozen=True)
class Piece:
    type: PieceType
    side: Side
    has_moved: bool = False

    @classmethod
    def empty(cls) -> Self:
        return cls(PieceType.EMPTY, Side.NONE)

    @property
    def is_empty(self) -> bool:
        return self.type == PieceType.EMPTY

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # upper case: dogs (white), lower case: cats (black)
        side = Side.DOGS if character.isupper() else Side.CATS
        piece_type = FEN_TO_PIECE[character.lower()]
        return cls(piece_type, side)

    def to_fen(self) -> str:
        return (
            PIECE_TO_FEN[self.type].upper()
            if self.side == Side.DOGS
            else PIECE_TO_FEN[self.type].lower()
        )

    def signature(self) -> str:
        """Two character code used for repetition detection: side indicator + type initial."""
        if self.is_empty:
            return "."
        side_char = "W" if self.side == Side.DOGS else "B"
        return side_char + self.type.name[0]

    def moved(self) -> Self:
        """Copy of this piece after it made a move"""
        if self.type in TRACKS_FIRST_MOVE and not self.has_moved:
            return replace(self, has_moved=True)
        return self

    def promoted_to(self, new_type: PieceType) -> Self:
        return replace(self, type=new_type, has_moved=True)
