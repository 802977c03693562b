"""
Type definitions used across layers (API / Service / DB). The domain layer has its own richer versions
in src/chess, the names here are the string forms that cross the boundaries.
"""

from enum import StrEnum


class Side(StrEnum):
    DOGS = "dogs"
    CATS = "cats"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class GameMode(StrEnum):
    PVP = "pvp"
    PVBOT = "pvbot"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Personality(StrEnum):
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"
    DEFENSIVE = "defensive"
