"""
Special abilities ("crazy mode")
----

The dogs own a laser pointer, the cats own a bone. Using one lures the nearest opposing piece onto a chosen square.
This bypasses the movement rules entirely, so it is modelled as its own operation next to normal moves.
Gating (crazy mode, counters, whose turn it is) is done by the Game.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.chess.board import Board
from src.chess.pieces import Piece, PieceType, Side
from src.chess.square import Square


class Ability(Enum):
    """Values are the labels used in the move history"""

    LASER_POINTER = "Laser"
    BONE = "Bone"


# Which side owns which ability
ABILITY_OWNERS: dict[Ability, Side] = {
    Ability.LASER_POINTER: Side.DOGS,
    Ability.BONE: Side.CATS,
}

DEFAULT_ABILITY_COUNT = 3


def ability_of(side: Side) -> Ability:
    return next(ability for ability, owner in ABILITY_OWNERS.items() if owner == side)


@dataclass(frozen=True)
class AbilityResult:
    board: Board
    moved_from: Square
    target: Square
    captured_piece: Optional[Piece] = None


def manhattan_distance(a: Square, b: Square) -> int:
    return abs(a.row - b.row) + abs(a.col - b.col)


def find_closest_piece(board: Board, target: Square, side: Side) -> Optional[Square]:
    """Nearest piece of `side` to `target`. Ties go to the first one in (row, col) order."""
    closest: Optional[Square] = None
    min_distance: Optional[int] = None
    for square in board.locate_side(side):
        distance = manhattan_distance(square, target)
        if min_distance is None or distance < min_distance:
            closest, min_distance = square, distance
    return closest


def use_ability(board: Board, ability: Ability, target: Square) -> Optional[AbilityResult]:
    """
    Lure the opponent's closest piece onto `target`. Whatever stands on `target` is captured.

    Returns None if there is nothing to lure, the target is off the board or a king stands on it
    (kings are never captured).
    """
    if not target.is_within_bounds():
        return None
    if board.piece(target).type == PieceType.KING:
        return None
    lured_side = ABILITY_OWNERS[ability].opponent
    closest = find_closest_piece(board, target, lured_side)
    if closest is None:
        return None

    occupant = board.piece(target)
    captured_piece = None if occupant.is_empty or closest == target else occupant
    return AbilityResult(
        board=board.move_piece(closest, target),
        moved_from=closest,
        target=target,
        captured_piece=captured_piece,
    )
