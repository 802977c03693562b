"""
Static evaluation of a board for the bot.

Material plus a positional bonus for pawns, counted positively for the searching side and negatively
for its opponent. Personality bonuses are scored per move on top of the search result.
"""

from src.chess.board import Board
from src.chess.moves import KING_DELTAS, Move
from src.chess.pieces import Piece, PieceType, Side
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.shared_types import Personality

PIECE_VALUES: dict[PieceType, int] = {
    PieceType.PAWN: 100,
    PieceType.KNIGHT: 320,
    PieceType.BISHOP: 330,
    PieceType.ROOK: 500,
    PieceType.QUEEN: 900,
    PieceType.KING: 20000,
}

# From the dogs' point of view: row 0 is where their pawns promote. Mirrored for the cats.
PAWN_POSITION_BONUS: list[list[int]] = [
    [0, 0, 0, 0, 0, 0, 0, 0],
    [50, 50, 50, 50, 50, 50, 50, 50],
    [10, 10, 20, 30, 30, 20, 10, 10],
    [5, 5, 10, 25, 25, 10, 5, 5],
    [0, 0, 0, 20, 20, 0, 0, 0],
    [5, -5, -10, 0, 0, -10, -5, 5],
    [5, 10, 10, -20, -20, 10, 10, 5],
    [0, 0, 0, 0, 0, 0, 0, 0],
]

AGGRESSIVE_CAPTURE_BONUS = 150
DEFENSIVE_NEIGHBOUR_BONUS = 15
# Every capture is worth a fifth of the victim on top of the search score
CAPTURE_BONUS_DIVISOR = 5


def positional_bonus(piece: Piece, square: Square) -> int:
    if piece.type != PieceType.PAWN:
        return 0
    row = square.row if piece.side == Side.DOGS else BOARD_DIMENSIONS[0] - 1 - square.row
    return PAWN_POSITION_BONUS[row][square.col]


def piece_score(piece: Piece, square: Square) -> int:
    return PIECE_VALUES[piece.type] + positional_bonus(piece, square)


def evaluate(board: Board, side: Side) -> int:
    """Score of the board seen by `side`: positive means `side` is ahead"""
    score = 0
    for square, piece in board.squares():
        if piece.side == side:
            score += piece_score(piece, square)
        else:
            score -= piece_score(piece, square)
    return score


def friendly_neighbours(board: Board, square: Square, side: Side, exclude: Square) -> int:
    """Own pieces on the squares around `square`, not counting the piece that is moving away from `exclude`"""
    count = 0
    for d_row, d_col in KING_DELTAS:
        neighbour = square.offset(d_row, d_col)
        if neighbour == exclude or not neighbour.is_within_bounds():
            continue
        if board.piece(neighbour).side == side:
            count += 1
    return count


def personality_bonus(
    board: Board, move: Move, side: Side, personality: Personality
) -> int:
    """
    Bonus for a root move, scored on the board BEFORE the move.

    * every personality likes captures a little (a fifth of the victim's value)
    * aggressive: a flat extra bonus for any capture
    * defensive: a bonus for every own piece next to the destination
    """
    target = board.piece(move.to_square)
    is_capture = not target.is_empty and target.side == side.opponent

    bonus = PIECE_VALUES[target.type] // CAPTURE_BONUS_DIVISOR if is_capture else 0
    if personality == Personality.AGGRESSIVE and is_capture:
        bonus += AGGRESSIVE_CAPTURE_BONUS
    elif personality == Personality.DEFENSIVE:
        bonus += DEFENSIVE_NEIGHBOUR_BONUS * friendly_neighbours(
            board, move.to_square, side, exclude=move.from_square
        )
    return bonus
