"""
Legality filter
----

Wraps the movement rules of `src.chess.moves`: a pseudo-legal move is legal only if it does not leave
the mover's own king in check. Also decides check, checkmate, stalemate and the draw conditions.

Every function here is total: it answers False/empty for odd input (missing kings, off-board squares)
instead of raising.

NOTE: check detection only ever uses ATTACK_RULES, never the functions in this module,
so legality and check detection cannot recurse into each other.
"""

from enum import StrEnum
from typing import Optional, Sequence

from src.chess.board import EMPTY, Board
from src.chess.castling import castling_squares, squares_between_on_row
from src.chess.moves import (
    ATTACK_RULES,
    EnPassantTarget,
    Move,
    pseudo_legal_moves,
)
from src.chess.pieces import PieceType, Side
from src.chess.square import Square

# 50 moves by each side
FIFTY_MOVE_LIMIT = 100
# A threefold repetition needs at least this many recorded positions
MIN_REPETITION_HISTORY = 5


class GameStatus(StrEnum):
    ONGOING = "ongoing"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_FIFTY_MOVE = "draw-fiftymove"
    DRAW_REPETITION = "draw-repetition"
    DRAW_INSUFFICIENT_MATERIAL = "draw-insufficient-material"

    @property
    def is_over(self) -> bool:
        return self not in (GameStatus.ONGOING, GameStatus.CHECK)

    @property
    def is_draw(self) -> bool:
        return self.value.startswith("draw") or self == GameStatus.STALEMATE


# --- CHECK ---
def is_square_attacked(board: Board, square: Square, by_side: Side) -> bool:
    """Can any piece of `by_side` capture on `square`? (pawns only count their diagonal captures)"""
    return any(
        is_attacked(square, by_side, board) for is_attacked in ATTACK_RULES.values()
    )


def is_in_check(board: Board, side: Side) -> bool:
    """A board without a king for `side` is never in check"""
    king_square = board.find_king(side)
    if king_square is None:
        return False
    return is_square_attacked(board, king_square, side.opponent)


# --- CASTLING ---
def can_castle(board: Board, king_square: Square, rook_square: Square) -> bool:
    """
    Castling is requested by moving the king onto its own rook.
    ---

    **you are allowed to castle if**

    * king and rook belong to the same side, stand on the same row and have never moved
    * all squares between them are empty
    * you are not currently in check (you cannot castle out of a check)
    * the king does not pass through an attacked square (one and two steps toward the rook)
    """
    if not (king_square.is_within_bounds() and rook_square.is_within_bounds()):
        return False
    king = board.piece(king_square)
    rook = board.piece(rook_square)
    if king.type != PieceType.KING or rook.type != PieceType.ROOK:
        return False
    if king.side != rook.side:
        return False
    if king.has_moved or rook.has_moved:
        return False
    if king_square.row != rook_square.row:
        return False

    if not all(
        board.is_empty(square)
        for square in squares_between_on_row(king_square, rook_square)
    ):
        return False

    if is_in_check(board, king.side):
        return False

    squares = castling_squares(king_square, rook_square)
    for step_square in squares.king_path():
        if not step_square.is_within_bounds():
            return False
        if is_square_attacked(
            board.move_piece(king_square, step_square), step_square, king.side.opponent
        ):
            return False

    # king and rook must land on squares that are empty or that they vacate themselves
    for landing in (squares.king_to, squares.rook_to):
        if landing not in (king_square, rook_square) and not board.is_empty(landing):
            return False

    castled = board.with_pieces({king_square: EMPTY, rook_square: EMPTY}).with_pieces(
        {squares.king_to: king, squares.rook_to: rook}
    )
    return not is_in_check(castled, king.side)


# --- LEGALITY ---
def simulate_move(
    board: Board,
    from_square: Square,
    to_square: Square,
    en_passant: Optional[EnPassantTarget] = None,
) -> Board:
    """Scratch board after a plain move, including the removal of a pawn taken en passant"""
    piece = board.piece(from_square)
    scratch = board.move_piece(from_square, to_square)
    if (
        piece.type == PieceType.PAWN
        and en_passant is not None
        and to_square == en_passant.capture_square
    ):
        scratch = scratch.remove_piece(en_passant.pawn_square)
    return scratch


def is_legal_move(
    board: Board,
    from_square: Square,
    to_square: Square,
    side: Side,
    en_passant: Optional[EnPassantTarget] = None,
) -> bool:
    """
    Legal move check
    ----

    1. both squares on the board and different
    2. a piece of `side` stands on `from_square`
    3. destination is not one of your own pieces (except: king onto own rook = castling)
    4. the piece's movement rule allows the destination (never a king capture)
    5. after the move, your own king is not in check
    """
    if not (from_square.is_within_bounds() and to_square.is_within_bounds()):
        return False
    if from_square == to_square:
        return False
    candidates = pseudo_legal_moves(board, from_square, en_passant)
    return _is_legal_candidate(
        board, from_square, to_square, side, candidates, en_passant
    )


def _is_legal_candidate(
    board: Board,
    from_square: Square,
    to_square: Square,
    side: Side,
    candidates: set[Square],
    en_passant: Optional[EnPassantTarget],
) -> bool:
    """Steps 2-5 of `is_legal_move()`, with the movement rule's destinations computed by the caller"""
    piece = board.piece(from_square)
    if piece.is_empty or piece.side != side:
        return False

    target = board.piece(to_square)
    if target.side == side:
        if piece.type == PieceType.KING and target.type == PieceType.ROOK:
            return can_castle(board, from_square, to_square)
        return False
    if target.type == PieceType.KING:
        return False

    if to_square not in candidates:
        return False

    scratch = simulate_move(board, from_square, to_square, en_passant)
    return not is_in_check(scratch, side)


def castling_candidates(board: Board, king_square: Square) -> list[Square]:
    """Own rooks on the king's row: the squares the king may click to castle"""
    king = board.piece(king_square)
    if king.type != PieceType.KING:
        return []
    return [
        square
        for square in board.locate_pieces(PieceType.ROOK, king.side)
        if square.row == king_square.row
    ]


def legal_destinations(
    board: Board,
    from_square: Square,
    side: Side,
    en_passant: Optional[EnPassantTarget] = None,
) -> list[Square]:
    """Squares the piece on `from_square` may legally move to, ascending (row, col). Used for highlights."""
    if not from_square.is_within_bounds():
        return []
    candidates = pseudo_legal_moves(board, from_square, en_passant)
    return sorted(
        square
        for square in candidates.union(castling_candidates(board, from_square))
        if _is_legal_candidate(
            board, from_square, square, side, candidates, en_passant
        )
    )


def legal_moves(
    board: Board, side: Side, en_passant: Optional[EnPassantTarget] = None
) -> list[Move]:
    """
    All legal moves of `side` in generation order:
    origin ascending (row, col), then destination ascending (row, col).

    NOTE: promotions are not expanded. A pawn reaching the far row is a single move; the piece is chosen afterwards.
    """
    return [
        Move(from_square, to_square)
        for from_square in board.locate_side(side)
        for to_square in legal_destinations(board, from_square, side, en_passant)
    ]


def has_legal_move(
    board: Board, side: Side, en_passant: Optional[EnPassantTarget] = None
) -> bool:
    for from_square in board.locate_side(side):
        candidates = pseudo_legal_moves(board, from_square, en_passant)
        if any(
            _is_legal_candidate(
                board, from_square, to_square, side, candidates, en_passant
            )
            for to_square in candidates.union(castling_candidates(board, from_square))
        ):
            return True
    return False


# --- CHECKS FOR ENDING THE GAME ---
def is_checkmate(
    board: Board, side: Side, en_passant: Optional[EnPassantTarget] = None
) -> bool:
    return is_in_check(board, side) and not has_legal_move(board, side, en_passant)


def is_stalemate(
    board: Board, side: Side, en_passant: Optional[EnPassantTarget] = None
) -> bool:
    return not is_in_check(board, side) and not has_legal_move(board, side, en_passant)


MINOR_PIECES = (PieceType.BISHOP, PieceType.KNIGHT)


def has_insufficient_material(board: Board) -> bool:
    """
    Neither side can ever mate:
    * king vs king
    * king + bishop/knight vs king
    * king + bishop vs king + bishop, both bishops on squares of the same colour
    """
    dogs = board.side_pieces(Side.DOGS)
    cats = board.side_pieces(Side.CATS)

    if len(dogs) == 1 and len(cats) == 1:
        return True

    for lone, other in ((dogs, cats), (cats, dogs)):
        if len(lone) == 1 and len(other) == 2:
            extra = [piece for piece in other if piece.type != PieceType.KING]
            if extra and extra[0].type in MINOR_PIECES:
                return True

    if len(dogs) == 2 and len(cats) == 2:
        dog_bishops = board.locate_pieces(PieceType.BISHOP, Side.DOGS)
        cat_bishops = board.locate_pieces(PieceType.BISHOP, Side.CATS)
        if dog_bishops and cat_bishops:
            return dog_bishops[0].shade == cat_bishops[0].shade

    return False


def check_threefold_repetition(position_history: Sequence[str]) -> bool:
    """The most recent position signature occurs (at least) three times in the history"""
    if len(position_history) < MIN_REPETITION_HISTORY:
        return False
    return position_history.count(position_history[-1]) >= 3


def next_half_move_clock(
    half_move_clock: int, moving_piece_type: PieceType, is_capture: bool
) -> int:
    """Captures and pawn moves reset the clock, anything else counts one more half move"""
    if is_capture or moving_piece_type == PieceType.PAWN:
        return 0
    return half_move_clock + 1


def is_fifty_move_draw(half_move_clock: int) -> bool:
    return half_move_clock >= FIFTY_MOVE_LIMIT


def game_status(
    board: Board,
    side: Side,
    half_move_clock: int,
    position_history: Sequence[str],
    en_passant: Optional[EnPassantTarget] = None,
) -> GameStatus:
    """Status from the point of view of `side`, the side to move"""
    in_check = is_in_check(board, side)
    if not has_legal_move(board, side, en_passant):
        return GameStatus.CHECKMATE if in_check else GameStatus.STALEMATE
    if check_threefold_repetition(position_history):
        return GameStatus.DRAW_REPETITION
    if is_fifty_move_draw(half_move_clock):
        return GameStatus.DRAW_FIFTY_MOVE
    if has_insufficient_material(board):
        return GameStatus.DRAW_INSUFFICIENT_MATERIAL
    if in_check:
        return GameStatus.CHECK
    return GameStatus.ONGOING
