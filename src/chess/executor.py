"""
Move executor
----

Applies a (legal) move to a board and reports what happened. Pure: the en passant target is read from
the arguments and the one for the next ply is returned in the result, never stored globally.

NOTE: the caller must check legality first (`src.chess.rules.is_legal_move`).
"""

from dataclasses import dataclass
from typing import Optional

from src.chess.board import EMPTY, Board
from src.chess.castling import castling_squares
from src.chess.moves import EnPassantTarget, promotion_row
from src.chess.pieces import PROMOTION_OPTIONS, Piece, PieceType
from src.chess.rules import can_castle
from src.chess.square import Square


@dataclass(frozen=True)
class MoveResult:
    """The new board plus what the move did"""

    board: Board
    captured_piece: Optional[Piece] = None
    is_castling: bool = False
    is_en_passant: bool = False
    is_promotion: bool = False
    promotion_square: Optional[Square] = None
    # the target valid for the opponent's reply (None: nothing to take en passant)
    en_passant_target: Optional[EnPassantTarget] = None

    @property
    def is_capture(self) -> bool:
        return self.captured_piece is not None


def apply_move(
    board: Board,
    from_square: Square,
    to_square: Square,
    en_passant: Optional[EnPassantTarget] = None,
) -> MoveResult:
    """
    Execute the move
    ----

    1. King onto own rook (and castling allowed) --> castle: king to col 6/2, rook to col 5/3
    2. Pawn onto the en passant capture square --> remove the pawn that advanced two squares
    3. Pawn advancing two squares --> leaves an en passant target for the next ply
    4. Pawn reaching the far row --> flagged as promotion, resolved later by `promote()`
    5. pawns, kings and rooks remember that they moved
    """
    piece = board.piece(from_square)
    if piece.is_empty:
        return MoveResult(board=board)

    target = board.piece(to_square)

    if (
        piece.type == PieceType.KING
        and target.type == PieceType.ROOK
        and target.side == piece.side
        and can_castle(board, from_square, to_square)
    ):
        return _castle(board, from_square, to_square)

    captured_piece: Optional[Piece] = None if target.is_empty else target
    changes: dict[Square, Piece] = {from_square: EMPTY, to_square: piece.moved()}

    is_en_passant = (
        piece.type == PieceType.PAWN
        and en_passant is not None
        and to_square == en_passant.capture_square
    )
    if is_en_passant:
        # for the type checker: only reachable with a target
        assert en_passant is not None
        captured_piece = board.piece(en_passant.pawn_square)
        changes[en_passant.pawn_square] = EMPTY

    next_target: Optional[EnPassantTarget] = None
    if piece.type == PieceType.PAWN and abs(from_square.row - to_square.row) == 2:
        passed_over = Square((from_square.row + to_square.row) // 2, to_square.col)
        next_target = EnPassantTarget(pawn_square=to_square, capture_square=passed_over)

    is_promotion = piece.type == PieceType.PAWN and to_square.row == promotion_row(
        piece.side
    )

    return MoveResult(
        board=board.with_pieces(changes),
        captured_piece=captured_piece,
        is_en_passant=is_en_passant,
        is_promotion=is_promotion,
        promotion_square=to_square if is_promotion else None,
        en_passant_target=next_target,
    )


def _castle(board: Board, king_square: Square, rook_square: Square) -> MoveResult:
    """Move both the King and the Rook. Nothing gets captured and any en passant target expires."""
    squares = castling_squares(king_square, rook_square)
    king = board.piece(king_square)
    rook = board.piece(rook_square)
    new_board = board.with_pieces({king_square: EMPTY, rook_square: EMPTY}).with_pieces(
        {squares.king_to: king.moved(), squares.rook_to: rook.moved()}
    )
    return MoveResult(board=new_board, is_castling=True)


def promote(board: Board, square: Square, piece_type: PieceType) -> Board:
    """Resolve a promotion: replace the pawn on `square` with the chosen piece"""
    if piece_type not in PROMOTION_OPTIONS:
        raise ValueError(
            f"Cannot promote into {piece_type.name.lower()}. Pick one from {', '.join(p.name.lower() for p in PROMOTION_OPTIONS)}"
        )
    piece = board.piece(square)
    if piece.is_empty:
        return board
    return board.place_piece(piece.promoted_to(piece_type), square)
