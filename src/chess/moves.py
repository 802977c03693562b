"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define the pseudo-legal destinations for each piece type.

None of these rules look at check. Legality is checked later by `src.chess.rules`.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Self

from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Piece, PieceType, Side
from src.chess.square import BOARD_DIMENSIONS, Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Piece: ...
    def is_empty(self, square: Square) -> bool: ...


Vector = tuple[int, int]

KNIGHT_DELTAS: list[Vector] = [
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
]
KING_DELTAS: list[Vector] = [
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
]
DIAGONALS: list[Vector] = [(1, 1), (1, -1), (-1, 1), (-1, -1)]
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface style notation
        ---
        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1h1": the king castles with the rook on h1
        """
        from_sq = Square.from_algebraic(uci[:2])
        to_sq = Square.from_algebraic(uci[2:4])
        promote_to = FEN_TO_PIECE[uci[4]] if len(uci) == 5 else None
        return cls(from_sq, to_sq, promote_to)

    def to_uci(self) -> str:
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"


@dataclass(frozen=True)
class EnPassantTarget:
    """
    Left behind by a pawn that just advanced two squares. Valid for the very next ply only.

    * pawn_square: where the pawn landed (and where it gets removed from when taken)
    * capture_square: the square it passed over, where the capturing pawn lands
    """

    pawn_square: Square
    capture_square: Square


# --- PAWN GEOMETRY ---
def pawn_direction(side: Side) -> int:
    """Dogs move up the board (towards row 0), cats move down."""
    return -1 if side == Side.DOGS else 1


def pawn_start_row(side: Side) -> int:
    return BOARD_DIMENSIONS[0] - 2 if side == Side.DOGS else 1


def promotion_row(side: Side) -> int:
    return 0 if side == Side.DOGS else BOARD_DIMENSIONS[0] - 1


# --- MOVEMENT RULES ---
def raycasting_move(square: Square, board: Board, directions: list[Vector]) -> list[Square]:
    """
    Raycasting algorithm
    -----
    Move along each direction until we hit another piece or the edge of the board.
    An opponent's piece is included (it can be captured), an own piece is not.
    """
    player_side = board.piece(square).side
    destinations: list[Square] = []
    for d_row, d_col in directions:
        target_square = square.offset(d_row, d_col)
        while target_square.is_within_bounds():
            if not board.is_empty(target_square):
                if board.piece(target_square).side != player_side:
                    destinations.append(target_square)
                break
            destinations.append(target_square)
            target_square = target_square.offset(d_row, d_col)
    return destinations


def single_step_move(square: Square, board: Board, deltas: list[Vector]) -> list[Square]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just move a single step along a direction"""
    player_side = board.piece(square).side
    destinations: list[Square] = []
    for d_row, d_col in deltas:
        target_square = square.offset(d_row, d_col)
        if not target_square.is_within_bounds():
            continue
        if board.piece(target_square).side != player_side:
            destinations.append(target_square)
    return destinations


def candidate_pawn_moves(
    square: Square, board: Board, en_passant: Optional[EnPassantTarget] = None
) -> list[Square]:
    """
    A pawn:
    - moves by a single square forward onto an empty square.
    - It can move by two from its starting row, if both squares are empty
    - takes diagonally, also onto the capture square of an en passant target
    """
    side = board.piece(square).side
    direction = pawn_direction(side)
    destinations: list[Square] = []

    one_forward = square.offset(direction, 0)
    if one_forward.is_within_bounds() and board.is_empty(one_forward):
        destinations.append(one_forward)
        two_forward = square.offset(2 * direction, 0)
        if square.row == pawn_start_row(side) and board.is_empty(two_forward):
            destinations.append(two_forward)

    for d_col in (-1, 1):
        target_square = square.offset(direction, d_col)
        if not target_square.is_within_bounds():
            continue
        target = board.piece(target_square)
        if not target.is_empty and target.side != side:
            destinations.append(target_square)
        elif (
            en_passant is not None
            and target_square == en_passant.capture_square
            and board.piece(en_passant.pawn_square).side == side.opponent
        ):
            destinations.append(target_square)
    return destinations


def candidate_knight_moves(
    square: Square, board: Board, en_passant: Optional[EnPassantTarget] = None
) -> list[Square]:
    """Knights always move such that |delta_row| + |delta_col| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(
    square: Square, board: Board, en_passant: Optional[EnPassantTarget] = None
) -> list[Square]:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(
    square: Square, board: Board, en_passant: Optional[EnPassantTarget] = None
) -> list[Square]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(
    square: Square, board: Board, en_passant: Optional[EnPassantTarget] = None
) -> list[Square]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return raycasting_move(square, board, STRAIGHTS + DIAGONALS)


def candidate_king_moves(
    square: Square, board: Board, en_passant: Optional[EnPassantTarget] = None
) -> list[Square]:
    """
    The king can move by a single square at the time.

    Castling is a special king move (king onto own rook), handled by the legality filter.
    """
    return single_step_move(square, board, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board, Optional[EnPassantTarget]], list[Square]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


def pseudo_legal_moves(
    board: Board, from_square: Square, en_passant: Optional[EnPassantTarget] = None
) -> set[Square]:
    """Destinations allowed by the movement rule of the piece on `from_square`. An empty square has none."""
    if not from_square.is_within_bounds():
        return set()
    piece = board.piece(from_square)
    if piece.is_empty:
        return set()
    movement_rule = MOVEMENT_RULES[piece.type]
    return set(movement_rule(from_square, board, en_passant))


# --- CAPTURING RULES / ATTACKING RULES ---
def raycasting_attack(
    square: Square,
    by_side: Side,
    by_piece_types: tuple[PieceType, ...],
    board: Board,
    directions: list[Vector],
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---
    Where `raycasting_move()` determines
    _"What is the line-of-sight of the piece standing on the specified square?"_

    This function determines:
    _"Is the specified square in the line-of-sight of a piece of the specified side that
    is allowed to move along the given direction?"_

    Returns TRUE if the first piece encountered along a direction is one of the attacking types.
    """
    for d_row, d_col in directions:
        target_square = square.offset(d_row, d_col)
        while target_square.is_within_bounds():
            if not board.is_empty(target_square):
                piece_found = board.piece(target_square)
                if piece_found.side == by_side and piece_found.type in by_piece_types:
                    return True
                break
            target_square = target_square.offset(d_row, d_col)
    return False


def single_step_attack(
    square: Square,
    by_side: Side,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """
    The single step equivalent of `raycasting_attack()`: pawns, kings and knights.
    """
    for d_row, d_col in deltas:
        target_square = square.offset(d_row, d_col)
        if not target_square.is_within_bounds():
            continue
        piece_found = board.piece(target_square)
        if piece_found.side == by_side and piece_found.type == by_piece_type:
            return True
    return False


def is_attacked_by_pawn(square: Square, by_side: Side, board: Board) -> bool:
    """
    Pawns attack diagonally only. Forward pushes are not attacks.

    NOTE: Pawn moves are not symmetric. To check IF a dog pawn (moving up, towards row 0) attacks your square -->
    look one row DOWN the board (row + 1). Hence the deltas are the inverse of the pawn's capture direction.
    """
    d_row = -pawn_direction(by_side)
    inverse_pawn_take_deltas: list[Vector] = [(d_row, -1), (d_row, 1)]
    return single_step_attack(
        square, by_side, PieceType.PAWN, board, inverse_pawn_take_deltas
    )


def is_attacked_by_knight(square: Square, by_side: Side, board: Board) -> bool:
    return single_step_attack(square, by_side, PieceType.KNIGHT, board, KNIGHT_DELTAS)


def is_attacked_by_bishop(square: Square, by_side: Side, board: Board) -> bool:
    return raycasting_attack(square, by_side, (PieceType.BISHOP,), board, DIAGONALS)


def is_attacked_by_rook(square: Square, by_side: Side, board: Board) -> bool:
    return raycasting_attack(square, by_side, (PieceType.ROOK,), board, STRAIGHTS)


def is_attacked_by_queen(square: Square, by_side: Side, board: Board) -> bool:
    return raycasting_attack(
        square, by_side, (PieceType.QUEEN,), board, STRAIGHTS + DIAGONALS
    )


def is_attacked_by_king(square: Square, by_side: Side, board: Board) -> bool:
    return single_step_attack(square, by_side, PieceType.KING, board, KING_DELTAS)


# --- STRATEGY PATTERN: ATTACKING RULES ---
IsAttackedFn = Callable[[Square, Side, Board], bool]
ATTACK_RULES: dict[PieceType, IsAttackedFn] = {
    PieceType.PAWN: is_attacked_by_pawn,
    PieceType.KNIGHT: is_attacked_by_knight,
    PieceType.BISHOP: is_attacked_by_bishop,
    PieceType.ROOK: is_attacked_by_rook,
    PieceType.QUEEN: is_attacked_by_queen,
    PieceType.KING: is_attacked_by_king,
}
