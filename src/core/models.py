"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make the models easier to read
SideName = str
SquareName = str
FenCharacter = str


@dataclass
class StateModel:
    """Transport-safe snapshot of one moment of a game. Only strings, numbers, lists and dicts."""

    # placement part of a FEN string
    board: str
    # squares of pawns, kings and rooks that have moved (FEN cannot express this)
    moved_squares: list[SquareName]
    side_to_move: SideName
    captured: dict[SideName, list[FenCharacter]]
    move_history: list[str]
    # [pawn_square, capture_square] or None
    en_passant: Optional[list[SquareName]]
    half_move_clock: int
    position_history: list[str]
    ability_counts: dict[SideName, int]
    status: str
    pending_promotion: Optional[SquareName] = None


@dataclass
class GameModel:
    """Transport-safe representation of a game used between API, Service, DB, and Game layers."""

    mode: str
    crazy_mode: bool
    player_side: SideName
    ability_count: int
    difficulty: str
    personality: str
    state: StateModel
    # undo/redo timeline: committed states, `cursor` points at the one currently shown
    timeline: list[StateModel] = field(default_factory=list)
    cursor: int = 0
