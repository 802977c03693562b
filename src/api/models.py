"""Requests and Response models"""

from typing import Optional, Self
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.models import GameModel, StateModel
from src.core.shared_types import Difficulty, GameMode, Personality, PieceType, Side

SAVE_FILE_VERSION = 1
FILES = "abcdefgh"
RANKS = "12345678"


def is_algebraic_notation(value: str) -> bool:
    return len(value) == 2 and value[0] in FILES and value[1] in RANKS


def validate_square_name(value: str) -> str:
    if not is_algebraic_notation(value):
        raise InvalidRequestError(
            f"Cannot interpret {value!r} as a valid square name."
        )
    return value


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    mode: GameMode = GameMode.PVP
    crazy_mode: bool = False
    player_side: Side = Side.DOGS
    ability_count: int = 3
    difficulty: Difficulty = Difficulty.MEDIUM
    personality: Personality = Personality.BALANCED

    @field_validator("ability_count")
    @classmethod
    def validate_ability_count(cls, value: int) -> int:
        if value < 0:
            raise InvalidRequestError("Ability count cannot be negative.")
        return value


class GetGameRequest(BaseModel):
    game_id: UUID


class DeleteGameRequest(BaseModel):
    game_id: UUID


class UndoRequest(BaseModel):
    game_id: UUID


class RedoRequest(BaseModel):
    game_id: UUID


class BotMoveRequest(BaseModel):
    game_id: UUID


class ExportGameRequest(BaseModel):
    game_id: UUID


class LegalDestinationsRequest(BaseModel):
    game_id: UUID
    square: str

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return validate_square_name(value)


class MoveRequest(BaseModel):
    game_id: UUID
    side: Side
    from_square: str
    to_square: str
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        return validate_square_name(value)


class PromoteRequest(BaseModel):
    game_id: UUID
    side: Side
    piece_type: PieceType


class AbilityRequest(BaseModel):
    game_id: UUID
    side: Side
    target: str

    @field_validator("target")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return validate_square_name(value)


class ImportGameRequest(BaseModel):
    # JSON text of a SaveFile, as produced by export
    save: str


# --- SAVE FILE ---
class SavedState(BaseModel):
    """One snapshot inside a save file"""

    board: str
    moved_squares: list[str] = []
    side_to_move: Side
    captured: dict[Side, list[str]]
    move_history: list[str]
    en_passant: Optional[list[str]] = None
    half_move_clock: int = Field(ge=0)
    position_history: list[str]
    ability_counts: dict[Side, int]
    status: str
    pending_promotion: Optional[str] = None

    @field_validator("moved_squares")
    @classmethod
    def validate_moved_squares(cls, value: list[str]) -> list[str]:
        return [validate_square_name(square) for square in value]

    @field_validator("en_passant")
    @classmethod
    def validate_en_passant(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return value
        if len(value) != 2:
            raise InvalidRequestError(
                "En passant target must be [pawn_square, capture_square]."
            )
        return [validate_square_name(square) for square in value]

    @field_validator("pending_promotion")
    @classmethod
    def validate_pending_promotion(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return validate_square_name(value)

    @classmethod
    def from_state_model(cls, model: StateModel) -> Self:
        return cls(
            board=model.board,
            moved_squares=model.moved_squares,
            side_to_move=Side(model.side_to_move),
            captured={Side(side): pieces for side, pieces in model.captured.items()},
            move_history=model.move_history,
            en_passant=model.en_passant,
            half_move_clock=model.half_move_clock,
            position_history=model.position_history,
            ability_counts={
                Side(side): count for side, count in model.ability_counts.items()
            },
            status=model.status,
            pending_promotion=model.pending_promotion,
        )

    def to_state_model(self) -> StateModel:
        return StateModel(
            board=self.board,
            moved_squares=list(self.moved_squares),
            side_to_move=self.side_to_move.value,
            captured={side.value: list(pieces) for side, pieces in self.captured.items()},
            move_history=list(self.move_history),
            en_passant=list(self.en_passant) if self.en_passant else None,
            half_move_clock=self.half_move_clock,
            position_history=list(self.position_history),
            ability_counts={side.value: count for side, count in self.ability_counts.items()},
            status=self.status,
            pending_promotion=self.pending_promotion,
        )


class SaveFile(BaseModel):
    """Exported game: settings, current state and the undo/redo timeline"""

    version: int = SAVE_FILE_VERSION
    mode: GameMode
    crazy_mode: bool
    player_side: Side
    ability_count: int = Field(ge=0)
    difficulty: Difficulty
    personality: Personality
    state: SavedState
    timeline: list[SavedState]
    cursor: int = Field(ge=0)

    @field_validator("version")
    @classmethod
    def validate_version(cls, value: int) -> int:
        if value != SAVE_FILE_VERSION:
            raise InvalidRequestError(f"Unsupported save file version: {value}")
        return value

    @classmethod
    def from_game_model(cls, model: GameModel) -> Self:
        return cls(
            mode=GameMode(model.mode),
            crazy_mode=model.crazy_mode,
            player_side=Side(model.player_side),
            ability_count=model.ability_count,
            difficulty=Difficulty(model.difficulty),
            personality=Personality(model.personality),
            state=SavedState.from_state_model(model.state),
            timeline=[SavedState.from_state_model(s) for s in model.timeline],
            cursor=model.cursor,
        )

    def to_game_model(self) -> GameModel:
        return GameModel(
            mode=self.mode.value,
            crazy_mode=self.crazy_mode,
            player_side=self.player_side.value,
            ability_count=self.ability_count,
            difficulty=self.difficulty.value,
            personality=self.personality.value,
            state=self.state.to_state_model(),
            timeline=[snapshot.to_state_model() for snapshot in self.timeline],
            cursor=self.cursor,
        )


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game_id: UUID
    mode: GameMode
    crazy_mode: bool
    player_side: Side
    side_to_move: Side
    # placement part of a FEN string: upper case = dogs, lower case = cats
    board: str
    status: str
    move_history: list[str]
    captured: dict[Side, list[str]]
    ability_counts: dict[Side, int]
    en_passant_square: Optional[str] = None
    half_move_clock: int
    pending_promotion: Optional[str] = None
    can_undo: bool
    can_redo: bool
    winner: Optional[Side] = None


class LegalDestinationsResponse(BaseModel):
    game_id: UUID
    square: str
    destinations: list[str]


class BotMoveResponse(BaseModel):
    game: GameResponse
    # UCI style ("e7e5"), None if the bot's answer was discarded
    move: Optional[str] = None


class ExportGameResponse(BaseModel):
    game_id: UUID
    save: str
