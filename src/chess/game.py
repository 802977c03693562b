"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a turn of the board game -->
passes this information to the service layer, which can then pass it onwards to the API layer.

Every turn produces a new (immutable) GameState. Committed states are kept on a timeline for undo/redo.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Self

from src.bot.search import BotConfig, select_bot_move
from src.chess.abilities import (
    ABILITY_OWNERS,
    DEFAULT_ABILITY_COUNT,
    Ability,
    ability_of,
    use_ability,
)
from src.chess.board import Board
from src.chess.castling import castling_squares
from src.chess.executor import MoveResult, apply_move, promote
from src.chess.moves import EnPassantTarget, Move
from src.chess.pieces import (
    AVAILABLE_SIDE_NAMES,
    PIECE_TO_FEN,
    PROMOTION_OPTIONS,
    Piece,
    PieceType,
    Side,
)
from src.chess.rules import (
    GameStatus,
    game_status,
    is_legal_move,
    legal_destinations,
    next_half_move_clock,
)
from src.chess.square import Square
from src.core.config import get_settings
from src.core.exceptions import (
    AbilityNotAvailableError,
    GameStateError,
    IllegalMoveError,
    NotYourTurnError,
)
from src.core.models import GameModel, StateModel
from src.core.shared_types import Difficulty, GameMode, Personality

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameSettings:
    mode: GameMode = GameMode.PVP
    crazy_mode: bool = False
    # the human's side in pvbot mode. The bot plays the other one.
    player_side: Side = Side.DOGS
    ability_count: int = DEFAULT_ABILITY_COUNT
    difficulty: Difficulty = Difficulty.MEDIUM
    personality: Personality = Personality.BALANCED

    @property
    def bot_side(self) -> Optional[Side]:
        if self.mode != GameMode.PVBOT:
            return None
        return self.player_side.opponent


@dataclass(frozen=True)
class GameState:
    """Everything needed to continue (or restore) a game at one moment"""

    board: Board
    side_to_move: Side
    # pieces captured BY each side
    captured: dict[Side, tuple[Piece, ...]]
    move_history: tuple[str, ...]
    en_passant: Optional[EnPassantTarget]
    half_move_clock: int
    # position signatures, one per position reached (the starting position included)
    position_history: tuple[str, ...]
    ability_counts: dict[Side, int]
    status: GameStatus
    # set while a pawn waits on the far row for `Game.promote()`
    pending_promotion: Optional[Square] = None

    @classmethod
    def initial(cls, ability_count: int = DEFAULT_ABILITY_COUNT) -> Self:
        board = Board.starting_position()
        return cls(
            board=board,
            side_to_move=Side.DOGS,
            captured={Side.DOGS: (), Side.CATS: ()},
            move_history=(),
            en_passant=None,
            half_move_clock=0,
            position_history=(board.signature(),),
            ability_counts={Side.DOGS: ability_count, Side.CATS: ability_count},
            status=GameStatus.ONGOING,
        )


def move_notation(
    piece: Piece, from_square: Square, to_square: Square, result: MoveResult
) -> str:
    """
    Move history entry
    ----
    * "Ng1-f3": piece initial (none for pawns), origin, destination
    * "O-O" / "O-O-O": castling
    * a promotion gets its suffix ("=Q") once the piece is chosen
    """
    if result.is_castling:
        return castling_squares(from_square, to_square).direction.value
    initial = "" if piece.type == PieceType.PAWN else PIECE_TO_FEN[piece.type].upper()
    return f"{initial}{from_square.to_algebraic()}-{to_square.to_algebraic()}"


def promotion_suffix(piece_type: PieceType) -> str:
    return f"={PIECE_TO_FEN[piece_type].upper()}"


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    state: GameState
    settings: GameSettings = field(default_factory=GameSettings)
    timeline: list[GameState] = field(default_factory=list)
    cursor: int = 0
    # overrides the bot settings derived from the environment (tests, tuning)
    bot_config: Optional[BotConfig] = None
    _bot_thinking: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.timeline:
            self.timeline = [self.state]
            self.cursor = 0

    @classmethod
    def new_game(cls, settings: Optional[GameSettings] = None) -> Self:
        """Standard starting position, dogs to move, no en passant target"""
        settings = settings or GameSettings()
        if settings.player_side.name not in AVAILABLE_SIDE_NAMES:
            raise GameStateError(
                f"Cannot create new game. Side {settings.player_side.name.lower()} not in {','.join(s.lower() for s in AVAILABLE_SIDE_NAMES)}."
            )
        if settings.ability_count < 0:
            raise GameStateError("Ability count cannot be negative.")
        logger.info(
            "new %s game (crazy mode: %s)", settings.mode.value, settings.crazy_mode
        )
        return cls(state=GameState.initial(settings.ability_count), settings=settings)

    # --- QUERIES ---
    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def status(self) -> GameStatus:
        return self.state.status

    @property
    def side_to_move(self) -> Side:
        return self.state.side_to_move

    @property
    def is_over(self) -> bool:
        return self.state.status.is_over

    @property
    def is_bot_turn(self) -> bool:
        return self.settings.bot_side == self.state.side_to_move

    @property
    def winner(self) -> Optional[Side]:
        """
        For now only works for checkmate.
        Given we know it is checkmate, the side that is requested to move just got mated and the opponent must be the winner
        """
        if self.state.status != GameStatus.CHECKMATE:
            return None
        return self.state.side_to_move.opponent

    @property
    def can_undo(self) -> bool:
        return self.cursor > 0 or self.state.pending_promotion is not None

    @property
    def can_redo(self) -> bool:
        return self.cursor < len(self.timeline) - 1

    def legal_destinations(self, square: Square) -> list[Square]:
        """Highlights for the piece on `square`. Empty if it does not belong to the side to move."""
        if self.is_over or self.state.pending_promotion is not None:
            return []
        return legal_destinations(
            self.state.board, square, self.state.side_to_move, self.state.en_passant
        )

    # --- ACTIONS ---
    def make_move(
        self,
        from_square: Square,
        to_square: Square,
        promote_to: Optional[PieceType] = None,
        side: Optional[Side] = None,
    ) -> MoveResult:
        """
        Attempt to make a move
        -----

        1. game must be running and not waiting for a promotion choice
        2. it must be your turn (and not the bot's)
        3. the move must be legal
        4. update board, captured pieces, notation, half move clock, positions, status

        A pawn reaching the far row without `promote_to` leaves the game waiting for `promote()`.
        """
        self._assert_running()
        self._assert_your_turn(side)

        state = self.state
        mover = state.side_to_move
        piece = state.board.piece(from_square)
        if not piece.is_empty and piece.side == mover.opponent:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for the {mover.name.lower()} to make a move first."
            )
        if not is_legal_move(
            state.board, from_square, to_square, mover, state.en_passant
        ):
            logger.debug(
                "illegal move %s-%s rejected", from_square.to_algebraic(), to_square.to_algebraic()
            )
            raise IllegalMoveError(
                f"Move not allowed: {from_square.to_algebraic()}-{to_square.to_algebraic()}"
            )
        if promote_to is not None and promote_to not in PROMOTION_OPTIONS:
            raise IllegalMoveError(
                f"Cannot promote into {promote_to.name.lower()}."
            )

        result = apply_move(state.board, from_square, to_square, state.en_passant)
        notation = move_notation(piece, from_square, to_square, result)
        captured = self._with_capture(mover, result.captured_piece)
        half_move_clock = next_half_move_clock(
            state.half_move_clock, piece.type, result.is_capture
        )

        if result.is_promotion and result.promotion_square is not None:
            if promote_to is None:
                # turn is not over until the piece is chosen
                self.state = replace(
                    state,
                    board=result.board,
                    captured=captured,
                    move_history=state.move_history + (notation,),
                    en_passant=None,
                    half_move_clock=half_move_clock,
                    pending_promotion=result.promotion_square,
                )
                return result
            board = promote(result.board, result.promotion_square, promote_to)
            notation += promotion_suffix(promote_to)
        else:
            board = result.board

        self._finish_turn(
            board=board,
            captured=captured,
            move_history=state.move_history + (notation,),
            en_passant=result.en_passant_target,
            half_move_clock=half_move_clock,
            ability_counts=state.ability_counts,
        )
        return result

    def promote(self, piece_type: PieceType) -> None:
        """Resolve the pending promotion and end the turn"""
        state = self.state
        if state.pending_promotion is None:
            raise GameStateError("There is no pawn waiting to be promoted.")
        if piece_type not in PROMOTION_OPTIONS:
            raise IllegalMoveError(
                f"Cannot promote into {piece_type.name.lower()}. Pick one from {', '.join(p.name.lower() for p in PROMOTION_OPTIONS)}"
            )
        board = promote(state.board, state.pending_promotion, piece_type)
        move_history = state.move_history[:-1] + (
            state.move_history[-1] + promotion_suffix(piece_type),
        )
        self._finish_turn(
            board=board,
            captured=state.captured,
            move_history=move_history,
            en_passant=None,
            half_move_clock=state.half_move_clock,
            ability_counts=state.ability_counts,
        )

    def use_ability(
        self,
        target: Square,
        ability: Optional[Ability] = None,
        side: Optional[Side] = None,
    ) -> bool:
        """
        Use the laser pointer (dogs) or the bone (cats) on `target`.
        ----

        Returns False if there was no piece to lure: nothing changes, the turn is not used up.
        Otherwise the lured piece lands on `target` (capturing what stood there) and the turn ends.
        """
        self._assert_running()
        self._assert_your_turn(side)

        state = self.state
        user = state.side_to_move
        if not self.settings.crazy_mode:
            raise AbilityNotAvailableError("Special abilities are only available in crazy mode.")
        ability = ability or ability_of(user)
        if ABILITY_OWNERS[ability] != user:
            raise AbilityNotAvailableError(
                f"The {user.name.lower()} cannot use the {ability.value.lower()}."
            )
        if state.ability_counts[user] <= 0:
            raise AbilityNotAvailableError(
                f"The {user.name.lower()} have no {ability.value.lower()} uses left."
            )

        result = use_ability(state.board, ability, target)
        if result is None:
            logger.debug("%s on %s found nothing to lure", ability.value, target.to_algebraic())
            return False

        ability_counts = dict(state.ability_counts)
        ability_counts[user] -= 1
        self._finish_turn(
            board=result.board,
            captured=self._with_capture(user, result.captured_piece),
            move_history=state.move_history + (f"{ability.value}: {target.to_algebraic()}",),
            en_passant=None,
            half_move_clock=next_half_move_clock(
                state.half_move_clock, PieceType.EMPTY, result.captured_piece is not None
            ),
            ability_counts=ability_counts,
        )
        return True

    def play_bot_move(self) -> Optional[Move]:
        """
        Let the bot play its turn (pvbot mode only). Bot promotions become a queen.

        If the game moved on while the bot was thinking, its answer is thrown away and None is returned.
        """
        if self._bot_thinking:
            raise GameStateError("The bot is already thinking about its move.")
        bot_side = self.settings.bot_side
        if bot_side is None:
            raise GameStateError("There is no bot in a player vs player game.")
        self._assert_running()
        if self.state.side_to_move != bot_side:
            raise NotYourTurnError("It is not the bot's turn.")

        snapshot = self.state
        self._bot_thinking = True
        try:
            move = select_bot_move(
                snapshot.board, bot_side, self._bot_config(), snapshot.en_passant
            )
        finally:
            self._bot_thinking = False

        if self.state is not snapshot:
            logger.info("board changed while the bot was thinking, discarding its move")
            return None
        if move is None:
            return None

        self._bot_thinking = True
        try:
            self.make_move(move.from_square, move.to_square, PieceType.QUEEN, side=bot_side)
        finally:
            self._bot_thinking = False
        logger.info("bot (%s) played %s", bot_side.name.lower(), self.state.move_history[-1])
        return move

    def undo(self) -> None:
        """Go back one committed state. A promotion still waiting for its piece is simply taken back."""
        if self.state.pending_promotion is not None:
            self.state = self.timeline[self.cursor]
            return
        if not self.can_undo:
            raise GameStateError("Nothing to undo.")
        self.cursor -= 1
        self.state = self.timeline[self.cursor]

    def redo(self) -> None:
        if self.state.pending_promotion is not None or not self.can_redo:
            raise GameStateError("Nothing to redo.")
        self.cursor += 1
        self.state = self.timeline[self.cursor]

    # --- CONVERSION ---
    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""
        try:
            settings = GameSettings(
                mode=GameMode(model.mode),
                crazy_mode=bool(model.crazy_mode),
                player_side=side_from_name(model.player_side),
                ability_count=int(model.ability_count),
                difficulty=Difficulty(model.difficulty),
                personality=Personality(model.personality),
            )
            state = state_from_model(model.state)
            timeline = [state_from_model(snapshot) for snapshot in model.timeline]
        except (KeyError, ValueError, TypeError, IndexError, AttributeError) as error:
            raise GameStateError(f"Corrupt game data: {error}") from error

        if timeline and not 0 <= model.cursor < len(timeline):
            raise GameStateError(
                f"Corrupt game data: cursor {model.cursor} outside the timeline of {len(timeline)} states"
            )
        return cls(state=state, settings=settings, timeline=timeline, cursor=model.cursor)

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            mode=self.settings.mode.value,
            crazy_mode=self.settings.crazy_mode,
            player_side=self.settings.player_side.name.lower(),
            ability_count=self.settings.ability_count,
            difficulty=self.settings.difficulty.value,
            personality=self.settings.personality.value,
            state=state_to_model(self.state),
            timeline=[state_to_model(snapshot) for snapshot in self.timeline],
            cursor=self.cursor,
        )

    # -- PRIVATE HELPERS ---
    def _assert_running(self) -> None:
        if self.is_over:
            raise GameStateError(f"Game is over. status: {self.state.status.value}")
        if self.state.pending_promotion is not None:
            raise GameStateError(
                f"Waiting for the pawn on {self.state.pending_promotion.to_algebraic()} to be promoted."
            )

    def _assert_your_turn(self, side: Optional[Side]) -> None:
        """You must wait for your turn. In pvbot mode the bot's turn is played through `play_bot_move()`."""
        side_to_move = self.state.side_to_move
        if side is not None and side != side_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for the {side_to_move.name.lower()} to make a move first."
            )
        if self.is_bot_turn and not self._bot_thinking:
            raise NotYourTurnError("It is the bot's turn.")

    def _with_capture(
        self, side: Side, captured_piece: Optional[Piece]
    ) -> dict[Side, tuple[Piece, ...]]:
        captured = dict(self.state.captured)
        if captured_piece is not None:
            # captured pieces are kept without their has_moved flag
            captured[side] = captured[side] + (Piece(captured_piece.type, captured_piece.side),)
        return captured

    def _finish_turn(
        self,
        board: Board,
        captured: dict[Side, tuple[Piece, ...]],
        move_history: tuple[str, ...],
        en_passant: Optional[EnPassantTarget],
        half_move_clock: int,
        ability_counts: dict[Side, int],
    ) -> None:
        """Hand the turn to the opponent, recompute the status and commit the new state to the timeline"""
        next_side = self.state.side_to_move.opponent
        position_history = self.state.position_history + (board.signature(),)
        status = game_status(
            board, next_side, half_move_clock, position_history, en_passant
        )
        self.state = GameState(
            board=board,
            side_to_move=next_side,
            captured=captured,
            move_history=move_history,
            en_passant=en_passant,
            half_move_clock=half_move_clock,
            position_history=position_history,
            ability_counts=ability_counts,
            status=status,
        )
        # a new action discards whatever could have been redone
        del self.timeline[self.cursor + 1 :]
        self.timeline.append(self.state)
        self.cursor = len(self.timeline) - 1

        if status.is_over:
            logger.info("game over: %s", status.value)

    def _bot_config(self) -> BotConfig:
        if self.bot_config is not None:
            return self.bot_config
        return BotConfig.from_settings(
            get_settings(), self.settings.difficulty, self.settings.personality
        )


# --- SNAPSHOT CONVERSION ---
def side_from_name(name: str) -> Side:
    if name.upper() not in AVAILABLE_SIDE_NAMES:
        raise ValueError(
            f"Invalid side: {name!r}. Pick one from {','.join(s.lower() for s in AVAILABLE_SIDE_NAMES)}"
        )
    return Side[name.upper()]


def board_from_model(placement: str, moved_squares: list[str]) -> Board:
    board = Board.from_fen(placement)
    changes: dict[Square, Piece] = {}
    for name in moved_squares:
        square = Square.from_algebraic(name)
        piece = board.piece(square)
        if piece.is_empty:
            raise ValueError(f"No piece on moved square {name!r}")
        changes[square] = replace(piece, has_moved=True)
    return board.with_pieces(changes)


def state_to_model(state: GameState) -> StateModel:
    board = state.board
    return StateModel(
        board=board.to_fen(),
        moved_squares=[
            square.to_algebraic() for square, piece in board.squares() if piece.has_moved
        ],
        side_to_move=state.side_to_move.name.lower(),
        captured={
            side.name.lower(): [piece.to_fen() for piece in pieces]
            for side, pieces in state.captured.items()
        },
        move_history=list(state.move_history),
        en_passant=(
            [
                state.en_passant.pawn_square.to_algebraic(),
                state.en_passant.capture_square.to_algebraic(),
            ]
            if state.en_passant
            else None
        ),
        half_move_clock=state.half_move_clock,
        position_history=list(state.position_history),
        ability_counts={
            side.name.lower(): count for side, count in state.ability_counts.items()
        },
        status=state.status.value,
        pending_promotion=(
            state.pending_promotion.to_algebraic() if state.pending_promotion else None
        ),
    )


def state_from_model(model: StateModel) -> GameState:
    """Raises ValueError/KeyError/TypeError on malformed data. Nothing is built half-way."""
    board = board_from_model(model.board, model.moved_squares)

    en_passant = None
    if model.en_passant is not None:
        pawn_square, capture_square = model.en_passant
        en_passant = EnPassantTarget(
            pawn_square=Square.from_algebraic(pawn_square),
            capture_square=Square.from_algebraic(capture_square),
        )

    pending_promotion = (
        Square.from_algebraic(model.pending_promotion)
        if model.pending_promotion
        else None
    )
    for square in filter(None, [pending_promotion, en_passant and en_passant.capture_square]):
        if not square.is_within_bounds():
            raise ValueError(f"Square {square} is not on the board")

    half_move_clock = int(model.half_move_clock)
    if half_move_clock < 0:
        raise ValueError("Half move clock cannot be negative")

    return GameState(
        board=board,
        side_to_move=side_from_name(model.side_to_move),
        captured={
            side: tuple(
                Piece.from_fen(character)
                for character in model.captured.get(side.name.lower(), [])
            )
            for side in (Side.DOGS, Side.CATS)
        },
        move_history=tuple(str(entry) for entry in model.move_history),
        en_passant=en_passant,
        half_move_clock=half_move_clock,
        position_history=tuple(str(entry) for entry in model.position_history),
        ability_counts={
            side: int(model.ability_counts[side.name.lower()])
            for side in (Side.DOGS, Side.CATS)
        },
        status=GameStatus(model.status),
        pending_promotion=pending_promotion,
    )

