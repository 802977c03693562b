"""Orchestration of communication from API models to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Optional
from uuid import UUID

from pydantic import ValidationError

from src.api.models import (
    AbilityRequest,
    BotMoveRequest,
    BotMoveResponse,
    CreateGameRequest,
    DeleteGameRequest,
    ExportGameRequest,
    ExportGameResponse,
    GameResponse,
    GetGameRequest,
    ImportGameRequest,
    LegalDestinationsRequest,
    LegalDestinationsResponse,
    MoveRequest,
    PromoteRequest,
    RedoRequest,
    SaveFile,
    UndoRequest,
)
from src.bot.search import BotConfig
from src.chess.game import Game, GameSettings
from src.chess.pieces import PieceType as DomainPieceType
from src.chess.pieces import Side as DomainSide
from src.chess.square import Square
from src.core.exceptions import GameStateError, InvalidRequestError, RepositoryError
from src.core.models import GameModel
from src.core.shared_types import PieceType, Side
from src.db.repository import GameRepository

logger = logging.getLogger(__name__)


def to_domain_side(side: Side) -> DomainSide:
    return DomainSide[side.name]


def to_domain_piece_type(piece_type: PieceType) -> DomainPieceType:
    return DomainPieceType[piece_type.name]


def from_domain_side(side: DomainSide) -> Side:
    return Side[side.name]


class ChessService:
    """Orchestration of layers for a cats vs dogs game."""

    def __init__(
        self, repository: GameRepository, bot_config: Optional[BotConfig] = None
    ) -> None:
        self.repo = repository
        # None: every game derives its bot from the environment settings + its own difficulty/personality
        self.bot_config = bot_config

    # -- Request handling ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """Start a new game with the requested settings."""

        # Use info in CreateGameRequest to create a new Game, and convert into GameModel
        settings = GameSettings(
            mode=request.mode,
            crazy_mode=request.crazy_mode,
            player_side=to_domain_side(request.player_side),
            ability_count=request.ability_count,
            difficulty=request.difficulty,
            personality=request.personality,
        )
        new_game = Game.new_game(settings)

        # Store the GameModel in the repository
        _, game_id = self.repo.create_game(new_game.to_model())
        logger.info("created game %s", game_id)

        # Return a GameResponse
        return self._create_game_response(game_id, new_game)

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """Retrieve current game state."""
        game = self._load_game(request.game_id)
        return self._create_game_response(request.game_id, game)

    def legal_destinations(
        self, request: LegalDestinationsRequest
    ) -> LegalDestinationsResponse:
        """Squares to highlight for the piece on the requested square."""
        game = self._load_game(request.game_id)
        destinations = game.legal_destinations(Square.from_algebraic(request.square))
        return LegalDestinationsResponse(
            game_id=request.game_id,
            square=request.square,
            destinations=[square.to_algebraic() for square in destinations],
        )

    def make_move(self, request: MoveRequest) -> GameResponse:
        """Make a move attempt."""
        game = self._load_game(request.game_id)

        # Attempt the move
        game.make_move(
            from_square=Square.from_algebraic(request.from_square),
            to_square=Square.from_algebraic(request.to_square),
            promote_to=(
                to_domain_piece_type(request.promote_to) if request.promote_to else None
            ),
            side=to_domain_side(request.side),
        )

        return self._store_game(request.game_id, game)

    def promote(self, request: PromoteRequest) -> GameResponse:
        """Pick the piece for the pawn waiting on the far row."""
        game = self._load_game(request.game_id)
        if to_domain_side(request.side) != game.side_to_move:
            raise GameStateError("Only the side that moved the pawn can promote it.")
        game.promote(to_domain_piece_type(request.piece_type))
        return self._store_game(request.game_id, game)

    def use_ability(self, request: AbilityRequest) -> GameResponse:
        """Laser pointer / bone. A use that finds nothing to lure leaves the game untouched."""
        game = self._load_game(request.game_id)
        used = game.use_ability(
            Square.from_algebraic(request.target), side=to_domain_side(request.side)
        )
        if not used:
            return self._create_game_response(request.game_id, game)
        return self._store_game(request.game_id, game)

    def bot_move(self, request: BotMoveRequest) -> BotMoveResponse:
        """Let the bot play its turn."""
        game = self._load_game(request.game_id)
        move = game.play_bot_move()
        response = self._store_game(request.game_id, game)
        return BotMoveResponse(game=response, move=move.to_uci() if move else None)

    def undo(self, request: UndoRequest) -> GameResponse:
        game = self._load_game(request.game_id)
        game.undo()
        return self._store_game(request.game_id, game)

    def redo(self, request: RedoRequest) -> GameResponse:
        game = self._load_game(request.game_id)
        game.redo()
        return self._store_game(request.game_id, game)

    def export_game(self, request: ExportGameRequest) -> ExportGameResponse:
        """Save file (JSON text) of a stored game."""
        game_model = self._fetch_game(request.game_id)
        save = SaveFile.from_game_model(game_model).model_dump_json()
        return ExportGameResponse(game_id=request.game_id, save=save)

    def import_game(self, request: ImportGameRequest) -> GameResponse:
        """
        Store a game from a save file under a new ID.
        ----
        Everything is validated before anything is stored: a corrupt save file raises InvalidRequestError
        and leaves the repository untouched.
        """
        try:
            save_file = SaveFile.model_validate_json(request.save)
        except ValidationError as error:
            logger.warning("rejected corrupt save file: %d errors", error.error_count())
            raise InvalidRequestError(f"Corrupt save file: {error}") from error

        try:
            game = self._game_from_model(save_file.to_game_model())
        except GameStateError as error:
            logger.warning("rejected corrupt save file: %s", error)
            raise InvalidRequestError(str(error)) from error

        _, game_id = self.repo.create_game(game.to_model())
        logger.info("imported game %s", game_id)
        return self._create_game_response(game_id, game)

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        if self.repo.delete_game(request.game_id) is None:
            raise RepositoryError(f"Game with {request.game_id=} not found.")

    # -- Internal helpers --
    def _create_game_response(self, game_id: UUID, game: Game) -> GameResponse:
        """Convert the Game to a GameResponse (for game with given ID.)"""
        state = game.state
        return GameResponse(
            game_id=game_id,
            mode=game.settings.mode,
            crazy_mode=game.settings.crazy_mode,
            player_side=from_domain_side(game.settings.player_side),
            side_to_move=from_domain_side(state.side_to_move),
            board=state.board.to_fen(),
            status=state.status.value,
            move_history=list(state.move_history),
            captured={
                from_domain_side(side): [piece.to_fen() for piece in pieces]
                for side, pieces in state.captured.items()
            },
            ability_counts={
                from_domain_side(side): count
                for side, count in state.ability_counts.items()
            },
            en_passant_square=(
                state.en_passant.capture_square.to_algebraic()
                if state.en_passant
                else None
            ),
            half_move_clock=state.half_move_clock,
            pending_promotion=(
                state.pending_promotion.to_algebraic()
                if state.pending_promotion
                else None
            ),
            can_undo=game.can_undo,
            can_redo=game.can_redo,
            winner=from_domain_side(game.winner) if game.winner else None,
        )

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model

    def _game_from_model(self, game_model: GameModel) -> Game:
        game = Game.from_model(game_model)
        game.bot_config = self.bot_config
        return game

    def _load_game(self, game_id: UUID) -> Game:
        return self._game_from_model(self._fetch_game(game_id))

    def _store_game(self, game_id: UUID, game: Game) -> GameResponse:
        """Capture updated state in GameModel, store it in the repository and answer with a GameResponse"""
        if self.repo.update_game(game_id, game.to_model()) is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return self._create_game_response(game_id, game)
