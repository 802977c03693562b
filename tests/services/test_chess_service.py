"""Unit tests for src/services/chess_service.py"""

import json
from typing import Generator
from uuid import UUID, uuid4

import pytest

from src.api.models import (
    AbilityRequest,
    BotMoveRequest,
    CreateGameRequest,
    DeleteGameRequest,
    ExportGameRequest,
    GameResponse,
    GetGameRequest,
    ImportGameRequest,
    LegalDestinationsRequest,
    MoveRequest,
    PromoteRequest,
    RedoRequest,
    SaveFile,
    UndoRequest,
)
from src.bot.search import BotConfig
from src.core.exceptions import (
    AbilityNotAvailableError,
    GameError,
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    NotYourTurnError,
    RepositoryError,
)
from src.core.models import GameModel
from src.core.shared_types import Difficulty, GameMode, PieceType, Side
from src.services.chess_service import ChessService

STARTING_BOARD = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


# --- MOCK DEPENDENCIES ----
class MockRepository:
    """Mock the GameRepository using a dictionary of game models."""

    def __init__(self) -> None:
        self._games: dict[UUID, GameModel] = {}

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        game_id = uuid4()
        self._games[game_id] = game
        return game, game_id

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        return self._games.get(game_id)

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Replace the stored snapshot of an existing game."""
        if game_id not in self._games:
            return None
        self._games[game_id] = game
        return game

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        return self._games.pop(game_id, None)

    def clear(self) -> None:
        """Clear the repository (useful in between tests)"""
        self._games.clear()


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    """Ensures to clear the repository between tests"""
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()


@pytest.fixture
def service(mock_repository: MockRepository) -> ChessService:
    bot = BotConfig(difficulty=Difficulty.HARD, max_depth=1, seed=1)
    return ChessService(mock_repository, bot_config=bot)


def move(
    service: ChessService,
    game_id: UUID,
    side: Side,
    from_square: str,
    to_square: str,
    promote_to: PieceType | None = None,
) -> GameResponse:
    return service.make_move(
        MoveRequest(
            game_id=game_id,
            side=side,
            from_square=from_square,
            to_square=to_square,
            promote_to=promote_to,
        )
    )


# --- SERVICE - CREATE NEW GAME ----
def test_create_a_new_game(
    service: ChessService, mock_repository: MockRepository
) -> None:
    """Check that new game is created, persisted in repo, and return has the appropriate information."""
    response = service.create_new_game(CreateGameRequest(crazy_mode=True, ability_count=2))

    # Check response structure
    assert isinstance(response, GameResponse)
    assert isinstance(response.game_id, UUID)

    # Check response data
    assert response.board == STARTING_BOARD
    assert response.side_to_move == Side.DOGS
    assert response.status == "ongoing"
    assert response.crazy_mode
    assert response.ability_counts == {Side.DOGS: 2, Side.CATS: 2}
    assert response.captured == {Side.DOGS: [], Side.CATS: []}
    assert response.move_history == []
    assert not response.can_undo
    assert response.winner is None

    # Check persisted data
    stored_game = mock_repository.get_game(response.game_id)
    assert stored_game is not None
    assert stored_game.state.board == STARTING_BOARD
    assert stored_game.crazy_mode
    assert stored_game.timeline == [stored_game.state]


def test_get_game_state(service: ChessService) -> None:
    created = service.create_new_game(CreateGameRequest())
    assert service.get_game_state(GetGameRequest(game_id=created.game_id)) == created


def test_unknown_game(service: ChessService) -> None:
    with pytest.raises(RepositoryError):
        service.get_game_state(GetGameRequest(game_id=uuid4()))


# --- SERVICE - MOVES ----
def test_legal_destinations(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    response = service.legal_destinations(
        LegalDestinationsRequest(game_id=game_id, square="g1")
    )
    assert response.destinations == ["f3", "h3"]


def test_make_move(service: ChessService, mock_repository: MockRepository) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    response = move(service, game_id, Side.DOGS, "e2", "e4")

    assert response.side_to_move == Side.CATS
    assert response.move_history == ["e2-e4"]
    assert response.en_passant_square == "e3"
    assert response.can_undo

    stored_game = mock_repository.get_game(game_id)
    assert stored_game is not None
    assert stored_game.state.move_history == ["e2-e4"]
    assert stored_game.cursor == 1


def test_move_out_of_turn(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    with pytest.raises(NotYourTurnError):
        move(service, game_id, Side.CATS, "e7", "e5")


def test_illegal_move_is_not_stored(
    service: ChessService, mock_repository: MockRepository
) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    before = mock_repository.get_game(game_id)
    with pytest.raises(IllegalMoveError):
        move(service, game_id, Side.DOGS, "e2", "e5")
    assert mock_repository.get_game(game_id) is before


def test_capture_shows_up_in_response(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    move(service, game_id, Side.DOGS, "e2", "e4")
    move(service, game_id, Side.CATS, "d7", "d5")
    response = move(service, game_id, Side.DOGS, "e4", "d5")
    assert response.captured == {Side.DOGS: ["p"], Side.CATS: []}


def test_fools_mate(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    move(service, game_id, Side.DOGS, "f2", "f3")
    move(service, game_id, Side.CATS, "e7", "e5")
    move(service, game_id, Side.DOGS, "g2", "g4")
    response = move(service, game_id, Side.CATS, "d8", "h4")
    assert response.status == "checkmate"
    assert response.winner == Side.CATS
    with pytest.raises(GameError):
        move(service, game_id, Side.DOGS, "a2", "a3")


# --- SERVICE - PROMOTION ----
def promotion_game(service: ChessService) -> UUID:
    """Dogs pawn ends up on h7, one capture (the knight on g8) away from promoting"""
    game_id = service.create_new_game(CreateGameRequest()).game_id
    for side, from_square, to_square in [
        (Side.DOGS, "h2", "h4"),
        (Side.CATS, "g7", "g5"),
        (Side.DOGS, "h4", "g5"),
        (Side.CATS, "h7", "h6"),
        (Side.DOGS, "g5", "h6"),
        (Side.CATS, "a7", "a6"),
        (Side.DOGS, "h6", "h7"),
        (Side.CATS, "a6", "a5"),
    ]:
        move(service, game_id, side, from_square, to_square)
    return game_id


def test_promotion_in_two_steps(service: ChessService) -> None:
    game_id = promotion_game(service)
    pending = move(service, game_id, Side.DOGS, "h7", "g8")
    assert pending.pending_promotion == "g8"
    assert pending.side_to_move == Side.DOGS

    with pytest.raises(GameStateError):
        service.promote(
            PromoteRequest(game_id=game_id, side=Side.CATS, piece_type=PieceType.QUEEN)
        )

    response = service.promote(
        PromoteRequest(game_id=game_id, side=Side.DOGS, piece_type=PieceType.KNIGHT)
    )
    assert response.pending_promotion is None
    assert response.move_history[-1] == "h7-g8=N"
    assert response.side_to_move == Side.CATS
    assert response.captured[Side.DOGS] == ["p", "p", "n"]


def test_promotion_in_one_request(service: ChessService) -> None:
    game_id = promotion_game(service)
    response = move(service, game_id, Side.DOGS, "h7", "g8", PieceType.QUEEN)
    assert response.move_history[-1] == "h7-g8=Q"
    assert response.board.startswith("rnbqkbQr")


# --- SERVICE - ABILITIES ----
def test_use_ability(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest(crazy_mode=True)).game_id
    response = service.use_ability(
        AbilityRequest(game_id=game_id, side=Side.DOGS, target="d4")
    )
    assert response.move_history == ["Laser: d4"]
    assert response.ability_counts == {Side.DOGS: 2, Side.CATS: 3}
    assert response.side_to_move == Side.CATS


def test_ability_outside_crazy_mode(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    with pytest.raises(AbilityNotAvailableError):
        service.use_ability(AbilityRequest(game_id=game_id, side=Side.DOGS, target="d4"))


def test_ability_on_a_king_changes_nothing(
    service: ChessService, mock_repository: MockRepository
) -> None:
    game_id = service.create_new_game(CreateGameRequest(crazy_mode=True)).game_id
    before = mock_repository.get_game(game_id)
    response = service.use_ability(
        AbilityRequest(game_id=game_id, side=Side.DOGS, target="e8")
    )
    assert response.move_history == []
    assert response.side_to_move == Side.DOGS
    assert mock_repository.get_game(game_id) is before


# --- SERVICE - BOT ----
def test_bot_move(service: ChessService) -> None:
    game_id = service.create_new_game(
        CreateGameRequest(mode=GameMode.PVBOT, player_side=Side.DOGS)
    ).game_id
    move(service, game_id, Side.DOGS, "e2", "e4")

    response = service.bot_move(BotMoveRequest(game_id=game_id))
    assert response.move is not None
    assert len(response.game.move_history) == 2
    assert response.game.side_to_move == Side.DOGS


def test_bot_moves_first_when_human_plays_cats(service: ChessService) -> None:
    game_id = service.create_new_game(
        CreateGameRequest(mode=GameMode.PVBOT, player_side=Side.CATS)
    ).game_id
    with pytest.raises(NotYourTurnError):
        move(service, game_id, Side.DOGS, "e2", "e4")
    response = service.bot_move(BotMoveRequest(game_id=game_id))
    assert response.game.side_to_move == Side.CATS


def test_no_bot_in_pvp(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    with pytest.raises(GameStateError):
        service.bot_move(BotMoveRequest(game_id=game_id))


# --- SERVICE - UNDO / REDO ----
def test_undo_redo(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    move(service, game_id, Side.DOGS, "e2", "e4")
    move(service, game_id, Side.CATS, "e7", "e5")

    undone = service.undo(UndoRequest(game_id=game_id))
    assert undone.move_history == ["e2-e4"]
    assert undone.can_redo

    redone = service.redo(RedoRequest(game_id=game_id))
    assert redone.move_history == ["e2-e4", "e7-e5"]
    assert not redone.can_redo


def test_nothing_to_undo(service: ChessService) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    with pytest.raises(GameStateError):
        service.undo(UndoRequest(game_id=game_id))


# --- SERVICE - EXPORT / IMPORT ----
def test_export_import_round_trip(
    service: ChessService, mock_repository: MockRepository
) -> None:
    game_id = service.create_new_game(CreateGameRequest(crazy_mode=True)).game_id
    move(service, game_id, Side.DOGS, "e2", "e4")
    move(service, game_id, Side.CATS, "e7", "e5")
    service.undo(UndoRequest(game_id=game_id))

    exported = service.export_game(ExportGameRequest(game_id=game_id))
    save_file = SaveFile.model_validate_json(exported.save)
    assert save_file.version == 1
    assert save_file.cursor == 1
    assert len(save_file.timeline) == 3

    imported = service.import_game(ImportGameRequest(save=exported.save))
    assert imported.game_id != game_id
    original = service.get_game_state(GetGameRequest(game_id=game_id))
    assert imported.model_dump(exclude={"game_id"}) == original.model_dump(
        exclude={"game_id"}
    )
    assert imported.can_redo
    assert len(mock_repository._games) == 2


def test_export_unknown_game(service: ChessService) -> None:
    with pytest.raises(RepositoryError):
        service.export_game(ExportGameRequest(game_id=uuid4()))


def corrupt_save(service: ChessService, **changes: object) -> str:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    save = json.loads(service.export_game(ExportGameRequest(game_id=game_id)).save)
    save["state"].update(changes)
    return json.dumps(save)


@pytest.mark.parametrize(
    "changes",
    [
        {"board": "8/8/8"},
        {"side_to_move": "birds"},
        {"half_move_clock": -3},
        {"en_passant": ["e4"]},
        {"moved_squares": ["z9"]},
        {"status": "on fire"},
    ],
)
def test_import_corrupt_save(
    service: ChessService, mock_repository: MockRepository, changes: dict
) -> None:
    save = corrupt_save(service, **changes)
    stored_before = len(mock_repository._games)
    with pytest.raises(InvalidRequestError):
        service.import_game(ImportGameRequest(save=save))
    assert len(mock_repository._games) == stored_before


@pytest.mark.parametrize("save", ["", "not json at all", "{}", '{"version": 2}'])
def test_import_garbage(service: ChessService, save: str) -> None:
    with pytest.raises(InvalidRequestError):
        service.import_game(ImportGameRequest(save=save))


# --- SERVICE - DELETE ----
def test_delete_game(service: ChessService, mock_repository: MockRepository) -> None:
    game_id = service.create_new_game(CreateGameRequest()).game_id
    service.delete_game(DeleteGameRequest(game_id=game_id))
    assert mock_repository.get_game(game_id) is None
    with pytest.raises(RepositoryError):
        service.delete_game(DeleteGameRequest(game_id=game_id))
