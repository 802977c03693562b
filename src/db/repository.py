"""Storage of saved games behind a Protocol. The service only sees this interface, SQLGameRepository implements it."""

from typing import Protocol
from uuid import UUID

from src.core.models import GameModel


class GameRepository(Protocol):
    """
    Saved games keyed by UUID.

    A stored game is the complete GameModel snapshot (settings, current state, undo/redo timeline).
    Lookups of unknown IDs answer None: turning that into an error is up to the caller.
    """

    def get_game(self, game_id: UUID) -> GameModel | None: ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Assign a new ID to the snapshot and store it."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite the stored snapshot as a whole. None if there is nothing stored under `game_id`."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove the snapshot and hand back what was stored."""
        ...
