"""Implementation of (Game)Repository using SQLAlchemy"""

import logging
from dataclasses import asdict
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel, StateModel
from src.db.schema import DBGame

logger = logging.getLogger(__name__)


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""

        new_id = uuid4()
        game_db = DBGame(id=new_id)
        self._copy_into(game_db, game)
        self.db.add(game_db)
        self.db.commit()
        self.db.refresh(game_db)
        logger.debug("stored new game %s", new_id)
        return self._to_model(game_db), new_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Replace the stored snapshot of an existing game."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        self._copy_into(game_db, game)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        logger.debug("deleted game %s", game_id)
        return game_model

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _copy_into(self, game_db: DBGame, game: GameModel) -> None:
        """Write the GameModel's fields onto the row. JSON columns get fresh dicts/lists so changes are detected."""
        game_db.mode = game.mode
        game_db.crazy_mode = game.crazy_mode
        game_db.player_side = game.player_side
        game_db.ability_count = game.ability_count
        game_db.difficulty = game.difficulty
        game_db.personality = game.personality
        game_db.status = game.state.status
        game_db.state = asdict(game.state)
        game_db.timeline = [asdict(snapshot) for snapshot in game.timeline]
        game_db.cursor = game.cursor

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            mode=game_db.mode,
            crazy_mode=game_db.crazy_mode,
            player_side=game_db.player_side,
            ability_count=game_db.ability_count,
            difficulty=game_db.difficulty,
            personality=game_db.personality,
            state=StateModel(**game_db.state),
            timeline=[StateModel(**snapshot) for snapshot in game_db.timeline],
            cursor=game_db.cursor,
        )
