"""
Pytest will auto-discover / import this file called 'conftest.py'.
Fixtures shared by the test packages: an in-memory saved games database and ready-made game snapshots.
"""

from typing import Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.chess.game import Game, GameSettings
from src.core.models import GameModel
from src.db.schema import Base
from src.db.sql_repository import SQLGameRepository

# In-memory SQLite: StaticPool keeps the single connection (and thus the tables) alive across sessions
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Fresh tables for every test. Dropped at teardown so stored games never leak between tests."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def db_session_shared() -> Generator[Session, None, None]:
    """Session on the shared engine without teardown of the tables, like several requests hitting one database."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def sql_repository(db_session_repo: Session) -> SQLGameRepository:
    return SQLGameRepository(db_session_repo)


@pytest.fixture
def game_model() -> GameModel:
    """Snapshot of a fresh crazy mode game"""
    return Game.new_game(GameSettings(crazy_mode=True)).to_model()
