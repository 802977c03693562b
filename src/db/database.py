"""Generate database session"""

import logging
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import get_settings
from src.db.schema import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: Optional[str] = None) -> Engine:
    """Engine for the configured database (CATSDOGS_DATABASE_URL). Tables are created if missing."""
    engine = create_engine(database_url or get_settings().database_url)
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    logger.debug(
        "saved games stored in %s", engine.url.render_as_string(hide_password=True)
    )
    return engine


def get_db(database_url: Optional[str] = None) -> Generator[Session, None, None]:
    SessionLocal = sessionmaker(bind=build_engine(database_url))
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
