"""
Settings read from the environment.

CATSDOGS_DATABASE_URL         SQLAlchemy URL of the saved games database
CATSDOGS_BOT_TIME_BUDGET_MS   soft time budget of a single bot search
CATSDOGS_BOT_MAX_DEPTH        nominal search depth of the bot
CATSDOGS_LOG_LEVEL            level passed to logging.basicConfig
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_DATABASE_URL = "sqlite:///catsdogs.db"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    bot_time_budget_ms: int = 3000
    bot_max_depth: int = 2
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.environ.get("CATSDOGS_DATABASE_URL", DEFAULT_DATABASE_URL),
            bot_time_budget_ms=int(os.environ.get("CATSDOGS_BOT_TIME_BUDGET_MS", 3000)),
            bot_max_depth=int(os.environ.get("CATSDOGS_BOT_MAX_DEPTH", 2)),
            log_level=os.environ.get("CATSDOGS_LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(settings: Settings | None = None) -> None:
    """
    Hook for the application embedding this package: nothing in here calls it.
    Library modules only create their loggers and leave handlers to the embedder.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
