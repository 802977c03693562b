"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    mode: Mapped[str]
    crazy_mode: Mapped[bool] = mapped_column(default=False)
    player_side: Mapped[str]
    ability_count: Mapped[int]
    difficulty: Mapped[str]
    personality: Mapped[str]
    # duplicated from `state` so games can be queried by status
    status: Mapped[str]
    state: Mapped[dict[str, Any]] = mapped_column(JSON)
    timeline: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    cursor: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
