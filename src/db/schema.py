"""Database tables / schema"""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.models import utc_now


class Base(DeclarativeBase):
    pass


class DBGameRecord(Base):
    """One finished game. Live sessions are never persisted, only their outcome."""

    __tablename__ = "game_records"
    id: Mapped[str] = mapped_column(primary_key=True)
    white: Mapped[Optional[str]]
    black: Mapped[Optional[str]]
    status: Mapped[str]
    winner: Mapped[Optional[str]]
    reason: Mapped[str]
    moves_uci: Mapped[list[str]] = mapped_column(JSON, default=list)
    finished_at: Mapped[datetime] = mapped_column(default=utc_now)
