"""Protocol for the archive of finished games (implemented with SQLAlchemy, tests use in-memory fakes)."""

from typing import Protocol

from src.core.models import GameRecord


class GameArchive(Protocol):
    """Persistence layer orchestration"""

    def archive_game(self, record: GameRecord) -> GameRecord:
        """Store the outcome of a finished game."""
        ...

    def get_record(self, game_id: str) -> GameRecord | None:
        """Get a finished game by ID, if record exists."""
        ...

    def list_records(self, limit: int = 50) -> list[GameRecord]:
        """Most recently finished games first."""
        ...
