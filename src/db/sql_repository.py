"""Implementation of GameArchive using SQLAlchemy"""

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError
from src.core.models import GameRecord
from src.db.schema import DBGameRecord


class SQLGameArchive:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def archive_game(self, record: GameRecord) -> GameRecord:
        """Store a finished game. Game ids are unique, archiving the same game twice is an error."""
        if self._fetch_record(record.game_id) is not None:
            raise RepositoryError(f"Game with game_id={record.game_id!r} already archived.")

        record_db = DBGameRecord(
            id=record.game_id,
            white=record.white,
            black=record.black,
            status=record.status,
            winner=record.winner,
            reason=record.reason,
            moves_uci=list(record.moves_uci),
            finished_at=record.finished_at,
        )
        try:
            self.db.add(record_db)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Could not archive game {record.game_id!r}: {e}") from e
        self.db.refresh(record_db)
        return self._to_record(record_db)

    def get_record(self, game_id: str) -> GameRecord | None:
        record_db = self._fetch_record(game_id)
        if record_db:
            return self._to_record(record_db)
        return None

    def list_records(self, limit: int = 50) -> list[GameRecord]:
        query = (
            select(DBGameRecord).order_by(DBGameRecord.finished_at.desc()).limit(limit)
        )
        return [self._to_record(record_db) for record_db in self.db.scalars(query)]

    def _fetch_record(self, game_id: str) -> DBGameRecord | None:
        query = select(DBGameRecord).where(DBGameRecord.id == game_id)
        return self.db.scalar(query)

    def _to_record(self, record_db: DBGameRecord) -> GameRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return GameRecord(
            game_id=record_db.id,
            white=record_db.white,
            black=record_db.black,
            status=record_db.status,
            winner=record_db.winner,
            reason=record_db.reason,
            moves_uci=record_db.moves_uci,
            finished_at=record_db.finished_at,
        )
