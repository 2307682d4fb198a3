"""Unit tests for src/db/sql_repository.py"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from src.core.exceptions import RepositoryError
from src.core.models import GameRecord
from src.db.sql_repository import SQLGameArchive


def make_record(finished_at: datetime | None = None, **overrides) -> GameRecord:
    fields = dict(
        game_id=uuid4().hex,
        white="alice",
        black="bob",
        status="checkmate",
        winner="black",
        reason="Checkmate! black wins!",
        moves_uci=["f2f3", "e7e5", "g2g4", "d8h4"],
    )
    fields.update(overrides)
    if finished_at is not None:
        fields["finished_at"] = finished_at
    return GameRecord(**fields)


def test_archive_game(db_session: Session) -> None:
    """Conversion from a GameRecord to DBGameRecord and back."""
    record = make_record()
    archive = SQLGameArchive(db_session)
    stored = archive.archive_game(record)

    assert isinstance(stored, GameRecord)
    assert stored.game_id == record.game_id
    assert stored.moves_uci == record.moves_uci
    assert (stored.white, stored.black, stored.winner) == ("alice", "bob", "black")


def test_get_record(db_session: Session) -> None:
    archive = SQLGameArchive(db_session)
    record = make_record(white=None, winner=None, status="abandoned", reason="gone")
    archive.archive_game(record)

    fetched = archive.get_record(record.game_id)
    assert fetched is not None
    assert fetched.white is None
    assert fetched.winner is None
    assert fetched.reason == "gone"


def test_get_record_not_found(db_session: Session) -> None:
    assert SQLGameArchive(db_session).get_record("does-not-exist") is None


def test_archiving_twice_is_an_error(db_session: Session) -> None:
    archive = SQLGameArchive(db_session)
    record = make_record()
    archive.archive_game(record)
    with pytest.raises(RepositoryError):
        archive.archive_game(record)


def test_list_records_newest_first(db_session: Session) -> None:
    archive = SQLGameArchive(db_session)
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    records = [make_record(finished_at=start + timedelta(minutes=i)) for i in range(3)]
    for record in records:
        archive.archive_game(record)

    listed = archive.list_records()
    assert [r.game_id for r in listed] == [r.game_id for r in reversed(records)]
    assert [r.game_id for r in archive.list_records(limit=1)] == [records[-1].game_id]


def test_list_records_empty(db_session: Session) -> None:
    assert SQLGameArchive(db_session).list_records() == []
