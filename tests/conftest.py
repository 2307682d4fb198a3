"""
Pytest will auto-discover / import this file called 'conftest.py'. ]
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Iterator, Optional

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.api.models import OutboundMessage
from src.core.config import Settings
from src.core.exceptions import RepositoryError
from src.core.models import GameRecord
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# Timers short enough to let them expire inside a test
FAST_TIMEOUT_S = 0.05


@pytest.fixture
def db_session() -> Iterator[Session]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        draw_offer_timeout_s=FAST_TIMEOUT_S,
        disconnect_grace_s=FAST_TIMEOUT_S,
        ai_time_budget_ms=200,
        log_level="DEBUG",
    )


class RecordingTransport:
    """Collects every message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, OutboundMessage]] = []

    async def send(self, participant_id: str, message: OutboundMessage) -> None:
        self.sent.append((participant_id, message))

    def received(self, participant_id: str, message_type: Optional[str] = None) -> list:
        return [
            message
            for recipient, message in self.sent
            if recipient == participant_id
            and (message_type is None or message.type == message_type)
        ]

    def last(self, participant_id: str, message_type: str):
        messages = self.received(participant_id, message_type)
        assert messages, f"{participant_id} never received {message_type}"
        return messages[-1]

    def clear(self) -> None:
        self.sent.clear()


class MemoryArchive:
    def __init__(self, fail: bool = False) -> None:
        self.records: list[GameRecord] = []
        self.fail = fail

    def archive_game(self, record: GameRecord) -> GameRecord:
        if self.fail:
            raise RepositoryError("Archive is read-only.")
        self.records.append(record)
        return record

    def get_record(self, game_id: str) -> GameRecord | None:
        for record in self.records:
            if record.game_id == game_id:
                return record
        return None

    def list_records(self, limit: int = 50) -> list[GameRecord]:
        return list(reversed(self.records))[:limit]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def archive() -> MemoryArchive:
    return MemoryArchive()


@pytest.fixture
def failing_archive() -> MemoryArchive:
    return MemoryArchive(fail=True)
