"""
Boundary layer data model(s).

These objects are what crosses the boundary of the coordinator:
the transport layer renders them into messages, the archive persists them.
(Decouples the live session state, which never leaves the coordinator, from the snapshots handed out.)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

# Type aliases to make the models easier to read
PieceColor = str
PlayerName = str

WAITING_PLACEHOLDER = "Waiting..."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ParticipantSummary:
    """One row of the lobby's participant list."""

    user_id: str
    username: PlayerName
    status: str


@dataclass(frozen=True)
class SessionSummary:
    """One row of the lobby's game list. Empty seats carry the placeholder name."""

    game_id: str
    white: PlayerName
    black: PlayerName
    status: str


@dataclass(frozen=True)
class LobbySnapshot:
    participants: list[ParticipantSummary]
    games: list[SessionSummary]


@dataclass
class GameRecord:
    """Transport-safe record of a finished game, handed to the archive."""

    game_id: str
    white: Optional[PlayerName]
    black: Optional[PlayerName]
    status: str
    winner: Optional[PieceColor]
    reason: str
    moves_uci: list[str]
    finished_at: datetime = field(default_factory=utc_now)
