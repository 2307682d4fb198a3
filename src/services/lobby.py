"""Directory of connected participants."""

from dataclasses import dataclass
from typing import Iterable

from src.core.exceptions import NotInLobbyError
from src.core.models import LobbySnapshot, ParticipantSummary, SessionSummary
from src.core.shared_types import ParticipantStatus


@dataclass
class Participant:
    participant_id: str
    username: str
    status: ParticipantStatus = ParticipantStatus.AVAILABLE

    def summary(self) -> ParticipantSummary:
        return ParticipantSummary(self.participant_id, self.username, str(self.status))


class Lobby:
    def __init__(self) -> None:
        self._participants: dict[str, Participant] = {}

    def __contains__(self, participant_id: str) -> bool:
        return participant_id in self._participants

    def __len__(self) -> int:
        return len(self._participants)

    def join(self, participant_id: str, username: str) -> Participant:
        """Joining again only renames: the status is kept."""
        participant = self._participants.get(participant_id)
        if participant is None:
            participant = Participant(participant_id, username)
            self._participants[participant_id] = participant
        else:
            participant.username = username
        return participant

    def leave(self, participant_id: str) -> Participant | None:
        return self._participants.pop(participant_id, None)

    def get(self, participant_id: str) -> Participant:
        participant = self._participants.get(participant_id)
        if participant is None:
            raise NotInLobbyError("Join the lobby first.")
        return participant

    def set_status(self, participant_id: str, status: ParticipantStatus) -> None:
        """Participants that already left are ignored."""
        participant = self._participants.get(participant_id)
        if participant is not None:
            participant.status = status

    def participant_ids(self) -> list[str]:
        return list(self._participants)

    def snapshot(self, sessions: Iterable[SessionSummary]) -> LobbySnapshot:
        return LobbySnapshot(
            participants=[p.summary() for p in self._participants.values()],
            games=list(sessions),
        )
