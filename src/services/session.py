"""
Live state of one session: the game, who sits where, who watches, pending draw offer, pending disconnect.

Only the coordinator touches these objects. Everything handed out is a snapshot
(SessionSummary for the lobby, GameState for the players, GameRecord for the archive).
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from src.api.models import GameState, SquareState
from src.chess.game import Game
from src.chess.pieces import Color
from src.core.models import WAITING_PLACEHOLDER, GameRecord, SessionSummary
from src.core.shared_types import Difficulty, Status


@dataclass
class Player:
    participant_id: str
    username: str
    difficulty: Optional[Difficulty] = None

    @property
    def is_computer(self) -> bool:
        return self.difficulty is not None

    @classmethod
    def computer(cls, game_id: str, difficulty: Difficulty) -> "Player":
        return cls(f"computer:{game_id}", f"Computer ({difficulty})", difficulty)


@dataclass
class DrawOffer:
    offered_by: Color
    expires_at: datetime


@dataclass
class DisconnectRecord:
    participant_id: str
    since: datetime


@dataclass(frozen=True)
class Outcome:
    status: Status
    winner: Optional[Color]
    reason: str


def new_seats() -> dict[Color, Optional[Player]]:
    return {Color.WHITE: None, Color.BLACK: None}


@dataclass
class GameSession:
    game_id: str
    game: Game
    seats: dict[Color, Optional[Player]] = field(default_factory=new_seats)
    spectators: set[str] = field(default_factory=set)
    draw_offer: Optional[DrawOffer] = None
    disconnect: Optional[DisconnectRecord] = None
    outcome: Optional[Outcome] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    # --- SEATS ---
    @property
    def is_full(self) -> bool:
        return all(player is not None for player in self.seats.values())

    @property
    def open_color(self) -> Optional[Color]:
        for color, player in self.seats.items():
            if player is None:
                return color
        return None

    def seat(self, color: Color, player: Player) -> None:
        self.seats[color] = player

    def player(self, color: Color) -> Optional[Player]:
        return self.seats[color]

    def color_of(self, participant_id: str) -> Optional[Color]:
        for color, player in self.seats.items():
            if player is not None and player.participant_id == participant_id:
                return color
        return None

    def is_bound(self, participant_id: str) -> bool:
        return self.color_of(participant_id) is not None

    @property
    def computer(self) -> Optional[Player]:
        for player in self.seats.values():
            if player is not None and player.is_computer:
                return player
        return None

    def human_ids(self) -> list[str]:
        return [
            player.participant_id
            for player in self.seats.values()
            if player is not None and not player.is_computer
        ]

    def recipients(self) -> list[str]:
        """Both (human) players, then the spectators."""
        return self.human_ids() + sorted(self.spectators)

    # --- STATUS ---
    @property
    def status(self) -> Status:
        if self.outcome is not None:
            return self.outcome.status
        if not self.is_full:
            return Status.WAITING
        return self.game.status

    @property
    def is_over(self) -> bool:
        return self.status.is_terminal

    @property
    def is_computer_turn(self) -> bool:
        player = self.seats[self.game.side_to_move]
        return (
            not self.is_over
            and self.is_full
            and player is not None
            and player.is_computer
        )

    def finish(self, status: Status, winner: Optional[Color], reason: str) -> Outcome:
        self.outcome = Outcome(status, winner, reason)
        self.draw_offer = None
        self.disconnect = None
        return self.outcome

    # --- SNAPSHOTS ---
    def summary(self) -> SessionSummary:
        return SessionSummary(
            game_id=self.game_id,
            white=self._name(Color.WHITE),
            black=self._name(Color.BLACK),
            status=str(self.status),
        )

    def game_state(self) -> GameState:
        game = self.game
        board = [
            [
                SquareState(
                    piece=piece.kind.to_wire(),
                    color=piece.color.to_wire(),
                    has_moved=piece.has_moved,
                )
                if piece is not None
                else None
                for piece in row
            ]
            for row in game.board.grid
        ]
        return GameState(
            board=board,
            fen=game.to_fen(),
            current_player=game.side_to_move.to_wire(),
            status=self.status,
            move_history=[move.to_uci() for move in game.moves],
            last_move=game.last_move.to_uci() if game.moves else None,
            captures={
                color.to_wire(): {kind.to_wire(): n for kind, n in tally.items()}
                for color, tally in game.captures.items()
            },
            promotion=bool(game.moves) and game.last_move.promotion is not None,
            draw_offer=(
                self.draw_offer.offered_by.to_wire() if self.draw_offer else None
            ),
        )

    def record(self) -> GameRecord:
        """Archive record of a finished session."""
        outcome = self.outcome
        white = self.seats[Color.WHITE]
        black = self.seats[Color.BLACK]
        return GameRecord(
            game_id=self.game_id,
            white=white.username if white else None,
            black=black.username if black else None,
            status=str(outcome.status),
            winner=str(outcome.winner.to_wire()) if outcome.winner else None,
            reason=outcome.reason,
            moves_uci=[move.to_uci() for move in self.game.moves],
        )

    def _name(self, color: Color) -> str:
        player = self.seats[color]
        return player.username if player is not None else WAITING_PLACEHOLDER
