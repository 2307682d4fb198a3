"""
Orchestration of the lobby and all live game sessions.

Every operation that mutates a session runs under that session's lock, so operations on one session
never interleave while different sessions proceed independently. Lobby snapshots are built without
awaiting anything in between, so a broadcast never sees a half-applied change.

Rejections are raised as GameError subclasses; the transport layer turns them into error messages.
"""

import asyncio
import random
from datetime import timedelta
from functools import partial
from typing import Optional, Protocol
from uuid import uuid4

from loguru import logger

from src.ai.search import select_move
from src.api.models import (
    DrawCancelled,
    DrawOffered,
    ErrorMessage,
    GameEnded,
    GameJoined,
    GameStarted,
    GameUpdate,
    LobbyUpdate,
    OpponentDisconnected,
    OpponentReconnected,
    OutboundMessage,
)
from src.chess.game import Game
from src.chess.pieces import Color, PieceKind
from src.chess.square import Square
from src.core.config import Settings
from src.core.exceptions import (
    DrawOfferError,
    GameStateError,
    NotAParticipantError,
    RepositoryError,
    SeatUnavailableError,
    UnknownGameError,
)
from src.core.models import LobbySnapshot, utc_now
from src.core.shared_types import Color as WireColor
from src.core.shared_types import (
    Difficulty,
    OpponentType,
    ParticipantStatus,
    PieceType,
    Status,
)
from src.db.repository import GameArchive
from src.services.lobby import Lobby, Participant
from src.services.session import DisconnectRecord, DrawOffer, GameSession, Player
from src.services.timers import TimerPurpose, TimerRegistry

RECONNECT_NOTICE = "Opponent disconnected. Waiting for reconnection..."


class Transport(Protocol):
    """Best-effort delivery of one message to one participant."""

    async def send(self, participant_id: str, message: OutboundMessage) -> None: ...


class SessionCoordinator:
    def __init__(
        self,
        transport: Transport,
        settings: Optional[Settings] = None,
        archive: Optional[GameArchive] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.transport = transport
        self.settings = settings or Settings()
        self.archive = archive
        self.rng = rng or random.Random()
        self.lobby = Lobby()
        self.sessions: dict[str, GameSession] = {}
        self.timers = TimerRegistry()

    # --- QUERIES ---
    def lobby_snapshot(self) -> LobbySnapshot:
        return self.lobby.snapshot(session.summary() for session in self.sessions.values())

    def get_session(self, game_id: str) -> GameSession:
        session = self.sessions.get(game_id)
        if session is None:
            raise UnknownGameError(f"Game with {game_id=} not found.")
        return session

    def stats(self) -> dict[str, int]:
        return {"sessions": len(self.sessions), "participants": len(self.lobby)}

    # --- LOBBY ---
    async def join_lobby(self, participant_id: str, username: str) -> Participant:
        participant = self.lobby.join(participant_id, username)
        logger.info("{} joined the lobby as {!r}", participant_id, username)
        await self.broadcast_lobby()
        return participant

    # --- SESSION LIFECYCLE ---
    async def create_game(
        self,
        participant_id: str,
        preferred_color: WireColor = WireColor.WHITE,
        opponent: OpponentType = OpponentType.HUMAN,
        difficulty: Optional[Difficulty] = None,
        starting_fen: Optional[str] = None,
    ) -> str:
        """Open a new session with the creator seated at their preferred color."""
        participant = self.lobby.get(participant_id)
        game = Game.new_game(starting_fen)
        if game.is_over:
            raise GameStateError(f"Starting position is already decided: {game.status}")

        game_id = uuid4().hex
        session = GameSession(game_id, game)
        color = Color.from_name(preferred_color)
        session.seat(color, Player(participant_id, participant.username))
        if opponent == OpponentType.COMPUTER:
            session.seat(
                color.opponent,
                Player.computer(game_id, difficulty or self.settings.default_difficulty),
            )

        self.sessions[game_id] = session
        self.lobby.set_status(participant_id, ParticipantStatus.PLAYING)
        logger.info(
            "{} created game {} as {} against a {} opponent",
            participant.username,
            game_id,
            preferred_color,
            opponent,
        )

        async with session.lock:
            computer = session.computer
            await self._send(
                participant_id,
                GameStarted(
                    game_id=game_id,
                    color=color.to_wire(),
                    opponent=computer.username if computer else None,
                    game_state=session.game_state(),
                ),
            )
            await self.broadcast_lobby()
            if session.is_computer_turn:
                await self._play_computer_turn(session)
        return game_id

    async def join_game(self, participant_id: str, game_id: str) -> None:
        """Take the open seat, or resume a game you were disconnected from."""
        participant = self.lobby.get(participant_id)
        session = self.get_session(game_id)
        async with session.lock:
            self._ensure_live(session)
            record = session.disconnect
            if record is not None and record.participant_id == participant_id:
                await self._reconnect(session, participant)
                return

            if session.is_bound(participant_id):
                raise SeatUnavailableError("You are already playing in this game.")
            color = session.open_color
            if color is None:
                raise SeatUnavailableError("Game is full.")

            session.seat(color, Player(participant_id, participant.username))
            session.spectators.discard(participant_id)
            self.lobby.set_status(participant_id, ParticipantStatus.PLAYING)
            creator = session.player(color.opponent)
            logger.info("{} joined game {} as {}", participant.username, game_id, color.to_wire())

            game_state = session.game_state()
            await self._send(
                creator.participant_id,
                GameStarted(
                    game_id=game_id,
                    color=color.opponent.to_wire(),
                    opponent=participant.username,
                    game_state=game_state,
                ),
            )
            await self._send(
                participant_id,
                GameJoined(
                    game_id=game_id,
                    color=color.to_wire(),
                    opponent=creator.username,
                    game_state=game_state,
                ),
            )
            await self._broadcast(
                sorted(session.spectators), GameUpdate(game_id=game_id, game_state=game_state)
            )
            await self.broadcast_lobby()

    async def spectate_game(self, participant_id: str, game_id: str) -> None:
        self.lobby.get(participant_id)
        session = self.get_session(game_id)
        async with session.lock:
            self._ensure_live(session)
            if session.is_bound(participant_id):
                raise SeatUnavailableError("Players cannot spectate their own game.")
            session.spectators.add(participant_id)
            logger.debug("{} is spectating game {}", participant_id, game_id)
            await self._send(
                participant_id, GameUpdate(game_id=game_id, game_state=session.game_state())
            )

    async def delete_game(self, participant_id: str, game_id: str) -> None:
        """Either player may delete the game at any time. Nothing is archived."""
        session = self.get_session(game_id)
        async with session.lock:
            self._ensure_live(session)
            self._require_player(session, participant_id)
            player = session.player(session.color_of(participant_id))
            session.finish(Status.ABANDONED, None, f"{player.username} deleted the game.")
            self._remove_session(session)
            for human_id in session.human_ids():
                self.lobby.set_status(human_id, ParticipantStatus.AVAILABLE)
            logger.info("{} deleted game {}", player.username, game_id)

            others = [pid for pid in session.recipients() if pid != participant_id]
            await self._broadcast(others, self._game_ended(session))
            await self.broadcast_lobby()

    # --- PLAY ---
    async def make_move(
        self,
        participant_id: str,
        game_id: str,
        from_square: str,
        to_square: str,
        promotion: Optional[PieceType] = None,
    ) -> None:
        session = self.get_session(game_id)
        async with session.lock:
            self._ensure_live(session)
            color = self._require_player(session, participant_id)
            if not session.is_full:
                raise GameStateError("Waiting for an opponent to join.")

            move = session.game.make_move(
                color,
                Square.from_algebraic(from_square),
                Square.from_algebraic(to_square),
                PieceKind.from_name(promotion) if promotion else None,
            )
            logger.debug("Game {}: {} played {}", game_id, color.to_wire(), move.to_uci())

            if session.draw_offer is not None:
                await self._cancel_draw_offer(session, "A move was played.")
            await self._after_move(session)
            if session.is_computer_turn:
                await self._play_computer_turn(session)

    async def resign(self, participant_id: str, game_id: str) -> None:
        session = self.get_session(game_id)
        async with session.lock:
            self._ensure_live(session)
            color = self._require_player(session, participant_id)
            if not session.is_full:
                raise GameStateError("No opponent yet. Delete the game instead.")
            player = session.player(color)
            winner = color.opponent
            reason = f"{player.username} resigned. {winner.to_wire()} wins!"
            await self._end_session(session, Status.RESIGNED, winner, reason)

    # --- DRAW OFFERS ---
    async def offer_draw(self, participant_id: str, game_id: str) -> None:
        session = self.get_session(game_id)
        async with session.lock:
            self._ensure_live(session)
            color = self._require_player(session, participant_id)
            if not session.is_full:
                raise GameStateError("Waiting for an opponent to join.")
            if session.draw_offer is not None:
                raise DrawOfferError("A draw offer is already pending.")

            if session.computer is not None:
                await self._send(
                    participant_id,
                    DrawCancelled(game_id=game_id, reason="The computer declines the draw."),
                )
                return

            timeout_s = self.settings.draw_offer_timeout_s
            offer = DrawOffer(color, utc_now() + timedelta(seconds=timeout_s))
            session.draw_offer = offer
            logger.debug("Game {}: {} offered a draw", game_id, color.to_wire())
            await self._broadcast(
                session.recipients(),
                DrawOffered(game_id=game_id, offered_by=color.to_wire()),
            )
            self.timers.schedule(
                game_id,
                TimerPurpose.DRAW_OFFER,
                timeout_s,
                partial(self._expire_draw_offer, game_id, offer),
            )

    async def respond_to_draw(self, participant_id: str, game_id: str, accepted: bool) -> None:
        session = self.get_session(game_id)
        async with session.lock:
            self._ensure_live(session)
            color = self._require_player(session, participant_id)
            offer = session.draw_offer
            if offer is None:
                raise DrawOfferError("No draw offer pending.")
            if offer.offered_by == color:
                raise DrawOfferError("You cannot respond to your own draw offer.")

            if accepted:
                await self._end_session(session, Status.DRAWN, None, "Game drawn by mutual agreement")
            else:
                await self._cancel_draw_offer(session, "Draw offer declined.")

    # --- CONNECTIONS ---
    async def disconnect(self, participant_id: str) -> None:
        """The participant's connection is gone. Seats are kept for the grace period."""
        for session in list(self.sessions.values()):
            if not (session.is_bound(participant_id) or participant_id in session.spectators):
                continue
            async with session.lock:
                if self.sessions.get(session.game_id) is not session:
                    continue
                session.spectators.discard(participant_id)
                if session.is_bound(participant_id):
                    await self._handle_player_disconnect(session, participant_id)

        if self.lobby.leave(participant_id) is not None:
            logger.info("{} left the lobby", participant_id)
        await self.broadcast_lobby()

    async def reject(self, participant_id: str, request_type: Optional[str], reason: str) -> None:
        await self._send(participant_id, ErrorMessage(request_type=request_type, reason=reason))

    async def shutdown(self) -> None:
        self.timers.cancel_all()
        await self.timers.drain()

    # --- BROADCASTING ---
    async def broadcast_lobby(self) -> None:
        message = LobbyUpdate.from_snapshot(self.lobby_snapshot())
        await self._broadcast(self.lobby.participant_ids(), message)

    async def _broadcast(self, participant_ids: list[str], message: OutboundMessage) -> None:
        for participant_id in participant_ids:
            await self._send(participant_id, message)

    async def _send(self, participant_id: str, message: OutboundMessage) -> None:
        """Delivery failures are skipped: a vanished connection must not abort the transition."""
        try:
            await self.transport.send(participant_id, message)
        except Exception as e:
            logger.warning("Could not deliver {} to {}: {!r}", message.type, participant_id, e)

    # -- PRIVATE HELPERS ---
    def _ensure_live(self, session: GameSession) -> None:
        """The session may have ended while we were waiting for its lock."""
        if self.sessions.get(session.game_id) is not session:
            raise UnknownGameError(f"Game with game_id={session.game_id!r} not found.")

    def _require_player(self, session: GameSession, participant_id: str) -> Color:
        color = session.color_of(participant_id)
        if color is None:
            raise NotAParticipantError("You are not playing in this game.")
        return color

    def _remove_session(self, session: GameSession) -> None:
        self.sessions.pop(session.game_id, None)
        self.timers.cancel_session(session.game_id)

    def _game_ended(self, session: GameSession) -> GameEnded:
        outcome = session.outcome
        return GameEnded(
            game_id=session.game_id,
            status=outcome.status,
            winner=outcome.winner.to_wire() if outcome.winner else None,
            reason=outcome.reason,
            game_state=session.game_state(),
        )

    async def _after_move(self, session: GameSession) -> None:
        game = session.game
        if not game.is_over:
            await self._broadcast(
                session.recipients(),
                GameUpdate(game_id=session.game_id, game_state=session.game_state()),
            )
            return

        winner = game.winner
        if winner is not None:
            reason = f"Checkmate! {winner.to_wire()} wins!"
        else:
            reason = "Stalemate! The game is a draw."
        await self._end_session(session, game.status, winner, reason)

    async def _end_session(
        self, session: GameSession, status: Status, winner: Optional[Color], reason: str
    ) -> None:
        session.finish(status, winner, reason)
        self._remove_session(session)
        for human_id in session.human_ids():
            self.lobby.set_status(human_id, ParticipantStatus.AVAILABLE)
        logger.info("Game {} ended ({}): {}", session.game_id, status, reason)

        await self._broadcast(session.recipients(), self._game_ended(session))
        self._archive(session)
        await self.broadcast_lobby()

    def _archive(self, session: GameSession) -> None:
        if self.archive is None:
            return
        try:
            self.archive.archive_game(session.record())
        except RepositoryError as e:
            logger.error("Could not archive game {}: {}", session.game_id, e)

    async def _cancel_draw_offer(self, session: GameSession, reason: str) -> None:
        session.draw_offer = None
        self.timers.cancel(session.game_id, TimerPurpose.DRAW_OFFER)
        await self._broadcast(
            session.recipients(), DrawCancelled(game_id=session.game_id, reason=reason)
        )

    async def _expire_draw_offer(self, game_id: str, offer: DrawOffer) -> None:
        session = self.sessions.get(game_id)
        if session is None:
            return
        async with session.lock:
            # stale: answered, cancelled by a move, or replaced by a newer offer
            if session.draw_offer is not offer or self.sessions.get(game_id) is not session:
                return
            await self._cancel_draw_offer(session, "Draw offer expired.")

    async def _play_computer_turn(self, session: GameSession) -> None:
        """Runs the search in a worker thread. The caller holds the session's lock."""
        computer = session.computer
        game = session.game
        color = game.side_to_move
        try:
            move = await asyncio.to_thread(
                select_move,
                game.board,
                color,
                computer.difficulty,
                game.last_move,
                self.rng,
                self.settings.ai_time_budget_ms,
            )
        except Exception:
            logger.exception("Move selection failed in game {}", session.game_id)
            legal_moves = game.legal_moves()
            move = self.rng.choice(legal_moves) if legal_moves else None
        if move is None:
            logger.error("Computer has no move in game {} ({})", session.game_id, game.status)
            return

        game.make_move(color, move.from_square, move.to_square, move.promotion)
        logger.debug("Game {}: computer played {}", session.game_id, move.to_uci())
        await self._after_move(session)

    async def _reconnect(self, session: GameSession, participant: Participant) -> None:
        session.disconnect = None
        self.timers.cancel(session.game_id, TimerPurpose.DISCONNECT)
        self.lobby.set_status(participant.participant_id, ParticipantStatus.PLAYING)
        color = session.color_of(participant.participant_id)
        opponent = session.player(color.opponent)
        logger.info("{} reconnected to game {}", participant.username, session.game_id)

        game_state = session.game_state()
        await self._send(
            participant.participant_id,
            GameJoined(
                game_id=session.game_id,
                color=color.to_wire(),
                opponent=opponent.username,
                game_state=game_state,
            ),
        )
        if not opponent.is_computer:
            await self._send(
                opponent.participant_id,
                OpponentReconnected(game_id=session.game_id, game_state=game_state),
            )
        await self.broadcast_lobby()

    async def _handle_player_disconnect(self, session: GameSession, participant_id: str) -> None:
        """
        * a waiting session whose only player leaves is abandoned
        * first disconnect: record it, tell the opponent, arm the grace timer
        * second qualifying event (grace expired, or disconnect handled again): walkover for the opponent
        * both players gone: abandoned without a winner
        """
        color = session.color_of(participant_id)
        player = session.player(color)
        if not session.is_full:
            await self._end_session(
                session,
                Status.ABANDONED,
                None,
                f"{player.username} left before an opponent joined.",
            )
            return

        record = session.disconnect
        if record is not None and record.participant_id == participant_id:
            winner = color.opponent
            reason = f"{player.username} disconnected. {winner.to_wire()} wins by walkover!"
            await self._end_session(session, Status.ABANDONED, winner, reason)
            return
        if record is not None:
            await self._end_session(session, Status.ABANDONED, None, "Both players disconnected.")
            return

        session.disconnect = DisconnectRecord(participant_id, utc_now())
        logger.info(
            "{} disconnected from game {}, waiting {}s for reconnection",
            player.username,
            session.game_id,
            self.settings.disconnect_grace_s,
        )
        opponent = session.player(color.opponent)
        if not opponent.is_computer:
            await self._send(
                opponent.participant_id,
                OpponentDisconnected(game_id=session.game_id, message=RECONNECT_NOTICE),
            )
        self.timers.schedule(
            session.game_id,
            TimerPurpose.DISCONNECT,
            self.settings.disconnect_grace_s,
            partial(self._disconnect_grace_expired, session.game_id, participant_id),
        )

    async def _disconnect_grace_expired(self, game_id: str, participant_id: str) -> None:
        session = self.sessions.get(game_id)
        if session is None:
            return
        async with session.lock:
            record = session.disconnect
            if self.sessions.get(game_id) is not session:
                return
            if record is None or record.participant_id != participant_id:
                return
            await self._handle_player_disconnect(session, participant_id)
