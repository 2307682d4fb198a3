"""Routes inbound messages to coordinator operations."""

from typing import Any, Awaitable, Callable

from loguru import logger
from pydantic import ValidationError

from src.api.models import (
    CreateGameRequest,
    DeleteGameRequest,
    JoinGameRequest,
    JoinLobbyRequest,
    MakeMoveRequest,
    OfferDrawRequest,
    ResignRequest,
    RespondToDrawRequest,
    SpectateGameRequest,
    parse_inbound,
)
from src.core.exceptions import GameError
from src.services.coordinator import SessionCoordinator

Handler = Callable[[SessionCoordinator, str, Any], Awaitable[Any]]


async def _join_lobby(
    coordinator: SessionCoordinator, participant_id: str, request: JoinLobbyRequest
) -> None:
    await coordinator.join_lobby(participant_id, request.username)


async def _create_game(
    coordinator: SessionCoordinator, participant_id: str, request: CreateGameRequest
) -> None:
    await coordinator.create_game(
        participant_id,
        preferred_color=request.preferred_color,
        opponent=request.opponent,
        difficulty=request.difficulty,
        starting_fen=request.starting_fen,
    )


async def _join_game(
    coordinator: SessionCoordinator, participant_id: str, request: JoinGameRequest
) -> None:
    await coordinator.join_game(participant_id, request.game_id)


async def _spectate_game(
    coordinator: SessionCoordinator, participant_id: str, request: SpectateGameRequest
) -> None:
    await coordinator.spectate_game(participant_id, request.game_id)


async def _make_move(
    coordinator: SessionCoordinator, participant_id: str, request: MakeMoveRequest
) -> None:
    await coordinator.make_move(
        participant_id,
        request.game_id,
        request.move.from_square,
        request.move.to_square,
        request.move.promotion,
    )


async def _delete_game(
    coordinator: SessionCoordinator, participant_id: str, request: DeleteGameRequest
) -> None:
    await coordinator.delete_game(participant_id, request.game_id)


async def _resign(
    coordinator: SessionCoordinator, participant_id: str, request: ResignRequest
) -> None:
    await coordinator.resign(participant_id, request.game_id)


async def _offer_draw(
    coordinator: SessionCoordinator, participant_id: str, request: OfferDrawRequest
) -> None:
    await coordinator.offer_draw(participant_id, request.game_id)


async def _respond_to_draw(
    coordinator: SessionCoordinator, participant_id: str, request: RespondToDrawRequest
) -> None:
    await coordinator.respond_to_draw(participant_id, request.game_id, request.accepted)


HANDLERS: dict[str, Handler] = {
    "join_lobby": _join_lobby,
    "create_game": _create_game,
    "join_game": _join_game,
    "spectate_game": _spectate_game,
    "make_move": _make_move,
    "delete_game": _delete_game,
    "resign": _resign,
    "offer_draw": _offer_draw,
    "respond_to_draw": _respond_to_draw,
}


class MessageRouter:
    """
    * malformed messages are logged and dropped
    * rejected operations are answered with an error message to the requester
    * nothing raised here ends the connection
    """

    def __init__(self, coordinator: SessionCoordinator) -> None:
        self.coordinator = coordinator

    async def dispatch(self, participant_id: str, raw: str | bytes) -> None:
        try:
            request = parse_inbound(raw)
        except ValidationError as e:
            logger.warning(
                "Dropping malformed message from {}: {} error(s)",
                participant_id,
                e.error_count(),
            )
            return

        handler = HANDLERS[request.type]
        try:
            await handler(self.coordinator, participant_id, request)
        except GameError as e:
            logger.warning("Rejected {} from {}: {}", request.type, participant_id, e)
            await self.coordinator.reject(participant_id, request.type, str(e))
        except Exception:
            logger.exception(
                "Unexpected failure handling {} from {}", request.type, participant_id
            )
            await self.coordinator.reject(
                participant_id, request.type, "Internal server error."
            )
