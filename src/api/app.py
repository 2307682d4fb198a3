"""
FastAPI application: the websocket transport in front of the SessionCoordinator.

* `/ws` carries the tagged JSON messages. `?user_id=...` lets a client keep its identity across
  reconnects, otherwise every connection gets a fresh id.
* `/health` and `/archive` are plain HTTP.

Run with `chess-coordinator` or `uvicorn src.api.app:create_app --factory`.
"""

import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Query, WebSocket, WebSocketDisconnect
from loguru import logger

from src.api.models import OutboundMessage
from src.api.router import MessageRouter
from src.core.config import Settings, load_settings
from src.core.log_setup import configure_logging
from src.db.database import build_session_factory
from src.db.repository import GameArchive
from src.db.sql_repository import SQLGameArchive
from src.services.coordinator import SessionCoordinator

_USER_ID_RE = re.compile(r"[^a-zA-Z0-9_-]+")


def normalize_participant_id(value: Optional[str]) -> str:
    if not value:
        return ""
    return _USER_ID_RE.sub("", value.strip())[:48]


class ConnectionManager:
    """One websocket per participant id. A newer connection with the same id replaces the older one."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}

    def __len__(self) -> int:
        return len(self._connections)

    async def connect(self, participant_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        if participant_id in self._connections:
            logger.info("{} connected again, replacing the previous connection", participant_id)
        self._connections[participant_id] = websocket

    def disconnect(self, participant_id: str, websocket: WebSocket) -> bool:
        """False when the connection had already been replaced by a newer one."""
        if self._connections.get(participant_id) is not websocket:
            return False
        del self._connections[participant_id]
        return True

    async def send(self, participant_id: str, message: OutboundMessage) -> None:
        websocket = self._connections.get(participant_id)
        if websocket is None:
            logger.debug("No connection for {}, dropping {}", participant_id, message.type)
            return
        await websocket.send_text(message.model_dump_json(by_alias=True))


def build_archive(settings: Settings) -> Optional[GameArchive]:
    if not settings.archive_url:
        return None
    session_factory = build_session_factory(settings.archive_url)
    return SQLGameArchive(session_factory())


def create_app(
    settings: Optional[Settings] = None, archive: Optional[GameArchive] = None
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings)
    if archive is None:
        archive = build_archive(settings)

    manager = ConnectionManager()
    coordinator = SessionCoordinator(manager, settings, archive)
    router = MessageRouter(coordinator)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Coordinator ready (archive: {})", "on" if archive else "off")
        yield
        await coordinator.shutdown()
        if isinstance(archive, SQLGameArchive):
            archive.db.close()

    app = FastAPI(title="Chess coordinator", lifespan=lifespan)
    app.state.settings = settings
    app.state.connections = manager
    app.state.coordinator = coordinator

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "connections": len(manager), **coordinator.stats()}

    @app.get("/archive")
    def archived_games(limit: int = Query(default=50, ge=1, le=500)) -> list[dict]:
        if coordinator.archive is None:
            return []
        return [
            {
                "game_id": record.game_id,
                "white": record.white,
                "black": record.black,
                "status": record.status,
                "winner": record.winner,
                "reason": record.reason,
                "moves": record.moves_uci,
                "finished_at": record.finished_at.isoformat(),
            }
            for record in coordinator.archive.list_records(limit)
        ]

    @app.websocket("/ws")
    async def websocket_endpoint(
        websocket: WebSocket, user_id: Optional[str] = None
    ) -> None:
        participant_id = normalize_participant_id(user_id) or uuid4().hex
        await manager.connect(participant_id, websocket)
        logger.info("{} connected", participant_id)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.info("{} disconnected", participant_id)
                    break
                raw = message.get("text")
                if raw is None:
                    logger.warning("Dropping binary frame from {}", participant_id)
                    continue
                await router.dispatch(participant_id, raw)
        except WebSocketDisconnect:
            logger.info("{} disconnected", participant_id)
        finally:
            if manager.disconnect(participant_id, websocket):
                await coordinator.disconnect(participant_id)

    return app


def main() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
