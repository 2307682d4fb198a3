"""
Inbound and outbound message models.

Every message is a JSON object tagged by its `type` field.
Inbound messages are parsed into one of the request models through a discriminated union,
outbound messages are rendered from the response models with `model_dump_json(by_alias=True)`.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.models import LobbySnapshot
from src.core.shared_types import (
    Color,
    Difficulty,
    OpponentType,
    ParticipantStatus,
    PieceType,
    Status,
)

GameId = str
PlayerName = str


def _is_algebraic_notation(value: str) -> bool:
    if len(value) != 2:
        return False
    file_char, rank_char = value[0], value[1]
    return file_char in "abcdefgh" and rank_char in "12345678"


# --- REQUEST MODELS ---
class JoinLobbyRequest(BaseModel):
    type: Literal["join_lobby"]
    username: str = Field(min_length=1, max_length=40)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise InvalidRequestError("Username cannot be blank.")
        return value


class CreateGameRequest(BaseModel):
    type: Literal["create_game"]
    preferred_color: Color = Color.WHITE
    opponent: OpponentType = OpponentType.HUMAN
    difficulty: Optional[Difficulty] = None
    starting_fen: Optional[str] = None

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value

        value = value.strip()
        parts = value.split(" ")
        if len(parts) != 6:
            raise InvalidRequestError(
                "FEN string must contain 6 space-separated parts."
            )
        return value


class JoinGameRequest(BaseModel):
    type: Literal["join_game"]
    game_id: GameId


class SpectateGameRequest(BaseModel):
    type: Literal["spectate_game"]
    game_id: GameId


class MovePayload(BaseModel):
    """`from`/`to` are Python keywords, hence the aliases."""

    model_config = ConfigDict(populate_by_name=True)

    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")
    promotion: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        value = value.strip().lower()
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret square: {value!r} as a valid square name."
            )
        return value

    @field_validator("promotion")
    @classmethod
    def validate_promotion(cls, value: Optional[PieceType]) -> Optional[PieceType]:
        if value in (PieceType.PAWN, PieceType.KING):
            raise InvalidRequestError(f"Cannot promote to {value}.")
        return value


class MakeMoveRequest(BaseModel):
    type: Literal["make_move"]
    game_id: GameId
    move: MovePayload


class DeleteGameRequest(BaseModel):
    type: Literal["delete_game"]
    game_id: GameId


class ResignRequest(BaseModel):
    type: Literal["resign"]
    game_id: GameId


class OfferDrawRequest(BaseModel):
    type: Literal["offer_draw"]
    game_id: GameId


class RespondToDrawRequest(BaseModel):
    type: Literal["respond_to_draw"]
    game_id: GameId
    accepted: bool


InboundMessage = Annotated[
    Union[
        JoinLobbyRequest,
        CreateGameRequest,
        JoinGameRequest,
        SpectateGameRequest,
        MakeMoveRequest,
        DeleteGameRequest,
        ResignRequest,
        OfferDrawRequest,
        RespondToDrawRequest,
    ],
    Field(discriminator="type"),
]

INBOUND_ADAPTER: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def parse_inbound(raw: str | bytes) -> InboundMessage:
    """Raises pydantic.ValidationError for bad JSON, unknown types and invalid fields alike."""
    return INBOUND_ADAPTER.validate_json(raw)


# --- GAME STATE ---
class SquareState(BaseModel):
    piece: PieceType
    color: Color
    has_moved: bool


class GameState(BaseModel):
    """Full picture of one game as the clients render it."""

    board: list[list[Optional[SquareState]]]
    fen: str
    current_player: Color
    status: Status
    move_history: list[str]
    last_move: Optional[str] = None
    captures: dict[Color, dict[PieceType, int]]
    promotion: bool = False
    draw_offer: Optional[Color] = None


# --- RESPONSE MODELS ---
class ParticipantView(BaseModel):
    user_id: str
    username: PlayerName
    status: ParticipantStatus


class GameSummaryView(BaseModel):
    game_id: GameId
    white: PlayerName
    black: PlayerName
    status: Status


class LobbyUpdate(BaseModel):
    type: Literal["lobby_update"] = "lobby_update"
    lobby: list[ParticipantView]
    games: list[GameSummaryView]

    @classmethod
    def from_snapshot(cls, snapshot: LobbySnapshot) -> "LobbyUpdate":
        return cls(
            lobby=[
                ParticipantView(
                    user_id=p.user_id, username=p.username, status=p.status
                )
                for p in snapshot.participants
            ],
            games=[
                GameSummaryView(
                    game_id=g.game_id, white=g.white, black=g.black, status=g.status
                )
                for g in snapshot.games
            ],
        )


class GameStarted(BaseModel):
    type: Literal["game_started"] = "game_started"
    game_id: GameId
    color: Color
    opponent: Optional[PlayerName] = None
    game_state: GameState


class GameJoined(BaseModel):
    type: Literal["game_joined"] = "game_joined"
    game_id: GameId
    color: Color
    opponent: PlayerName
    game_state: GameState


class GameUpdate(BaseModel):
    type: Literal["game_update"] = "game_update"
    game_id: GameId
    game_state: GameState


class GameEnded(BaseModel):
    type: Literal["game_ended"] = "game_ended"
    game_id: GameId
    status: Status
    winner: Optional[Color] = None
    reason: str
    game_state: Optional[GameState] = None


class DrawOffered(BaseModel):
    type: Literal["draw_offered"] = "draw_offered"
    game_id: GameId
    offered_by: Color


class DrawCancelled(BaseModel):
    type: Literal["draw_cancelled"] = "draw_cancelled"
    game_id: GameId
    reason: str


class OpponentDisconnected(BaseModel):
    type: Literal["opponent_disconnected"] = "opponent_disconnected"
    game_id: GameId
    message: str


class OpponentReconnected(BaseModel):
    type: Literal["opponent_reconnected"] = "opponent_reconnected"
    game_id: GameId
    game_state: GameState


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    request_type: Optional[str] = None
    reason: str


OutboundMessage = Union[
    LobbyUpdate,
    GameStarted,
    GameJoined,
    GameUpdate,
    GameEnded,
    DrawOffered,
    DrawCancelled,
    OpponentDisconnected,
    OpponentReconnected,
    ErrorMessage,
]
