import json

import pytest
from pydantic import ValidationError

from src.api.models import (
    CreateGameRequest,
    ErrorMessage,
    JoinLobbyRequest,
    LobbyUpdate,
    MakeMoveRequest,
    MovePayload,
    RespondToDrawRequest,
    parse_inbound,
)
from src.core.models import LobbySnapshot, ParticipantSummary, SessionSummary
from src.core.shared_types import Color, OpponentType, PieceType, Status


# -- Parsing tagged messages --
def test_parse_join_lobby() -> None:
    request = parse_inbound('{"type": "join_lobby", "username": "  alice "}')
    assert isinstance(request, JoinLobbyRequest)
    assert request.username == "alice"


def test_parse_make_move_uses_from_and_to() -> None:
    raw = json.dumps(
        {
            "type": "make_move",
            "game_id": "g1",
            "move": {"from": "E7", "to": "e8", "promotion": "knight"},
        }
    )
    request = parse_inbound(raw)
    assert isinstance(request, MakeMoveRequest)
    assert request.move.from_square == "e7"
    assert request.move.to_square == "e8"
    assert request.move.promotion == PieceType.KNIGHT


def test_parse_create_game_defaults() -> None:
    request = parse_inbound('{"type": "create_game"}')
    assert isinstance(request, CreateGameRequest)
    assert request.preferred_color == Color.WHITE
    assert request.opponent == OpponentType.HUMAN
    assert request.difficulty is None
    assert request.starting_fen is None


def test_parse_respond_to_draw() -> None:
    request = parse_inbound(b'{"type": "respond_to_draw", "game_id": "g1", "accepted": false}')
    assert isinstance(request, RespondToDrawRequest)
    assert request.accepted is False


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        '{"username": "no type"}',
        '{"type": "fly_to_the_moon"}',
        '{"type": "join_lobby", "username": "   "}',
        '{"type": "join_game"}',
        '{"type": "make_move", "game_id": "g1", "move": {"from": "e9", "to": "e4"}}',
        '{"type": "make_move", "game_id": "g1", "move": {"from": "e7", "to": "e8", "promotion": "king"}}',
        '{"type": "create_game", "opponent": "alien"}',
        '{"type": "create_game", "starting_fen": "8/8/8 w"}',
    ],
)
def test_malformed_messages(raw: str) -> None:
    with pytest.raises(ValidationError):
        parse_inbound(raw)


# -- Validation - MovePayload --
def test_move_payload_by_field_name() -> None:
    move = MovePayload(from_square="a2", to_square="a4")
    assert (move.from_square, move.to_square, move.promotion) == ("a2", "a4", None)


def test_username_length() -> None:
    with pytest.raises(ValidationError):
        JoinLobbyRequest(type="join_lobby", username="x" * 41)


def test_valid_fen() -> None:
    valid_fen = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
    request = CreateGameRequest(type="create_game", starting_fen=f" {valid_fen} ")
    assert request.starting_fen == valid_fen


# -- Rendering outbound messages --
def test_lobby_update_from_snapshot() -> None:
    snapshot = LobbySnapshot(
        participants=[ParticipantSummary("u1", "alice", "playing")],
        games=[SessionSummary("g1", "alice", "Waiting...", "waiting")],
    )
    payload = json.loads(LobbyUpdate.from_snapshot(snapshot).model_dump_json())
    assert payload == {
        "type": "lobby_update",
        "lobby": [{"user_id": "u1", "username": "alice", "status": "playing"}],
        "games": [
            {"game_id": "g1", "white": "alice", "black": "Waiting...", "status": "waiting"}
        ],
    }


def test_error_message() -> None:
    payload = json.loads(ErrorMessage(request_type="resign", reason="nope").model_dump_json())
    assert payload == {"type": "error", "request_type": "resign", "reason": "nope"}
    assert Status("checkmate") == Status.CHECKMATE
