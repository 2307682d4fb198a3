"""Unit tests for /src/chess/pieces.py"""

import pytest

from src.chess.pieces import (
    FEN_TO_PIECE,
    PIECE_TO_FEN,
    PIECE_VALUES,
    Color,
    Piece,
    PieceKind,
)
from src.core.shared_types import Color as WireColor
from src.core.shared_types import PieceType


@pytest.mark.parametrize("char", [char.upper() for char in FEN_TO_PIECE.keys()])
def test_creating_white_piece_from_fen(char: str) -> None:
    """Capital letters are used for white pieces"""
    piece = Piece.from_fen(char)
    assert piece.kind == FEN_TO_PIECE[char.lower()]
    assert piece.color == Color.WHITE
    assert not piece.has_moved


@pytest.mark.parametrize("char", [char.lower() for char in FEN_TO_PIECE.keys()])
def test_creating_black_piece_from_fen(char: str) -> None:
    """Lower case letters are used for black pieces"""
    piece = Piece.from_fen(char)
    assert piece.kind == FEN_TO_PIECE[char.lower()]
    assert piece.color == Color.BLACK


@pytest.mark.parametrize("kind", list(PieceKind))
def test_pieces_to_fen(kind: PieceKind) -> None:
    assert Piece(kind, Color.WHITE).to_fen() == PIECE_TO_FEN[kind].upper()
    assert Piece(kind, Color.BLACK).to_fen() == PIECE_TO_FEN[kind].lower()


@pytest.mark.parametrize("color", list(Color))
def test_promotion_to_queen(color: Color) -> None:
    """Promotion mutates the piece in place and keeps its color"""
    piece = Piece(PieceKind.PAWN, color, has_moved=True)
    piece.promote_to(PieceKind.QUEEN)
    assert piece.kind == PieceKind.QUEEN
    assert piece.color == color
    assert piece.has_moved


def test_copy_is_independent() -> None:
    piece = Piece(PieceKind.ROOK, Color.WHITE)
    clone = piece.copy()
    clone.has_moved = True
    assert not piece.has_moved
    assert clone == Piece(PieceKind.ROOK, Color.WHITE, has_moved=True)


def test_color_geometry() -> None:
    """White sits on rows 6/7 and moves towards row 0, black the reverse"""
    assert Color.WHITE.opponent == Color.BLACK
    assert Color.BLACK.opponent == Color.WHITE
    assert Color.WHITE.forward == -1
    assert Color.BLACK.forward == 1
    assert (Color.WHITE.home_row, Color.WHITE.pawn_row, Color.WHITE.promotion_row) == (7, 6, 0)
    assert (Color.BLACK.home_row, Color.BLACK.pawn_row, Color.BLACK.promotion_row) == (0, 1, 7)


def test_wire_conversion() -> None:
    assert Color.from_name(WireColor.BLACK) == Color.BLACK
    assert Color.WHITE.to_wire() == WireColor.WHITE
    assert PieceKind.from_name("knight") == PieceKind.KNIGHT
    assert PieceKind.QUEEN.to_wire() == PieceType.QUEEN


def test_piece_values_order() -> None:
    assert (
        PIECE_VALUES[PieceKind.PAWN]
        < PIECE_VALUES[PieceKind.KNIGHT]
        < PIECE_VALUES[PieceKind.BISHOP]
        < PIECE_VALUES[PieceKind.ROOK]
        < PIECE_VALUES[PieceKind.QUEEN]
        < PIECE_VALUES[PieceKind.KING]
    )
