"""Unit tests for /src/chess/board.py"""

import pytest

from src.chess.board import STARTING_POSITION, Board
from src.chess.castling import CastlingDirection
from src.chess.moves import Move
from src.chess.pieces import Color, Piece, PieceKind
from src.chess.square import Square

EMPTY_FEN = "/".join(["8"] * 8)


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


@pytest.mark.parametrize(
    "fen",
    [
        STARTING_POSITION,
        EMPTY_FEN,
        "k7/1b6/8/8/8/8/6q1/7K",
        "r3k2r/pppq1ppp/2n2n2/3pp3/3PP3/2N2N2/PPPQ1PPP/R3K2R",
    ],
)
def test_fen_round_trip(fen: str) -> None:
    assert Board.from_fen(fen).to_fen() == fen


def test_starting_position() -> None:
    board = Board.starting_position()
    assert board.piece_at(sq("e1")) == Piece(PieceKind.KING, Color.WHITE)
    assert board.piece_at(sq("d8")) == Piece(PieceKind.QUEEN, Color.BLACK)
    assert board.is_empty(sq("e4"))
    assert len(board.locate_color(Color.WHITE)) == 16
    assert len(board.locate_color(Color.BLACK)) == 16


def test_pawns_off_their_start_row_count_as_moved() -> None:
    board = Board.from_fen("8/8/8/8/4P3/8/3P4/8")
    assert board.piece_at(sq("e4")).has_moved
    assert not board.piece_at(sq("d2")).has_moved


def test_locate_color_is_row_major() -> None:
    board = Board.from_fen("8/8/8/8/8/8/PPPPPPPP/RNBQKBNR")
    located = board.locate_color(Color.WHITE)
    assert located[0] == sq("a2")
    assert located[8] == sq("a1")
    assert located == sorted(located)


def test_find_king() -> None:
    board = Board.starting_position()
    assert board.find_king(Color.WHITE) == sq("e1")
    assert board.find_king(Color.BLACK) == sq("e8")
    assert Board.from_fen(EMPTY_FEN).find_king(Color.WHITE) is None


def test_copy_is_deep() -> None:
    board = Board.starting_position()
    clone = board.copy()
    clone.piece_at(sq("e2")).has_moved = True
    clone.remove_piece(sq("d2"))
    assert not board.piece_at(sq("e2")).has_moved
    assert board.piece_at(sq("d2")) is not None


# --- MAKE / UNMAKE ---
def test_make_and_unmake_simple_move() -> None:
    board = Board.starting_position()
    before = board.copy()
    move = Move(sq("g1"), sq("f3"), piece_kind=PieceKind.KNIGHT)
    undo = board.make_move(move)
    assert board.is_empty(sq("g1"))
    assert board.piece_at(sq("f3")).has_moved

    board.unmake_move(undo)
    assert board == before


def test_make_and_unmake_capture() -> None:
    board = Board.from_fen("k7/8/8/3p4/4P3/8/8/K7")
    before = board.copy()
    move = Move(sq("e4"), sq("d5"), piece_kind=PieceKind.PAWN, captured=PieceKind.PAWN)
    undo = board.make_move(move)
    assert board.piece_at(sq("d5")).color == Color.WHITE
    assert undo.captured_piece == Piece(PieceKind.PAWN, Color.BLACK, has_moved=True)

    board.unmake_move(undo)
    assert board == before


def test_en_passant_removes_the_passed_pawn() -> None:
    board = Board.from_fen("k7/8/8/3pP3/8/8/8/K7")
    before = board.copy()
    move = Move(
        sq("e5"),
        sq("d6"),
        piece_kind=PieceKind.PAWN,
        captured=PieceKind.PAWN,
        is_en_passant=True,
    )
    undo = board.make_move(move)
    assert board.is_empty(sq("d5"))
    assert board.piece_at(sq("d6")).color == Color.WHITE
    assert undo.captured_square == sq("d5")

    board.unmake_move(undo)
    assert board == before


@pytest.mark.parametrize(
    "direction, king_from, king_to, rook_from, rook_to",
    [
        (CastlingDirection.WHITE_KING_SIDE, "e1", "g1", "h1", "f1"),
        (CastlingDirection.WHITE_QUEEN_SIDE, "e1", "c1", "a1", "d1"),
        (CastlingDirection.BLACK_KING_SIDE, "e8", "g8", "h8", "f8"),
        (CastlingDirection.BLACK_QUEEN_SIDE, "e8", "c8", "a8", "d8"),
    ],
)
def test_castling_moves_the_rook(
    direction: CastlingDirection,
    king_from: str,
    king_to: str,
    rook_from: str,
    rook_to: str,
) -> None:
    board = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R")
    before = board.copy()
    move = Move(sq(king_from), sq(king_to), piece_kind=PieceKind.KING, castling=direction)
    undo = board.make_move(move)
    assert board.piece_at(sq(king_to)).kind == PieceKind.KING
    assert board.piece_at(sq(rook_to)).kind == PieceKind.ROOK
    assert board.piece_at(sq(rook_to)).has_moved
    assert board.is_empty(sq(rook_from))

    board.unmake_move(undo)
    assert board == before
    assert not board.piece_at(sq(rook_from)).has_moved


def test_promotion_and_unmake() -> None:
    board = Board.from_fen("k7/4P3/8/8/8/8/8/K7")
    before = board.copy()
    move = Move(sq("e7"), sq("e8"), piece_kind=PieceKind.PAWN, promotion=PieceKind.KNIGHT)
    undo = board.make_move(move)
    assert board.piece_at(sq("e8")) == Piece(PieceKind.KNIGHT, Color.WHITE, has_moved=True)

    board.unmake_move(undo)
    assert board == before
    assert board.piece_at(sq("e7")).kind == PieceKind.PAWN


def test_make_move_from_empty_square() -> None:
    board = Board.from_fen(EMPTY_FEN)
    with pytest.raises(ValueError):
        board.make_move(Move(sq("e2"), sq("e4")))
