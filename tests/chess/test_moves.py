"""Unit tests for /src/chess/moves.py"""

import pytest

from src.chess.board import Board
from src.chess.moves import (
    DIAGONALS,
    MOVEMENT_RULES,
    STRAIGHTS,
    Move,
    candidate_king_moves,
    candidate_knight_moves,
    candidate_pawn_moves,
    is_attacked_by_pawn,
    is_attacked_diagonally,
    is_attacked_on_straights,
    is_square_attacked,
    raycasting_attack,
    raycasting_move,
)
from src.chess.pieces import Color, Piece, PieceKind
from src.chess.square import Square

EMPTY_FEN = "/".join(["8"] * 8)


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def names(squares: list[Square]) -> set[str]:
    return {square.to_algebraic() for square in squares}


def board_with(**pieces: str) -> Board:
    """board_with(d4="Q", e5="p"): FEN characters keyed by square name"""
    board = Board.from_fen(EMPTY_FEN)
    for square_name, fen_char in pieces.items():
        board.place_piece(Piece.from_fen(fen_char), sq(square_name))
    return board


# -- MOVE CREATION, ENCODING/DECODING UCI NOTATION ---
@pytest.mark.parametrize(
    "uci_move, from_uci, to_uci",
    [
        ("e2e4", "e2", "e4"),
        ("a1a5", "a1", "a5"),
        ("g3a7", "g3", "a7"),
    ],
)
def test_creating_move_from_uci(uci_move: str, from_uci: str, to_uci: str) -> None:
    """Parsing of UCI notation: <from_square><to_square>"""
    move = Move.from_uci(uci_move)
    assert move.from_square == sq(from_uci)
    assert move.to_square == sq(to_uci)
    assert move.promotion is None
    assert move.to_uci() == uci_move


def test_creating_move_incl_promotion() -> None:
    move = Move.from_uci("e7e8q")
    assert move.from_square == sq("e7")
    assert move.to_square == sq("e8")
    assert move.promotion == PieceKind.QUEEN
    assert move.to_uci() == "e7e8q"


def test_double_pawn_push() -> None:
    assert Move(sq("d7"), sq("d5"), piece_kind=PieceKind.PAWN).is_double_pawn_push
    assert not Move(sq("d6"), sq("d5"), piece_kind=PieceKind.PAWN).is_double_pawn_push
    assert not Move(sq("a1"), sq("a3"), piece_kind=PieceKind.ROOK).is_double_pawn_push


# --- MOVEMENT ---
@pytest.mark.parametrize(
    "fen_char, square_name, expected_count",
    [
        ("R", "d4", 14),
        ("B", "a8", 7),
        ("B", "d4", 13),
        ("Q", "d4", 27),
        ("N", "a1", 2),
        ("N", "d4", 8),
        ("K", "e4", 8),
        ("K", "h1", 3),
    ],
)
def test_number_of_moves_on_empty_board(
    fen_char: str, square_name: str, expected_count: int
) -> None:
    board = board_with(**{square_name: fen_char})
    piece = board.piece_at(sq(square_name))
    assert len(MOVEMENT_RULES[piece.kind](sq(square_name), board)) == expected_count


def test_raycasting_stops_at_pieces() -> None:
    """Own pieces block, opponent pieces block but can be captured"""
    board = board_with(a1="R", a3="P", c1="n")
    assert names(raycasting_move(sq("a1"), board, STRAIGHTS)) == {"a2", "b1", "c1"}


def test_knight_jumps_over_pieces() -> None:
    board = Board.starting_position()
    assert names(candidate_knight_moves(sq("g1"), board)) == {"f3", "h3"}


def test_king_cannot_take_own_piece() -> None:
    board = board_with(e1="K", d1="Q", e2="p")
    assert names(candidate_king_moves(sq("e1"), board)) == {"f1", "d2", "e2", "f2"}


def test_pawn_single_and_double_step() -> None:
    board = Board.starting_position()
    assert names(candidate_pawn_moves(sq("e2"), board)) == {"e3", "e4"}
    assert names(candidate_pawn_moves(sq("d7"), board)) == {"d6", "d5"}


def test_pawn_blocked() -> None:
    board = board_with(e2="P", e3="p")
    assert candidate_pawn_moves(sq("e2"), board) == []


def test_pawn_double_step_blocked_on_second_square() -> None:
    board = board_with(e2="P", e4="n")
    assert names(candidate_pawn_moves(sq("e2"), board)) == {"e3"}


def test_pawn_no_double_step_after_moving() -> None:
    board = board_with(e3="P")
    assert names(candidate_pawn_moves(sq("e3"), board)) == {"e4"}


def test_pawn_takes_diagonally() -> None:
    board = board_with(e4="P", d5="p", f5="P", e5="n")
    assert names(candidate_pawn_moves(sq("e4"), board)) == {"d5"}


# --- ATTACKS ---
def test_pawn_attacks_are_directional() -> None:
    white = board_with(e4="P")
    assert is_attacked_by_pawn(sq("d5"), Color.WHITE, white)
    assert is_attacked_by_pawn(sq("f5"), Color.WHITE, white)
    assert not is_attacked_by_pawn(sq("e5"), Color.WHITE, white)
    assert not is_attacked_by_pawn(sq("d3"), Color.WHITE, white)

    black = board_with(d5="p")
    assert is_attacked_by_pawn(sq("e4"), Color.BLACK, black)
    assert is_attacked_by_pawn(sq("c4"), Color.BLACK, black)
    assert not is_attacked_by_pawn(sq("e6"), Color.BLACK, black)


def test_sliding_attacks_are_blocked() -> None:
    board = board_with(a1="q", c3="P", h1="r", e1="K")
    assert not is_attacked_diagonally(sq("e5"), Color.BLACK, board)
    assert is_attacked_diagonally(sq("b2"), Color.BLACK, board)
    assert is_attacked_on_straights(sq("f1"), Color.BLACK, board)
    # the white king shields d1 from the h1 rook, the a1 queen still reaches it
    assert is_attacked_on_straights(sq("d1"), Color.BLACK, board)


def test_raycasting_attack_only_counts_given_kinds() -> None:
    board = board_with(a1="b")
    bishops = frozenset({PieceKind.BISHOP})
    rooks = frozenset({PieceKind.ROOK})
    assert raycasting_attack(sq("h8"), Color.BLACK, bishops, board, DIAGONALS)
    assert not raycasting_attack(sq("h8"), Color.BLACK, rooks, board, DIAGONALS)


@pytest.mark.parametrize(
    "attacker, attacker_square, target, expected",
    [
        ("n", "f6", "e4", True),
        ("n", "f6", "e5", False),
        ("k", "e8", "d7", True),
        ("k", "e8", "e6", False),
        ("r", "e8", "e1", True),
        ("b", "h4", "e1", True),
    ],
)
def test_is_square_attacked(
    attacker: str, attacker_square: str, target: str, expected: bool
) -> None:
    board = board_with(**{attacker_square: attacker})
    assert is_square_attacked(sq(target), Color.BLACK, board) == expected
    assert not is_square_attacked(sq(target), Color.WHITE, board)
