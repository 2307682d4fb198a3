"""Unit tests for /src/chess/square.py"""

import pytest

from src.chess.square import ALL_SQUARES, BOARD_DIMENSIONS, Square


@pytest.mark.parametrize(
    "notation, row, col",
    [
        ("a8", 0, 0),
        ("h8", 0, 7),
        ("a1", 7, 0),
        ("h1", 7, 7),
        ("e4", 4, 4),
        ("d5", 3, 3),
    ],
)
def test_creating_from_algebraic(notation: str, row: int, col: int) -> None:
    """Row 0 is the 8th rank (black's back rank), column 0 is the a-file."""
    square = Square.from_algebraic(notation)
    assert square == Square(row, col)
    assert square.to_algebraic() == notation


def test_rank_and_file() -> None:
    square = Square.from_algebraic("c3")
    assert square.rank == 3
    assert square.file == 2


def test_offset() -> None:
    """Moving 'up' the board for white means decreasing the row index"""
    e2 = Square.from_algebraic("e2")
    assert e2.offset(-2, 0) == Square.from_algebraic("e4")
    assert e2.offset(-1, 1) == Square.from_algebraic("f3")


def test_square_within_bounds() -> None:
    """happy case: every square of the board"""
    for square in ALL_SQUARES:
        assert square.is_within_bounds()


def test_square_out_of_bounds() -> None:
    assert not Square(BOARD_DIMENSIONS[0], 0).is_within_bounds()
    assert not Square(0, BOARD_DIMENSIONS[1]).is_within_bounds()
    assert not Square(-1, -1).is_within_bounds()


def test_all_squares_row_major() -> None:
    """Move generation relies on this order: a8, b8, ..., h8, a7, ..., h1"""
    assert len(ALL_SQUARES) == 64
    assert ALL_SQUARES[0] == Square.from_algebraic("a8")
    assert ALL_SQUARES[7] == Square.from_algebraic("h8")
    assert ALL_SQUARES[8] == Square.from_algebraic("a7")
    assert ALL_SQUARES[-1] == Square.from_algebraic("h1")
    assert list(ALL_SQUARES) == sorted(ALL_SQUARES)
