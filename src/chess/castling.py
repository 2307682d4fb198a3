"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Self

from src.chess.pieces import Color
from src.chess.square import Square


class CastlingDirection(Enum):
    """The four castling directions. Values represent their encodings in FEN string."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"

    @property
    def color(self) -> Color:
        return Color.WHITE if self.value.isupper() else Color.BLACK


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.

    * `between`: every square between king and rook. All must be empty.
    * `king_path`: the squares the king crosses and lands on. None may be attacked.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square
    between: tuple[Square, ...]
    king_path: tuple[Square, ...]

    @classmethod
    def from_algebraic(cls, k_from: str, k_to: str, r_from: str, r_to: str) -> Self:
        """Convenience method: to make mapping shown below (from CastlingDirection) more readable"""
        king_from = Square.from_algebraic(k_from)
        king_to = Square.from_algebraic(k_to)
        rook_from = Square.from_algebraic(r_from)
        rook_to = Square.from_algebraic(r_to)
        between = squares_between_on_rank(king_from, rook_from)
        king_path = squares_between_on_rank(king_from, king_to) + (king_to,)
        return cls(king_from, king_to, rook_from, rook_to, between, king_path)


def squares_between_on_rank(from_square: Square, to_square: Square) -> tuple[Square, ...]:
    """
    Find the squares in between the two squares specified that are on the same rank (exclusive on both ends)
    """
    if from_square.row != to_square.row:
        raise ValueError(
            f"squares_between_on_rank requires both squares to lie on the same rank. \n from: {from_square}\n to:{to_square}"
        )
    step = 1 if to_square.col > from_square.col else -1
    return tuple(
        Square(from_square.row, col)
        for col in range(from_square.col + step, to_square.col, step)
    )


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[CastlingDirection, CastlingSquares] = {
    CastlingDirection.WHITE_KING_SIDE: CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1"
    ),
    CastlingDirection.WHITE_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1"
    ),
    CastlingDirection.BLACK_KING_SIDE: CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8"
    ),
    CastlingDirection.BLACK_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8"
    ),
}


def castling_direction(from_square: Square, to_square: Square) -> Optional[CastlingDirection]:
    """Which castling move (if any) moves the king from `from_square` to `to_square`."""
    for direction, rule in CASTLING_RULES.items():
        if rule.king_from == from_square and rule.king_to == to_square:
            return direction
    return None
