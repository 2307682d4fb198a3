"""
A square on the board

(placed in its own module as multiple other modules need to import it)

Coordinates follow the grid: row 0 is the far rank (rank 8, black's back rank), row 7 the near rank (rank 1).
The file is the column: col 0 = a-file.
"""

from __future__ import annotations

from dataclasses import dataclass

# Chess board is always 8x8.
BOARD_DIMENSIONS = (8, 8)


@dataclass(frozen=True, order=True)
class Square:
    row: int
    col: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a8' -> (0, 0), 'h1' -> (7, 7)"""
        col = ord(sq[0]) - ord("a")
        rank = int(sq[1])
        return cls(BOARD_DIMENSIONS[0] - rank, col)

    def to_algebraic(self) -> str:
        return f"{chr(self.col + ord('a'))}{self.rank}"

    @property
    def rank(self) -> int:
        return BOARD_DIMENSIONS[0] - self.row

    @property
    def file(self) -> int:
        return self.col

    def offset(self, d_row: int, d_col: int) -> Square:
        return Square(self.row + d_row, self.col + d_col)

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )


# Row-major order (a8, b8, ..., h8, a7, ..., h1). Move generation relies on this order.
ALL_SQUARES: tuple[Square, ...] = tuple(
    Square(row, col)
    for row in range(BOARD_DIMENSIONS[0])
    for col in range(BOARD_DIMENSIONS[1])
)
