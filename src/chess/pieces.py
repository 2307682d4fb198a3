"""Defines the types of chess pieces, and the per-kind tables every other module looks up."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Self

from src.core.shared_types import Color as WireColor
from src.core.shared_types import PieceType as WirePieceType


class PieceKind(Enum):
    PAWN = auto()
    KNIGHT = auto()
    BISHOP = auto()
    ROOK = auto()
    QUEEN = auto()
    KING = auto()

    @classmethod
    def from_name(cls, name: str) -> Self:
        return cls[name.upper()]

    def to_wire(self) -> WirePieceType:
        return WirePieceType(self.name.lower())


class Color(Enum):
    WHITE = auto()
    BLACK = auto()

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE

    @property
    def forward(self) -> int:
        """Row direction of a pawn push: white moves UP the board (towards row 0), black moves DOWN."""
        return -1 if self == Color.WHITE else 1

    @property
    def home_row(self) -> int:
        return 7 if self == Color.WHITE else 0

    @property
    def pawn_row(self) -> int:
        return 6 if self == Color.WHITE else 1

    @property
    def promotion_row(self) -> int:
        return 0 if self == Color.WHITE else 7

    @classmethod
    def from_name(cls, name: str) -> Self:
        return cls[name.upper()]

    def to_wire(self) -> WireColor:
        return WireColor(self.name.lower())


FEN_TO_PIECE: dict[str, PieceKind] = {
    "p": PieceKind.PAWN,
    "n": PieceKind.KNIGHT,
    "b": PieceKind.BISHOP,
    "r": PieceKind.ROOK,
    "q": PieceKind.QUEEN,
    "k": PieceKind.KING,
}

PIECE_TO_FEN: dict[PieceKind, str] = {value: key for key, value in FEN_TO_PIECE.items()}

# Centipawn values used by the search
PIECE_VALUES: dict[PieceKind, int] = {
    PieceKind.PAWN: 100,
    PieceKind.KNIGHT: 320,
    PieceKind.BISHOP: 330,
    PieceKind.ROOK: 500,
    PieceKind.QUEEN: 900,
    PieceKind.KING: 20000,
}

PROMOTION_OPTIONS: tuple[PieceKind, ...] = (
    PieceKind.KNIGHT,
    PieceKind.BISHOP,
    PieceKind.ROOK,
    PieceKind.QUEEN,
)


@dataclass
class Piece:
    kind: PieceKind
    color: Color
    has_moved: bool = False

    @classmethod
    def from_fen(cls, character: str) -> Self:
        # lower case: Black pieces, upper case: White pieces
        color = Color.WHITE if character.isupper() else Color.BLACK
        kind = FEN_TO_PIECE[character.lower()]
        return cls(kind, color)

    def to_fen(self) -> str:
        char = PIECE_TO_FEN[self.kind]
        return char.upper() if self.color == Color.WHITE else char

    def copy(self) -> Self:
        return type(self)(self.kind, self.color, self.has_moved)

    def promote_to(self, new_kind: PieceKind) -> None:
        self.kind = new_kind
