"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING = "waiting"
    ACTIVE = "active"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAWN = "drawn"
    RESIGNED = "resigned"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self not in (Status.WAITING, Status.ACTIVE, Status.CHECK)


class ParticipantStatus(StrEnum):
    AVAILABLE = "available"
    PLAYING = "playing"


# --- Color and PieceType are the wire-level names. The rule engine has its own Enums in src/chess/pieces.py
# --- NOTE: same names on purpose, let the imports show which versions are used in what part of the code


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class OpponentType(StrEnum):
    HUMAN = "human"
    COMPUTER = "computer"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
