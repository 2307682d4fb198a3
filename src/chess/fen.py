"""
FEN support: set up a game from a FEN string, and describe a live game as one.

The rule engine itself works on `has_moved` flags and the last move (not on castling rights / en passant squares),
so this module translates between both representations.
"""

from dataclasses import dataclass
from string import ascii_lowercase
from typing import Optional, Self

from src.chess.board import Board
from src.chess.castling import CASTLING_RULES, CastlingDirection
from src.chess.moves import Move
from src.chess.pieces import FEN_TO_PIECE, Color, PieceKind
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
VALID_CASTLING_ENCODINGS = [
    "-",
    "K",
    "Q",
    "k",
    "q",
    "KQ",
    "Kk",
    "Kq",
    "Qk",
    "Qq",
    "kq",
    "KQk",
    "KQq",
    "Kkq",
    "Qkq",
    "KQkq",
]

CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)


def castling_from_fen(castle_fen: str) -> dict[CastlingDirection, bool]:
    """parse the part of the FEN string that encodes castling rights"""
    return {
        direction: (direction.value in castle_fen) for direction in CastlingDirection
    }


def castling_to_fen(castling_rights: dict[CastlingDirection, bool]) -> str:
    """create the part of the FEN string that encodes castling rights"""
    castling_chars = "".join(
        [direction.value for direction in CASTLING_ORDER if castling_rights[direction]]
    )
    return castling_chars or "-"


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows proper FEN notation.
    """
    parts = fen.split(" ")
    if len(parts) != 6:
        return False

    position, color, castling, en_passant, half_moves, full_moves = parts
    return (
        is_valid_position(position)
        and is_valid_color_code(color)
        and is_valid_castling_rights(castling)
        and is_valid_en_passant(en_passant)
        and is_valid_move_counter(half_moves)
        and is_valid_move_counter(full_moves)
    )


def is_valid_position(position: str) -> bool:
    """Only check the part of the FEN encoding for the board position."""
    num_ranks, num_files = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False

    for rank_fen in rank_fens:
        file_count = 0
        for character in rank_fen:
            if character.isdigit():
                file_count += int(character)
            elif character.lower() in FEN_TO_PIECE:
                file_count += 1
            else:
                return False

        # make sure you are creating a correctly sized board
        if file_count != num_files:
            return False
    return True


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_castling_rights(castling: str) -> bool:
    """A valid castling encoding has either KQkq, KQk, etc. or a '-' if all rights have been revoked."""
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_en_passant(en_passant: str) -> bool:
    """Valid en passant square encoding should be a square that exists on the board or a '-'"""
    return (en_passant == "-") or is_valid_square(en_passant)


def is_valid_square(square: str) -> bool:
    """Valid square should be a letter for the file + a number for the rank"""
    num_ranks, num_files = BOARD_DIMENSIONS
    if len(square) != 2:
        return False

    file_char, rank_char = square[0], square[1]
    if file_char not in ascii_lowercase[:num_files]:
        return False
    if not rank_char.isdigit():
        return False
    return 1 <= int(rank_char) <= num_ranks


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


def has_one_king_per_color(board: Board) -> bool:
    kings = [
        piece.color for _, piece in board.pieces() if piece.kind == PieceKind.KING
    ]
    return sorted(kings, key=lambda c: c.value) == [Color.WHITE, Color.BLACK]


@dataclass
class FENState:
    """
    Data that can be constructed from a FEN string.
    ----
    <board position string><active color><castling rights><en passant square><# half move clock><number turns played>

    * The active color is either "w" or "b"
    * Castling rights: "K"/"Q" for white king-/queen-side, "k"/"q" for black. "-" if all rights are gone.
    * The en passant square is the square a pawn skipped over in the last move. "-" if not available.
    * Half move clock and turn counter are carried along but not used for any draw rule.

    ex) The standard starting position has a FEN
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    """

    position: str
    color_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Parse the FEN into data"""
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}")

        (
            position,
            active_color,
            castling_str,
            en_passant_algebraic,
            half_move_clock,
            num_turns,
        ) = fen.split(" ")

        color_to_move = Color.WHITE if active_color == "w" else Color.BLACK
        en_passant_square = (
            Square.from_algebraic(en_passant_algebraic)
            if en_passant_algebraic != "-"
            else None
        )
        return cls(
            position,
            color_to_move,
            castling_from_fen(castling_str),
            en_passant_square,
            int(half_move_clock),
            int(num_turns),
        )

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)

    @classmethod
    def from_board(
        cls,
        board: Board,
        color_to_move: Color,
        last_move: Optional[Move] = None,
        half_move_clock: int = 0,
        num_turns: int = 1,
    ) -> Self:
        """Describe a live position. Castling rights are read off the has_moved flags."""
        rights = {
            direction: _castling_pieces_unmoved(board, direction)
            for direction in CastlingDirection
        }
        en_passant_square = None
        if last_move is not None and last_move.is_double_pawn_push:
            skipped_row = (last_move.from_square.row + last_move.to_square.row) // 2
            en_passant_square = Square(skipped_row, last_move.from_square.col)
        return cls(
            board.to_fen(),
            color_to_move,
            rights,
            en_passant_square,
            half_move_clock,
            num_turns,
        )

    def to_fen(self) -> str:
        """reverse operation: write a FEN from the given data"""
        active_color = "w" if self.color_to_move == Color.WHITE else "b"
        castling_str = castling_to_fen(self.castling_rights)
        en_passant_algebraic = (
            self.en_passant_square.to_algebraic()
            if self.en_passant_square is not None
            else "-"
        )
        return f"{self.position} {active_color} {castling_str} {en_passant_algebraic} {self.half_move_clock} {self.num_turns}"

    def to_board(self) -> Board:
        """
        Build the board, then encode the castling rights as has_moved flags:
        a king or rook without any remaining right to castle counts as moved.
        """
        board = Board.from_fen(self.position)
        if not has_one_king_per_color(board):
            raise InvalidFENError(
                f"Position must contain exactly one king per color: {self.position}"
            )

        for direction, rule in CASTLING_RULES.items():
            if self.castling_rights[direction]:
                continue
            rook = board.piece_at(rule.rook_from)
            if rook is not None and rook.kind == PieceKind.ROOK:
                rook.has_moved = True

        for color in Color:
            king_square = board.find_king(color)
            king = board.piece_at(king_square)
            if not any(
                self.castling_rights[direction]
                for direction in CastlingDirection
                if direction.color == color
            ):
                king.has_moved = True
        return board

    def last_move(self) -> Optional[Move]:
        """
        The rule engine finds en passant captures through the last move.
        Reconstruct the double pawn push that produced the en passant square.
        """
        if self.en_passant_square is None:
            return None
        mover = self.color_to_move.opponent
        # the pawn skipped the en passant square: it came from one row behind it and landed one row past it
        from_square = self.en_passant_square.offset(-mover.forward, 0)
        to_square = self.en_passant_square.offset(mover.forward, 0)
        return Move(from_square, to_square, piece_kind=PieceKind.PAWN)


def _castling_pieces_unmoved(board: Board, direction: CastlingDirection) -> bool:
    rule = CASTLING_RULES[direction]
    king = board.piece_at(rule.king_from)
    rook = board.piece_at(rule.rook_from)
    return (
        king is not None
        and rook is not None
        and king.kind == PieceKind.KING
        and rook.kind == PieceKind.ROOK
        and king.color == direction.color
        and rook.color == direction.color
        and not king.has_moved
        and not rook.has_moved
    )
