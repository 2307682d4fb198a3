"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define move sets for each piece kind.

The functions here only know geometry and occupancy. Castling, en passant and king safety need the
move history / attack information and are handled in rules.py
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional, Protocol, Self

from src.chess.castling import CastlingDirection
from src.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Color, Piece, PieceKind
from src.chess.square import Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece_at(self, square: Square) -> Optional[Piece]: ...


Vector = tuple[int, int]

STRAIGHTS: tuple[Vector, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
DIAGONALS: tuple[Vector, ...] = ((1, 1), (1, -1), (-1, 1), (-1, -1))
KING_DELTAS: tuple[Vector, ...] = STRAIGHTS + DIAGONALS
KNIGHT_DELTAS: tuple[Vector, ...] = (
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
)


@dataclass(frozen=True)
class Move:
    """A move plus what the rule engine learned about it (captured piece, promotion, castling, en passant)."""

    from_square: Square
    to_square: Square
    piece_kind: Optional[PieceKind] = None
    captured: Optional[PieceKind] = None
    promotion: Optional[PieceKind] = None
    castling: Optional[CastlingDirection] = None
    is_en_passant: bool = False

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface:
        ---
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)

        NOTE: piece kind / capture / castling metadata get filled in by the rule engine
        """
        from_sq = Square.from_algebraic(uci[:2])
        to_sq = Square.from_algebraic(uci[2:4])
        promotion = FEN_TO_PIECE[uci[4]] if len(uci) == 5 else None
        return cls(from_sq, to_sq, promotion=promotion)

    def to_uci(self) -> str:
        piece_char = PIECE_TO_FEN[self.promotion] if self.promotion else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"

    @property
    def is_capture(self) -> bool:
        return self.captured is not None

    @property
    def is_double_pawn_push(self) -> bool:
        return (
            self.piece_kind == PieceKind.PAWN
            and abs(self.from_square.row - self.to_square.row) == 2
        )

    def with_promotion(self, kind: Optional[PieceKind]) -> Self:
        return replace(self, promotion=kind)


# --- MOVEMENT RULES ---
def raycasting_move(
    square: Square, board: Board, directions: tuple[Vector, ...]
) -> list[Square]:
    """
    Raycasting algorithm
    -----
    Move along each direction until we hit another piece or the edge of the board.
    The first occupied square is included if it holds an opponent's piece (it can be captured).
    """
    player_color = board.piece_at(square).color
    targets: list[Square] = []
    for d_row, d_col in directions:
        target = square.offset(d_row, d_col)
        while target.is_within_bounds():
            occupant = board.piece_at(target)
            if occupant is not None:
                if occupant.color != player_color:
                    targets.append(target)
                break
            targets.append(target)
            target = target.offset(d_row, d_col)
    return targets


def single_step_move(
    square: Square, board: Board, deltas: tuple[Vector, ...]
) -> list[Square]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just take a single step"""
    player_color = board.piece_at(square).color
    targets: list[Square] = []
    for d_row, d_col in deltas:
        target = square.offset(d_row, d_col)
        if not target.is_within_bounds():
            continue
        occupant = board.piece_at(target)
        if occupant is None or occupant.color != player_color:
            targets.append(target)
    return targets


def candidate_pawn_moves(square: Square, board: Board) -> list[Square]:
    """
    A pawn:
    - moves by a single square forward onto an empty square.
    - can move by two from its starting row, if both squares are empty
    - takes diagonally

    NOTE: En passant is taken care of in rules.py (needs the last move)
    """
    pawn = board.piece_at(square)
    forward = pawn.color.forward
    targets: list[Square] = []

    one_step = square.offset(forward, 0)
    if one_step.is_within_bounds() and board.piece_at(one_step) is None:
        targets.append(one_step)
        two_step = square.offset(2 * forward, 0)
        if square.row == pawn.color.pawn_row and board.piece_at(two_step) is None:
            targets.append(two_step)

    for d_col in (-1, 1):
        take = square.offset(forward, d_col)
        if not take.is_within_bounds():
            continue
        occupant = board.piece_at(take)
        if occupant is not None and occupant.color != pawn.color:
            targets.append(take)
    return targets


def candidate_knight_moves(square: Square, board: Board) -> list[Square]:
    """Knights always move such that |delta_row| + |delta_col| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Square, board: Board) -> list[Square]:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board) -> list[Square]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board) -> list[Square]:
    """The Queen combines the rook moves and the bishop moves"""
    return raycasting_move(square, board, STRAIGHTS + DIAGONALS)


def candidate_king_moves(square: Square, board: Board) -> list[Square]:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (handled in rules.py).
    """
    return single_step_move(square, board, KING_DELTAS)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board], list[Square]]
MOVEMENT_RULES: dict[PieceKind, CandidateMovesFn] = {
    PieceKind.PAWN: candidate_pawn_moves,
    PieceKind.KNIGHT: candidate_knight_moves,
    PieceKind.BISHOP: candidate_bishop_moves,
    PieceKind.ROOK: candidate_rook_moves,
    PieceKind.QUEEN: candidate_queen_moves,
    PieceKind.KING: candidate_king_moves,
}


# --- CAPTURING RULES / ATTACKING RULES ---
def raycasting_attack(
    square: Square,
    by_color: Color,
    by_kinds: frozenset[PieceKind],
    board: Board,
    directions: tuple[Vector, ...],
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---
    Where `raycasting_move()` determines _"What is the line-of-sight of the piece standing on the specified square?"_

    this function determines:
    _"Is the specified square in the line-of-sight of a piece of the specified color that slides along the given directions?"_
    """
    for d_row, d_col in directions:
        target = square.offset(d_row, d_col)
        while target.is_within_bounds():
            piece_found = board.piece_at(target)
            if piece_found is not None:
                if piece_found.color == by_color and piece_found.kind in by_kinds:
                    return True
                break
            target = target.offset(d_row, d_col)
    return False


def single_step_attack(
    square: Square,
    by_color: Color,
    by_kind: PieceKind,
    board: Board,
    deltas: tuple[Vector, ...],
) -> bool:
    """Single step version for pawns, kings, and knights."""
    for d_row, d_col in deltas:
        target = square.offset(d_row, d_col)
        if not target.is_within_bounds():
            continue
        piece_found = board.piece_at(target)
        if (
            piece_found is not None
            and piece_found.color == by_color
            and piece_found.kind == by_kind
        ):
            return True
    return False


def is_attacked_by_pawn(square: Square, by_color: Color, board: Board) -> bool:
    """
    Pawns take diagonally
    ----
    NOTE: Pawn moves are not symmetric. To ask "could a white pawn take on this square?" we must look one row
    towards white's side of the board, i.e. opposite to the direction white pawns move.
    """
    back = -by_color.forward
    deltas: tuple[Vector, ...] = ((back, 1), (back, -1))
    return single_step_attack(square, by_color, PieceKind.PAWN, board, deltas)


def is_attacked_by_knight(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceKind.KNIGHT, board, KNIGHT_DELTAS)


def is_attacked_diagonally(square: Square, by_color: Color, board: Board) -> bool:
    """Bishops and the queen"""
    kinds = frozenset({PieceKind.BISHOP, PieceKind.QUEEN})
    return raycasting_attack(square, by_color, kinds, board, DIAGONALS)


def is_attacked_on_straights(square: Square, by_color: Color, board: Board) -> bool:
    """Rooks and the queen"""
    kinds = frozenset({PieceKind.ROOK, PieceKind.QUEEN})
    return raycasting_attack(square, by_color, kinds, board, STRAIGHTS)


def is_attacked_by_king(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceKind.KING, board, KING_DELTAS)


# --- STRATEGY PATTERN: ATTACKING RULES ---
IsAttackedFn = Callable[[Square, Color, Board], bool]
ATTACK_RULES: tuple[IsAttackedFn, ...] = (
    is_attacked_by_pawn,
    is_attacked_by_knight,
    is_attacked_diagonally,
    is_attacked_on_straights,
    is_attacked_by_king,
)


def is_square_attacked(square: Square, by_color: Color, board: Board) -> bool:
    """Attack-only geometry: never asks whether the attacker's own king would be safe."""
    return any(rule(square, by_color, board) for rule in ATTACK_RULES)
