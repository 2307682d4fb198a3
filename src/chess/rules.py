"""
The rule engine's public API.

Pure functions over a board: callers' boards are never left modified.
(Internally, king safety is tested by making the move on the board and taking it back again.)
"""

from dataclasses import dataclass
from typing import Optional

from src.chess.board import Board
from src.chess.castling import CASTLING_RULES, CastlingDirection, castling_direction
from src.chess.moves import MOVEMENT_RULES, Move, is_square_attacked
from src.chess.pieces import PROMOTION_OPTIONS, Color, PieceKind
from src.chess.square import Square
from src.core.exceptions import IllegalMoveError
from src.core.shared_types import Status


@dataclass(frozen=True)
class MoveResult:
    board: Board
    last_move: Move
    promotion_pending: bool


# --- CHECK ---
def is_in_check(board: Board, color: Color) -> bool:
    """True iff any opposing piece attacks the king of `color`. Attack geometry only, no legality filtering."""
    king_square = board.find_king(color)
    if king_square is None:
        return False
    return is_square_attacked(king_square, color.opponent, board)


# --- LEGALITY ---
def is_legal_move(
    board: Board,
    from_square: Square,
    to_square: Square,
    side_to_move: Color,
    last_move: Optional[Move] = None,
) -> bool:
    """
    1. the origin holds a piece of the side to move
    2. the destination is not occupied by your own piece
    3. the piece's geometry allows the move (incl. en passant and castling)
    4. afterwards your own king is not in check
    """
    if not (from_square.is_within_bounds() and to_square.is_within_bounds()):
        return False

    piece = board.piece_at(from_square)
    if piece is None or piece.color != side_to_move:
        return False

    target = board.piece_at(to_square)
    if target is not None and target.color == side_to_move:
        return False

    if not _geometry_allows(board, from_square, to_square, last_move):
        return False

    move = describe_move(board, from_square, to_square)
    return _leaves_king_safe(board, move, side_to_move)


def generate_legal_moves(
    board: Board, color: Color, last_move: Optional[Move] = None
) -> list[Move]:
    """
    All legal moves, ordered row-major by origin and then row-major by destination.
    The order is relied upon by the search (deterministic move ordering before its own sort).

    Pawn moves onto the last row are returned as promotions to a queen.
    """
    legal_moves: list[Move] = []
    for from_square in board.locate_color(color):
        for to_square in sorted(_candidate_targets(board, from_square, last_move)):
            move = describe_move(board, from_square, to_square)
            if not _leaves_king_safe(board, move, color):
                continue
            if _reaches_promotion_row(move, color):
                move = move.with_promotion(PieceKind.QUEEN)
            legal_moves.append(move)
    return legal_moves


def has_legal_move(board: Board, color: Color, last_move: Optional[Move] = None) -> bool:
    """Same as `bool(generate_legal_moves(...))` but stops at the first legal move."""
    for from_square in board.locate_color(color):
        for to_square in _candidate_targets(board, from_square, last_move):
            move = describe_move(board, from_square, to_square)
            if _leaves_king_safe(board, move, color):
                return True
    return False


def classify_status(
    board: Board, color: Color, last_move: Optional[Move] = None
) -> Status:
    """Status from the point of view of `color`, the side to move."""
    in_check = is_in_check(board, color)
    can_move = has_legal_move(board, color, last_move)
    if in_check and not can_move:
        return Status.CHECKMATE
    if not can_move:
        return Status.STALEMATE
    if in_check:
        return Status.CHECK
    return Status.ACTIVE


# --- APPLYING MOVES ---
def describe_move(
    board: Board,
    from_square: Square,
    to_square: Square,
    promotion: Optional[PieceKind] = None,
) -> Move:
    """
    Fill in the metadata of a (pseudo-legal) move: piece kind, captured piece, castling, en passant.

    NOTE: a pawn moving diagonally onto an empty square can only be an en passant capture,
    so the last move is not needed here.
    """
    piece = board.piece_at(from_square)
    if piece is None:
        raise IllegalMoveError(f"No piece on {from_square.to_algebraic()}")

    target = board.piece_at(to_square)
    captured = target.kind if target is not None else None
    castling: Optional[CastlingDirection] = None
    is_en_passant = False

    if piece.kind == PieceKind.KING and abs(to_square.col - from_square.col) == 2:
        castling = castling_direction(from_square, to_square)
    elif (
        piece.kind == PieceKind.PAWN
        and from_square.col != to_square.col
        and target is None
    ):
        is_en_passant = True
        captured = PieceKind.PAWN

    return Move(
        from_square,
        to_square,
        piece_kind=piece.kind,
        captured=captured,
        promotion=promotion,
        castling=castling,
        is_en_passant=is_en_passant,
    )


def apply_move(
    board: Board,
    from_square: Square,
    to_square: Square,
    promotion: Optional[PieceKind] = None,
) -> MoveResult:
    """
    Apply a move to a copy of the board. The move is assumed to be legal (see `is_legal_move`).

    * relocates the piece and marks it as moved
    * removes the pawn captured en passant
    * relocates the rook when castling
    * promotes the pawn if `promotion` is given, otherwise flags that a promotion is pending
    """
    if promotion is not None and promotion not in PROMOTION_OPTIONS:
        raise IllegalMoveError(f"Cannot promote to {promotion.name.lower()}")

    new_board = board.copy()
    move = describe_move(new_board, from_square, to_square)
    color = new_board.piece_at(from_square).color
    reaches_last_row = _reaches_promotion_row(move, color)
    if reaches_last_row and promotion is not None:
        move = move.with_promotion(promotion)

    new_board.make_move(move)
    return MoveResult(
        board=new_board,
        last_move=move,
        promotion_pending=reaches_last_row and promotion is None,
    )


def promote(board: Board, square: Square, kind: PieceKind) -> Board:
    """Replace the pawn that reached its last row by the chosen piece. Returns a new board."""
    piece = board.piece_at(square)
    if piece is None or piece.kind != PieceKind.PAWN:
        raise IllegalMoveError(f"No pawn to promote on {square.to_algebraic()}")
    if square.row != piece.color.promotion_row:
        raise IllegalMoveError(f"Pawn on {square.to_algebraic()} cannot promote yet")
    if kind not in PROMOTION_OPTIONS:
        raise IllegalMoveError(f"Cannot promote to {kind.name.lower()}")

    new_board = board.copy()
    new_board.promote_piece(square, kind)
    return new_board


# -- PRIVATE HELPERS ---
def _candidate_targets(
    board: Board, from_square: Square, last_move: Optional[Move]
) -> set[Square]:
    """Every destination the piece's geometry allows, special moves included."""
    piece = board.piece_at(from_square)
    targets = set(MOVEMENT_RULES[piece.kind](from_square, board))

    if piece.kind == PieceKind.PAWN:
        en_passant = _en_passant_target(board, from_square, last_move)
        if en_passant is not None:
            targets.add(en_passant)

    if piece.kind == PieceKind.KING:
        for direction, rule in CASTLING_RULES.items():
            if rule.king_from == from_square and _can_castle(board, direction):
                targets.add(rule.king_to)
    return targets


def _geometry_allows(
    board: Board, from_square: Square, to_square: Square, last_move: Optional[Move]
) -> bool:
    return to_square in _candidate_targets(board, from_square, last_move)


def _en_passant_target(
    board: Board, from_square: Square, last_move: Optional[Move]
) -> Optional[Square]:
    """
    The last move must have been a double push of an opposing pawn that landed right next to this pawn.
    The capture lands on the square that pawn skipped.
    """
    if last_move is None:
        return None
    pawn = board.piece_at(from_square)
    pushed = board.piece_at(last_move.to_square)
    if pushed is None or pushed.kind != PieceKind.PAWN or pushed.color == pawn.color:
        return None

    two_rows = abs(last_move.from_square.row - last_move.to_square.row) == 2
    same_col = last_move.from_square.col == last_move.to_square.col
    adjacent = (
        last_move.to_square.row == from_square.row
        and abs(last_move.to_square.col - from_square.col) == 1
    )
    if not (two_rows and same_col and adjacent):
        return None

    target = Square(from_square.row + pawn.color.forward, last_move.to_square.col)
    if not board.is_empty(target):
        return None
    return target


def _can_castle(board: Board, direction: CastlingDirection) -> bool:
    """
    **you are allowed to castle if**

    * neither the king nor the rook has moved
    * every square between them is empty
    * you are not currently in check (you cannot castle out of a check)
    * none of the squares the king crosses or lands on is under attack
    """
    rule = CASTLING_RULES[direction]
    color = direction.color
    king = board.piece_at(rule.king_from)
    rook = board.piece_at(rule.rook_from)
    if king is None or king.kind != PieceKind.KING or king.color != color:
        return False
    if rook is None or rook.kind != PieceKind.ROOK or rook.color != color:
        return False
    if king.has_moved or rook.has_moved:
        return False
    if board.is_any_occupied(rule.between):
        return False
    if is_square_attacked(rule.king_from, color.opponent, board):
        return False
    return not any(
        is_square_attacked(square, color.opponent, board) for square in rule.king_path
    )


def _leaves_king_safe(board: Board, move: Move, color: Color) -> bool:
    """Make the move, look at the king, take the move back."""
    undo = board.make_move(move)
    try:
        return not is_in_check(board, color)
    finally:
        board.unmake_move(undo)


def _reaches_promotion_row(move: Move, color: Color) -> bool:
    return move.piece_kind == PieceKind.PAWN and move.to_square.row == color.promotion_row
