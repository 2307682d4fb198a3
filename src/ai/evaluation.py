"""
Static evaluation of a position.

Blends four terms, each weighted per difficulty:
* material (centipawns)
* piece-square tables, written from white's point of view and mirrored for black
* mobility: number of squares each side's pieces can reach
* center control: occupation of / attacks on d4, e4, d5, e5

Scores are returned from the point of view of the requested color (positive = that color is ahead).
"""

from src.ai.difficulty import EvaluationWeights
from src.chess.board import Board
from src.chess.moves import MOVEMENT_RULES, is_square_attacked
from src.chess.pieces import PIECE_VALUES, Color, PieceKind
from src.chess.square import Square

CENTER_SQUARES: tuple[Square, ...] = tuple(
    Square.from_algebraic(name) for name in ("d4", "e4", "d5", "e5")
)

# Row 0 is the far rank as seen by white. A black piece on (row, col) looks up (7 - row, col).
PIECE_SQUARE_TABLES: dict[PieceKind, tuple[tuple[int, ...], ...]] = {
    PieceKind.PAWN: (
        (0, 0, 0, 0, 0, 0, 0, 0),
        (50, 50, 50, 50, 50, 50, 50, 50),
        (10, 10, 20, 30, 30, 20, 10, 10),
        (5, 5, 10, 25, 25, 10, 5, 5),
        (0, 0, 0, 20, 20, 0, 0, 0),
        (5, -5, -10, 0, 0, -10, -5, 5),
        (5, 10, 10, -20, -20, 10, 10, 5),
        (0, 0, 0, 0, 0, 0, 0, 0),
    ),
    PieceKind.KNIGHT: (
        (-50, -40, -30, -30, -30, -30, -40, -50),
        (-40, -20, 0, 0, 0, 0, -20, -40),
        (-30, 0, 10, 15, 15, 10, 0, -30),
        (-30, 5, 15, 20, 20, 15, 5, -30),
        (-30, 0, 15, 20, 20, 15, 0, -30),
        (-30, 5, 10, 15, 15, 10, 5, -30),
        (-40, -20, 0, 5, 5, 0, -20, -40),
        (-50, -40, -30, -30, -30, -30, -40, -50),
    ),
    PieceKind.BISHOP: (
        (-20, -10, -10, -10, -10, -10, -10, -20),
        (-10, 0, 0, 0, 0, 0, 0, -10),
        (-10, 0, 5, 10, 10, 5, 0, -10),
        (-10, 5, 5, 10, 10, 5, 5, -10),
        (-10, 0, 10, 10, 10, 10, 0, -10),
        (-10, 10, 10, 10, 10, 10, 10, -10),
        (-10, 5, 0, 0, 0, 0, 5, -10),
        (-20, -10, -10, -10, -10, -10, -10, -20),
    ),
    PieceKind.ROOK: (
        (0, 0, 0, 0, 0, 0, 0, 0),
        (5, 10, 10, 10, 10, 10, 10, 5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (-5, 0, 0, 0, 0, 0, 0, -5),
        (0, 0, 0, 5, 5, 0, 0, 0),
    ),
    PieceKind.QUEEN: (
        (-20, -10, -10, -5, -5, -10, -10, -20),
        (-10, 0, 0, 0, 0, 0, 0, -10),
        (-10, 0, 5, 5, 5, 5, 0, -10),
        (-5, 0, 5, 5, 5, 5, 0, -5),
        (0, 0, 5, 5, 5, 5, 0, -5),
        (-10, 5, 5, 5, 5, 5, 0, -10),
        (-10, 0, 5, 0, 0, 0, 0, -10),
        (-20, -10, -10, -5, -5, -10, -10, -20),
    ),
    PieceKind.KING: (
        (-30, -40, -40, -50, -50, -40, -40, -30),
        (-30, -40, -40, -50, -50, -40, -40, -30),
        (-30, -40, -40, -50, -50, -40, -40, -30),
        (-30, -40, -40, -50, -50, -40, -40, -30),
        (-20, -30, -30, -40, -40, -30, -30, -20),
        (-10, -20, -20, -20, -20, -20, -20, -10),
        (20, 20, 0, 0, 0, 0, 20, 20),
        (20, 30, 10, 0, 0, 10, 30, 20),
    ),
}


def piece_square_bonus(kind: PieceKind, color: Color, square: Square) -> int:
    row = square.row if color == Color.WHITE else 7 - square.row
    return PIECE_SQUARE_TABLES[kind][row][square.col]


def material_balance(board: Board, color: Color) -> int:
    """Quick material differential (kings included, they cancel out)."""
    score = 0
    for _, piece in board.pieces():
        value = PIECE_VALUES[piece.kind]
        score += value if piece.color == color else -value
    return score


def evaluate(board: Board, color: Color, weights: EvaluationWeights) -> float:
    material = 0
    position = 0
    mobility = 0
    for square, piece in board.pieces():
        sign = 1 if piece.color == color else -1
        material += sign * PIECE_VALUES[piece.kind]
        position += sign * piece_square_bonus(piece.kind, piece.color, square)
        if weights.mobility:
            mobility += sign * len(MOVEMENT_RULES[piece.kind](square, board))

    center = center_control(board, color) if weights.center else 0
    return (
        weights.material * material
        + weights.position * position
        + weights.mobility * mobility
        + weights.center * center
    )


def center_control(board: Board, color: Color) -> int:
    """+1 per center square occupied, +1 per center square attacked. Own minus opponent's."""
    score = 0
    for square in CENTER_SQUARES:
        piece = board.piece_at(square)
        if piece is not None:
            score += 1 if piece.color == color else -1
        if is_square_attacked(square, color, board):
            score += 1
        if is_square_attacked(square, color.opponent, board):
            score -= 1
    return score
