"""
Move selection for the computer opponent.

* in check: only escapes are considered, picked by a quick material count
* otherwise: heuristic move ordering, then negamax with alpha-beta pruning to the difficulty's depth
* a wall-clock budget bounds the search; the best move found so far wins when it runs out
* each difficulty may, with some probability, play one of the top-k alternatives instead of the best move

The search works on a private copy of the board with make/unmake, the caller's board is never touched.
"""

import math
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from src.ai.difficulty import DIFFICULTY_PROFILES, DifficultyProfile
from src.ai.evaluation import CENTER_SQUARES, evaluate, material_balance
from src.chess.board import Board
from src.chess.moves import Move, is_square_attacked
from src.chess.pieces import PIECE_VALUES, Color, PieceKind
from src.chess.rules import generate_legal_moves, is_in_check
from src.core.shared_types import Difficulty

DEFAULT_TIME_BUDGET_MS = 3000
MATE_SCORE = 1_000_000

CENTER_BONUS = 30
EARLY_DEVELOPMENT_PENALTY = 50
LATE_DEVELOPERS = frozenset({PieceKind.QUEEN, PieceKind.KING, PieceKind.ROOK})

Clock = Callable[[], float]


class SearchTimeout(Exception):
    """Raised inside the search tree when the wall-clock budget is used up."""


@dataclass
class ScoredMove:
    move: Move
    score: float


def select_move(
    board: Board,
    color: Color,
    difficulty: Difficulty = Difficulty.MEDIUM,
    last_move: Optional[Move] = None,
    rng: Optional[random.Random] = None,
    time_budget_ms: int = DEFAULT_TIME_BUDGET_MS,
    clock: Clock = time.monotonic,
) -> Optional[Move]:
    """
    Choose a move for `color`. Returns None iff `color` has no legal move.
    Never raises because of a failing evaluation: worst case is a random legal move.
    """
    rng = rng or random.Random()
    profile = DIFFICULTY_PROFILES[difficulty]
    work_board = board.copy()

    legal_moves = generate_legal_moves(work_board, color, last_move)
    if not legal_moves:
        return None
    if len(legal_moves) == 1:
        return legal_moves[0]

    if is_in_check(work_board, color):
        return _select_escape(work_board, color, legal_moves, difficulty, rng)

    searcher = Searcher(profile, deadline=clock() + time_budget_ms / 1000, clock=clock)
    scored = searcher.search_root(work_board, color, legal_moves)
    if not scored:
        logger.warning(
            "No move could be evaluated for {}, falling back to a random legal move",
            color.name.lower(),
        )
        return rng.choice(legal_moves)

    best = scored[0]
    alternatives = scored[1 : 1 + profile.alternatives(len(scored))]
    if alternatives and rng.random() < profile.randomization:
        choice = rng.choice(alternatives)
        logger.debug(
            "Randomized away from {} ({}) to {} ({})",
            best.move.to_uci(),
            best.score,
            choice.move.to_uci(),
            choice.score,
        )
        return choice.move

    logger.debug(
        "Selected {} with score {} after {} nodes",
        best.move.to_uci(),
        best.score,
        searcher.nodes,
    )
    return best.move


# --- MOVE ORDERING ---
def order_moves(board: Board, moves: list[Move], color: Color) -> list[Move]:
    """Most promising first. Stable: equally scored moves keep the rule engine's row-major order."""
    opening = _is_opening(board, color)
    return sorted(moves, key=lambda move: -_ordering_score(board, move, color, opening))


def _ordering_score(board: Board, move: Move, color: Color, opening: bool) -> float:
    score = 0.0
    if move.captured is not None:
        score += PIECE_VALUES[move.captured]
        undo = board.make_move(move)
        try:
            if is_square_attacked(move.to_square, color.opponent, board):
                score -= PIECE_VALUES[move.promotion or move.piece_kind]
        finally:
            board.unmake_move(undo)

    if move.promotion is not None:
        score += PIECE_VALUES[move.promotion]

    if move.to_square in CENTER_SQUARES:
        score += CENTER_BONUS

    if opening and move.castling is None and move.piece_kind in LATE_DEVELOPERS:
        score -= EARLY_DEVELOPMENT_PENALTY
    return score


def _is_opening(board: Board, color: Color) -> bool:
    """Still in the opening while at least two minor pieces sit undeveloped."""
    undeveloped = sum(
        1
        for _, piece in board.pieces()
        if piece.color == color
        and piece.kind in (PieceKind.KNIGHT, PieceKind.BISHOP)
        and not piece.has_moved
    )
    return undeveloped >= 2


# --- ESCAPING CHECK ---
def _select_escape(
    board: Board,
    color: Color,
    escapes: list[Move],
    difficulty: Difficulty,
    rng: random.Random,
) -> Move:
    """Every legal move already gets the king out of check. Keep the material, the rest is a tie."""
    scores: list[int] = []
    for move in escapes:
        undo = board.make_move(move)
        try:
            scores.append(material_balance(board, color))
        finally:
            board.unmake_move(undo)

    best_score = max(scores)
    best = [move for move, score in zip(escapes, scores) if score == best_score]
    if difficulty == Difficulty.EASY:
        return rng.choice(best)
    return best[0]


# --- NEGAMAX ---
class Searcher:
    def __init__(self, profile: DifficultyProfile, deadline: float, clock: Clock):
        self.profile = profile
        self.deadline = deadline
        self.clock = clock
        self.nodes = 0

    def search_root(
        self, board: Board, color: Color, legal_moves: list[Move]
    ) -> list[ScoredMove]:
        """
        Score each root move. Moves that fail to evaluate are skipped, a timeout ends the loop early.
        Returns the scored moves, best first.

        When the difficulty randomizes, every root move is searched with a full window so that
        the alternatives carry real scores. Otherwise the root window narrows as usual.
        """
        scored: list[ScoredMove] = []
        full_window = self.profile.randomization > 0
        alpha = -math.inf
        for move in order_moves(board, legal_moves, color):
            try:
                score = self._score_root_move(board, move, color, alpha, full_window)
            except SearchTimeout:
                logger.info(
                    "Search budget exhausted after {} of {} root moves",
                    len(scored),
                    len(legal_moves),
                )
                break
            except Exception:
                logger.exception("Evaluation failed for candidate {}", move.to_uci())
                continue
            scored.append(ScoredMove(move, score))
            alpha = max(alpha, score)

        scored.sort(key=lambda item: -item.score)
        return scored

    def _score_root_move(
        self, board: Board, move: Move, color: Color, alpha: float, full_window: bool
    ) -> float:
        undo = board.make_move(move)
        try:
            window_alpha = -math.inf if full_window else alpha
            return -self.negamax(
                board,
                color.opponent,
                move,
                self.profile.depth - 1,
                -math.inf,
                -window_alpha,
                ply=1,
            )
        finally:
            board.unmake_move(undo)

    def negamax(
        self,
        board: Board,
        color: Color,
        last_move: Optional[Move],
        depth: int,
        alpha: float,
        beta: float,
        ply: int,
    ) -> float:
        """Score from the point of view of `color`, the side to move."""
        self.nodes += 1
        if self.clock() >= self.deadline:
            raise SearchTimeout()

        moves = generate_legal_moves(board, color, last_move)
        if not moves:
            if is_in_check(board, color):
                # prefer the quickest mate
                return -(MATE_SCORE - ply)
            return 0.0

        if depth <= 0:
            return evaluate(board, color, self.profile.weights)

        best = -math.inf
        for move in order_moves(board, moves, color):
            undo = board.make_move(move)
            try:
                score = -self.negamax(
                    board, color.opponent, move, depth - 1, -beta, -alpha, ply + 1
                )
            finally:
                board.unmake_move(undo)

            best = max(best, score)
            alpha = max(alpha, score)
            if alpha >= beta:
                break
        return best
