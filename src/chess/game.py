"""
The Game class is the entrypoint into the rules for the service layer.
It is responsible for orchestrating everything required to play a turn:
validate, apply, tally captures, flip the side to move, record history, recompute status.

It knows about colors, not about players. Binding players to colors is the session's job.
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.board import Board
from src.chess.fen import FENState
from src.chess.moves import Move
from src.chess.pieces import Color, PieceKind
from src.chess.rules import (
    apply_move,
    classify_status,
    generate_legal_moves,
    is_legal_move,
)
from src.chess.square import Square
from src.core.exceptions import GameStateError, IllegalMoveError, NotYourTurnError
from src.core.shared_types import Status

DEFAULT_PROMOTION = PieceKind.QUEEN


def empty_captures() -> dict[Color, dict[PieceKind, int]]:
    return {Color.WHITE: {}, Color.BLACK: {}}


@dataclass
class Game:
    board: Board
    side_to_move: Color = Color.WHITE
    last_move: Optional[Move] = None
    moves: list[Move] = field(default_factory=list)
    captures: dict[Color, dict[PieceKind, int]] = field(default_factory=empty_captures)
    status: Status = Status.ACTIVE
    half_move_clock: int = 0
    fullmove_number: int = 1

    @classmethod
    def new_game(cls, starting_fen: Optional[str] = None) -> Self:
        """Standard starting position, or any position given as FEN."""
        state = (
            FENState.from_fen(starting_fen)
            if starting_fen
            else FENState.starting_position()
        )
        game = cls(
            board=state.to_board(),
            side_to_move=state.color_to_move,
            last_move=state.last_move(),
            half_move_clock=state.half_move_clock,
            fullmove_number=state.num_turns,
        )
        game._update_status()
        return game

    @property
    def is_over(self) -> bool:
        return self.status.is_terminal

    @property
    def winner(self) -> Optional[Color]:
        """
        Only defined for checkmate: the side that is to move got mated, so the opponent won.
        """
        if self.status != Status.CHECKMATE:
            return None
        return self.side_to_move.opponent

    def to_fen(self) -> str:
        return FENState.from_board(
            self.board,
            self.side_to_move,
            self.last_move,
            half_move_clock=self.half_move_clock,
            num_turns=self.fullmove_number,
        ).to_fen()

    def legal_moves(self) -> list[Move]:
        if self.is_over:
            return []
        return generate_legal_moves(self.board, self.side_to_move, self.last_move)

    def make_move(
        self,
        color: Color,
        from_square: Square,
        to_square: Square,
        promotion: Optional[PieceKind] = None,
    ) -> Move:
        """
        Attempt to make a move
        -----
        1. the game must still be going and it must be `color`'s turn
        2. the move must be legal
        3. update board, capture tally, side to move, history and status

        A pawn reaching the last row without a requested promotion becomes a queen.
        """
        if self.is_over:
            raise GameStateError(f"Game is over. status: {self.status}")

        if color != self.side_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.side_to_move.name.lower()} to move first."
            )

        if not is_legal_move(
            self.board, from_square, to_square, self.side_to_move, self.last_move
        ):
            raise IllegalMoveError(
                f"Move not allowed: {from_square.to_algebraic()}{to_square.to_algebraic()}"
            )

        result = apply_move(self.board, from_square, to_square, promotion)
        move = result.last_move
        if result.promotion_pending:
            result = apply_move(self.board, from_square, to_square, DEFAULT_PROMOTION)
            move = result.last_move

        self.board = result.board
        self._update_captures(color, move)
        self._update_counters(color, move)
        self.moves.append(move)
        self.last_move = move
        self.side_to_move = self.side_to_move.opponent
        self._update_status()
        return move

    # -- PRIVATE HELPERS ---
    def _update_captures(self, color: Color, move: Move) -> None:
        if move.captured is None:
            return
        tally = self.captures[color]
        tally[move.captured] = tally.get(move.captured, 0) + 1

    def _update_counters(self, color: Color, move: Move) -> None:
        """Halfmove clock resets on pawn moves and captures. The fullmove number grows after black moves."""
        if move.piece_kind == PieceKind.PAWN or move.captured is not None:
            self.half_move_clock = 0
        else:
            self.half_move_clock += 1
        if color == Color.BLACK:
            self.fullmove_number += 1

    def _update_status(self) -> None:
        """Status from the point of view of the side that is now to move."""
        self.status = classify_status(self.board, self.side_to_move, self.last_move)
