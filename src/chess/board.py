"""The Game board: the configuration of pieces, plus the make/unmake pair used for simulating moves"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Self

from src.chess.castling import CASTLING_RULES, CastlingDirection
from src.chess.moves import Move
from src.chess.pieces import Color, Piece, PieceKind
from src.chess.square import ALL_SQUARES, BOARD_DIMENSIONS, Square

Grid = list[list[Optional[Piece]]]

STARTING_POSITION = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"


def empty_grid() -> Grid:
    return [[None] * BOARD_DIMENSIONS[1] for _ in range(BOARD_DIMENSIONS[0])]


@dataclass
class UndoRecord:
    """Everything `unmake_move` needs to restore the board exactly."""

    move: Move
    moved_piece: Piece
    had_moved: bool
    captured_piece: Optional[Piece]
    captured_square: Optional[Square]
    rook_had_moved: bool = False


@dataclass
class Board:
    grid: Grid = field(default_factory=empty_grid)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the first part of a FEN string (the piece placement).

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        * ranks are listed from the 8th down to the 1st, which matches grid rows 0..7
        * letters are pieces (capital letters for white), numbers count consecutive empty squares

        FEN carries no `has_moved` information. Pawns off their starting row are marked as moved,
        everything else starts unmoved (castling rights can refine this, see fen.py).
        """
        grid = empty_grid()
        for row, fen_one_rank in enumerate(fen_str.split("/")):
            col = 0
            for character in fen_one_rank:
                if character.isalpha():
                    piece = Piece.from_fen(character)
                    if piece.kind == PieceKind.PAWN and row != piece.color.pawn_row:
                        piece.has_moved = True
                    grid[row][col] = piece
                    col += 1
                else:
                    col += int(character)
        return cls(grid)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_POSITION)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(self._rank_to_fen(row) for row in range(BOARD_DIMENSIONS[0]))

    def _rank_to_fen(self, row: int) -> str:
        fen_characters: list[str] = []
        empty_count = 0
        for piece in self.grid[row]:
            if piece is None:
                empty_count += 1
                continue
            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(piece.to_fen())
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def copy(self) -> Self:
        return type(self)(
            [[piece.copy() if piece else None for piece in row] for row in self.grid]
        )

    # --- QUERIES ---
    def piece_at(self, square: Square) -> Optional[Piece]:
        return self.grid[square.row][square.col]

    def is_empty(self, square: Square) -> bool:
        return self.grid[square.row][square.col] is None

    def is_any_occupied(self, squares: tuple[Square, ...]) -> bool:
        return any(not self.is_empty(square) for square in squares)

    def locate_color(self, color: Color) -> list[Square]:
        """Squares holding pieces of `color`, in row-major order."""
        return [
            square
            for square in ALL_SQUARES
            if (piece := self.piece_at(square)) is not None and piece.color == color
        ]

    def pieces(self) -> Iterator[tuple[Square, Piece]]:
        for square in ALL_SQUARES:
            piece = self.piece_at(square)
            if piece is not None:
                yield square, piece

    def find_king(self, color: Color) -> Optional[Square]:
        for square, piece in self.pieces():
            if piece.kind == PieceKind.KING and piece.color == color:
                return square
        return None

    # --- MUTATION ---
    def place_piece(self, piece: Piece, square: Square) -> None:
        self.grid[square.row][square.col] = piece

    def remove_piece(self, square: Square) -> Optional[Piece]:
        piece = self.grid[square.row][square.col]
        self.grid[square.row][square.col] = None
        return piece

    def promote_piece(self, square: Square, to: PieceKind) -> None:
        piece = self.piece_at(square)
        if piece is not None:
            piece.promote_to(to)

    def make_move(self, move: Move) -> UndoRecord:
        """
        Apply a move in place. The move must already carry its metadata (castling / en passant / promotion);
        rules.py fills that in.

        Returns the record needed to take the move back with `unmake_move`.
        """
        moved_piece = self.piece_at(move.from_square)
        if moved_piece is None:
            raise ValueError(f"No piece on {move.from_square.to_algebraic()}")

        captured_square: Optional[Square] = move.to_square
        if move.is_en_passant:
            # the captured pawn stands next to the moving pawn: same row as the origin, same column as the target
            captured_square = Square(move.from_square.row, move.to_square.col)
        captured_piece = self.remove_piece(captured_square)

        undo = UndoRecord(
            move=move,
            moved_piece=moved_piece,
            had_moved=moved_piece.has_moved,
            captured_piece=captured_piece,
            captured_square=captured_square if captured_piece else None,
        )

        self.remove_piece(move.from_square)
        self.place_piece(moved_piece, move.to_square)
        moved_piece.has_moved = True

        if move.castling is not None:
            undo.rook_had_moved = self._move_castling_rook(move.castling)

        if move.promotion is not None:
            moved_piece.promote_to(move.promotion)
        return undo

    def unmake_move(self, undo: UndoRecord) -> None:
        move = undo.move
        piece = undo.moved_piece
        if move.promotion is not None:
            piece.promote_to(PieceKind.PAWN)

        self.remove_piece(move.to_square)
        self.place_piece(piece, move.from_square)
        piece.has_moved = undo.had_moved

        if undo.captured_piece is not None and undo.captured_square is not None:
            self.place_piece(undo.captured_piece, undo.captured_square)

        if move.castling is not None:
            rule = CASTLING_RULES[move.castling]
            rook = self.remove_piece(rule.rook_to)
            if rook is not None:
                rook.has_moved = undo.rook_had_moved
                self.place_piece(rook, rule.rook_from)

    def _move_castling_rook(self, direction: CastlingDirection) -> bool:
        """Move the rook next to the king. Returns the rook's previous has_moved flag."""
        rule = CASTLING_RULES[direction]
        rook = self.remove_piece(rule.rook_from)
        if rook is None:
            return False
        had_moved = rook.has_moved
        rook.has_moved = True
        self.place_piece(rook, rule.rook_to)
        return had_moved
