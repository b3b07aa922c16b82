"""Board - piece placement on an 8x8 board."""

from __future__ import annotations

from collections.abc import Sequence

from webchess.core.enums import Color, PieceType
from webchess.core.piece import Piece
from webchess.core.types import Square, make_square
from webchess.errors.codes import ErrorCode
from webchess.errors.exceptions import RuleViolation

_PIECE_TYPE_COUNT = 6
_COLOR_COUNT = 2

_BACK_RANK: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


class Board:
    """Mutable 64-square board with incremental piece indexes."""

    __slots__ = ("_squares", "_piece_bitboards", "_color_bitboards")

    def __init__(self) -> None:
        self._squares: list[Piece | None] = [None] * 64
        # [color][piece_type-1] -> bitboard of occupied squares.
        self._piece_bitboards: list[list[int]] = [
            [0] * _PIECE_TYPE_COUNT for _ in range(_COLOR_COUNT)
        ]
        # [color] -> bitboard of all occupied squares for that color.
        self._color_bitboards: list[int] = [0] * _COLOR_COUNT

    @staticmethod
    def _piece_type_index(piece_type: PieceType) -> int:
        return int(piece_type) - 1

    @staticmethod
    def _squares_from_bitboard(bitboard: int) -> list[Square]:
        squares: list[Square] = []
        while bitboard:
            lsb = bitboard & -bitboard
            squares.append(lsb.bit_length() - 1)
            bitboard ^= lsb
        return squares

    # -- Element access -----------------------------------------------------

    def __getitem__(self, sq: Square) -> Piece | None:
        return self._squares[sq]

    def __setitem__(self, sq: Square, piece: Piece | None) -> None:
        old_piece = self._squares[sq]
        if old_piece == piece:
            return

        mask = 1 << sq

        if old_piece is not None:
            old_color_idx = int(old_piece.color)
            old_piece_idx = self._piece_type_index(old_piece.piece_type)
            self._piece_bitboards[old_color_idx][old_piece_idx] &= ~mask
            self._color_bitboards[old_color_idx] &= ~mask

        self._squares[sq] = piece

        if piece is None:
            return

        color_idx = int(piece.color)
        piece_idx = self._piece_type_index(piece.piece_type)
        self._piece_bitboards[color_idx][piece_idx] |= mask
        self._color_bitboards[color_idx] |= mask

    def at(self, row: int, col: int) -> Piece | None:
        return self._squares[make_square(row, col)]

    def is_empty(self, sq: Square) -> bool:
        return self._squares[sq] is None

    # -- Query helpers ------------------------------------------------------

    def pieces(self, color: Color, piece_type: PieceType) -> list[Square]:
        """Squares occupied by *color*'s *piece_type*, in row-major order."""
        bitboard = self._piece_bitboards[int(color)][self._piece_type_index(piece_type)]
        return self._squares_from_bitboard(bitboard)

    def pieces_bitboard(self, color: Color, piece_type: PieceType) -> int:
        """Bitboard of squares occupied by *color*'s *piece_type*."""
        return self._piece_bitboards[int(color)][self._piece_type_index(piece_type)]

    def all_pieces_bitboard(self, color: Color) -> int:
        """Bitboard of all squares occupied by *color*."""
        return self._color_bitboards[int(color)]

    def all_pieces(self, color: Color) -> list[Square]:
        """All squares occupied by *color*, in row-major order."""
        return self._squares_from_bitboard(self.all_pieces_bitboard(color))

    def king_count(self, color: Color) -> int:
        return self.pieces_bitboard(color, PieceType.KING).bit_count()

    def find_king(self, color: Color) -> Square | None:
        """First king square for *color*, or ``None`` if it has no king."""
        bitboard = self.pieces_bitboard(color, PieceType.KING)
        if not bitboard:
            return None
        return (bitboard & -bitboard).bit_length() - 1

    def king_square(self, color: Color) -> Square:
        """Return the single king square for *color*."""
        sq = self.find_king(color)
        if sq is None:
            raise ValueError(f"No {color.name} king on board")
        return sq

    # -- Mutation / copying -------------------------------------------------

    def copy(self) -> Board:
        b = Board()
        b._squares = self._squares.copy()
        b._piece_bitboards = [row.copy() for row in self._piece_bitboards]
        b._color_bitboards = self._color_bitboards.copy()
        return b

    # -- Factory / serialisation -------------------------------------------

    @classmethod
    def initial(cls) -> Board:
        """Standard starting position (black on rows 0–1, white on rows 6–7)."""
        b = cls()
        for col in range(8):
            b[make_square(1, col)] = Piece(Color.BLACK, PieceType.PAWN)
            b[make_square(6, col)] = Piece(Color.WHITE, PieceType.PAWN)

        for col, pt in enumerate(_BACK_RANK):
            b[make_square(0, col)] = Piece(Color.BLACK, pt)
            b[make_square(7, col)] = Piece(Color.WHITE, pt)
        return b

    def to_grid(self) -> list[list[dict[str, str] | None]]:
        """8×8 nested list of ``{"type", "color"}`` dicts (``None`` = empty)."""
        return [
            [
                piece.to_dict() if (piece := self._squares[make_square(row, col)]) else None
                for col in range(8)
            ]
            for row in range(8)
        ]

    @classmethod
    def from_grid(cls, grid: Sequence[Sequence[object]]) -> Board:
        """Inverse of :meth:`to_grid`; raises :class:`RuleViolation` on bad data."""
        if not isinstance(grid, Sequence) or len(grid) != 8:
            raise RuleViolation(ErrorCode.STATE_CORRUPTION, {"reason": "board rows"})
        b = cls()
        for row, cells in enumerate(grid):
            if not isinstance(cells, Sequence) or len(cells) != 8:
                raise RuleViolation(
                    ErrorCode.STATE_CORRUPTION, {"reason": "board columns", "row": row}
                )
            for col, cell in enumerate(cells):
                if cell is not None:
                    b[make_square(row, col)] = Piece.from_dict(cell)
        return b

    # -- Dunder helpers -----------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._squares == other._squares

    def __repr__(self) -> str:
        rows: list[str] = []
        for row in range(8):
            cells = []
            for col in range(8):
                p = self[make_square(row, col)]
                cells.append(str(p) if p else ".")
            rows.append(f"{8 - row} {' '.join(cells)}")
        rows.append("  a b c d e f g h")
        return "\n".join(rows)
