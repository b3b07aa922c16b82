"""Attack detection: attacked squares, checks and pins.

Pawn attacks are diagonal only and apply to empty squares too; they are
distinct from pawn moves, which live in :mod:`webchess.core.move_generator`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from webchess.core.board import Board
from webchess.core.enums import Color, PieceType
from webchess.core.piece import Piece
from webchess.core.types import Square, col_of, make_square, row_of, square_to_dict

# (row delta, col delta) pairs.
KNIGHT_OFFSETS: tuple[tuple[int, int], ...] = (
    (-2, -1),
    (-2, 1),
    (-1, -2),
    (-1, 2),
    (1, -2),
    (1, 2),
    (2, -1),
    (2, 1),
)

KING_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
)

BISHOP_DIRS: tuple[tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ROOK_DIRS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
QUEEN_DIRS: tuple[tuple[int, int], ...] = BISHOP_DIRS + ROOK_DIRS

_DIAGONAL_SLIDERS = (PieceType.BISHOP, PieceType.QUEEN)
_ORTHOGONAL_SLIDERS = (PieceType.ROOK, PieceType.QUEEN)


# -- Precomputed lookup tables ---------------------------------------------


def _build_targets(
    offsets: tuple[tuple[int, int], ...],
) -> tuple[tuple[Square, ...], ...]:
    targets: list[tuple[Square, ...]] = []
    for sq in range(64):
        row, col = row_of(sq), col_of(sq)
        moves: list[Square] = []
        for dr, dc in offsets:
            ar, ac = row + dr, col + dc
            if 0 <= ar < 8 and 0 <= ac < 8:
                moves.append(make_square(ar, ac))
        targets.append(tuple(moves))
    return tuple(targets)


def _build_attack_masks(targets: tuple[tuple[Square, ...], ...]) -> tuple[int, ...]:
    masks: list[int] = [0] * 64
    for sq in range(64):
        mask = 0
        for to_sq in targets[sq]:
            mask |= 1 << to_sq
        masks[sq] = mask
    return tuple(masks)


def _build_pawn_attacker_masks() -> tuple[tuple[int, ...], tuple[int, ...]]:
    """[color][sq] -> squares from which a *color* pawn attacks *sq*."""
    white_masks: list[int] = [0] * 64
    black_masks: list[int] = [0] * 64

    for sq in range(64):
        row, col = row_of(sq), col_of(sq)

        # White pawns advance towards row 0, so they attack from the row below.
        white_mask = 0
        if row < 7:
            if col > 0:
                white_mask |= 1 << make_square(row + 1, col - 1)
            if col < 7:
                white_mask |= 1 << make_square(row + 1, col + 1)

        black_mask = 0
        if row > 0:
            if col > 0:
                black_mask |= 1 << make_square(row - 1, col - 1)
            if col < 7:
                black_mask |= 1 << make_square(row - 1, col + 1)

        white_masks[sq] = white_mask
        black_masks[sq] = black_mask

    return (tuple(white_masks), tuple(black_masks))


def _build_rays(
    directions: tuple[tuple[int, int], ...],
) -> tuple[tuple[tuple[Square, ...], ...], ...]:
    rays_per_square: list[tuple[tuple[Square, ...], ...]] = []
    for sq in range(64):
        row, col = row_of(sq), col_of(sq)
        square_rays: list[tuple[Square, ...]] = []
        for dr, dc in directions:
            ar, ac = row + dr, col + dc
            ray: list[Square] = []
            while 0 <= ar < 8 and 0 <= ac < 8:
                ray.append(make_square(ar, ac))
                ar += dr
                ac += dc
            square_rays.append(tuple(ray))
        rays_per_square.append(tuple(square_rays))
    return tuple(rays_per_square)


KNIGHT_TARGETS = _build_targets(KNIGHT_OFFSETS)
KING_TARGETS = _build_targets(KING_OFFSETS)
_KNIGHT_ATTACK_MASKS = _build_attack_masks(KNIGHT_TARGETS)
_KING_ATTACK_MASKS = _build_attack_masks(KING_TARGETS)
_PAWN_ATTACKER_MASKS = _build_pawn_attacker_masks()

BISHOP_RAYS = _build_rays(BISHOP_DIRS)
ROOK_RAYS = _build_rays(ROOK_DIRS)
QUEEN_RAYS = _build_rays(QUEEN_DIRS)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


# -- Attacked squares ------------------------------------------------------


def is_square_attacked(board: Board, sq: Square, by_color: Color) -> bool:
    """Is *sq* attacked by any piece of *by_color*?"""
    by_idx = int(by_color)

    if board.pieces_bitboard(by_color, PieceType.PAWN) & _PAWN_ATTACKER_MASKS[by_idx][sq]:
        return True

    if board.pieces_bitboard(by_color, PieceType.KNIGHT) & _KNIGHT_ATTACK_MASKS[sq]:
        return True

    if board.pieces_bitboard(by_color, PieceType.KING) & _KING_ATTACK_MASKS[sq]:
        return True

    if board.pieces_bitboard(by_color, PieceType.BISHOP) or board.pieces_bitboard(
        by_color, PieceType.QUEEN
    ):
        for ray in BISHOP_RAYS[sq]:
            for to_sq in ray:
                piece = board[to_sq]
                if piece is None:
                    continue
                if piece.color == by_color and piece.piece_type in _DIAGONAL_SLIDERS:
                    return True
                break

    if board.pieces_bitboard(by_color, PieceType.ROOK) or board.pieces_bitboard(
        by_color, PieceType.QUEEN
    ):
        for ray in ROOK_RAYS[sq]:
            for to_sq in ray:
                piece = board[to_sq]
                if piece is None:
                    continue
                if piece.color == by_color and piece.piece_type in _ORTHOGONAL_SLIDERS:
                    return True
                break

    return False


def attackers_of(board: Board, sq: Square, by_color: Color) -> list[tuple[Square, Piece]]:
    """Every *by_color* piece attacking *sq*, in row-major order."""
    found: list[Square] = []
    by_idx = int(by_color)

    mask = (
        (board.pieces_bitboard(by_color, PieceType.PAWN) & _PAWN_ATTACKER_MASKS[by_idx][sq])
        | (board.pieces_bitboard(by_color, PieceType.KNIGHT) & _KNIGHT_ATTACK_MASKS[sq])
        | (board.pieces_bitboard(by_color, PieceType.KING) & _KING_ATTACK_MASKS[sq])
    )
    while mask:
        lsb = mask & -mask
        found.append(lsb.bit_length() - 1)
        mask ^= lsb

    for rays, sliders in (
        (BISHOP_RAYS[sq], _DIAGONAL_SLIDERS),
        (ROOK_RAYS[sq], _ORTHOGONAL_SLIDERS),
    ):
        for ray in rays:
            for to_sq in ray:
                piece = board[to_sq]
                if piece is None:
                    continue
                if piece.color == by_color and piece.piece_type in sliders:
                    found.append(to_sq)
                break

    result: list[tuple[Square, Piece]] = []
    for attacker_sq in sorted(found):
        attacker = board[attacker_sq]
        assert attacker is not None
        result.append((attacker_sq, attacker))
    return result


# -- Check -----------------------------------------------------------------


def is_in_check(board: Board, color: Color) -> bool:
    """Is *color*'s king attacked by the opponent? (``False`` without a king)"""
    king_sq = board.find_king(color)
    if king_sq is None:
        return False
    return is_square_attacked(board, king_sq, color.opposite)


def categorize_check(attackers: Sequence[tuple[Square, Piece]]) -> str:
    """``"none"``, ``"<piece>_check"`` for one attacker, ``"double_check"`` otherwise."""
    if not attackers:
        return "none"
    if len(attackers) == 1:
        return f"{attackers[0][1].piece_type}_check"
    return "double_check"


@dataclass(frozen=True, slots=True)
class CheckDetails:
    """King position and the pieces currently giving check."""

    king_square: Square
    attackers: tuple[tuple[Square, Piece], ...] = field(default_factory=tuple)

    @property
    def check_type(self) -> str:
        return categorize_check(self.attackers)

    @property
    def is_check(self) -> bool:
        return bool(self.attackers)

    @property
    def is_double_check(self) -> bool:
        return len(self.attackers) >= 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "king_position": square_to_dict(self.king_square),
            "attacking_pieces": [
                {"piece": piece.to_dict(), "position": square_to_dict(sq)}
                for sq, piece in self.attackers
            ],
            "check_type": self.check_type,
        }


def check_details(board: Board, color: Color) -> CheckDetails | None:
    """Check details for *color*'s king, or ``None`` if it has no king."""
    king_sq = board.find_king(color)
    if king_sq is None:
        return None
    return CheckDetails(king_sq, tuple(attackers_of(board, king_sq, color.opposite)))


# -- Pins ------------------------------------------------------------------


def pin_line(board: Board, sq: Square, own_color: Color) -> frozenset[Square] | None:
    """Squares the piece on *sq* may still use if it is pinned to its king.

    The line runs from the square next to the king up to and including the
    pinning piece. Returns ``None`` when the piece is not pinned.
    """
    piece = board[sq]
    if piece is None or piece.color != own_color or piece.piece_type == PieceType.KING:
        return None
    king_sq = board.find_king(own_color)
    if king_sq is None:
        return None

    d_row = row_of(sq) - row_of(king_sq)
    d_col = col_of(sq) - col_of(king_sq)
    if d_row != 0 and d_col != 0 and abs(d_row) != abs(d_col):
        return None

    step_r, step_c = _sign(d_row), _sign(d_col)
    sliders = _DIAGONAL_SLIDERS if step_r and step_c else _ORTHOGONAL_SLIDERS

    line: list[Square] = []
    r, c = row_of(king_sq) + step_r, col_of(king_sq) + step_c
    passed_piece = False
    while 0 <= r < 8 and 0 <= c < 8:
        cur = make_square(r, c)
        line.append(cur)
        occupant = board[cur]
        if cur == sq:
            passed_piece = True
        elif occupant is not None:
            if not passed_piece:
                # Something else shields the king first.
                return None
            if occupant.color != own_color and occupant.piece_type in sliders:
                return frozenset(line)
            return None
        r += step_r
        c += step_c
    return None


def is_piece_pinned(board: Board, sq: Square, own_color: Color) -> bool:
    return pin_line(board, sq, own_color) is not None
