"""Castling, en passant and promotion: preconditions and board side effects.

The board helpers here are shared by :meth:`Position.make_move` and
:meth:`Position.unmake_move`, so a simulated move and a committed move go
through exactly the same side effects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from webchess.core.attacks import is_square_attacked
from webchess.core.enums import CastlingRights, CastlingSide, Color, MoveFlag, PieceType
from webchess.core.move import Move
from webchess.core.piece import Piece
from webchess.core.types import Square, col_of, make_square, row_of, square_to_dict
from webchess.errors.codes import ErrorCode
from webchess.errors.exceptions import RuleViolation

if TYPE_CHECKING:
    from webchess.core.board import Board
    from webchess.core.position import Position

KING_HOME_COL = 4

# side -> (king destination col, rook origin col, rook destination col,
#          cols that must be empty, cols the king crosses)
_CASTLING_GEOMETRY: dict[CastlingSide, tuple[int, int, int, tuple[int, ...], tuple[int, ...]]] = {
    CastlingSide.KINGSIDE: (6, 7, 5, (5, 6), (5, 6)),
    CastlingSide.QUEENSIDE: (2, 0, 3, (1, 2, 3), (3, 2)),
}

_CASTLING_FLAGS: dict[CastlingSide, MoveFlag] = {
    CastlingSide.KINGSIDE: MoveFlag.CASTLE_KINGSIDE,
    CastlingSide.QUEENSIDE: MoveFlag.CASTLE_QUEENSIDE,
}


def home_row(color: Color) -> int:
    return 7 if color == Color.WHITE else 0


def pawn_direction(color: Color) -> int:
    """Row delta of a single pawn step (white moves towards row 0)."""
    return -1 if color == Color.WHITE else 1


def pawn_start_row(color: Color) -> int:
    return 6 if color == Color.WHITE else 1


def promotion_row(color: Color) -> int:
    return 0 if color == Color.WHITE else 7


def castling_side(move: Move) -> CastlingSide | None:
    if move.flag == MoveFlag.CASTLE_KINGSIDE:
        return CastlingSide.KINGSIDE
    if move.flag == MoveFlag.CASTLE_QUEENSIDE:
        return CastlingSide.QUEENSIDE
    return None


# ── Castling ────────────────────────────────────────────────────────────────


def _castling_failure(position: Position, color: Color, side: CastlingSide) -> str | None:
    """Reason castling is illegal, or ``None`` if all preconditions hold."""
    board = position.board
    row = home_row(color)
    _, rook_col, _, empty_cols, transit_cols = _CASTLING_GEOMETRY[side]

    if not position.castling & CastlingRights.for_side(color, side):
        return "no_castling_rights"

    rook = board[make_square(row, rook_col)]
    if rook != Piece(color, PieceType.ROOK):
        return "rook_missing"

    for col in empty_cols:
        if not board.is_empty(make_square(row, col)):
            return "path_blocked"

    opponent = color.opposite
    if is_square_attacked(board, make_square(row, KING_HOME_COL), opponent):
        return "king_in_check"

    for col in transit_cols:
        if is_square_attacked(board, make_square(row, col), opponent):
            return "transit_square_attacked"

    return None


def is_castling_attempt(piece: Piece, from_sq: Square, to_sq: Square) -> bool:
    """King moving two columns along its home row from its home square."""
    return (
        piece.piece_type == PieceType.KING
        and from_sq == make_square(home_row(piece.color), KING_HOME_COL)
        and row_of(to_sq) == row_of(from_sq)
        and abs(col_of(to_sq) - col_of(from_sq)) == 2
    )


def validate_castling(position: Position, from_sq: Square, to_sq: Square) -> Move:
    """Castling move for a king two-step, or raise ``INVALID_CASTLING``."""
    piece = position.board[from_sq]
    assert piece is not None
    side = CastlingSide.KINGSIDE if col_of(to_sq) > col_of(from_sq) else CastlingSide.QUEENSIDE
    reason = _castling_failure(position, piece.color, side)
    if reason is not None:
        raise RuleViolation(
            ErrorCode.INVALID_CASTLING,
            {"side": str(side), "reason": reason, "color": str(piece.color)},
        )
    return Move(from_sq, to_sq, _CASTLING_FLAGS[side])


def castling_moves(position: Position, color: Color) -> list[Move]:
    """Castling moves currently available to *color* (kingside first)."""
    row = home_row(color)
    king_sq = make_square(row, KING_HOME_COL)
    if position.board[king_sq] != Piece(color, PieceType.KING):
        return []
    moves: list[Move] = []
    for side in (CastlingSide.KINGSIDE, CastlingSide.QUEENSIDE):
        if _castling_failure(position, color, side) is None:
            king_to = make_square(row, _CASTLING_GEOMETRY[side][0])
            moves.append(Move(king_sq, king_to, _CASTLING_FLAGS[side]))
    return moves


def castling_rook_squares(move: Move) -> tuple[Square, Square] | None:
    """(rook origin, rook destination) for a castling move."""
    side = castling_side(move)
    if side is None:
        return None
    row = row_of(move.from_sq)
    _, rook_from_col, rook_to_col, _, _ = _CASTLING_GEOMETRY[side]
    return make_square(row, rook_from_col), make_square(row, rook_to_col)


def slide_castling_rook(board: Board, move: Move) -> None:
    squares = castling_rook_squares(move)
    if squares is None:
        return
    rook_from, rook_to = squares
    rook = board[rook_from]
    assert rook is not None
    board[rook_to] = rook
    board[rook_from] = None


def unslide_castling_rook(board: Board, move: Move) -> None:
    squares = castling_rook_squares(move)
    if squares is None:
        return
    rook_from, rook_to = squares
    board[rook_from] = board[rook_to]
    board[rook_to] = None


# ── En passant ──────────────────────────────────────────────────────────────


def capture_square(move: Move) -> Square:
    """Square whose occupant is captured: the mover's origin row for en passant."""
    if move.flag == MoveFlag.EN_PASSANT:
        return make_square(row_of(move.from_sq), col_of(move.to_sq))
    return move.to_sq


def en_passant_target_after(move: Move) -> Square | None:
    """Skipped square after a double pawn step; ``None`` after anything else."""
    if move.flag != MoveFlag.DOUBLE_PAWN:
        return None
    return make_square((row_of(move.from_sq) + row_of(move.to_sq)) // 2, col_of(move.from_sq))


def validate_en_passant(position: Position, from_sq: Square, to_sq: Square) -> Move:
    """En passant capture onto the current target, or raise."""
    board = position.board
    pawn = board[from_sq]
    assert pawn is not None
    if position.en_passant is None or to_sq != position.en_passant:
        raise RuleViolation(
            ErrorCode.INVALID_EN_PASSANT,
            {
                "target": square_to_dict(to_sq),
                "en_passant_target": (
                    square_to_dict(position.en_passant)
                    if position.en_passant is not None
                    else None
                ),
            },
        )
    move = Move(from_sq, to_sq, MoveFlag.EN_PASSANT)
    victim = board[capture_square(move)]
    if victim != Piece(pawn.color.opposite, PieceType.PAWN):
        raise RuleViolation(
            ErrorCode.INVALID_EN_PASSANT,
            {"capture_square": square_to_dict(capture_square(move)), "reason": "no_pawn"},
        )
    return move


# ── Promotion ───────────────────────────────────────────────────────────────


def is_promotion(piece: Piece, to_sq: Square) -> bool:
    return piece.piece_type == PieceType.PAWN and row_of(to_sq) == promotion_row(piece.color)


def placed_piece(piece: Piece, move: Move) -> Piece:
    """Piece that ends up on the destination square (promotion replaces type)."""
    if move.promotion is not None:
        return Piece(piece.color, move.promotion)
    return piece


# ── Apply / revert ──────────────────────────────────────────────────────────


def apply_special_effects(board: Board, move: Move) -> Piece | None:
    """Move the piece on the board, including rook slide, en passant removal
    and promotion. Returns the captured piece, if any."""
    piece = board[move.from_sq]
    if piece is None:
        raise ValueError(f"No piece on {move.from_sq}")

    capture_sq = capture_square(move)
    captured = board[capture_sq]

    board[move.from_sq] = None
    if captured is not None:
        board[capture_sq] = None
    board[move.to_sq] = placed_piece(piece, move)
    slide_castling_rook(board, move)
    return captured


def revert_special_effects(board: Board, move: Move, captured: Piece | None) -> None:
    """Exact inverse of :func:`apply_special_effects`."""
    piece = board[move.to_sq]
    assert piece is not None
    if move.promotion is not None:
        piece = Piece(piece.color, PieceType.PAWN)

    board[move.from_sq] = piece
    board[move.to_sq] = None
    board[capture_square(move)] = captured
    unslide_castling_rook(board, move)
