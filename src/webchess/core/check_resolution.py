"""King safety: double check, pins and move simulation.

All simulation happens on :meth:`Position.copy` scratch positions, so the
caller's position is never touched.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from webchess.core.attacks import check_details, is_in_check, pin_line
from webchess.core.enums import Color, PieceType
from webchess.core.move import Move
from webchess.core.types import square_to_dict
from webchess.errors.codes import ErrorCode
from webchess.errors.exceptions import RuleViolation

if TYPE_CHECKING:
    from webchess.core.position import Position


def is_move_safe(position: Position, move: Move, color: Color | None = None) -> bool:
    """Would *color*'s king be safe after *move*? Simulated on a copy."""
    scratch = position.copy()
    piece = scratch.board[move.from_sq]
    if color is None:
        if piece is None:
            return False
        color = piece.color
    scratch.make_move(move)
    return not is_in_check(scratch.board, color)


def filter_safe_moves(position: Position, moves: Iterable[Move], color: Color) -> list[Move]:
    """Keep only the moves that do not leave *color*'s king attacked."""
    scratch = position.copy()
    safe: list[Move] = []
    for move in moves:
        scratch.make_move(move)
        if not is_in_check(scratch.board, color):
            safe.append(move)
        scratch.unmake_move(move)
    return safe


def validate_move(position: Position, move: Move) -> None:
    """Raise :class:`RuleViolation` if *move* leaves the mover's king attacked.

    Checks run cheapest first: double check (only the king may move), then
    pins, then a full simulation on a scratch copy.
    """
    board = position.board
    piece = board[move.from_sq]
    if piece is None:
        raise RuleViolation(ErrorCode.NO_PIECE, {"from": square_to_dict(move.from_sq)})
    color = piece.color

    details = check_details(board, color)
    in_check = details is not None and details.is_check

    if details is not None and details.is_double_check and piece.piece_type != PieceType.KING:
        raise RuleViolation(ErrorCode.DOUBLE_CHECK_KING_ONLY, {"check": details.to_dict()})

    line = pin_line(board, move.from_sq, color)
    if line is not None and move.to_sq not in line:
        raise RuleViolation(
            ErrorCode.PINNED_PIECE_INVALID_MOVE,
            {
                "piece": piece.to_dict(),
                "from": square_to_dict(move.from_sq),
                "to": square_to_dict(move.to_sq),
            },
        )

    if is_move_safe(position, move, color):
        return

    if in_check:
        assert details is not None
        raise RuleViolation(ErrorCode.CHECK_NOT_RESOLVED, {"check": details.to_dict()})
    raise RuleViolation(
        ErrorCode.KING_IN_CHECK,
        {"from": square_to_dict(move.from_sq), "to": square_to_dict(move.to_sq)},
    )
