"""High-level chess rules: check, checkmate, stalemate and status transitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from webchess.core.enums import Color, GameStatus
from webchess.core.move_generator import MoveGenerator

if TYPE_CHECKING:
    from webchess.core.move import Move
    from webchess.core.position import Position

_TRANSITIONS: dict[GameStatus, frozenset[GameStatus]] = {
    GameStatus.ACTIVE: frozenset(
        {GameStatus.CHECK, GameStatus.CHECKMATE, GameStatus.STALEMATE, GameStatus.DRAW}
    ),
    GameStatus.CHECK: frozenset(
        {GameStatus.ACTIVE, GameStatus.CHECKMATE, GameStatus.STALEMATE, GameStatus.DRAW}
    ),
    GameStatus.CHECKMATE: frozenset(),
    GameStatus.STALEMATE: frozenset(),
    GameStatus.DRAW: frozenset(),
}


class Rules:
    """Static rule-checker that operates on a :class:`Position`."""

    # Draws are only ever declared from outside (agreement); repetition and
    # move-count draws are not tracked.

    @staticmethod
    def is_in_check(position: Position, color: Color | None = None) -> bool:
        color = position.side_to_move if color is None else color
        return MoveGenerator(position).is_in_check(color)

    @staticmethod
    def legal_moves(position: Position, color: Color | None = None) -> list[Move]:
        return MoveGenerator(position).generate_legal_moves(color)

    @staticmethod
    def has_legal_moves(position: Position, color: Color | None = None) -> bool:
        return bool(Rules.legal_moves(position, color))

    @staticmethod
    def is_checkmate(position: Position) -> bool:
        if not Rules.is_in_check(position):
            return False
        return not Rules.has_legal_moves(position)

    @staticmethod
    def is_stalemate(position: Position) -> bool:
        if Rules.is_in_check(position):
            return False
        return not Rules.has_legal_moves(position)

    @staticmethod
    def status(position: Position) -> GameStatus:
        """Status of the game from the side to move's point of view."""
        gen = MoveGenerator(position)
        in_check = gen.is_in_check(position.side_to_move)
        if gen.generate_legal_moves():
            return GameStatus.CHECK if in_check else GameStatus.ACTIVE
        return GameStatus.CHECKMATE if in_check else GameStatus.STALEMATE

    @staticmethod
    def winner(position: Position, status: GameStatus) -> Color | None:
        """The mated side's opponent on checkmate, otherwise nobody."""
        if status == GameStatus.CHECKMATE:
            return position.side_to_move.opposite
        return None

    @staticmethod
    def can_transition(current: GameStatus, new: GameStatus) -> bool:
        return current == new or new in _TRANSITIONS[current]
