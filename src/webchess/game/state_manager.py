"""Game state manager: authoritative position, move history, status and winner."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from webchess.core.attacks import check_details, is_in_check
from webchess.core.board import Board
from webchess.core.enums import CastlingRights, CastlingSide, Color, GameStatus, MoveFlag, PieceType
from webchess.core.move import Move
from webchess.core.notation import position_to_fen
from webchess.core.piece import Piece
from webchess.core.position import Position
from webchess.core.rules import Rules
from webchess.core.special_moves import castling_side, home_row
from webchess.core.types import Square, col_of, make_square, row_of, square_to_dict
from webchess.errors.codes import ErrorCode
from webchess.errors.exceptions import RuleViolation
from webchess.game.validation import parse_promotion, parse_square_dict

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MoveHistoryEntry:
    """A single committed ply."""

    from_sq: Square
    to_sq: Square
    piece: Piece
    captured: Piece | None = None
    promotion: PieceType | None = None
    castling: CastlingSide | None = None
    en_passant: bool = False
    move_number: int = 1
    fen_after: str = ""
    was_check: bool = False

    @property
    def color(self) -> Color:
        return self.piece.color

    @property
    def is_double_pawn_step(self) -> bool:
        return (
            self.piece.piece_type == PieceType.PAWN
            and abs(row_of(self.to_sq) - row_of(self.from_sq)) == 2
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": square_to_dict(self.from_sq),
            "to": square_to_dict(self.to_sq),
            "piece": str(self.piece.piece_type),
            "color": str(self.piece.color),
            "captured": self.captured.to_dict() if self.captured else None,
            "promotion": str(self.promotion) if self.promotion else None,
            "castling": str(self.castling) if self.castling else None,
            "en_passant": self.en_passant,
            "move_number": self.move_number,
            "fen_after": self.fen_after,
            "was_check": self.was_check,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MoveHistoryEntry:
        piece = Piece.from_dict({"type": data.get("piece"), "color": data.get("color")})
        captured = data.get("captured")
        castling = data.get("castling")
        return cls(
            from_sq=parse_square_dict(data.get("from"), "from"),
            to_sq=parse_square_dict(data.get("to"), "to"),
            piece=piece,
            captured=Piece.from_dict(captured) if captured is not None else None,
            promotion=parse_promotion(data.get("promotion")),
            castling=CastlingSide(castling) if castling is not None else None,
            en_passant=bool(data.get("en_passant", False)),
            move_number=int(data.get("move_number", 1)),
            fen_after=str(data.get("fen_after", "")),
            was_check=bool(data.get("was_check", False)),
        )


@dataclass
class ConsistencyReport:
    """Result of :meth:`GameStateManager.validate_consistency`."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    codes: list[ErrorCode] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, code: ErrorCode, message: str) -> None:
        self.errors.append(message)
        if code not in self.codes:
            self.codes.append(code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "codes": [code.value for code in self.codes],
            "details": dict(self.details),
        }


def _parse_status(value: object) -> GameStatus:
    if isinstance(value, GameStatus):
        return value
    if isinstance(value, str):
        try:
            return GameStatus(value)
        except ValueError:
            pass
    raise RuleViolation(
        ErrorCode.INVALID_STATUS,
        {"current_status": repr(value), "valid_statuses": [str(s) for s in GameStatus]},
    )


def _parse_color(value: object) -> Color:
    try:
        return Color.parse(value)
    except ValueError:
        raise RuleViolation(
            ErrorCode.INVALID_COLOR,
            {"color": value if isinstance(value, str) else repr(value)},
        ) from None


class GameStateManager:
    """Owns one game's mutable state and keeps it internally consistent.

    Only :meth:`commit` and the explicit repair operations mutate anything.
    """

    __slots__ = ("position", "history", "status", "winner", "starting_color")

    def __init__(
        self,
        position: Position | None = None,
        *,
        history: Sequence[MoveHistoryEntry] = (),
        status: GameStatus | None = None,
        winner: Color | None = None,
        starting_color: Color | None = None,
    ) -> None:
        self.position = position if position is not None else Position()
        self.history: list[MoveHistoryEntry] = list(history)
        if starting_color is None:
            side = self.position.side_to_move
            starting_color = side if len(self.history) % 2 == 0 else side.opposite
        self.starting_color = starting_color
        if status is None:
            status = Rules.status(self.position)
            winner = Rules.winner(self.position, status)
        self.status = status
        self.winner = winner

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def current_turn(self) -> Color:
        return self.position.side_to_move

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal

    def expected_turn(self) -> Color:
        """Side to move implied by the history length."""
        if len(self.history) % 2 == 0:
            return self.starting_color
        return self.starting_color.opposite

    # ── Mutation ─────────────────────────────────────────────────────────

    def commit(self, move: Move) -> MoveHistoryEntry:
        """Apply an already validated *move* and record it."""
        position = self.position
        piece = position.board[move.from_sq]
        if piece is None:
            raise RuleViolation(ErrorCode.NO_PIECE, {"from": square_to_dict(move.from_sq)})

        move_number = position.fullmove_number
        captured = position.make_move(move)

        entry = MoveHistoryEntry(
            from_sq=move.from_sq,
            to_sq=move.to_sq,
            piece=piece,
            captured=captured,
            promotion=move.promotion,
            castling=castling_side(move),
            en_passant=move.flag == MoveFlag.EN_PASSANT,
            move_number=move_number,
            fen_after=position_to_fen(position),
            was_check=is_in_check(position.board, position.side_to_move),
        )
        self.history.append(entry)

        new_status = Rules.status(position)
        self.update_status(new_status, Rules.winner(position, new_status))
        return entry

    def update_status(self, new_status: object, winner: object = None) -> None:
        """Move to *new_status*, validating the transition and the winner."""
        status = _parse_status(new_status)
        if not Rules.can_transition(self.status, status):
            raise RuleViolation(
                ErrorCode.INVALID_STATUS_TRANSITION,
                {"from_status": str(self.status), "to_status": str(status)},
            )

        winner_color: Color | None = None
        if status == GameStatus.CHECKMATE:
            try:
                winner_color = Color.parse(winner)
            except ValueError:
                raise RuleViolation(
                    ErrorCode.MISSING_WINNER,
                    {"status": str(status), "provided_winner": repr(winner)},
                ) from None
        elif status in (GameStatus.STALEMATE, GameStatus.DRAW) and winner is not None:
            raise RuleViolation(
                ErrorCode.INVALID_WINNER_FOR_DRAW,
                {"status": str(status), "provided_winner": repr(winner)},
            )

        if status != self.status:
            _LOGGER.debug("Status %s -> %s", self.status, status)
        self.status = status
        self.winner = winner_color

    # ── Validation ───────────────────────────────────────────────────────

    def validate_turn_sequence(self, expected_color: object) -> None:
        """Raise unless it is *expected_color*'s turn and that agrees with history."""
        expected = _parse_color(expected_color)
        current = self.current_turn
        if current != expected:
            raise RuleViolation(
                ErrorCode.TURN_SEQUENCE_VIOLATION,
                {
                    "expected_turn": str(expected),
                    "actual_turn": str(current),
                    "total_moves": len(self.history),
                },
            )
        from_history = self.expected_turn()
        if current != from_history:
            raise RuleViolation(
                ErrorCode.TURN_HISTORY_MISMATCH,
                {
                    "current_turn": str(current),
                    "expected_from_history": str(from_history),
                    "move_history_length": len(self.history),
                },
            )

    def expected_en_passant(self) -> Square | None:
        """En passant target implied by the last history entry."""
        if not self.history:
            return self.position.en_passant
        last = self.history[-1]
        if not last.is_double_pawn_step:
            return None
        return make_square((row_of(last.from_sq) + row_of(last.to_sq)) // 2, col_of(last.to_sq))

    def validate_consistency(self) -> ConsistencyReport:
        report = ConsistencyReport()
        position = self.position
        board = position.board

        expected = self.expected_turn()
        if position.side_to_move != expected:
            report.add_error(
                ErrorCode.TURN_HISTORY_MISMATCH,
                f"Turn mismatch: current={position.side_to_move}, expected={expected}",
            )

        if position.fullmove_number < 1:
            report.add_error(
                ErrorCode.STATE_CORRUPTION,
                f"Invalid full move number: {position.fullmove_number}",
            )
        if position.halfmove_clock < 0:
            report.add_error(
                ErrorCode.STATE_CORRUPTION,
                f"Invalid half move clock: {position.halfmove_clock}",
            )

        if self.status == GameStatus.CHECKMATE and self.winner is None:
            report.add_error(ErrorCode.MISSING_WINNER, "Checkmate status requires a winner")
        if self.status in (GameStatus.STALEMATE, GameStatus.DRAW) and self.winner is not None:
            report.add_error(
                ErrorCode.INVALID_WINNER_FOR_DRAW,
                f"{self.status} status should not have a winner",
            )

        king_count = {str(color): board.king_count(color) for color in Color}
        for color_name, count in king_count.items():
            if count != 1:
                report.add_error(
                    ErrorCode.STATE_CORRUPTION, f"Invalid {color_name} king count: {count}"
                )

        expected_ep = self.expected_en_passant()
        if position.en_passant != expected_ep:
            report.add_error(ErrorCode.INVALID_EN_PASSANT_TARGET, "En passant target mismatch")

        if not self._castling_rights_consistent():
            report.warnings.append("Castling rights may be inconsistent with piece positions")

        report.details = {
            "turn_consistency": position.side_to_move == expected,
            "king_count": king_count,
            "move_history_length": len(self.history),
        }
        return report

    def _castling_rights_consistent(self) -> bool:
        board = self.position.board
        rights = self.position.castling
        for color in Color:
            row = home_row(color)
            for side, rook_col in ((CastlingSide.KINGSIDE, 7), (CastlingSide.QUEENSIDE, 0)):
                if not rights & CastlingRights.for_side(color, side):
                    continue
                if board.at(row, 4) != Piece(color, PieceType.KING):
                    return False
                if board.at(row, rook_col) != Piece(color, PieceType.ROOK):
                    return False
        return True

    # ── Snapshots ────────────────────────────────────────────────────────

    def copy(self) -> GameStateManager:
        return GameStateManager(
            self.position.copy(),
            history=self.history,
            status=self.status,
            winner=self.winner,
            starting_color=self.starting_color,
        )

    def checkpoint(self) -> GameStateManager:
        """Independent copy of the current state for a later :meth:`restore`."""
        return self.copy()

    def restore(self, checkpoint: GameStateManager) -> None:
        """Roll this manager back to *checkpoint* in place."""
        source = checkpoint.copy()
        self.position = source.position
        self.history = source.history
        self.status = source.status
        self.winner = source.winner
        self.starting_color = source.starting_color
        _LOGGER.debug("State restored to move %d", len(self.history))

    def snapshot(self) -> dict[str, Any]:
        position = self.position
        details = check_details(position.board, position.side_to_move)
        in_check = details is not None and details.is_check
        return {
            "board": position.board.to_grid(),
            "current_turn": str(position.side_to_move),
            "game_status": str(self.status),
            "winner": str(self.winner) if self.winner is not None else None,
            "move_history": [entry.to_dict() for entry in self.history],
            "castling_rights": position.castling.to_dict(),
            "en_passant_target": (
                square_to_dict(position.en_passant) if position.en_passant is not None else None
            ),
            "half_move_clock": position.halfmove_clock,
            "full_move_number": position.fullmove_number,
            "starting_color": str(self.starting_color),
            "in_check": in_check,
            "check_details": details.to_dict() if in_check and details else None,
        }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> GameStateManager:
        """Rebuild a manager from :meth:`snapshot` output.

        A snapshot without ``starting_color`` is taken to have started with white.
        Raises :class:`RuleViolation` for structurally broken data.
        """
        if not isinstance(data, Mapping):
            raise RuleViolation(ErrorCode.STATE_CORRUPTION, {"reason": "snapshot_not_mapping"})
        try:
            board = Board.from_grid(data["board"])
            side = _parse_color(data["current_turn"])
            status = _parse_status(data.get("game_status", GameStatus.ACTIVE))
            winner_raw = data.get("winner")
            winner = _parse_color(winner_raw) if winner_raw is not None else None
            castling = CastlingRights.from_dict(data.get("castling_rights", {}))
            ep_raw = data.get("en_passant_target")
            en_passant = (
                parse_square_dict(ep_raw, "en_passant_target") if ep_raw is not None else None
            )
            halfmove = int(data.get("half_move_clock", 0))
            fullmove = int(data.get("full_move_number", 1))
            history = [MoveHistoryEntry.from_dict(e) for e in data.get("move_history", [])]
            starting_color = _parse_color(data.get("starting_color", Color.WHITE))
        except KeyError as exc:
            raise RuleViolation(
                ErrorCode.STATE_CORRUPTION, {"reason": "missing_field", "field": str(exc)}
            ) from exc
        except (AttributeError, TypeError, ValueError) as exc:
            raise RuleViolation(
                ErrorCode.STATE_CORRUPTION, {"reason": "invalid_value", "error": str(exc)}
            ) from exc

        position = Position(board, side, castling, en_passant, halfmove, fullmove)
        return cls(
            position,
            history=history,
            status=status,
            winner=winner,
            starting_color=starting_color,
        )
