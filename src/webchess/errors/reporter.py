"""Structured move results and the error reporter that builds them.

The reporter owns the human-readable side of failures (messages,
suggestions, recovery options). Rule code only ever picks an
:class:`ErrorCode` and supplies context.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from webchess.errors.codes import ErrorCategory, ErrorCode, Severity, classify, parse_code
from webchess.errors.exceptions import RuleViolation

_LOGGER = logging.getLogger(__name__)

# ── Catalogs ────────────────────────────────────────────────────────────────

MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.MALFORMED_MOVE: "Move must be an object",
    ErrorCode.INVALID_FORMAT: "Move format is incorrect. Check your move structure.",
    ErrorCode.MISSING_REQUIRED_FIELD: "Required move information is missing.",
    ErrorCode.INVALID_COORDINATES: "Invalid coordinates",
    ErrorCode.OUT_OF_BOUNDS: "Move goes outside the chess board.",
    ErrorCode.SAME_SQUARE: "Source and destination squares cannot be the same.",
    ErrorCode.NO_PIECE: "No piece at source square",
    ErrorCode.INVALID_PIECE: "Invalid piece data detected.",
    ErrorCode.INVALID_PIECE_TYPE: "Unknown piece type.",
    ErrorCode.INVALID_PIECE_COLOR: "Invalid piece color.",
    ErrorCode.WRONG_TURN: "Not your turn",
    ErrorCode.INVALID_MOVEMENT: "This piece cannot move in that pattern.",
    ErrorCode.UNKNOWN_PIECE_TYPE: "Unknown piece type encountered.",
    ErrorCode.PATH_BLOCKED: "The path is blocked by other pieces.",
    ErrorCode.CAPTURE_OWN_PIECE: "You cannot capture your own pieces.",
    ErrorCode.INVALID_CASTLING: "Castling is not allowed in this position.",
    ErrorCode.INVALID_PROMOTION: "Invalid pawn promotion piece selected.",
    ErrorCode.INVALID_EN_PASSANT: "En passant capture is not valid here.",
    ErrorCode.INVALID_EN_PASSANT_TARGET: "No valid piece to capture via en passant.",
    ErrorCode.KING_IN_CHECK: "This move would put your king in check.",
    ErrorCode.PINNED_PIECE_INVALID_MOVE: "This piece is pinned and cannot move there.",
    ErrorCode.DOUBLE_CHECK_KING_ONLY: "In double check, only the king can move.",
    ErrorCode.CHECK_NOT_RESOLVED: "This move does not resolve the check.",
    ErrorCode.GAME_NOT_ACTIVE: "Game is not active",
    ErrorCode.INVALID_STATUS: "Invalid game status.",
    ErrorCode.INVALID_STATUS_TRANSITION: "Invalid game status change.",
    ErrorCode.MISSING_WINNER: "Winner must be specified for this game ending.",
    ErrorCode.INVALID_WINNER_FOR_DRAW: "Draw games should not have a winner.",
    ErrorCode.TURN_SEQUENCE_VIOLATION: "Turn sequence is incorrect.",
    ErrorCode.TURN_HISTORY_MISMATCH: "Turn does not match move history.",
    ErrorCode.INVALID_COLOR: "Invalid player color specified.",
    ErrorCode.SYSTEM_ERROR: "A system error occurred. Please try again.",
    ErrorCode.VALIDATION_FAILURE: "Move validation failed unexpectedly.",
    ErrorCode.STATE_CORRUPTION: "Game state corruption detected.",
}

_REPORT_BUG = ("Report this error - it indicates a system issue",)

SUGGESTIONS: dict[ErrorCode, tuple[str, ...]] = {
    ErrorCode.MALFORMED_MOVE: (
        "Ensure move has 'from' and 'to' properties with row/col coordinates",
    ),
    ErrorCode.INVALID_FORMAT: (
        "Check that coordinates are numbers",
        "Verify promotion piece is valid",
    ),
    ErrorCode.MISSING_REQUIRED_FIELD: (
        "Include both 'from' and 'to' squares",
        "Ensure coordinates have row and col",
    ),
    ErrorCode.INVALID_COORDINATES: (
        "Use coordinates between 0-7",
        "Check for typos in row/col values",
    ),
    ErrorCode.OUT_OF_BOUNDS: ("Verify coordinates are within 0-7 range",),
    ErrorCode.SAME_SQUARE: ("Choose a different destination square",),
    ErrorCode.NO_PIECE: ("Select a square that contains one of your pieces",),
    ErrorCode.INVALID_PIECE: ("Refresh the game if piece data seems corrupted",),
    ErrorCode.INVALID_PIECE_TYPE: ("Report this error - it may indicate a bug",),
    ErrorCode.INVALID_PIECE_COLOR: ("Report this error - it may indicate a bug",),
    ErrorCode.WRONG_TURN: ("Wait for your turn", "Check whose turn it is"),
    ErrorCode.INVALID_MOVEMENT: (
        "Review how this piece can move",
        "Choose a valid destination",
    ),
    ErrorCode.UNKNOWN_PIECE_TYPE: _REPORT_BUG,
    ErrorCode.PATH_BLOCKED: ("Clear the path by moving blocking pieces first",),
    ErrorCode.CAPTURE_OWN_PIECE: ("Target an opponent's piece or an empty square",),
    ErrorCode.INVALID_CASTLING: (
        "Ensure king and rook haven't moved",
        "Check that path is clear",
        "Make sure you're not in check",
    ),
    ErrorCode.INVALID_PROMOTION: ("Choose queen, rook, bishop, or knight for promotion",),
    ErrorCode.INVALID_EN_PASSANT: (
        "En passant must be played immediately after opponent's two-square pawn move",
    ),
    ErrorCode.INVALID_EN_PASSANT_TARGET: (
        "Verify the opponent pawn moved two squares last turn",
    ),
    ErrorCode.KING_IN_CHECK: (
        "Move the king to safety",
        "Block the attack",
        "Capture the attacking piece",
    ),
    ErrorCode.PINNED_PIECE_INVALID_MOVE: (
        "Move along the pin line",
        "Capture the pinning piece",
    ),
    ErrorCode.DOUBLE_CHECK_KING_ONLY: ("Only the king can move in double check",),
    ErrorCode.CHECK_NOT_RESOLVED: (
        "Block the check",
        "Capture the attacking piece",
        "Move the king",
    ),
    ErrorCode.GAME_NOT_ACTIVE: ("Start a new game to continue playing",),
    ErrorCode.INVALID_STATUS: _REPORT_BUG,
    ErrorCode.INVALID_STATUS_TRANSITION: _REPORT_BUG,
    ErrorCode.MISSING_WINNER: _REPORT_BUG,
    ErrorCode.INVALID_WINNER_FOR_DRAW: _REPORT_BUG,
    ErrorCode.TURN_SEQUENCE_VIOLATION: ("Refresh the game to sync state",),
    ErrorCode.TURN_HISTORY_MISMATCH: ("Refresh the game to sync state",),
    ErrorCode.INVALID_COLOR: ("Use 'white' or 'black' for player color",),
    ErrorCode.SYSTEM_ERROR: (
        "Refresh the page",
        "Try the move again",
        "Report persistent issues",
    ),
    ErrorCode.VALIDATION_FAILURE: ("Try the move again", "Report if problem persists"),
    ErrorCode.STATE_CORRUPTION: ("Refresh the game", "Report this critical error"),
}

RECOVERY_ACTIONS: dict[ErrorCode, tuple[str, ...]] = {
    ErrorCode.INVALID_PIECE: ("refresh_board", "reset_piece_data"),
    ErrorCode.INVALID_PIECE_TYPE: ("validate_piece_data", "reset_board"),
    ErrorCode.INVALID_PIECE_COLOR: ("validate_piece_data", "reset_board"),
    ErrorCode.INVALID_PROMOTION: ("default_to_queen",),
    ErrorCode.INVALID_STATUS: ("reset_game_status", "validate_state"),
    ErrorCode.INVALID_STATUS_TRANSITION: ("revert_status", "validate_transition"),
    ErrorCode.MISSING_WINNER: ("set_default_winner", "validate_game_end"),
    ErrorCode.INVALID_WINNER_FOR_DRAW: ("clear_winner", "set_draw_status"),
    ErrorCode.TURN_SEQUENCE_VIOLATION: ("recalculate_turn", "sync_with_history"),
    ErrorCode.TURN_HISTORY_MISMATCH: ("rebuild_turn_from_history", "validate_history"),
    ErrorCode.INVALID_COLOR: ("set_default_color", "validate_color"),
    ErrorCode.SYSTEM_ERROR: ("reset_state", "reload_game"),
    ErrorCode.VALIDATION_FAILURE: ("retry_validation", "reset_validator"),
    ErrorCode.STATE_CORRUPTION: ("restore_backup_state", "reset_game"),
}

AUTO_RECOVERABLE: frozenset[ErrorCode] = frozenset(
    {
        ErrorCode.INVALID_PIECE,
        ErrorCode.INVALID_PIECE_TYPE,
        ErrorCode.INVALID_PIECE_COLOR,
        ErrorCode.INVALID_STATUS,
        ErrorCode.MISSING_WINNER,
        ErrorCode.INVALID_WINNER_FOR_DRAW,
        ErrorCode.TURN_SEQUENCE_VIOLATION,
        ErrorCode.TURN_HISTORY_MISMATCH,
        ErrorCode.INVALID_COLOR,
    }
)

_VALID_TYPES = ("pawn", "rook", "knight", "bishop", "queen", "king")
_VALID_COLORS = ("white", "black")
_VALID_STATUSES = ("active", "check", "checkmate", "stalemate", "draw")


# ── Value objects ───────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RecoveryOptions:
    """What a caller could do about a recoverable failure."""

    automatic: bool
    suggestions: tuple[str, ...]
    actions: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "automatic": self.automatic,
            "suggestions": list(self.suggestions),
            "actions": list(self.actions),
        }


@dataclass(frozen=True, slots=True)
class RecoveryResult:
    """Outcome of :meth:`ErrorReporter.attempt_recovery` (nothing is applied)."""

    success: bool
    message: str
    action: str | None = None
    recovered_data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "action": self.action,
        }
        if self.recovered_data is not None:
            data["recovered_data"] = dict(self.recovered_data)
        return data


@dataclass(slots=True)
class MoveResult:
    """Uniform success/failure payload returned by the game facade."""

    success: bool
    message: str
    error_code: ErrorCode | None = None
    category: ErrorCategory | None = None
    severity: Severity | None = None
    recoverable: bool | None = None
    errors: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    data: dict[str, Any] | None = None
    recovery: RecoveryOptions | None = None

    @property
    def is_valid(self) -> bool:
        return self.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "is_valid": self.success,
            "message": self.message,
            "error_code": self.error_code.value if self.error_code else None,
            "category": self.category.value if self.category else None,
            "severity": self.severity.value if self.severity else None,
            "recoverable": self.recoverable,
            "errors": list(self.errors),
            "suggestions": list(self.suggestions),
            "details": dict(self.details),
            "context": dict(self.context),
            "data": self.data,
            "recovery": self.recovery.to_dict() if self.recovery else None,
        }


@dataclass(slots=True)
class ErrorStats:
    """Running error counters; owned by whoever wants them."""

    total_errors: int = 0
    by_category: Counter[str] = field(default_factory=Counter)
    by_code: Counter[str] = field(default_factory=Counter)
    recovery_attempts: int = 0
    successful_recoveries: int = 0

    def record_error(self, code: ErrorCode, category: ErrorCategory) -> None:
        self.total_errors += 1
        self.by_category[category.value] += 1
        self.by_code[code.value] += 1

    def record_recovery(self, succeeded: bool) -> None:
        self.recovery_attempts += 1
        if succeeded:
            self.successful_recoveries += 1

    @property
    def recovery_rate(self) -> float:
        """Successful recoveries as a percentage of attempts."""
        if not self.recovery_attempts:
            return 0.0
        return 100.0 * self.successful_recoveries / self.recovery_attempts

    def reset(self) -> None:
        self.total_errors = 0
        self.by_category.clear()
        self.by_code.clear()
        self.recovery_attempts = 0
        self.successful_recoveries = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_errors": self.total_errors,
            "errors_by_category": dict(self.by_category),
            "errors_by_code": dict(self.by_code),
            "recovery_attempts": self.recovery_attempts,
            "successful_recoveries": self.successful_recoveries,
            "recovery_rate": f"{self.recovery_rate:.2f}%",
        }


# ── Reporter ────────────────────────────────────────────────────────────────


class ErrorReporter:
    """Build :class:`MoveResult` payloads and suggest recoveries."""

    def __init__(
        self, stats: ErrorStats | None = None, *, include_recovery: bool = True
    ) -> None:
        self.stats = stats
        self.include_recovery = include_recovery

    # -- Results ------------------------------------------------------------

    def create_error(
        self,
        code: ErrorCode | str,
        *,
        message: str | None = None,
        errors: Sequence[str] | str | None = None,
        details: Mapping[str, Any] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> MoveResult:
        resolved = parse_code(code)
        if resolved is None:
            _LOGGER.warning("Unknown error code %r, reporting SYSTEM_ERROR", code)
            resolved = ErrorCode.SYSTEM_ERROR
        info = classify(resolved)

        if self.stats is not None:
            self.stats.record_error(resolved, info.category)

        if errors is None:
            error_list: list[str] = []
        elif isinstance(errors, str):
            error_list = [errors]
        else:
            error_list = [e for e in errors if e]

        result = MoveResult(
            success=False,
            message=message or MESSAGES.get(resolved, "An error occurred"),
            error_code=resolved,
            category=info.category,
            severity=info.severity,
            recoverable=info.recoverable,
            errors=error_list,
            suggestions=list(SUGGESTIONS.get(resolved, ())),
            details={
                **(details or {}),
                "timestamp": time.time(),
                "error_id": f"err_{uuid.uuid4().hex[:12]}",
            },
            context=dict(context or {}),
            recovery=(
                self.recovery_options(resolved)
                if info.recoverable and self.include_recovery
                else None
            ),
        )
        self._log(result)
        return result

    def from_violation(self, violation: RuleViolation) -> MoveResult:
        return self.create_error(
            violation.code, message=violation.message, context=violation.context
        )

    def create_success(
        self,
        message: str = "Operation successful",
        data: Mapping[str, Any] | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> MoveResult:
        return MoveResult(
            success=True,
            message=message,
            details={**(details or {}), "timestamp": time.time()},
            data=dict(data or {}),
        )

    # -- Recovery -----------------------------------------------------------

    @staticmethod
    def can_auto_recover(code: ErrorCode) -> bool:
        return code in AUTO_RECOVERABLE

    def recovery_options(self, code: ErrorCode) -> RecoveryOptions:
        return RecoveryOptions(
            automatic=self.can_auto_recover(code),
            suggestions=SUGGESTIONS.get(code, ()),
            actions=RECOVERY_ACTIONS.get(code, ("manual_intervention",)),
        )

    def attempt_recovery(
        self, code: ErrorCode | str, context: Mapping[str, Any] | None = None
    ) -> RecoveryResult:
        """Work out recovery data for *code*; the caller decides whether to apply it."""
        context = context or {}
        resolved = parse_code(code)
        if resolved is None or not classify(resolved).recoverable:
            result = RecoveryResult(False, "Error is not recoverable")
        else:
            handler = _RECOVERY_HANDLERS.get(resolved)
            if handler is None:
                result = RecoveryResult(
                    False,
                    "No specific recovery action available",
                    "manual_intervention",
                )
            else:
                result = handler(context)

        if self.stats is not None:
            self.stats.record_recovery(result.success)
        return result

    # -- Internal -----------------------------------------------------------

    @staticmethod
    def _log(result: MoveResult) -> None:
        code = result.error_code.value if result.error_code else None
        if result.severity == Severity.CRITICAL:
            _LOGGER.error("Critical error %s: %s (%s)", code, result.message, result.context)
        elif result.severity == Severity.HIGH:
            _LOGGER.warning("Rejected: %s: %s", code, result.message)
        else:
            _LOGGER.debug("Rejected: %s: %s", code, result.message)


# ── Recovery handlers ───────────────────────────────────────────────────────


def _recover_piece_data(context: Mapping[str, Any]) -> RecoveryResult:
    piece = context.get("piece")
    if not isinstance(piece, Mapping) or context.get("position") is None:
        return RecoveryResult(
            False, "Insufficient context for piece recovery", "manual_intervention"
        )
    recovered = dict(piece)
    if recovered.get("type") not in _VALID_TYPES:
        recovered["type"] = "pawn"
    if recovered.get("color") not in _VALID_COLORS:
        recovered["color"] = "white"
    return RecoveryResult(
        True, "Piece data recovered with defaults", "piece_data_restored", recovered
    )


def _recover_game_status(context: Mapping[str, Any]) -> RecoveryResult:
    status = context.get("current_status")
    if status is not None and status not in _VALID_STATUSES:
        return RecoveryResult(
            True,
            "Game status reset to active",
            "status_reset",
            {"status": "active", "winner": None},
        )
    return RecoveryResult(False, "Cannot recover game status", "manual_intervention")


def _recover_winner(context: Mapping[str, Any]) -> RecoveryResult:
    status = context.get("game_status")
    winner = context.get("winner")
    if status == "checkmate" and not winner:
        loser = context.get("current_turn")
        return RecoveryResult(
            True,
            "Winner determined from game context",
            "winner_set",
            {"winner": "black" if loser == "white" else "white"},
        )
    if status in ("stalemate", "draw") and winner:
        return RecoveryResult(
            True, "Winner cleared for draw condition", "winner_cleared", {"winner": None}
        )
    return RecoveryResult(False, "Cannot recover winner data", "manual_intervention")


def _recover_turn(context: Mapping[str, Any]) -> RecoveryResult:
    history = context.get("move_history")
    if history is None:
        return RecoveryResult(
            False,
            "Cannot recover turn sequence without move history",
            "manual_intervention",
        )
    length = history if isinstance(history, int) else len(history)
    first = context.get("starting_color", "white")
    second = "black" if first == "white" else "white"
    return RecoveryResult(
        True,
        "Turn recalculated from move history",
        "turn_recalculated",
        {"current_turn": first if length % 2 == 0 else second},
    )


def _recover_color(context: Mapping[str, Any]) -> RecoveryResult:
    color = context.get("color")
    if color is not None and color not in _VALID_COLORS:
        return RecoveryResult(
            True, "Color reset to white (default)", "color_reset", {"color": "white"}
        )
    return RecoveryResult(False, "Cannot recover color data", "manual_intervention")


def _recover_promotion(context: Mapping[str, Any]) -> RecoveryResult:
    return RecoveryResult(
        True, "Promotion defaulted to queen", "default_to_queen", {"promotion": "queen"}
    )


_RECOVERY_HANDLERS = {
    ErrorCode.INVALID_PIECE: _recover_piece_data,
    ErrorCode.INVALID_PIECE_TYPE: _recover_piece_data,
    ErrorCode.INVALID_PIECE_COLOR: _recover_piece_data,
    ErrorCode.INVALID_PROMOTION: _recover_promotion,
    ErrorCode.INVALID_STATUS: _recover_game_status,
    ErrorCode.INVALID_STATUS_TRANSITION: _recover_game_status,
    ErrorCode.MISSING_WINNER: _recover_winner,
    ErrorCode.INVALID_WINNER_FOR_DRAW: _recover_winner,
    ErrorCode.TURN_SEQUENCE_VIOLATION: _recover_turn,
    ErrorCode.TURN_HISTORY_MISMATCH: _recover_turn,
    ErrorCode.INVALID_COLOR: _recover_color,
}
