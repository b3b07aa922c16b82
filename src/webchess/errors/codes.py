"""Error taxonomy: codes, categories, severities and the classification table.

``classify`` is a pure lookup; nothing in this module holds state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ErrorCategory(StrEnum):
    FORMAT = "FORMAT_ERROR"
    COORDINATE = "COORDINATE_ERROR"
    PIECE = "PIECE_ERROR"
    MOVEMENT = "MOVEMENT_ERROR"
    PATH = "PATH_ERROR"
    RULE = "RULE_ERROR"
    CHECK = "CHECK_ERROR"
    STATE = "STATE_ERROR"
    SYSTEM = "SYSTEM_ERROR"


class Severity(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCode(StrEnum):
    # Format
    MALFORMED_MOVE = "MALFORMED_MOVE"
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # Coordinates
    INVALID_COORDINATES = "INVALID_COORDINATES"
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"
    SAME_SQUARE = "SAME_SQUARE"

    # Pieces
    NO_PIECE = "NO_PIECE"
    INVALID_PIECE = "INVALID_PIECE"
    INVALID_PIECE_TYPE = "INVALID_PIECE_TYPE"
    INVALID_PIECE_COLOR = "INVALID_PIECE_COLOR"
    WRONG_TURN = "WRONG_TURN"

    # Movement / path
    INVALID_MOVEMENT = "INVALID_MOVEMENT"
    UNKNOWN_PIECE_TYPE = "UNKNOWN_PIECE_TYPE"
    PATH_BLOCKED = "PATH_BLOCKED"

    # Rules
    CAPTURE_OWN_PIECE = "CAPTURE_OWN_PIECE"
    INVALID_CASTLING = "INVALID_CASTLING"
    INVALID_PROMOTION = "INVALID_PROMOTION"
    INVALID_EN_PASSANT = "INVALID_EN_PASSANT"
    INVALID_EN_PASSANT_TARGET = "INVALID_EN_PASSANT_TARGET"

    # Check
    KING_IN_CHECK = "KING_IN_CHECK"
    PINNED_PIECE_INVALID_MOVE = "PINNED_PIECE_INVALID_MOVE"
    DOUBLE_CHECK_KING_ONLY = "DOUBLE_CHECK_KING_ONLY"
    CHECK_NOT_RESOLVED = "CHECK_NOT_RESOLVED"

    # Game state
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    MISSING_WINNER = "MISSING_WINNER"
    INVALID_WINNER_FOR_DRAW = "INVALID_WINNER_FOR_DRAW"
    TURN_SEQUENCE_VIOLATION = "TURN_SEQUENCE_VIOLATION"
    TURN_HISTORY_MISMATCH = "TURN_HISTORY_MISMATCH"
    INVALID_COLOR = "INVALID_COLOR"

    # System
    SYSTEM_ERROR = "SYSTEM_ERROR"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    STATE_CORRUPTION = "STATE_CORRUPTION"


@dataclass(frozen=True, slots=True)
class ErrorClass:
    """Classification of a single error code."""

    category: ErrorCategory
    severity: Severity
    recoverable: bool


def _cls(category: ErrorCategory, severity: Severity, recoverable: bool) -> ErrorClass:
    return ErrorClass(category, severity, recoverable)


_F, _C, _P = ErrorCategory.FORMAT, ErrorCategory.COORDINATE, ErrorCategory.PIECE
_MV, _PA, _R = ErrorCategory.MOVEMENT, ErrorCategory.PATH, ErrorCategory.RULE
_CH, _ST, _SY = ErrorCategory.CHECK, ErrorCategory.STATE, ErrorCategory.SYSTEM
_MED, _HIGH, _CRIT = Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL

ERROR_TABLE: dict[ErrorCode, ErrorClass] = {
    ErrorCode.MALFORMED_MOVE: _cls(_F, _HIGH, False),
    ErrorCode.INVALID_FORMAT: _cls(_F, _HIGH, False),
    ErrorCode.MISSING_REQUIRED_FIELD: _cls(_F, _HIGH, False),
    ErrorCode.INVALID_COORDINATES: _cls(_C, _HIGH, False),
    ErrorCode.OUT_OF_BOUNDS: _cls(_C, _HIGH, False),
    ErrorCode.SAME_SQUARE: _cls(_C, _MED, False),
    ErrorCode.NO_PIECE: _cls(_P, _HIGH, False),
    ErrorCode.INVALID_PIECE: _cls(_P, _HIGH, True),
    ErrorCode.INVALID_PIECE_TYPE: _cls(_P, _HIGH, True),
    ErrorCode.INVALID_PIECE_COLOR: _cls(_P, _HIGH, True),
    ErrorCode.WRONG_TURN: _cls(_P, _MED, False),
    ErrorCode.INVALID_MOVEMENT: _cls(_MV, _MED, False),
    ErrorCode.UNKNOWN_PIECE_TYPE: _cls(_MV, _HIGH, True),
    ErrorCode.PATH_BLOCKED: _cls(_PA, _MED, False),
    ErrorCode.CAPTURE_OWN_PIECE: _cls(_R, _MED, False),
    ErrorCode.INVALID_CASTLING: _cls(_R, _MED, False),
    ErrorCode.INVALID_PROMOTION: _cls(_R, _MED, True),
    ErrorCode.INVALID_EN_PASSANT: _cls(_R, _MED, False),
    ErrorCode.INVALID_EN_PASSANT_TARGET: _cls(_R, _MED, False),
    ErrorCode.KING_IN_CHECK: _cls(_CH, _HIGH, False),
    ErrorCode.PINNED_PIECE_INVALID_MOVE: _cls(_CH, _HIGH, False),
    ErrorCode.DOUBLE_CHECK_KING_ONLY: _cls(_CH, _HIGH, False),
    ErrorCode.CHECK_NOT_RESOLVED: _cls(_CH, _HIGH, False),
    ErrorCode.GAME_NOT_ACTIVE: _cls(_ST, _HIGH, False),
    ErrorCode.INVALID_STATUS: _cls(_ST, _HIGH, True),
    ErrorCode.INVALID_STATUS_TRANSITION: _cls(_ST, _HIGH, True),
    ErrorCode.MISSING_WINNER: _cls(_ST, _MED, True),
    ErrorCode.INVALID_WINNER_FOR_DRAW: _cls(_ST, _MED, True),
    ErrorCode.TURN_SEQUENCE_VIOLATION: _cls(_ST, _HIGH, True),
    ErrorCode.TURN_HISTORY_MISMATCH: _cls(_ST, _HIGH, True),
    ErrorCode.INVALID_COLOR: _cls(_ST, _MED, True),
    ErrorCode.SYSTEM_ERROR: _cls(_SY, _CRIT, True),
    ErrorCode.VALIDATION_FAILURE: _cls(_SY, _HIGH, True),
    ErrorCode.STATE_CORRUPTION: _cls(_SY, _CRIT, True),
}


def parse_code(value: object) -> ErrorCode | None:
    """Return the matching :class:`ErrorCode`, or ``None`` if unknown."""
    if isinstance(value, ErrorCode):
        return value
    if isinstance(value, str):
        try:
            return ErrorCode(value)
        except ValueError:
            return None
    return None


def classify(code: ErrorCode) -> ErrorClass:
    """Category, severity and recoverability of *code*."""
    return ERROR_TABLE[code]
