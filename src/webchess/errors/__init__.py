"""Error taxonomy, rule exceptions and result reporting."""

from webchess.errors.codes import (
    ERROR_TABLE,
    ErrorCategory,
    ErrorClass,
    ErrorCode,
    Severity,
    classify,
    parse_code,
)
from webchess.errors.exceptions import RuleViolation
from webchess.errors.reporter import (
    ErrorReporter,
    ErrorStats,
    MoveResult,
    RecoveryOptions,
    RecoveryResult,
)

__all__ = [
    "ERROR_TABLE",
    "ErrorCategory",
    "ErrorClass",
    "ErrorCode",
    "ErrorReporter",
    "ErrorStats",
    "MoveResult",
    "RecoveryOptions",
    "RecoveryResult",
    "RuleViolation",
    "Severity",
    "classify",
    "parse_code",
]
