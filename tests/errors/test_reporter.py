"""Tests for ErrorReporter results, recovery and statistics."""

import logging

import pytest

from webchess.errors.codes import ErrorCategory, ErrorCode, Severity
from webchess.errors.exceptions import RuleViolation
from webchess.errors.reporter import MESSAGES, ErrorReporter, ErrorStats


@pytest.fixture
def stats() -> ErrorStats:
    return ErrorStats()


@pytest.fixture
def reporter(stats: ErrorStats) -> ErrorReporter:
    return ErrorReporter(stats)


class TestCreateError:
    def test_shape(self, reporter: ErrorReporter) -> None:
        result = reporter.create_error(ErrorCode.NO_PIECE, context={"from": {"row": 4, "col": 4}})
        assert not result.success
        assert not result.is_valid
        assert result.message == MESSAGES[ErrorCode.NO_PIECE]
        assert result.error_code == ErrorCode.NO_PIECE
        assert result.category == ErrorCategory.PIECE
        assert result.severity == Severity.HIGH
        assert result.recoverable is False
        assert result.recovery is None
        assert result.suggestions
        assert result.context == {"from": {"row": 4, "col": 4}}
        assert result.details["error_id"].startswith("err_")
        assert "timestamp" in result.details

    def test_to_dict_keys(self, reporter: ErrorReporter) -> None:
        data = reporter.create_error(ErrorCode.WRONG_TURN).to_dict()
        assert data["success"] is False
        assert data["is_valid"] is False
        assert data["error_code"] == "WRONG_TURN"
        assert data["category"] == "PIECE_ERROR"
        assert data["severity"] == "MEDIUM"

    def test_error_ids_unique(self, reporter: ErrorReporter) -> None:
        a = reporter.create_error(ErrorCode.NO_PIECE)
        b = reporter.create_error(ErrorCode.NO_PIECE)
        assert a.details["error_id"] != b.details["error_id"]

    def test_unknown_code_becomes_system_error(
        self, reporter: ErrorReporter, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="webchess.errors.reporter"):
            result = reporter.create_error("BOGUS_CODE")
        assert result.error_code == ErrorCode.SYSTEM_ERROR
        assert result.severity == Severity.CRITICAL
        assert "BOGUS_CODE" in caplog.text

    def test_custom_message_and_errors(self, reporter: ErrorReporter) -> None:
        result = reporter.create_error(
            ErrorCode.INVALID_MOVEMENT, message="Knights jump", errors=["bad", ""]
        )
        assert result.message == "Knights jump"
        assert result.errors == ["bad"]

    def test_single_error_string(self, reporter: ErrorReporter) -> None:
        result = reporter.create_error(ErrorCode.INVALID_MOVEMENT, errors="bad")
        assert result.errors == ["bad"]

    def test_recoverable_has_options(self, reporter: ErrorReporter) -> None:
        result = reporter.create_error(ErrorCode.INVALID_PROMOTION)
        assert result.recoverable is True
        assert result.recovery is not None
        assert result.recovery.actions == ("default_to_queen",)
        assert result.recovery.automatic is False

    def test_recovery_can_be_disabled(self) -> None:
        reporter = ErrorReporter(include_recovery=False)
        result = reporter.create_error(ErrorCode.INVALID_PROMOTION)
        assert result.recoverable is True
        assert result.recovery is None

    def test_from_violation(self, reporter: ErrorReporter) -> None:
        exc = RuleViolation(ErrorCode.PATH_BLOCKED, {"blocked_at": {"row": 5, "col": 4}})
        result = reporter.from_violation(exc)
        assert result.error_code == ErrorCode.PATH_BLOCKED
        assert result.context == {"blocked_at": {"row": 5, "col": 4}}
        assert result.message == MESSAGES[ErrorCode.PATH_BLOCKED]

    def test_success(self, reporter: ErrorReporter) -> None:
        result = reporter.create_success("Move successful", data={"x": 1})
        assert result.success
        assert result.error_code is None
        assert result.data == {"x": 1}
        assert result.to_dict()["is_valid"] is True


class TestLogging:
    def test_critical_logged_as_error(
        self, reporter: ErrorReporter, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="webchess.errors.reporter"):
            reporter.create_error(ErrorCode.STATE_CORRUPTION)
        assert caplog.records[-1].levelno == logging.ERROR

    def test_high_logged_as_warning(
        self, reporter: ErrorReporter, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="webchess.errors.reporter"):
            reporter.create_error(ErrorCode.KING_IN_CHECK)
        assert caplog.records[-1].levelno == logging.WARNING

    def test_medium_logged_as_debug(
        self, reporter: ErrorReporter, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="webchess.errors.reporter"):
            reporter.create_error(ErrorCode.WRONG_TURN)
        assert caplog.records[-1].levelno == logging.DEBUG


class TestRecovery:
    def test_not_recoverable(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(ErrorCode.NO_PIECE)
        assert not result.success
        assert result.message == "Error is not recoverable"

    def test_unknown_code(self, reporter: ErrorReporter) -> None:
        assert not reporter.attempt_recovery("NOPE").success

    def test_no_handler(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(ErrorCode.STATE_CORRUPTION)
        assert not result.success
        assert result.action == "manual_intervention"

    def test_piece_defaults(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(
            ErrorCode.INVALID_PIECE_TYPE,
            {"piece": {"type": "dragon", "color": "black"}, "position": {"row": 0, "col": 0}},
        )
        assert result.success
        assert result.recovered_data == {"type": "pawn", "color": "black"}

    def test_piece_needs_position(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(
            ErrorCode.INVALID_PIECE, {"piece": {"type": "dragon", "color": "black"}}
        )
        assert not result.success

    def test_status_reset(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(ErrorCode.INVALID_STATUS, {"current_status": "paused"})
        assert result.success
        assert result.action == "status_reset"
        assert result.recovered_data == {"status": "active", "winner": None}

    def test_valid_status_not_reset(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(ErrorCode.INVALID_STATUS, {"current_status": "check"})
        assert not result.success

    def test_winner_set_on_checkmate(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(
            ErrorCode.MISSING_WINNER,
            {"game_status": "checkmate", "winner": None, "current_turn": "white"},
        )
        assert result.success
        assert result.recovered_data == {"winner": "black"}

    def test_winner_cleared_on_draw(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(
            ErrorCode.INVALID_WINNER_FOR_DRAW, {"game_status": "draw", "winner": "white"}
        )
        assert result.action == "winner_cleared"
        assert result.recovered_data == {"winner": None}

    @pytest.mark.parametrize(
        "history, starting, expected",
        [(0, "white", "white"), (3, "white", "black"), (["a", "b"], "black", "black"), (1, "black", "white")],
    )
    def test_turn_recalculated(
        self, reporter: ErrorReporter, history: object, starting: str, expected: str
    ) -> None:
        result = reporter.attempt_recovery(
            ErrorCode.TURN_SEQUENCE_VIOLATION,
            {"move_history": history, "starting_color": starting},
        )
        assert result.success
        assert result.recovered_data == {"current_turn": expected}

    def test_turn_needs_history(self, reporter: ErrorReporter) -> None:
        assert not reporter.attempt_recovery(ErrorCode.TURN_HISTORY_MISMATCH, {}).success

    def test_color_reset(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(ErrorCode.INVALID_COLOR, {"color": "purple"})
        assert result.recovered_data == {"color": "white"}

    def test_promotion_defaults_to_queen(self, reporter: ErrorReporter) -> None:
        result = reporter.attempt_recovery(ErrorCode.INVALID_PROMOTION)
        assert result.action == "default_to_queen"
        assert result.recovered_data == {"promotion": "queen"}

    def test_auto_recover(self) -> None:
        assert ErrorReporter.can_auto_recover(ErrorCode.INVALID_COLOR)
        assert not ErrorReporter.can_auto_recover(ErrorCode.INVALID_PROMOTION)


class TestStats:
    def test_counts(self, reporter: ErrorReporter, stats: ErrorStats) -> None:
        reporter.create_error(ErrorCode.NO_PIECE)
        reporter.create_error(ErrorCode.NO_PIECE)
        reporter.create_error(ErrorCode.PATH_BLOCKED)
        assert stats.total_errors == 3
        assert stats.by_code["NO_PIECE"] == 2
        assert stats.by_category["PATH_ERROR"] == 1

    def test_recovery_rate(self, reporter: ErrorReporter, stats: ErrorStats) -> None:
        assert stats.recovery_rate == 0.0
        reporter.attempt_recovery(ErrorCode.INVALID_PROMOTION)
        reporter.attempt_recovery(ErrorCode.NO_PIECE)
        assert stats.recovery_attempts == 2
        assert stats.successful_recoveries == 1
        assert stats.recovery_rate == 50.0
        assert stats.to_dict()["recovery_rate"] == "50.00%"

    def test_reset(self, reporter: ErrorReporter, stats: ErrorStats) -> None:
        reporter.create_error(ErrorCode.NO_PIECE)
        stats.reset()
        assert stats.total_errors == 0
        assert stats.to_dict()["errors_by_code"] == {}

    def test_success_not_counted(self, reporter: ErrorReporter, stats: ErrorStats) -> None:
        reporter.create_success()
        assert stats.total_errors == 0
