"""Tests for GameStateManager: commits, status rules, consistency and snapshots."""

import pytest

from webchess.core.enums import CastlingSide, Color, GameStatus, MoveFlag, PieceType
from webchess.core.move import Move
from webchess.core.notation import position_from_fen
from webchess.core.piece import Piece
from webchess.core.types import E1, E2, E4, E8, parse_square
from webchess.errors.codes import ErrorCode
from webchess.errors.exceptions import RuleViolation
from webchess.game.state_manager import GameStateManager, MoveHistoryEntry

E2E4 = Move(E2, E4, MoveFlag.DOUBLE_PAWN)


def _code(func, *args) -> ErrorCode:
    with pytest.raises(RuleViolation) as exc_info:
        func(*args)
    return exc_info.value.code


class TestInitialState:
    def test_defaults(self) -> None:
        state = GameStateManager()
        assert state.status == GameStatus.ACTIVE
        assert state.winner is None
        assert state.current_turn == Color.WHITE
        assert state.starting_color == Color.WHITE
        assert state.history == []
        assert state.is_active

    def test_status_derived_from_position(self) -> None:
        pos = position_from_fen("R5k1/5ppp/8/8/8/8/8/6K1 b - - 1 1")
        state = GameStateManager(pos)
        assert state.status == GameStatus.CHECKMATE
        assert state.winner == Color.WHITE
        assert not state.is_active

    def test_black_to_move_start(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/4P3/4K3 b - - 0 1")
        state = GameStateManager(pos)
        assert state.starting_color == Color.BLACK
        assert state.expected_turn() == Color.BLACK


class TestCommit:
    def test_records_entry(self) -> None:
        state = GameStateManager()
        entry = state.commit(E2E4)
        assert state.history == [entry]
        assert entry.piece == Piece(Color.WHITE, PieceType.PAWN)
        assert entry.color == Color.WHITE
        assert entry.captured is None
        assert entry.move_number == 1
        assert entry.is_double_pawn_step
        assert entry.fen_after == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
        assert state.current_turn == Color.BLACK
        assert state.expected_turn() == Color.BLACK

    def test_castling_entry(self) -> None:
        state = GameStateManager(position_from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"))
        entry = state.commit(Move(E1, parse_square("g1"), MoveFlag.CASTLE_KINGSIDE))
        assert entry.castling == CastlingSide.KINGSIDE
        assert not entry.en_passant

    def test_check_and_mate_status(self) -> None:
        state = GameStateManager(position_from_fen("6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"))
        entry = state.commit(Move(parse_square("a1"), parse_square("a8")))
        assert entry.was_check
        assert state.status == GameStatus.CHECKMATE
        assert state.winner == Color.WHITE

    def test_commit_without_piece(self) -> None:
        state = GameStateManager()
        assert _code(state.commit, Move(parse_square("e4"), parse_square("e5"))) == ErrorCode.NO_PIECE
        assert state.history == []


class TestUpdateStatus:
    def test_invalid_status(self) -> None:
        assert _code(GameStateManager().update_status, "paused") == ErrorCode.INVALID_STATUS

    def test_terminal_is_final(self) -> None:
        state = GameStateManager()
        state.update_status(GameStatus.DRAW)
        assert _code(state.update_status, GameStatus.ACTIVE) == ErrorCode.INVALID_STATUS_TRANSITION
        assert state.status == GameStatus.DRAW

    def test_checkmate_needs_winner(self) -> None:
        state = GameStateManager()
        assert _code(state.update_status, GameStatus.CHECKMATE) == ErrorCode.MISSING_WINNER
        assert state.status == GameStatus.ACTIVE

    def test_draw_rejects_winner(self) -> None:
        state = GameStateManager()
        assert (
            _code(state.update_status, GameStatus.STALEMATE, Color.WHITE)
            == ErrorCode.INVALID_WINNER_FOR_DRAW
        )

    def test_checkmate_with_winner(self) -> None:
        state = GameStateManager()
        state.update_status("checkmate", "black")
        assert state.status == GameStatus.CHECKMATE
        assert state.winner == Color.BLACK

    def test_active_clears_winner(self) -> None:
        state = GameStateManager()
        state.update_status(GameStatus.CHECK)
        state.update_status(GameStatus.ACTIVE)
        assert state.winner is None


class TestTurnSequence:
    def test_valid(self) -> None:
        state = GameStateManager()
        state.validate_turn_sequence("white")
        state.commit(E2E4)
        state.validate_turn_sequence(Color.BLACK)

    def test_invalid_color(self) -> None:
        assert _code(GameStateManager().validate_turn_sequence, "purple") == ErrorCode.INVALID_COLOR

    def test_wrong_side(self) -> None:
        state = GameStateManager()
        assert _code(state.validate_turn_sequence, "black") == ErrorCode.TURN_SEQUENCE_VIOLATION

    def test_history_mismatch(self) -> None:
        state = GameStateManager()
        state.position.side_to_move = Color.BLACK
        assert _code(state.validate_turn_sequence, "black") == ErrorCode.TURN_HISTORY_MISMATCH


class TestConsistency:
    def test_fresh_game_consistent(self) -> None:
        report = GameStateManager().validate_consistency()
        assert report.is_valid
        assert report.warnings == []
        assert report.details["king_count"] == {"white": 1, "black": 1}

    def test_after_moves_consistent(self) -> None:
        state = GameStateManager()
        state.commit(E2E4)
        state.commit(Move(parse_square("d7"), parse_square("d5"), MoveFlag.DOUBLE_PAWN))
        assert state.validate_consistency().is_valid

    def test_missing_king(self) -> None:
        state = GameStateManager()
        state.position.board[E8] = None
        report = state.validate_consistency()
        assert not report.is_valid
        assert ErrorCode.STATE_CORRUPTION in report.codes

    def test_turn_mismatch(self) -> None:
        state = GameStateManager()
        state.position.side_to_move = Color.BLACK
        report = state.validate_consistency()
        assert report.codes == [ErrorCode.TURN_HISTORY_MISMATCH]

    def test_en_passant_mismatch(self) -> None:
        state = GameStateManager()
        state.commit(E2E4)
        state.position.en_passant = None
        report = state.validate_consistency()
        assert report.codes == [ErrorCode.INVALID_EN_PASSANT_TARGET]

    def test_winner_rules(self) -> None:
        state = GameStateManager()
        state.status = GameStatus.DRAW
        state.winner = Color.WHITE
        assert ErrorCode.INVALID_WINNER_FOR_DRAW in state.validate_consistency().codes
        state.status = GameStatus.CHECKMATE
        state.winner = None
        assert ErrorCode.MISSING_WINNER in state.validate_consistency().codes

    def test_castling_warning(self) -> None:
        state = GameStateManager(position_from_fen("r3k2r/8/8/8/8/8/8/R3K3 w KQkq - 0 1"))
        report = state.validate_consistency()
        assert report.is_valid
        assert report.warnings


class TestSnapshots:
    def test_snapshot_fields(self) -> None:
        snap = GameStateManager().snapshot()
        assert snap["current_turn"] == "white"
        assert snap["game_status"] == "active"
        assert snap["winner"] is None
        assert snap["move_history"] == []
        assert snap["castling_rights"]["white"] == {"kingside": True, "queenside": True}
        assert snap["en_passant_target"] is None
        assert snap["half_move_clock"] == 0
        assert snap["full_move_number"] == 1
        assert snap["starting_color"] == "white"
        assert snap["in_check"] is False
        assert snap["check_details"] is None

    def test_round_trip(self) -> None:
        state = GameStateManager()
        state.commit(E2E4)
        state.commit(Move(parse_square("g8"), parse_square("f6")))
        restored = GameStateManager.from_snapshot(state.snapshot())
        assert restored.position == state.position
        assert restored.history == state.history
        assert restored.status == state.status
        assert restored.starting_color == Color.WHITE
        assert restored.validate_consistency().is_valid

    def test_round_trip_checkmate(self) -> None:
        state = GameStateManager(position_from_fen("6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"))
        state.commit(Move(parse_square("a1"), parse_square("a8")))
        restored = GameStateManager.from_snapshot(state.snapshot())
        assert restored.status == GameStatus.CHECKMATE
        assert restored.winner == Color.WHITE

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda s: s.pop("board"),
            lambda s: s.update(board=[[None] * 8] * 7),
            lambda s: s.update(castling_rights="KQkq"),
            lambda s: s.update(half_move_clock="many"),
        ],
    )
    def test_broken_snapshot(self, mutate) -> None:
        snap = GameStateManager().snapshot()
        mutate(snap)
        with pytest.raises(RuleViolation) as exc_info:
            GameStateManager.from_snapshot(snap)
        assert exc_info.value.code == ErrorCode.STATE_CORRUPTION

    def test_starting_color_saved(self) -> None:
        state = GameStateManager(position_from_fen("4k3/8/8/8/8/8/4P3/4K3 b - - 0 1"))
        snap = state.snapshot()
        assert snap["starting_color"] == "black"
        assert GameStateManager.from_snapshot(snap).starting_color == Color.BLACK

    def test_tampered_turn_detected_after_reload(self) -> None:
        state = GameStateManager()
        state.commit(E2E4)
        snap = state.snapshot()
        snap["current_turn"] = "white"
        restored = GameStateManager.from_snapshot(snap)
        assert restored.expected_turn() == Color.BLACK
        assert ErrorCode.TURN_HISTORY_MISMATCH in restored.validate_consistency().codes
        assert (
            _code(restored.validate_turn_sequence, "white") == ErrorCode.TURN_HISTORY_MISMATCH
        )

    def test_missing_starting_color_defaults_to_white(self) -> None:
        state = GameStateManager()
        state.commit(E2E4)
        snap = state.snapshot()
        del snap["starting_color"]
        snap["current_turn"] = "white"
        restored = GameStateManager.from_snapshot(snap)
        assert restored.starting_color == Color.WHITE
        assert not restored.validate_consistency().is_valid

    def test_not_a_mapping(self) -> None:
        assert _code(GameStateManager.from_snapshot, ["board"]) == ErrorCode.STATE_CORRUPTION

    def test_bad_turn_color(self) -> None:
        snap = GameStateManager().snapshot()
        snap["current_turn"] = "green"
        assert _code(GameStateManager.from_snapshot, snap) == ErrorCode.INVALID_COLOR

    def test_copy_is_independent(self) -> None:
        state = GameStateManager()
        backup = state.copy()
        state.commit(E2E4)
        assert backup.history == []
        assert backup.current_turn == Color.WHITE

    def test_restore_checkpoint(self) -> None:
        state = GameStateManager()
        checkpoint = state.checkpoint()
        state.commit(E2E4)
        state.restore(checkpoint)
        assert state.history == []
        assert state.current_turn == Color.WHITE
        assert state.position == GameStateManager().position
        state.commit(E2E4)
        assert checkpoint.history == []


class TestMoveHistoryEntry:
    def test_dict_round_trip(self) -> None:
        entry = MoveHistoryEntry(
            from_sq=parse_square("b7"),
            to_sq=parse_square("a8"),
            piece=Piece(Color.WHITE, PieceType.PAWN),
            captured=Piece(Color.BLACK, PieceType.ROOK),
            promotion=PieceType.QUEEN,
            move_number=30,
            was_check=True,
        )
        data = entry.to_dict()
        assert data["piece"] == "pawn"
        assert data["color"] == "white"
        assert data["promotion"] == "queen"
        assert data["captured"] == {"type": "rook", "color": "black"}
        assert MoveHistoryEntry.from_dict(data) == entry
