"""ChessGame: the public facade of the rules engine.

Every operation that takes user input returns a :class:`MoveResult`;
rule failures are raised internally as :class:`RuleViolation` and turned
into results here. Nothing mutates the authoritative state until a move
has passed every check.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from webchess.config import EngineSettings
from webchess.core.attacks import check_details
from webchess.core.check_resolution import validate_move
from webchess.core.enums import Color, GameStatus
from webchess.core.move import Move
from webchess.core.move_generator import MoveGenerator
from webchess.core.notation import position_from_fen
from webchess.core.position import Position
from webchess.core.rules import Rules
from webchess.core.types import square_to_dict
from webchess.errors.codes import ErrorCode, parse_code
from webchess.errors.exceptions import RuleViolation
from webchess.errors.reporter import ErrorReporter, ErrorStats, MoveResult, RecoveryResult
from webchess.game.state_manager import GameStateManager, MoveHistoryEntry
from webchess.game.validation import parse_move_request

_LOGGER = logging.getLogger(__name__)


class ChessGame:
    """One chess game: validates and commits moves, answers queries.

    Not thread-safe; callers serialise access per instance.
    """

    __slots__ = ("settings", "reporter", "_state")

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        stats: ErrorStats | None = None,
        state: GameStateManager | None = None,
    ) -> None:
        self.settings = settings if settings is not None else EngineSettings()
        self.reporter = ErrorReporter(stats, include_recovery=self.settings.include_recovery)
        self._state = state if state is not None else GameStateManager()

    @classmethod
    def from_fen(cls, fen: str, settings: EngineSettings | None = None) -> ChessGame:
        """Start a game from a FEN position (raises ``ValueError`` on bad FEN)."""
        return cls(settings, state=GameStateManager(position_from_fen(fen)))

    @classmethod
    def from_snapshot(
        cls, snapshot: Mapping[str, Any], settings: EngineSettings | None = None
    ) -> ChessGame:
        """Rebuild a game from :meth:`get_game_state` output."""
        return cls(settings, state=GameStateManager.from_snapshot(snapshot))

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> GameStateManager:
        return self._state

    @property
    def position(self) -> Position:
        return self._state.position

    @property
    def current_turn(self) -> Color:
        return self._state.current_turn

    @property
    def game_status(self) -> GameStatus:
        return self._state.status

    @property
    def winner(self) -> Color | None:
        return self._state.winner

    @property
    def move_history(self) -> list[MoveHistoryEntry]:
        return list(self._state.history)

    # ── Moves ────────────────────────────────────────────────────────────

    def make_move(self, move: object) -> MoveResult:
        """Validate and, if legal, commit *move* (``{"from", "to", "promotion"?}``)."""
        try:
            return self._make_move(move)
        except RuleViolation as exc:
            return self.reporter.from_violation(exc)
        except Exception as exc:
            _LOGGER.exception("Unexpected error while validating move %r", move)
            return self.reporter.create_error(
                ErrorCode.SYSTEM_ERROR,
                errors=[f"{type(exc).__name__}: {exc}"],
                context={"move": repr(move)},
            )

    def _make_move(self, raw: object) -> MoveResult:
        if not self._state.is_active:
            raise RuleViolation(
                ErrorCode.GAME_NOT_ACTIVE, {"game_status": str(self._state.status)}
            )

        request = parse_move_request(raw)
        position = self._state.position

        piece = position.board[request.from_sq]
        if piece is None:
            raise RuleViolation(ErrorCode.NO_PIECE, {"from": square_to_dict(request.from_sq)})
        if piece.color != position.side_to_move:
            raise RuleViolation(
                ErrorCode.WRONG_TURN,
                {"piece_color": str(piece.color), "current_turn": str(position.side_to_move)},
            )

        move = MoveGenerator(position).classify(request, self.settings.default_promotion)
        validate_move(position, move)
        return self._commit(move)

    def _commit(self, move: Move) -> MoveResult:
        checkpoint = self._state.checkpoint()
        try:
            entry = self._state.commit(move)
        except Exception:
            _LOGGER.exception("Commit of %s failed; restoring previous state", move)
            self._state.restore(checkpoint)
            return self.reporter.create_error(
                ErrorCode.STATE_CORRUPTION, context={"move": move.to_dict()}
            )

        if self.settings.validate_after_commit:
            report = self._state.validate_consistency()
            if not report.is_valid:
                _LOGGER.warning("Inconsistent state after %s: %s", move, report.errors)

        _LOGGER.debug("Committed %s (%s)", move, self._state.status)
        if self._state.status.is_terminal:
            _LOGGER.info("Game over: %s, winner %s", self._state.status, self._state.winner)

        return self.reporter.create_success("Move successful", data=self._move_data(move, entry))

    def _move_data(self, move: Move, entry: MoveHistoryEntry) -> dict[str, Any]:
        state = self._state
        return {
            "board": state.position.board.to_grid(),
            "current_turn": str(state.current_turn),
            "game_status": str(state.status),
            "winner": str(state.winner) if state.winner is not None else None,
            "move_history_length": len(state.history),
            "move": move.to_dict(),
            "captured": entry.captured.to_dict() if entry.captured else None,
            "check_details": self.get_check_details(),
        }

    # ── Queries ──────────────────────────────────────────────────────────

    def get_game_state(self) -> dict[str, Any]:
        return self._state.snapshot()

    def is_in_check(self, color: Color | str | None = None) -> bool:
        return Rules.is_in_check(self.position, self._color(color))

    def is_checkmate(self) -> bool:
        return Rules.is_checkmate(self.position)

    def is_stalemate(self) -> bool:
        return Rules.is_stalemate(self.position)

    def has_valid_moves(self, color: Color | str | None = None) -> bool:
        return bool(self.legal_moves(color))

    def legal_moves(self, color: Color | str | None = None) -> list[Move]:
        """Strictly legal moves for *color* in deterministic order."""
        color = self._color(color)
        position = self.position
        if color != position.side_to_move:
            # Hypothetical turn for the waiting side; en passant belongs to the mover.
            position = position.copy()
            position.side_to_move = color
            position.en_passant = None
        return MoveGenerator(position).generate_legal_moves(color)

    def get_all_valid_moves(self, color: Color | str | None = None) -> list[dict[str, Any]]:
        return [move.to_dict() for move in self.legal_moves(color)]

    def get_check_details(self, color: Color | str | None = None) -> dict[str, Any] | None:
        """Attacker details for *color*'s king, or ``None`` when not in check."""
        details = check_details(self.position.board, self._color(color))
        if details is None or not details.is_check:
            return None
        return details.to_dict()

    # ── Lifecycle ────────────────────────────────────────────────────────

    def reset_game(self) -> None:
        self._state = GameStateManager()
        _LOGGER.info("Game reset to the starting position")

    def declare_draw(self) -> MoveResult:
        """End an ongoing game as a draw (e.g. by agreement)."""
        if not self._state.is_active:
            return self.reporter.create_error(
                ErrorCode.GAME_NOT_ACTIVE, context={"game_status": str(self._state.status)}
            )
        try:
            self._state.update_status(GameStatus.DRAW)
        except RuleViolation as exc:
            return self.reporter.from_violation(exc)
        _LOGGER.info("Game drawn by declaration")
        return self.reporter.create_success(
            "Game declared a draw", data={"game_status": str(self._state.status)}
        )

    # ── Validation / recovery ────────────────────────────────────────────

    def validate_turn(self, color: object) -> MoveResult:
        try:
            self._state.validate_turn_sequence(color)
        except RuleViolation as exc:
            return self.reporter.from_violation(exc)
        return self.reporter.create_success(
            "Turn sequence is valid",
            data={"current_turn": str(self.current_turn), "is_consistent": True},
        )

    def validate_state(self) -> MoveResult:
        report = self._state.validate_consistency()
        if report.is_valid:
            return self.reporter.create_success("Game state is consistent", data=report.to_dict())
        return self.reporter.create_error(
            report.codes[0], errors=report.errors, details=report.to_dict()
        )

    def recover(
        self, error_code: ErrorCode | str, context: Mapping[str, Any] | None = None
    ) -> RecoveryResult:
        """Compute recovery data for *error_code* and apply the state-level parts.

        Only turn, status and winner repairs touch the game; piece, colour and
        promotion recoveries are returned for the caller to use.
        """
        state = self._state
        merged: dict[str, Any] = {
            "current_status": str(state.status),
            "game_status": str(state.status),
            "winner": str(state.winner) if state.winner is not None else None,
            "current_turn": str(state.current_turn),
            "move_history": len(state.history),
            "starting_color": str(state.starting_color),
        }
        merged.update(context or {})

        result = self.reporter.attempt_recovery(error_code, merged)
        if result.success and result.recovered_data is not None:
            self._apply_recovery(parse_code(error_code), result)
        return result

    def _apply_recovery(self, code: ErrorCode | None, result: RecoveryResult) -> None:
        data = result.recovered_data or {}
        state = self._state
        if result.action == "turn_recalculated":
            state.position.side_to_move = Color.parse(data["current_turn"])
        elif result.action == "status_reset":
            state.status = GameStatus(data["status"])
            state.winner = None
        elif result.action == "winner_set":
            state.winner = Color.parse(data["winner"])
        elif result.action == "winner_cleared":
            state.winner = None
        else:
            return
        _LOGGER.info("Applied recovery %s for %s", result.action, code)

    # ── Internal ─────────────────────────────────────────────────────────

    def _color(self, color: Color | str | None) -> Color:
        if color is None:
            return self.position.side_to_move
        return Color.parse(color)
