"""Position: complete game state (board + metadata) with make/unmake."""

from __future__ import annotations

from dataclasses import dataclass

from webchess.core import special_moves
from webchess.core.board import Board
from webchess.core.enums import CastlingRights, Color, PieceType
from webchess.core.move import Move
from webchess.core.piece import Piece
from webchess.core.types import A1, A8, H1, H8, Square


@dataclass(slots=True)
class _PositionState:
    """Snapshot saved before each move so we can undo it."""

    castling: CastlingRights
    en_passant: Square | None
    halfmove_clock: int
    captured_piece: Piece | None


class Position:
    """Full chess position: board + side to move + castling + en passant + clocks.

    Supports :meth:`make_move` / :meth:`unmake_move` via an internal
    history stack (Command pattern). Callers probing hypothetical moves work on
    a :meth:`copy`, never on the authoritative instance.
    """

    __slots__ = (
        "board",
        "side_to_move",
        "castling",
        "en_passant",
        "halfmove_clock",
        "fullmove_number",
        "_history",
    )

    def __init__(
        self,
        board: Board | None = None,
        side_to_move: Color = Color.WHITE,
        castling: CastlingRights = CastlingRights.ALL,
        en_passant: Square | None = None,
        halfmove_clock: int = 0,
        fullmove_number: int = 1,
    ) -> None:
        self.board = board if board is not None else Board.initial()
        self.side_to_move = side_to_move
        self.castling = castling
        self.en_passant = en_passant
        self.halfmove_clock = halfmove_clock
        self.fullmove_number = fullmove_number
        self._history: list[_PositionState] = []

    # ── Core move operations ─────────────────────────────────────────────

    def make_move(self, move: Move) -> Piece | None:
        """Apply *move*, pushing undo state onto the history stack.

        Returns the captured piece, if any.
        """
        piece = self.board[move.from_sq]
        if piece is None:
            raise ValueError(f"No piece on {move.from_sq}")

        state = _PositionState(
            castling=self.castling,
            en_passant=self.en_passant,
            halfmove_clock=self.halfmove_clock,
            captured_piece=None,
        )
        captured = special_moves.apply_special_effects(self.board, move)
        state.captured_piece = captured
        self._history.append(state)

        self.en_passant = special_moves.en_passant_target_after(move)
        self._update_castling(move, piece)

        # Clocks
        if piece.piece_type == PieceType.PAWN or captured is not None:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1

        if self.side_to_move == Color.BLACK:
            self.fullmove_number += 1

        self.side_to_move = self.side_to_move.opposite
        return captured

    def unmake_move(self, move: Move) -> None:
        """Undo the last :meth:`make_move`."""
        state = self._history.pop()

        self.side_to_move = self.side_to_move.opposite
        if self.side_to_move == Color.BLACK:
            self.fullmove_number -= 1

        special_moves.revert_special_effects(self.board, move, state.captured_piece)

        self.castling = state.castling
        self.en_passant = state.en_passant
        self.halfmove_clock = state.halfmove_clock

    # ── Castling bookkeeping ─────────────────────────────────────────────

    _ROOK_CORNERS: dict[Square, CastlingRights] = {
        A1: CastlingRights.WHITE_QUEENSIDE,
        H1: CastlingRights.WHITE_KINGSIDE,
        A8: CastlingRights.BLACK_QUEENSIDE,
        H8: CastlingRights.BLACK_KINGSIDE,
    }

    def _update_castling(self, move: Move, piece: Piece) -> None:
        next_castling = self.castling
        if piece.piece_type == PieceType.KING:
            next_castling &= ~CastlingRights.both(piece.color)

        # A rook leaving its corner, or anything landing on it, ends that right.
        for sq in (move.from_sq, move.to_sq):
            if sq in self._ROOK_CORNERS:
                next_castling &= ~self._ROOK_CORNERS[sq]

        self.castling = next_castling

    # ── Utilities ────────────────────────────────────────────────────────

    def copy(self) -> Position:
        """Deep copy without undo history."""
        return Position(
            board=self.board.copy(),
            side_to_move=self.side_to_move,
            castling=self.castling,
            en_passant=self.en_passant,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return (
            self.board == other.board
            and self.side_to_move == other.side_to_move
            and self.castling == other.castling
            and self.en_passant == other.en_passant
            and self.halfmove_clock == other.halfmove_clock
            and self.fullmove_number == other.fullmove_number
        )
