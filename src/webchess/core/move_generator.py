"""Move pattern generation: per-piece geometry, path checks and move lists.

Every piece type owns two entries in the dispatch tables below: a
*classifier* that validates one specific from→to geometry (raising
:class:`RuleViolation` with the most specific code) and a *candidate*
generator that lists reachable squares in a fixed geometric order.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from webchess.core import special_moves
from webchess.core.attacks import (
    BISHOP_RAYS,
    KING_TARGETS,
    KNIGHT_TARGETS,
    QUEEN_RAYS,
    ROOK_RAYS,
    is_in_check,
)
from webchess.core.check_resolution import filter_safe_moves
from webchess.core.enums import PROMOTION_TYPES, Color, MoveFlag, PieceType
from webchess.core.move import Move, MoveRequest
from webchess.core.piece import Piece
from webchess.core.types import Square, col_of, make_square, on_board, row_of, square_to_dict
from webchess.errors.codes import ErrorCode
from webchess.errors.exceptions import RuleViolation

if TYPE_CHECKING:
    from webchess.core.position import Position

Classifier = Callable[["Position", Square, Square, Piece, PieceType], Move]
CandidateGen = Callable[["Position", Square, Piece], list[Square]]


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _invalid_movement(piece: Piece, from_sq: Square, to_sq: Square) -> RuleViolation:
    return RuleViolation(
        ErrorCode.INVALID_MOVEMENT,
        {
            "piece": piece.to_dict(),
            "from": square_to_dict(from_sq),
            "to": square_to_dict(to_sq),
        },
    )


def _first_blocker(position: Position, from_sq: Square, to_sq: Square) -> Square | None:
    """First occupied square strictly between two aligned squares."""
    step_r = _sign(row_of(to_sq) - row_of(from_sq))
    step_c = _sign(col_of(to_sq) - col_of(from_sq))
    r, c = row_of(from_sq) + step_r, col_of(from_sq) + step_c
    while make_square(r, c) != to_sq:
        sq = make_square(r, c)
        if not position.board.is_empty(sq):
            return sq
        r += step_r
        c += step_c
    return None


# ── Classifiers ─────────────────────────────────────────────────────────────


def _classify_pawn(
    position: Position, from_sq: Square, to_sq: Square, piece: Piece, promo: PieceType
) -> Move:
    board = position.board
    direction = special_moves.pawn_direction(piece.color)
    d_row = row_of(to_sq) - row_of(from_sq)
    d_col = col_of(to_sq) - col_of(from_sq)
    promotion = promo if special_moves.is_promotion(piece, to_sq) else None
    flag = MoveFlag.PROMOTION if promotion is not None else MoveFlag.NORMAL

    if d_col == 0 and d_row == direction:
        if not board.is_empty(to_sq):
            raise RuleViolation(
                ErrorCode.PATH_BLOCKED, {"blocked_at": square_to_dict(to_sq)}
            )
        return Move(from_sq, to_sq, flag, promotion)

    if (
        d_col == 0
        and d_row == 2 * direction
        and row_of(from_sq) == special_moves.pawn_start_row(piece.color)
    ):
        middle = make_square(row_of(from_sq) + direction, col_of(from_sq))
        for sq in (middle, to_sq):
            if not board.is_empty(sq):
                raise RuleViolation(
                    ErrorCode.PATH_BLOCKED, {"blocked_at": square_to_dict(sq)}
                )
        return Move(from_sq, to_sq, MoveFlag.DOUBLE_PAWN)

    if abs(d_col) == 1 and d_row == direction:
        if board[to_sq] is not None:
            return Move(from_sq, to_sq, flag, promotion)
        if position.en_passant == to_sq:
            return special_moves.validate_en_passant(position, from_sq, to_sq)

    raise _invalid_movement(piece, from_sq, to_sq)


def _classify_knight(
    position: Position, from_sq: Square, to_sq: Square, piece: Piece, promo: PieceType
) -> Move:
    d_row = abs(row_of(to_sq) - row_of(from_sq))
    d_col = abs(col_of(to_sq) - col_of(from_sq))
    if (d_row, d_col) in ((1, 2), (2, 1)):
        return Move(from_sq, to_sq)
    raise _invalid_movement(piece, from_sq, to_sq)


def _classify_king(
    position: Position, from_sq: Square, to_sq: Square, piece: Piece, promo: PieceType
) -> Move:
    d_row = abs(row_of(to_sq) - row_of(from_sq))
    d_col = abs(col_of(to_sq) - col_of(from_sq))
    if max(d_row, d_col) == 1:
        return Move(from_sq, to_sq)
    if special_moves.is_castling_attempt(piece, from_sq, to_sq):
        return special_moves.validate_castling(position, from_sq, to_sq)
    raise _invalid_movement(piece, from_sq, to_sq)


def _make_slider_classifier(orthogonal: bool, diagonal: bool) -> Classifier:
    def classify(
        position: Position, from_sq: Square, to_sq: Square, piece: Piece, promo: PieceType
    ) -> Move:
        d_row = row_of(to_sq) - row_of(from_sq)
        d_col = col_of(to_sq) - col_of(from_sq)
        straight = d_row == 0 or d_col == 0
        slanted = abs(d_row) == abs(d_col)
        if not ((orthogonal and straight) or (diagonal and slanted)):
            raise _invalid_movement(piece, from_sq, to_sq)
        blocker = _first_blocker(position, from_sq, to_sq)
        if blocker is not None:
            raise RuleViolation(
                ErrorCode.PATH_BLOCKED, {"blocked_at": square_to_dict(blocker)}
            )
        return Move(from_sq, to_sq)

    return classify


_CLASSIFIERS: dict[PieceType, Classifier] = {
    PieceType.PAWN: _classify_pawn,
    PieceType.KNIGHT: _classify_knight,
    PieceType.BISHOP: _make_slider_classifier(orthogonal=False, diagonal=True),
    PieceType.ROOK: _make_slider_classifier(orthogonal=True, diagonal=False),
    PieceType.QUEEN: _make_slider_classifier(orthogonal=True, diagonal=True),
    PieceType.KING: _classify_king,
}


# ── Candidate generators ────────────────────────────────────────────────────


def _pawn_candidates(position: Position, sq: Square, piece: Piece) -> list[Square]:
    board = position.board
    color = piece.color
    direction = special_moves.pawn_direction(color)
    row, col = row_of(sq), col_of(sq)
    squares: list[Square] = []

    one_row = row + direction
    if not on_board(one_row, col):
        return squares

    one_step = make_square(one_row, col)
    if board.is_empty(one_step):
        squares.append(one_step)
        if row == special_moves.pawn_start_row(color):
            two_step = make_square(row + 2 * direction, col)
            if board.is_empty(two_step):
                squares.append(two_step)

    for d_col in (-1, 1):
        if not on_board(one_row, col + d_col):
            continue
        cap_sq = make_square(one_row, col + d_col)
        target = board[cap_sq]
        if target is not None:
            if target.color != color:
                squares.append(cap_sq)
        elif cap_sq == position.en_passant and position.side_to_move == color:
            squares.append(cap_sq)
    return squares


def _step_candidates(targets: tuple[tuple[Square, ...], ...]) -> CandidateGen:
    def candidates(position: Position, sq: Square, piece: Piece) -> list[Square]:
        board = position.board
        squares: list[Square] = []
        for to_sq in targets[sq]:
            target = board[to_sq]
            if target is None or target.color != piece.color:
                squares.append(to_sq)
        return squares

    return candidates


def _slider_candidates(rays_table: tuple[tuple[tuple[Square, ...], ...], ...]) -> CandidateGen:
    def candidates(position: Position, sq: Square, piece: Piece) -> list[Square]:
        board = position.board
        squares: list[Square] = []
        for ray in rays_table[sq]:
            for to_sq in ray:
                target = board[to_sq]
                if target is None:
                    squares.append(to_sq)
                    continue
                if target.color != piece.color:
                    squares.append(to_sq)
                break
        return squares

    return candidates


_knight_candidates = _step_candidates(KNIGHT_TARGETS)
_king_steps = _step_candidates(KING_TARGETS)


def _king_candidates(position: Position, sq: Square, piece: Piece) -> list[Square]:
    squares = _king_steps(position, sq, piece)
    squares.extend(move.to_sq for move in special_moves.castling_moves(position, piece.color))
    return squares


_CANDIDATES: dict[PieceType, CandidateGen] = {
    PieceType.PAWN: _pawn_candidates,
    PieceType.KNIGHT: _knight_candidates,
    PieceType.BISHOP: _slider_candidates(BISHOP_RAYS),
    PieceType.ROOK: _slider_candidates(ROOK_RAYS),
    PieceType.QUEEN: _slider_candidates(QUEEN_RAYS),
    PieceType.KING: _king_candidates,
}


# ── Generator ───────────────────────────────────────────────────────────────


class MoveGenerator:
    """Pattern validation and move listing for a given :class:`Position`.

    Never mutates the position it was given; safety filtering runs on a
    scratch copy.
    """

    __slots__ = ("_pos", "_board")

    def __init__(self, position: Position) -> None:
        self._pos = position
        self._board = position.board

    # -- Single-move validation --------------------------------------------

    def classify(
        self, request: MoveRequest, default_promotion: PieceType = PieceType.QUEEN
    ) -> Move:
        """Validate the geometry of *request* and return the flagged :class:`Move`."""
        from_sq, to_sq = request.from_sq, request.to_sq
        piece = self._board[from_sq]
        if piece is None:
            raise RuleViolation(ErrorCode.NO_PIECE, {"from": square_to_dict(from_sq)})

        target = self._board[to_sq]
        if target is not None and target.color == piece.color:
            raise RuleViolation(
                ErrorCode.CAPTURE_OWN_PIECE,
                {"to": square_to_dict(to_sq), "target": target.to_dict()},
            )

        classifier = _CLASSIFIERS.get(piece.piece_type)
        if classifier is None:
            raise RuleViolation(
                ErrorCode.UNKNOWN_PIECE_TYPE, {"piece_type": repr(piece.piece_type)}
            )
        promotion = request.promotion or default_promotion
        return classifier(self._pos, from_sq, to_sq, piece, promotion)

    def candidate_squares(self, sq: Square) -> list[Square]:
        """Geometrically reachable squares for the piece on *sq* (check ignored)."""
        piece = self._board[sq]
        if piece is None:
            return []
        generate = _CANDIDATES.get(piece.piece_type)
        if generate is None:
            raise RuleViolation(
                ErrorCode.UNKNOWN_PIECE_TYPE, {"piece_type": repr(piece.piece_type)}
            )
        return generate(self._pos, sq, piece)

    # -- Move lists ---------------------------------------------------------

    def generate_pseudo_legal_moves(self, color: Color | None = None) -> list[Move]:
        """All pattern-valid moves for *color* (may leave own king in check).

        Ordered by origin square (row-major), then candidate order; promotions
        expand to queen, rook, bishop, knight.
        """
        color = self._pos.side_to_move if color is None else color
        moves: list[Move] = []
        append = moves.append
        for from_sq in self._board.all_pieces(color):
            piece = self._board[from_sq]
            assert piece is not None
            for to_sq in self.candidate_squares(from_sq):
                if piece.piece_type == PieceType.PAWN and special_moves.is_promotion(
                    piece, to_sq
                ):
                    for pt in PROMOTION_TYPES:
                        append(Move(from_sq, to_sq, MoveFlag.PROMOTION, pt))
                    continue
                append(self._classify_candidate(piece, from_sq, to_sq))
        return moves

    def generate_legal_moves(self, color: Color | None = None) -> list[Move]:
        """All strictly legal moves for *color* (default: side to move)."""
        color = self._pos.side_to_move if color is None else color
        return filter_safe_moves(self._pos, self.generate_pseudo_legal_moves(color), color)

    def legal_moves_from(self, sq: Square) -> list[Move]:
        piece = self._board[sq]
        if piece is None:
            return []
        return [m for m in self.generate_legal_moves(piece.color) if m.from_sq == sq]

    # -- Attack detection (public) -----------------------------------------

    def is_in_check(self, color: Color) -> bool:
        """Is *color*'s king attacked by the opponent?"""
        return is_in_check(self._board, color)

    # -- Internal -----------------------------------------------------------

    def _classify_candidate(self, piece: Piece, from_sq: Square, to_sq: Square) -> Move:
        if piece.piece_type == PieceType.PAWN:
            if abs(row_of(to_sq) - row_of(from_sq)) == 2:
                return Move(from_sq, to_sq, MoveFlag.DOUBLE_PAWN)
            if col_of(to_sq) != col_of(from_sq) and self._board[to_sq] is None:
                return Move(from_sq, to_sq, MoveFlag.EN_PASSANT)
        elif piece.piece_type == PieceType.KING and special_moves.is_castling_attempt(
            piece, from_sq, to_sq
        ):
            flag = (
                MoveFlag.CASTLE_KINGSIDE
                if col_of(to_sq) > col_of(from_sq)
                else MoveFlag.CASTLE_QUEENSIDE
            )
            return Move(from_sq, to_sq, flag)
        return Move(from_sq, to_sq)
