"""Core domain layer: pure chess rules with zero external dependencies.

Quick start::

    from webchess.core import MoveGenerator, position_from_fen, STARTING_FEN

    pos = position_from_fen(STARTING_FEN)
    gen = MoveGenerator(pos)
    for move in gen.generate_legal_moves():
        print(move)
"""

from webchess.core.attacks import (
    CheckDetails,
    attackers_of,
    categorize_check,
    check_details,
    is_in_check,
    is_piece_pinned,
    is_square_attacked,
    pin_line,
)
from webchess.core.board import Board
from webchess.core.check_resolution import is_move_safe, validate_move
from webchess.core.enums import (
    CastlingRights,
    CastlingSide,
    Color,
    GameStatus,
    MoveFlag,
    PieceType,
)
from webchess.core.move import Move, MoveRequest
from webchess.core.move_generator import MoveGenerator
from webchess.core.notation import STARTING_FEN, position_from_fen, position_to_fen
from webchess.core.piece import Piece
from webchess.core.position import Position
from webchess.core.rules import Rules
from webchess.core.types import (
    Square,
    col_of,
    make_square,
    parse_square,
    row_of,
    square_name,
)

__all__ = [
    # Enums / flags
    "CastlingRights",
    "CastlingSide",
    "Color",
    "GameStatus",
    "MoveFlag",
    "PieceType",
    # Types / helpers
    "Square",
    "col_of",
    "make_square",
    "parse_square",
    "row_of",
    "square_name",
    # Domain objects
    "Board",
    "CheckDetails",
    "Move",
    "MoveGenerator",
    "MoveRequest",
    "Piece",
    "Position",
    "Rules",
    # Attacks / king safety
    "attackers_of",
    "categorize_check",
    "check_details",
    "is_in_check",
    "is_move_safe",
    "is_piece_pinned",
    "is_square_attacked",
    "pin_line",
    "validate_move",
    # Notation
    "STARTING_FEN",
    "position_from_fen",
    "position_to_fen",
]
