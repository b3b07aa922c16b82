"""Piece value object."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from webchess.core.enums import Color, PieceType
from webchess.errors.codes import ErrorCode
from webchess.errors.exceptions import RuleViolation

# FEN character ↔ (Color, PieceType)
_CHAR_MAP: dict[str, tuple[Color, PieceType]] = {
    "P": (Color.WHITE, PieceType.PAWN),
    "N": (Color.WHITE, PieceType.KNIGHT),
    "B": (Color.WHITE, PieceType.BISHOP),
    "R": (Color.WHITE, PieceType.ROOK),
    "Q": (Color.WHITE, PieceType.QUEEN),
    "K": (Color.WHITE, PieceType.KING),
    "p": (Color.BLACK, PieceType.PAWN),
    "n": (Color.BLACK, PieceType.KNIGHT),
    "b": (Color.BLACK, PieceType.BISHOP),
    "r": (Color.BLACK, PieceType.ROOK),
    "q": (Color.BLACK, PieceType.QUEEN),
    "k": (Color.BLACK, PieceType.KING),
}

_FEN_CHARS: dict[tuple[Color, PieceType], str] = {v: k for k, v in _CHAR_MAP.items()}

_TYPE_NAMES: dict[str, PieceType] = {str(pt): pt for pt in PieceType}


@dataclass(frozen=True, slots=True)
class Piece:
    """Immutable value object representing a chess piece."""

    color: Color
    piece_type: PieceType

    # ── Serialisation ────────────────────────────────────────────────────

    def __str__(self) -> str:
        """FEN character (uppercase = white, lowercase = black)."""
        return _FEN_CHARS[(self.color, self.piece_type)]

    @classmethod
    def from_char(cls, char: str) -> Piece:
        """Create piece from FEN character, e.g. 'N' → white knight."""
        try:
            color, ptype = _CHAR_MAP[char]
        except KeyError:
            raise ValueError(f"Invalid piece character: {char!r}") from None
        return cls(color, ptype)

    def to_dict(self) -> dict[str, str]:
        return {"type": str(self.piece_type), "color": str(self.color)}

    @classmethod
    def from_dict(cls, data: object) -> Piece:
        """Parse ``{"type": ..., "color": ...}``.

        Raises :class:`RuleViolation` with a PIECE-category code on bad data.
        """
        if not isinstance(data, Mapping) or "type" not in data or "color" not in data:
            raise RuleViolation(ErrorCode.INVALID_PIECE, {"piece": data})
        ptype = _TYPE_NAMES.get(data["type"]) if isinstance(data["type"], str) else None
        if ptype is None:
            raise RuleViolation(ErrorCode.INVALID_PIECE_TYPE, {"piece": dict(data)})
        try:
            color = Color.parse(data["color"])
        except ValueError:
            raise RuleViolation(
                ErrorCode.INVALID_PIECE_COLOR, {"piece": dict(data)}
            ) from None
        return cls(color, ptype)
