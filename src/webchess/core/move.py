"""Move value object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from webchess.core.enums import MoveFlag, PieceType
from webchess.core.types import Square, square_name, square_to_dict

_PROMO_CHARS: dict[PieceType, str] = {
    PieceType.KNIGHT: "n",
    PieceType.BISHOP: "b",
    PieceType.ROOK: "r",
    PieceType.QUEEN: "q",
}


@dataclass(frozen=True, slots=True)
class Move:
    """Immutable value object representing a single chess move."""

    from_sq: Square
    to_sq: Square
    flag: MoveFlag = MoveFlag.NORMAL
    promotion: PieceType | None = None

    # ── Display ──────────────────────────────────────────────────────────

    def __str__(self) -> str:
        base = f"{square_name(self.from_sq)}{square_name(self.to_sq)}"
        if self.promotion is not None:
            base += _PROMO_CHARS.get(self.promotion, "")
        return base

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "from": square_to_dict(self.from_sq),
            "to": square_to_dict(self.to_sq),
        }
        if self.promotion is not None:
            data["promotion"] = str(self.promotion)
        return data


@dataclass(frozen=True, slots=True)
class MoveRequest:
    """A validated, not yet classified move request (from/to + promotion)."""

    from_sq: Square
    to_sq: Square
    promotion: PieceType | None = None
