"""Format and coordinate validation of raw move requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from webchess.core.enums import PROMOTION_TYPES, PieceType
from webchess.core.move import MoveRequest
from webchess.core.types import Square, make_square
from webchess.errors.codes import ErrorCode
from webchess.errors.exceptions import RuleViolation

_PROMOTION_NAMES: dict[str, PieceType] = {str(pt): pt for pt in PROMOTION_TYPES}


def _is_coordinate(value: object) -> bool:
    # bool is an int subclass; floats are rejected even when integral.
    return isinstance(value, int) and not isinstance(value, bool)


def parse_square_dict(value: object, field_name: str) -> Square:
    """Turn ``{"row": r, "col": c}`` into a square index, or raise."""
    if not isinstance(value, Mapping) or "row" not in value or "col" not in value:
        raise RuleViolation(
            ErrorCode.INVALID_FORMAT, {"field": field_name, "value": repr(value)}
        )
    row, col = value["row"], value["col"]
    if not (_is_coordinate(row) and _is_coordinate(col)):
        raise RuleViolation(
            ErrorCode.INVALID_COORDINATES,
            {"field": field_name, "row": repr(row), "col": repr(col)},
        )
    if not (0 <= row < 8 and 0 <= col < 8):
        raise RuleViolation(
            ErrorCode.OUT_OF_BOUNDS, {"field": field_name, "row": row, "col": col}
        )
    return make_square(row, col)


def parse_promotion(value: object) -> PieceType | None:
    """Promotion choice: ``None`` when absent, otherwise one of Q/R/B/N."""
    if value is None:
        return None
    if isinstance(value, str):
        piece_type = _PROMOTION_NAMES.get(value.lower())
        if piece_type is not None:
            return piece_type
    raise RuleViolation(
        ErrorCode.INVALID_PROMOTION,
        {"promotion": repr(value), "valid": list(_PROMOTION_NAMES)},
    )


def parse_move_request(raw: Any) -> MoveRequest:
    """Validate the shape of a raw move mapping and return a :class:`MoveRequest`.

    Raises :class:`RuleViolation` with a FORMAT, COORDINATE or
    ``INVALID_PROMOTION`` code. Board contents are not consulted.
    """
    if not isinstance(raw, Mapping):
        raise RuleViolation(ErrorCode.MALFORMED_MOVE, {"type": type(raw).__name__})

    missing = [name for name in ("from", "to") if raw.get(name) is None]
    if missing:
        raise RuleViolation(ErrorCode.MISSING_REQUIRED_FIELD, {"missing": missing})

    from_sq = parse_square_dict(raw["from"], "from")
    to_sq = parse_square_dict(raw["to"], "to")
    if from_sq == to_sq:
        raise RuleViolation(ErrorCode.SAME_SQUARE, {"from": dict(raw["from"])})

    return MoveRequest(from_sq, to_sq, parse_promotion(raw.get("promotion")))
