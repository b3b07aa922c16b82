"""Core enumerations and flags for chess domain."""

from __future__ import annotations

from enum import IntEnum, IntFlag, StrEnum, auto


class Color(IntEnum):
    """Side color."""

    WHITE = 0
    BLACK = 1

    @property
    def opposite(self) -> Color:
        return Color(1 - self.value)

    @classmethod
    def parse(cls, value: object) -> Color:
        """Accept a :class:`Color` or its lowercase name ('white' / 'black')."""
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                pass
        raise ValueError(f"Invalid color: {value!r}")

    def __str__(self) -> str:
        return self.name.lower()


class PieceType(IntEnum):
    """Chess piece types ordered by conventional value."""

    PAWN = 1
    KNIGHT = 2
    BISHOP = 3
    ROOK = 4
    QUEEN = 5
    KING = 6

    def __str__(self) -> str:
        return self.name.lower()


PROMOTION_TYPES: tuple[PieceType, ...] = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
)


class MoveFlag(IntEnum):
    """Special move classification."""

    NORMAL = 0
    DOUBLE_PAWN = 1
    EN_PASSANT = 2
    CASTLE_KINGSIDE = 3
    CASTLE_QUEENSIDE = 4
    PROMOTION = 5


class CastlingSide(StrEnum):
    KINGSIDE = "kingside"
    QUEENSIDE = "queenside"


class CastlingRights(IntFlag):
    """Bitmask for castling availability."""

    NONE = 0
    WHITE_KINGSIDE = auto()
    WHITE_QUEENSIDE = auto()
    BLACK_KINGSIDE = auto()
    BLACK_QUEENSIDE = auto()

    WHITE_BOTH = WHITE_KINGSIDE | WHITE_QUEENSIDE
    BLACK_BOTH = BLACK_KINGSIDE | BLACK_QUEENSIDE
    ALL = WHITE_BOTH | BLACK_BOTH

    @classmethod
    def for_side(cls, color: Color, side: CastlingSide) -> CastlingRights:
        if color == Color.WHITE:
            return (
                cls.WHITE_KINGSIDE
                if side == CastlingSide.KINGSIDE
                else cls.WHITE_QUEENSIDE
            )
        return (
            cls.BLACK_KINGSIDE if side == CastlingSide.KINGSIDE else cls.BLACK_QUEENSIDE
        )

    @classmethod
    def both(cls, color: Color) -> CastlingRights:
        return cls.WHITE_BOTH if color == Color.WHITE else cls.BLACK_BOTH

    def to_dict(self) -> dict[str, dict[str, bool]]:
        """Nested ``{color: {side: bool}}`` view."""
        return {
            str(color): {
                str(side): bool(self & CastlingRights.for_side(color, side))
                for side in CastlingSide
            }
            for color in Color
        }

    @classmethod
    def from_dict(cls, data: dict[str, dict[str, bool]]) -> CastlingRights:
        rights = cls.NONE
        for color in Color:
            sides = data.get(str(color), {})
            for side in CastlingSide:
                if sides.get(str(side)):
                    rights |= cls.for_side(color, side)
        return rights


class GameStatus(StrEnum):
    """Lifecycle status of a game; the last three are terminal."""

    ACTIVE = "active"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.CHECKMATE, GameStatus.STALEMATE, GameStatus.DRAW)
