"""Engine settings and logging setup."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from webchess.core.enums import PROMOTION_TYPES, PieceType

_LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class EngineSettings:
    """All engine-level options."""

    # Rules
    default_promotion: PieceType = PieceType.QUEEN

    # Diagnostics
    validate_after_commit: bool = False
    include_recovery: bool = True
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if isinstance(self.default_promotion, str):
            try:
                self.default_promotion = PieceType[self.default_promotion.upper()]
            except KeyError:
                raise ValueError(
                    f"Invalid default promotion: {self.default_promotion!r}"
                ) from None
        if self.default_promotion not in PROMOTION_TYPES:
            raise ValueError(f"Invalid default promotion: {self.default_promotion!r}")
        self.default_promotion = PieceType(self.default_promotion)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EngineSettings:
        """Build settings from a plain mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            _LOGGER.debug("Ignoring unknown engine settings: %s", ", ".join(unknown))
        return cls(**{key: value for key, value in data.items() if key in known})


def configure_logging(level: str | int = "WARNING") -> None:
    """Install a basic stderr handler for the ``webchess`` logger tree."""
    logger = logging.getLogger("webchess")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
