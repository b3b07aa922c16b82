"""Exception carrying an error code through the validation pipeline."""

from __future__ import annotations

from typing import Any

from webchess.errors.codes import ErrorCode


class RuleViolation(Exception):
    """A move or state failed validation with a specific :class:`ErrorCode`.

    Raised inside the engine and converted into a failure result at the
    ``make_move`` boundary; never meant to reach callers of the facade.
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(message or code.value)
        self.code = code
        self.context: dict[str, Any] = context or {}
        self.message = message

    def __repr__(self) -> str:
        return f"RuleViolation({self.code.value}, {self.context!r})"
