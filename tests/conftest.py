"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from webchess.game.chess_game import ChessGame

MoveFactory = Callable[..., dict[str, object]]


def _move(
    from_row: int, from_col: int, to_row: int, to_col: int, promotion: str | None = None
) -> dict[str, object]:
    move: dict[str, object] = {
        "from": {"row": from_row, "col": from_col},
        "to": {"row": to_row, "col": to_col},
    }
    if promotion is not None:
        move["promotion"] = promotion
    return move


@pytest.fixture
def mv() -> MoveFactory:
    """Build a raw move mapping: ``mv(6, 4, 4, 4)`` is e2-e4."""
    return _move


@pytest.fixture
def game() -> ChessGame:
    """A fresh game in the standard starting position."""
    return ChessGame()


@pytest.fixture
def game_from_fen() -> Callable[[str], ChessGame]:
    return ChessGame.from_fen
