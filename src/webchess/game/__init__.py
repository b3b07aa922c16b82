"""Game management layer: move validation pipeline, state manager, facade.

Quick start::

    from webchess.game import ChessGame

    game = ChessGame()
    result = game.make_move({"from": {"row": 6, "col": 4}, "to": {"row": 4, "col": 4}})
    assert result.success
"""

from webchess.game.chess_game import ChessGame
from webchess.game.state_manager import ConsistencyReport, GameStateManager, MoveHistoryEntry
from webchess.game.validation import parse_move_request

__all__ = [
    "ChessGame",
    "ConsistencyReport",
    "GameStateManager",
    "MoveHistoryEntry",
    "parse_move_request",
]
