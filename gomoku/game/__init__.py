"""
Game rules module: board validation, win detection and game state.
"""
from gomoku.game.game import Game
from gomoku.game.board import (
    new_board, in_bounds, validate_move, validate_and_apply,
    detect_win, is_full, count_stones
)

__all__ = [
    'Game',
    'new_board', 'in_bounds', 'validate_move', 'validate_and_apply',
    'detect_win', 'is_full', 'count_stones'
]
