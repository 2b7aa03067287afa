"""
Utilities module for the Gomoku server.
"""
from gomoku.utils.constants import (
    BOARD_SIZE, WIN_LENGTH, EMPTY, BLACK, WHITE, PLAYER_NAMES,
    ONGOING, BLACK_WINS, WHITE_WINS, DRAW, OUTCOME_NAMES, AXES,
    MAX_PARTICIPANTS, ROOM_ID_LENGTH, ROOM_ID_ALPHABET,
    opponent
)

__all__ = [
    'BOARD_SIZE', 'WIN_LENGTH', 'EMPTY', 'BLACK', 'WHITE', 'PLAYER_NAMES',
    'ONGOING', 'BLACK_WINS', 'WHITE_WINS', 'DRAW', 'OUTCOME_NAMES', 'AXES',
    'MAX_PARTICIPANTS', 'ROOM_ID_LENGTH', 'ROOM_ID_ALPHABET',
    'opponent'
]
