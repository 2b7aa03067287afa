"""
Constants for the Gomoku server.
"""

# Board dimensions
BOARD_SIZE = 15

# Stones in a row needed to win
WIN_LENGTH = 5

# Cell values. Players share the stone values.
EMPTY = 0
BLACK = 1
WHITE = 2
PLAYER_NAMES = {BLACK: "BLACK", WHITE: "WHITE"}

# Game outcomes
ONGOING = 0
BLACK_WINS = 1
WHITE_WINS = 2
DRAW = 3
OUTCOME_NAMES = ["ONGOING", "BLACK_WINS", "WHITE_WINS", "DRAW"]

# The four axes checked for five-in-a-row, as (d_row, d_col):
# horizontal, vertical, diagonal, anti-diagonal
AXES = [(0, 1), (1, 0), (1, 1), (1, -1)]

# Rooms
MAX_PARTICIPANTS = 2
ROOM_ID_LENGTH = 6
ROOM_ID_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# Win reasons reported in game_over envelopes
REASON_FIVE_IN_A_ROW = "five_in_a_row"
REASON_DRAW = "draw"


def opponent(player: int) -> int:
    """Return the other player."""
    return WHITE if player == BLACK else BLACK
