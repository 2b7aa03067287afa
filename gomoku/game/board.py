"""
Move validation and win detection for Gomoku.

All functions are pure over a board (a BOARD_SIZE x BOARD_SIZE list of rows)
except validate_and_apply, which writes exactly one cell and only after the
move has passed validation.
"""
from typing import List

from gomoku.errors import InvalidMove
from gomoku.utils.constants import BOARD_SIZE, WIN_LENGTH, EMPTY, BLACK, WHITE, AXES

Board = List[List[int]]


def new_board() -> Board:
    """Create an empty board."""
    return [[EMPTY] * BOARD_SIZE for _ in range(BOARD_SIZE)]


def in_bounds(row: int, col: int) -> bool:
    """Check if (row, col) lies on the board."""
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def validate_move(board: Board, row: int, col: int, player: int) -> None:
    """
    Check that a stone may be placed.

    Args:
        board: Current board
        row: Target row
        col: Target column
        player: BLACK or WHITE

    Raises:
        InvalidMove: if the player is unknown, the cell is off the board,
            or the cell is already occupied
    """
    if player not in (BLACK, WHITE):
        raise InvalidMove(f"Unknown player: {player}")
    if not in_bounds(row, col):
        raise InvalidMove(f"Cell ({row}, {col}) is off the board")
    if board[row][col] != EMPTY:
        raise InvalidMove(f"Cell ({row}, {col}) is occupied")


def validate_and_apply(board: Board, row: int, col: int, player: int) -> None:
    """
    Validate a move and place the stone.

    A rejected move leaves the board untouched.

    Raises:
        InvalidMove: see validate_move
    """
    validate_move(board, row, col, player)
    board[row][col] = player


def count_direction(board: Board, row: int, col: int, d_row: int, d_col: int, player: int) -> int:
    """
    Count contiguous stones of player starting next to (row, col).

    The starting cell itself is not counted.
    """
    count = 0
    r, c = row + d_row, col + d_col
    while in_bounds(r, c) and board[r][c] == player:
        count += 1
        r += d_row
        c += d_col
    return count


def detect_win(board: Board, row: int, col: int, player: int) -> bool:
    """
    Check whether the stone at (row, col) completes a line of WIN_LENGTH.

    Each axis is scanned in both directions from the placed cell; the
    placed cell is counted once.
    """
    for d_row, d_col in AXES:
        total = 1
        total += count_direction(board, row, col, d_row, d_col, player)
        total += count_direction(board, row, col, -d_row, -d_col, player)
        if total >= WIN_LENGTH:
            return True
    return False


def is_full(board: Board) -> bool:
    """True iff no empty cell remains."""
    return all(cell != EMPTY for line in board for cell in line)


def count_stones(board: Board) -> int:
    """Number of non-empty cells."""
    return sum(1 for line in board for cell in line if cell != EMPTY)
