"""
Game class for Gomoku.
"""
from typing import List, Tuple, Optional

from gomoku.errors import InvalidMove
from gomoku.game.board import Board, new_board, validate_and_apply, detect_win, is_full
from gomoku.utils.constants import (
    BLACK, WHITE, ONGOING, BLACK_WINS, WHITE_WINS, DRAW, opponent
)


class Game:
    """
    Authoritative Gomoku game state.

    Holds the board, whose turn it is, the outcome and the move history.
    Black always moves first.
    """

    def __init__(self):
        self.board: Board = new_board()
        self.current_player = BLACK
        self.outcome = ONGOING
        self.move_history: List[Tuple[int, int, int]] = []

    def reset(self):
        """Clear the board and hand the first move back to Black."""
        self.board = new_board()
        self.current_player = BLACK
        self.outcome = ONGOING
        self.move_history = []

    def get_board_state(self) -> Board:
        return self.board

    def get_current_player(self) -> int:
        return self.current_player

    def get_outcome(self) -> int:
        return self.outcome

    def is_over(self) -> bool:
        return self.outcome != ONGOING

    def get_winner(self) -> Optional[int]:
        """Winning player, or None while ongoing or on a draw."""
        if self.outcome == BLACK_WINS:
            return BLACK
        if self.outcome == WHITE_WINS:
            return WHITE
        return None

    def get_last_move(self) -> Optional[Tuple[int, int, int]]:
        return self.move_history[-1] if self.move_history else None

    def make_move(self, row: int, col: int, player: int) -> int:
        """
        Place a stone for player and settle the outcome.

        The move is validated before anything is written, so a rejected
        move leaves the game untouched. An accepted move is followed by one
        win/draw check; the turn passes only if the game is still ongoing.

        Args:
            row: Target row
            col: Target column
            player: Player placing the stone (must be the current player)

        Returns:
            The outcome after the move

        Raises:
            InvalidMove: if the game is over, it is not player's turn, or
                the cell cannot take a stone
        """
        if self.outcome != ONGOING:
            raise InvalidMove("Game is already over")
        if player != self.current_player:
            raise InvalidMove(f"Not player {player}'s turn")

        validate_and_apply(self.board, row, col, player)
        self.move_history.append((row, col, player))

        if detect_win(self.board, row, col, player):
            self.outcome = BLACK_WINS if player == BLACK else WHITE_WINS
        elif is_full(self.board):
            self.outcome = DRAW
        else:
            self.current_player = opponent(player)

        return self.outcome
