"""
Serialization utilities for Gomoku game state.

Converts game state to JSON-serializable dictionaries for:
- WebSocket envelopes
- REST inspection responses
"""
from typing import Dict, List, Tuple, Any, Optional, TYPE_CHECKING

from gomoku.utils.constants import ONGOING, DRAW, REASON_FIVE_IN_A_ROW, REASON_DRAW

if TYPE_CHECKING:
    from gomoku.game.game import Game


def serialize_board(board: List[List[int]]) -> List[List[int]]:
    """Copy the board into fresh row lists so later moves don't leak into sent envelopes."""
    return [list(line) for line in board]


def serialize_move(move: Tuple[int, int, int]) -> Dict[str, int]:
    """
    Serialize a move to JSON-compatible dictionary.

    Args:
        move: (row, col, player) tuple

    Returns:
        Dict with 'row', 'col' and 'player' keys
    """
    row, col, player = move
    return {"row": row, "col": col, "player": player}


def serialize_game_state(game: 'Game', phase: str) -> Dict[str, Any]:
    """
    Serialize complete game state to JSON-compatible dictionary.

    Args:
        game: Game instance
        phase: Room phase value ("waiting", "active" or "finished")

    Returns:
        Dict containing all game state information
    """
    last_move = game.get_last_move()
    return {
        "board": serialize_board(game.get_board_state()),
        "currentPlayer": game.get_current_player(),
        "phase": phase,
        "gameOver": game.get_outcome() != ONGOING,
        "winner": game.get_winner(),
        "moveCount": len(game.move_history),
        "lastMove": serialize_move(last_move) if last_move else None
    }


def determine_win_reason(game: 'Game') -> Optional[str]:
    """
    Determine how the game ended.

    Returns:
        'five_in_a_row', 'draw', or None if ongoing
    """
    outcome = game.get_outcome()
    if outcome == ONGOING:
        return None
    if outcome == DRAW:
        return REASON_DRAW
    return REASON_FIVE_IN_A_ROW
