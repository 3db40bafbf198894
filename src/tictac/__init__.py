"""tictac package exposing game logic, the computer opponent, and the web application."""

from .ai import ComputerPlayer, Difficulty, best_move, find_tactical_move, select_move
from .game import Mark, TicTacToeGame, evaluate_winner
from .ui import app

__all__ = [
    "ComputerPlayer",
    "Difficulty",
    "Mark",
    "TicTacToeGame",
    "app",
    "best_move",
    "evaluate_winner",
    "find_tactical_move",
    "select_move",
]
