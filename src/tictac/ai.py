"""Difficulty-tiered computer opponent built on alpha-beta minimax."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .game import (
    CENTER,
    CORNERS,
    NO_MOVE,
    WINNING_LINES,
    Board,
    Mark,
    TicTacToeGame,
    coerce_board,
    empty_cells,
    evaluate_winner,
    is_full,
    place,
)

logger = logging.getLogger(__name__)

WIN_SCORE = 10


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    INSANE = "insane"


@dataclass(frozen=True)
class DifficultyStats:
    """Display metadata for a difficulty tier; the engine never reads it."""

    name: str
    description: str
    win_rate: str
    icon: str


DIFFICULTY_STATS: Dict[Difficulty, DifficultyStats] = {
    Difficulty.EASY: DifficultyStats("Easy", "Good for beginners", "~80%", "😊"),
    Difficulty.MEDIUM: DifficultyStats("Medium", "A fair challenge", "~50%", "🤔"),
    Difficulty.HARD: DifficultyStats("Hard", "A clever opponent", "~20%", "😤"),
    Difficulty.INSANE: DifficultyStats(
        "Insane", "Next to impossible to beat!", "~0%", "🤖"
    ),
}

# Chance of a purely random move per tier.
RANDOM_MOVE_CHANCE: Dict[Difficulty, float] = {
    Difficulty.EASY: 0.8,
    Difficulty.MEDIUM: 0.4,
    Difficulty.HARD: 0.1,
    Difficulty.INSANE: 0.0,
}
EASY_BLOCK_CHANCE = 0.5


# ---- tactics ----


def find_tactical_move(board: Board, player: Mark) -> Optional[int]:
    """Return the empty cell completing a line of two ``player`` marks.

    With the mover's own mark this is a winning move, with the opponent's
    mark it is the block. Lines are scanned in ``WINNING_LINES`` order and
    the first hit wins.
    """

    for line in WINNING_LINES:
        trio = [board[i] for i in line]
        if trio.count(player) == 2 and trio.count(Mark.EMPTY) == 1:
            return line[trio.index(Mark.EMPTY)]
    return None


def _random_choice(rng: random.Random, cells: Iterable[int]) -> int:
    return rng.choice(list(cells))


# ---- core search ----


def _minimax(
    board: Board,
    player: Mark,
    depth: int,
    maximizing: bool,
    alpha: float,
    beta: float,
) -> float:
    winner = evaluate_winner(board)
    if winner == player:
        return WIN_SCORE - depth
    if winner is not None:
        return depth - WIN_SCORE
    if is_full(board):
        return 0

    if maximizing:
        value = -math.inf
        for idx in empty_cells(board):
            child = place(board, idx, player)
            score = _minimax(child, player, depth + 1, False, alpha, beta)
            value = max(value, score)
            alpha = max(alpha, score)
            if beta <= alpha:
                break
        return value

    value = math.inf
    opponent = player.opponent
    for idx in empty_cells(board):
        child = place(board, idx, opponent)
        score = _minimax(child, player, depth + 1, True, alpha, beta)
        value = min(value, score)
        beta = min(beta, score)
        if beta <= alpha:
            break
    return value


def best_move(board: Board, player: Mark = Mark.O) -> int:
    """Optimal move for ``player`` by exhaustive alpha-beta search.

    Faster wins score higher and later losses score less badly. Among equal
    scores the lowest cell index is kept. Returns ``NO_MOVE`` when the board
    has no empty cell.
    """

    board = coerce_board(board)
    player = Mark(player)
    best_score = -math.inf
    best_idx = NO_MOVE
    for idx in empty_cells(board):
        child = place(board, idx, player)
        # Running best is the root alpha; ties still go to the lower index.
        score = _minimax(child, player, 0, False, best_score, math.inf)
        if score > best_score:
            best_score, best_idx = score, idx
    return best_idx


# ---- difficulty policies ----


def _win_block_or_search(board: Board, player: Mark) -> int:
    move = find_tactical_move(board, player)
    if move is None:
        move = find_tactical_move(board, player.opponent)
    if move is None:
        move = best_move(board, player)
    return move


def _easy(board: Board, player: Mark, rng: random.Random) -> int:
    empties = empty_cells(board)
    if rng.random() < RANDOM_MOVE_CHANCE[Difficulty.EASY]:
        return _random_choice(rng, empties)
    block = find_tactical_move(board, player.opponent)
    if block is not None and rng.random() < EASY_BLOCK_CHANCE:
        return block
    if board[CENTER] is Mark.EMPTY:
        return CENTER
    return _random_choice(rng, empties)


def _medium(board: Board, player: Mark, rng: random.Random) -> int:
    empties = empty_cells(board)
    if rng.random() < RANDOM_MOVE_CHANCE[Difficulty.MEDIUM]:
        return _random_choice(rng, empties)
    for mark in (player, player.opponent):
        move = find_tactical_move(board, mark)
        if move is not None:
            return move
    if board[CENTER] is Mark.EMPTY:
        return CENTER
    corners = [i for i in CORNERS if board[i] is Mark.EMPTY]
    if corners:
        return _random_choice(rng, corners)
    return _random_choice(rng, empties)


def _hard(board: Board, player: Mark, rng: random.Random) -> int:
    if rng.random() < RANDOM_MOVE_CHANCE[Difficulty.HARD]:
        return _random_choice(rng, empty_cells(board))
    return _win_block_or_search(board, player)


def _insane(board: Board, player: Mark, rng: random.Random) -> int:
    return _win_block_or_search(board, player)


POLICIES = {
    Difficulty.EASY: _easy,
    Difficulty.MEDIUM: _medium,
    Difficulty.HARD: _hard,
    Difficulty.INSANE: _insane,
}


def select_move(
    board: Board,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
    player: Mark = Mark.O,
) -> int:
    """Pick the computer's next cell for ``board`` at ``difficulty``.

    ``rng`` supplies every random draw; pass a seeded ``random.Random`` for
    reproducible choices. Returns ``NO_MOVE`` when no cell is empty.
    """

    board = coerce_board(board)
    difficulty = Difficulty(difficulty)
    player = Mark(player)
    if not empty_cells(board):
        return NO_MOVE
    if rng is None:
        rng = random.Random()

    move = POLICIES[difficulty](board, player, rng)
    logger.debug("%s plays %d at %s difficulty", player.value, move, difficulty.value)
    return move


@dataclass
class ComputerPlayer:
    """Computer opponent bound to a mark and a difficulty tier.

    Public surface used by ui.py:
      - ComputerPlayer(player=Mark.O, difficulty=Difficulty.MEDIUM)
      - choose(game) -> cell index
    """

    player: Mark = Mark.O
    difficulty: Difficulty = Difficulty.MEDIUM
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, game: TicTacToeGame) -> int:
        if game.current_player != self.player:
            raise ValueError("It is not this AI player's turn")
        move = select_move(game.board, self.difficulty, self.rng, self.player)
        if move == NO_MOVE:
            raise RuntimeError("No valid moves available")
        return move


def stats_payload() -> List[Dict[str, str]]:
    return [
        {
            "id": tier.value,
            "name": stats.name,
            "description": stats.description,
            "winRate": stats.win_rate,
            "icon": stats.icon,
        }
        for tier, stats in DIFFICULTY_STATS.items()
    ]
