"""Board representation, outcome evaluation and round state for tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class Mark(str, Enum):
    """Content of a single cell."""

    EMPTY = ""
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Mark":
        if self is Mark.X:
            return Mark.O
        if self is Mark.O:
            return Mark.X
        raise ValueError("An empty cell has no opponent")


Board = Tuple[Mark, ...]

BOARD_SIZE = 9
NO_MOVE = -1

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)

EMPTY_BOARD: Board = (Mark.EMPTY,) * BOARD_SIZE


class TicTacToeError(Exception):
    """Base class for every error raised by the game engine."""


class InvalidBoardShape(TicTacToeError, ValueError):
    """Raised when a board does not hold exactly nine cells."""


class InvalidMark(TicTacToeError, ValueError):
    """Raised when a cell holds something other than X, O or empty."""


class IllegalMove(TicTacToeError, ValueError):
    """Raised when a move cannot be played on the current round."""


_EMPTY_ALIASES = (None, "", " ", ".")


def _coerce_mark(value: object) -> Mark:
    if isinstance(value, Mark):
        return value
    if value in _EMPTY_ALIASES:
        return Mark.EMPTY
    if isinstance(value, str) and value.upper() in ("X", "O"):
        return Mark(value.upper())
    raise InvalidMark(f"Unsupported cell value {value!r}")


def coerce_board(cells: Iterable[object]) -> Board:
    """Build a validated board from marks or their string forms.

    Accepts ``Mark`` values, ``"X"``/``"O"`` in either case, and ``""``,
    ``" "``, ``"."`` or ``None`` for empty cells.
    """

    board = tuple(_coerce_mark(c) for c in cells)
    if len(board) != BOARD_SIZE:
        raise InvalidBoardShape(
            f"A board needs exactly {BOARD_SIZE} cells, got {len(board)}"
        )
    return board


def evaluate_winner(board: Board) -> Optional[Mark]:
    """Return the mark owning a complete line, or ``None``.

    ``None`` does not mean a draw: check :func:`is_full` to tell an
    unfinished round from a tied one.
    """

    for a, b, c in WINNING_LINES:
        v = board[a]
        if v is not Mark.EMPTY and v == board[b] == board[c]:
            return v
    return None


def is_full(board: Board) -> bool:
    return all(c is not Mark.EMPTY for c in board)


def is_terminal(board: Board) -> bool:
    return evaluate_winner(board) is not None or is_full(board)


def empty_cells(board: Board) -> List[int]:
    return [i for i, c in enumerate(board) if c is Mark.EMPTY]


def place(board: Board, index: int, mark: Mark) -> Board:
    """Return a copy of ``board`` with ``mark`` written at ``index``."""

    return board[:index] + (mark,) + board[index + 1 :]


# ---------- Round state ----------


@dataclass
class TicTacToeGame:
    board: Board = EMPTY_BOARD
    current_player: Mark = Mark.X
    winner: Optional[Mark] = None
    drawn: bool = False
    move_log: List[Dict[str, int | str]] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.drawn

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return empty_cells(self.board)

    def play_move(self, index: int) -> None:
        """Place the current player's mark and pass the turn."""
        if self.finished:
            raise IllegalMove("Game already finished")
        if not 0 <= index < BOARD_SIZE:
            raise IllegalMove(f"Cell {index} is off the board")
        if self.board[index] is not Mark.EMPTY:
            raise IllegalMove("Cell already occupied")

        player = self.current_player
        self.board = place(self.board, index, player)
        self.move_log.append({"player": player.value, "cellIndex": index})

        self.winner = evaluate_winner(self.board)
        self.drawn = self.winner is None and is_full(self.board)
        self.current_player = player.opponent

    def reset(self) -> None:
        self.board = EMPTY_BOARD
        self.current_player = Mark.X
        self.winner = None
        self.drawn = False
        self.move_log = []


@dataclass
class Scoreboard:
    """Running tally across rounds of one session."""

    x: int = 0
    o: int = 0
    ties: int = 0

    def record(self, game: TicTacToeGame) -> None:
        if game.winner is Mark.X:
            self.x += 1
        elif game.winner is Mark.O:
            self.o += 1
        elif game.drawn:
            self.ties += 1

    def clear(self) -> None:
        self.x = self.o = self.ties = 0

    def as_dict(self) -> Dict[str, int]:
        return {"X": self.x, "O": self.o, "ties": self.ties}
