"""FastAPI-powered web UI for playing tic-tac-toe in the browser."""

from __future__ import annotations

import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

import threading

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .ai import ComputerPlayer, Difficulty, select_move, stats_payload
from .config import load_settings
from .game import (
    IllegalMove,
    Mark,
    Scoreboard,
    TicTacToeError,
    TicTacToeGame,
    coerce_board,
    evaluate_winner,
    is_full,
)

logger = logging.getLogger(__name__)


class GameMode(str, Enum):
    FRIEND = "friend"
    COMPUTER = "computer"


@dataclass
class GameSession:
    """Container for an active round, its scoreboard and optional AI."""

    game: TicTacToeGame
    mode: GameMode
    ai: Optional[ComputerPlayer]
    scores: Scoreboard = field(default_factory=Scoreboard)
    round: int = 1
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="tictac", description="Tic-tac-toe played in the browser")

# Seconds the computer "thinks" before its move is applied.
AI_THINK_DELAY: float = load_settings().ai_delay


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    mode: GameMode = GameMode.COMPUTER
    difficulty: Difficulty = Field(
        default=Difficulty.MEDIUM,
        description="Policy the computer uses in computer mode",
    )


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class RematchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clear_scores: bool = Field(default=False, alias="clearScores")


class BoardRequest(BaseModel):
    """A raw board: nine cells of "X", "O" or "" (empty)."""

    board: List[Optional[str]]


class EngineMoveRequest(BoardRequest):
    difficulty: Difficulty = Difficulty.INSANE
    player: Literal["X", "O"] = "O"
    seed: Optional[int] = None


def _create_session(mode: GameMode, difficulty: Difficulty) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    ai = (
        ComputerPlayer(player=Mark.O, difficulty=difficulty)
        if mode is GameMode.COMPUTER
        else None
    )
    session = GameSession(game=TicTacToeGame(), mode=mode, ai=ai)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created %s game %s (difficulty %s)", mode.value, session_id, difficulty.value
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _record_if_finished(session: GameSession) -> None:
    game = session.game
    if game.finished:
        session.scores.record(game)
        logger.info(
            "Round %d over: %s",
            session.round,
            f"{game.winner.value} wins" if game.winner else "tie",
        )


def _run_ai_turn(game_id: str, round_no: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_THINK_DELAY))

    with session.lock:
        try:
            if not session.ai or session.round != round_no:
                return
            game = session.game
            if game.finished or game.current_player != session.ai.player:
                return
            cell_index = session.ai.choose(game)
            game.play_move(cell_index)
            logger.info("AI played cell %d in game %s", cell_index, game_id)
            _record_if_finished(session)
        except Exception:
            logger.exception("AI turn failed in game %s", game_id)
            raise
        finally:
            if session.round == round_no:
                session.ai_pending = False


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode.value,
            "difficulty": session.ai.difficulty.value if session.ai else None,
            "round": session.round,
            "board": [c.value for c in game.board],
            "currentPlayer": game.current_player.value,
            "winner": game.winner.value if game.winner else None,
            "drawn": game.drawn,
            "availableMoves": game.available_moves(),
            "moveLog": list(game.move_log),
            "aiPending": session.ai_pending,
            "scores": session.scores.as_dict(),
        }
        if game.move_log:
            state["lastMove"] = game.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        game = session.game
        if game.finished:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if session.ai and game.current_player == session.ai.player:
            raise HTTPException(
                status_code=400, detail="Move is not allowed on this turn"
            )

        try:
            game.play_move(cell_index)
        except IllegalMove as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        _record_if_finished(session)

        should_schedule_ai = (
            session.ai is not None
            and not game.finished
            and game.current_player == session.ai.player
        )
        if should_schedule_ai:
            session.ai_pending = True
        round_no = session.round

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id, round_no)


@app.get("/api/difficulties")
def list_difficulties() -> List[Dict[str, str]]:
    return stats_payload()


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.mode, request.difficulty)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/rematch")
def rematch(game_id: str, request: RematchRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.game.reset()
        session.round += 1
        session.ai_pending = False
        if request.clear_scores:
            session.scores.clear()
    return _serialize_session(game_id, session)


@app.post("/api/engine/evaluate")
def engine_evaluate(request: BoardRequest) -> Dict[str, object]:
    try:
        board = coerce_board(request.board)
    except TicTacToeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    winner = evaluate_winner(board)
    full = is_full(board)
    return {
        "winner": winner.value if winner else None,
        "full": full,
        "terminal": winner is not None or full,
    }


@app.post("/api/engine/move")
def engine_move(request: EngineMoveRequest) -> Dict[str, object]:
    try:
        board = coerce_board(request.board)
    except TicTacToeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    rng = random.Random(request.seed) if request.seed is not None else None
    move = select_move(board, request.difficulty, rng, Mark(request.player))
    return {"move": move, "difficulty": request.difficulty.value}


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic-Tac-Toe</title>
    <style>
      :root {
        --earth: #e9dcc9;
        --dark-blue: #1f2a44;
        --brick-red: #c2410c;
        --sky-blue: #0284c7;
      }
      body {
        margin: 0;
        min-height: 100vh;
        font-family: system-ui, sans-serif;
        background: var(--earth);
        display: flex;
        align-items: center;
        justify-content: center;
      }
      .panel {
        width: 360px;
        padding: 24px;
        border-radius: 24px;
        background: var(--dark-blue);
        color: #f1f5f9;
        box-shadow: 0 10px 30px rgba(0, 0, 0, 0.25);
      }
      .scores, .controls, .modes {
        display: flex;
        gap: 8px;
        justify-content: space-between;
      }
      .score {
        flex: 1;
        text-align: center;
        padding: 8px;
        border-radius: 12px;
        background: rgba(233, 220, 201, 0.08);
      }
      .score strong { display: block; font-size: 1.5rem; }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 12px;
        margin: 20px 0;
      }
      .cell {
        aspect-ratio: 1;
        border: none;
        border-radius: 12px;
        background: var(--earth);
        font-size: 2.5rem;
        font-weight: 800;
        cursor: pointer;
      }
      .cell.X { color: var(--brick-red); }
      .cell.O { color: var(--sky-blue); }
      .status { text-align: center; margin-bottom: 16px; font-weight: 700; }
      button.toggle, button.action, select {
        flex: 1;
        padding: 8px;
        border: none;
        border-radius: 12px;
        font-weight: 600;
      }
      button.toggle.active { background: var(--earth); }
      .controls { margin-top: 12px; }
      .hint { font-size: 0.8rem; opacity: 0.7; margin-top: 8px; text-align: center; }
    </style>
  </head>
  <body>
    <div class=\"panel\">
      <div class=\"scores\">
        <div class=\"score\">X<strong id=\"score-x\">0</strong></div>
        <div class=\"score\">Ties<strong id=\"score-ties\">0</strong></div>
        <div class=\"score\">O<strong id=\"score-o\">0</strong></div>
      </div>
      <div class=\"board\" id=\"board\"></div>
      <div class=\"status\" id=\"status\">Loading…</div>
      <div class=\"modes\">
        <button class=\"toggle\" data-mode=\"friend\">Friend</button>
        <button class=\"toggle\" data-mode=\"computer\">Computer</button>
      </div>
      <div class=\"controls\">
        <select id=\"difficulty\"></select>
      </div>
      <div class=\"hint\" id=\"difficulty-hint\"></div>
      <div class=\"controls\">
        <button class=\"action\" id=\"rematch\">Rematch</button>
        <button class=\"action\" id=\"reset-scores\">Reset scores</button>
      </div>
    </div>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const difficultyEl = document.getElementById('difficulty');
      const hintEl = document.getElementById('difficulty-hint');
      let mode = 'computer';
      let gameId = null;
      let state = null;
      let difficulties = [];
      let pollTimer = null;

      for (let i = 0; i < 9; i += 1) {
        const cell = document.createElement('button');
        cell.className = 'cell';
        cell.setAttribute('aria-label', `cell-${i}`);
        cell.addEventListener('click', () => play(i));
        boardEl.appendChild(cell);
      }

      async function api(path, body) {
        const options = body === undefined
          ? {}
          : { method: 'POST', headers: { 'Content-Type': 'application/json' }, body: JSON.stringify(body) };
        const response = await fetch(path, options);
        const payload = await response.json();
        if (!response.ok) {
          throw new Error(payload.detail || 'Request failed');
        }
        return payload;
      }

      function render() {
        if (!state) return;
        state.board.forEach((value, i) => {
          const cell = boardEl.children[i];
          cell.textContent = value;
          cell.className = `cell ${value}`;
        });
        document.getElementById('score-x').textContent = state.scores.X;
        document.getElementById('score-o').textContent = state.scores.O;
        document.getElementById('score-ties').textContent = state.scores.ties;
        if (state.winner) {
          statusEl.textContent = `Winner: ${state.winner}`;
        } else if (state.drawn) {
          statusEl.textContent = "It's a tie!";
        } else if (state.aiPending) {
          statusEl.textContent = 'Computer is thinking…';
        } else {
          statusEl.textContent = `Next move: ${state.currentPlayer}`;
        }
        document.querySelectorAll('button.toggle').forEach((btn) => {
          btn.classList.toggle('active', btn.dataset.mode === mode);
        });
        difficultyEl.disabled = mode !== 'computer';
        const stats = difficulties.find((d) => d.id === difficultyEl.value);
        hintEl.textContent = stats ? `${stats.icon} ${stats.description} (win rate ${stats.winRate})` : '';
      }

      function schedulePoll() {
        clearTimeout(pollTimer);
        if (state && state.aiPending) {
          pollTimer = setTimeout(async () => {
            state = await api(`/api/game/${gameId}`);
            render();
            schedulePoll();
          }, 250);
        }
      }

      async function newGame() {
        state = await api('/api/game', { mode, difficulty: difficultyEl.value });
        gameId = state.id;
        render();
      }

      async function play(index) {
        if (!state || state.winner || state.drawn || state.aiPending) return;
        try {
          state = await api(`/api/game/${gameId}/move`, { cellIndex: index });
        } catch (err) {
          statusEl.textContent = err.message;
          return;
        }
        render();
        schedulePoll();
      }

      async function rematch(clearScores) {
        state = await api(`/api/game/${gameId}/rematch`, { clearScores });
        render();
      }

      document.querySelectorAll('button.toggle').forEach((btn) => {
        btn.addEventListener('click', () => {
          mode = btn.dataset.mode;
          newGame();
        });
      });
      difficultyEl.addEventListener('change', newGame);
      document.getElementById('rematch').addEventListener('click', () => rematch(false));
      document.getElementById('reset-scores').addEventListener('click', () => rematch(true));

      (async () => {
        difficulties = await api('/api/difficulties');
        difficulties.forEach((d) => {
          const option = document.createElement('option');
          option.value = d.id;
          option.textContent = `${d.icon} ${d.name}`;
          difficultyEl.appendChild(option);
        });
        difficultyEl.value = 'medium';
        await newGame();
      })();
    </script>
  </body>
</html>
"""
