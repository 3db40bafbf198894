"""Tests for the FastAPI tic-tac-toe interface."""

from __future__ import annotations

import logging
import time

import pytest
from fastapi.testclient import TestClient

from tictac import ui
from tictac.ai import Difficulty
from tictac.game import Mark
from tictac.ui import GameMode, app


client = TestClient(app)
ui.AI_THINK_DELAY = 0.0


def _new_game(**payload):
    response = client.post("/api/game", json=payload)
    assert response.status_code == 200
    return response.json()


def _move(game_id, index):
    return client.post(f"/api/game/{game_id}/move", json={"cellIndex": index})


def test_create_game_defaults_to_computer_mode():
    state = _new_game()
    assert state["mode"] == "computer"
    assert state["difficulty"] == "medium"
    assert state["board"] == [""] * 9
    assert state["currentPlayer"] == "X"
    assert state["moveLog"] == []
    assert state["scores"] == {"X": 0, "O": 0, "ties": 0}


def test_computer_answers_player_move():
    game_id = _new_game(mode="computer", difficulty="insane")["id"]

    response = _move(game_id, 0)
    assert response.status_code == 200
    state = response.json()
    assert state["board"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    time.sleep(0.01)
    final_state = client.get(f"/api/game/{game_id}").json()
    assert final_state["currentPlayer"] == "X"
    assert final_state["aiPending"] is False
    assert final_state["moveLog"][-1]["player"] == "O"
    # Insane answers a corner opening with the center.
    assert final_state["lastMove"]["cellIndex"] == 4


def test_friend_mode_round_and_rematch():
    state = _new_game(mode="friend")
    game_id = state["id"]
    assert state["difficulty"] is None

    for index in (0, 3, 1, 4):
        response = _move(game_id, index)
        assert response.status_code == 200
        assert response.json()["aiPending"] is False
    state = _move(game_id, 2).json()
    assert state["winner"] == "X"
    assert state["scores"] == {"X": 1, "O": 0, "ties": 0}

    finished = _move(game_id, 8)
    assert finished.status_code == 400
    assert finished.json()["detail"] == "Game already finished"

    rematch = client.post(f"/api/game/{game_id}/rematch", json={})
    assert rematch.status_code == 200
    state = rematch.json()
    assert state["board"] == [""] * 9
    assert state["round"] == 2
    assert state["scores"]["X"] == 1

    cleared = client.post(
        f"/api/game/{game_id}/rematch", json={"clearScores": True}
    ).json()
    assert cleared["scores"] == {"X": 0, "O": 0, "ties": 0}


def test_invalid_move_rejected():
    game_id = _new_game(mode="friend")["id"]
    assert _move(game_id, 0).status_code == 200

    duplicate_move = _move(game_id, 0)
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]

    off_board = _move(game_id, 9)
    assert off_board.status_code == 422


def test_rejects_unknown_difficulty():
    response = client.post("/api/game", json={"difficulty": "impossible"})
    assert response.status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/nope").status_code == 404
    assert _move("nope", 0).status_code == 404


def test_list_difficulties():
    response = client.get("/api/difficulties")
    assert response.status_code == 200
    tiers = response.json()
    assert [tier["id"] for tier in tiers] == ["easy", "medium", "hard", "insane"]
    assert tiers[-1]["winRate"] == "~0%"


def test_engine_move_blocks():
    response = client.post(
        "/api/engine/move",
        json={
            "board": ["X", "X", "", "", "O", "", "", "", ""],
            "difficulty": "insane",
        },
    )
    assert response.status_code == 200
    assert response.json() == {"move": 2, "difficulty": "insane"}


def test_engine_move_is_reproducible_with_seed():
    payload = {"board": ["X"] + [""] * 8, "difficulty": "easy", "seed": 11}
    first = client.post("/api/engine/move", json=payload).json()
    second = client.post("/api/engine/move", json=payload).json()
    assert first == second


def test_engine_move_full_board_and_bad_shape():
    full = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]
    response = client.post("/api/engine/move", json={"board": full})
    assert response.json()["move"] == -1

    short = client.post("/api/engine/move", json={"board": ["X"] * 8})
    assert short.status_code == 400


def test_engine_evaluate():
    response = client.post(
        "/api/engine/evaluate",
        json={"board": ["O", "X", "X", "", "O", "X", "", "", "O"]},
    )
    assert response.json() == {"winner": "O", "full": False, "terminal": True}

    bad = client.post("/api/engine/evaluate", json={"board": ["Q"] * 9})
    assert bad.status_code == 400


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "<title>Tic-Tac-Toe</title>" in response.text


def test_ai_turn_is_logged(caplog):
    caplog.set_level(logging.INFO, logger="tictac.ui")
    game_id, session = ui._create_session(GameMode.COMPUTER, Difficulty.INSANE)
    session.game.play_move(0)
    session.ai_pending = True

    ui._run_ai_turn(game_id, session.round)

    assert session.game.board[4] is Mark.O
    assert session.ai_pending is False
    assert any(
        r.levelno == logging.INFO and "AI played cell 4" in r.getMessage()
        for r in caplog.records
    )


def test_ai_turn_failure_is_logged(caplog, monkeypatch):
    game_id, session = ui._create_session(GameMode.COMPUTER, Difficulty.EASY)
    session.game.play_move(0)
    session.ai_pending = True

    def broken(game):
        raise RuntimeError("engine exploded")

    monkeypatch.setattr(session.ai, "choose", broken)
    with pytest.raises(RuntimeError):
        ui._run_ai_turn(game_id, session.round)

    assert session.ai_pending is False
    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert errors
    assert f"AI turn failed in game {game_id}" in errors[0].getMessage()
    assert errors[0].exc_info is not None
