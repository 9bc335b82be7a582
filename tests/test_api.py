"""Tests for the FastAPI tic-tac-toe interface."""

from __future__ import annotations

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.game import GameMode, Player
from tictactoe.ui import app


client = TestClient(app)
ui.COMPUTER_DELAY = 0.0


def _new_game(mode: str = "human") -> dict:
    response = client.post("/api/game", json={"mode": mode})
    assert response.status_code == 200
    return response.json()


def _move(game_id: str, cell: int):
    return client.post(f"/api/game/{game_id}/move", json={"cellIndex": cell})


def test_create_game_and_first_move():
    payload = _new_game()
    assert payload["currentPlayer"] == "X"
    assert payload["board"] == [""] * 9
    assert payload["status"] == "Player X's turn"
    assert payload["scores"] == {"x": 0, "o": 0, "draw": 0}
    assert payload["moveLog"] == []

    move_response = _move(payload["id"], 0)
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["board"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["moveLog"] == [{"player": "X", "cellIndex": 0}]
    assert state["computerPending"] is False


def test_invalid_move_rejected():
    game_id = _new_game()["id"]
    assert _move(game_id, 4).status_code == 200

    duplicate_move = _move(game_id, 4)
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_out_of_range_cell_is_a_validation_error():
    game_id = _new_game()["id"]
    assert _move(game_id, 9).status_code == 422


def test_unknown_mode_is_a_validation_error():
    response = client.post("/api/game", json={"mode": "online"})
    assert response.status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/nope").status_code == 404


def test_win_updates_scores_and_locks_board():
    game_id = _new_game()["id"]
    for cell in (0, 3, 1, 4):
        assert _move(game_id, cell).status_code == 200
    state = _move(game_id, 2).json()

    assert state["gameActive"] is False
    assert state["status"] == "Player X wins!"
    assert state["winningLine"] == [0, 1, 2]
    assert state["scores"] == {"x": 1, "o": 0, "draw": 0}

    late = _move(game_id, 8)
    assert late.status_code == 400
    assert late.json()["detail"] == "Game already finished"


def test_reset_keeps_or_clears_scores():
    game_id = _new_game()["id"]
    for cell in (0, 3, 1, 4, 2):
        _move(game_id, cell)

    kept = client.post(f"/api/game/{game_id}/reset", json={"keepScores": True}).json()
    assert kept["board"] == [""] * 9
    assert kept["gameActive"] is True
    assert kept["winningLine"] is None
    assert kept["scores"]["x"] == 1
    assert kept["moveLog"] == []

    cleared = client.post(f"/api/game/{game_id}/reset", json={"keepScores": False}).json()
    assert cleared["scores"] == {"x": 0, "o": 0, "draw": 0}


def test_computer_replies_after_human_move():
    payload = _new_game("computer")
    assert payload["mode"] == "computer"
    assert payload["computerPlayer"] == "O"
    game_id = payload["id"]

    state = _move(game_id, 4).json()
    assert state["board"][4] == "X"
    assert state["currentPlayer"] == "O"
    assert state["computerPending"] is True

    follow_up = client.get(f"/api/game/{game_id}").json()
    assert follow_up["currentPlayer"] == "X"
    assert follow_up["computerPending"] is False
    assert follow_up["moveLog"][-1]["player"] == "O"
    assert follow_up["board"].count("O") == 1


def test_mode_switch_on_o_turn_lets_computer_open():
    game_id = _new_game()["id"]
    _move(game_id, 0)

    state = client.post(f"/api/game/{game_id}/mode", json={"mode": "computer"}).json()

    assert state["mode"] == "computer"
    assert state["computerPlayer"] == "X"
    assert state["currentPlayer"] == "O"
    assert state["board"].count("X") == 1
    assert state["board"].count("O") == 0
    assert len(state["moveLog"]) == 1


def test_move_on_computer_turn_is_rejected():
    _, session = ui._create_session(GameMode.HUMAN_VS_COMPUTER)
    assert session.engine.request_move(0)

    with pytest.raises(HTTPException) as excinfo:
        ui._apply_player_move(session, 1)

    assert excinfo.value.status_code == 400
    assert session.engine.board[1] is None


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "Tic-Tac-Toe" in response.text


def test_idle_games_expire():
    stale_id = _new_game()["id"]
    ui.SESSIONS[stale_id].last_seen -= ui.SESSION_TTL_SECONDS + 1
    fresh_id = _new_game()["id"]

    assert stale_id not in ui.SESSIONS
    assert client.get(f"/api/game/{stale_id}").status_code == 404
    assert client.get(f"/api/game/{fresh_id}").status_code == 200


def test_expiry_drops_waiting_computer_reply():
    stale_id, session = ui._create_session(GameMode.HUMAN_VS_COMPUTER)
    session.engine.request_move(4)
    (waiting,) = session.scheduler.drain()
    session.last_seen -= ui.SESSION_TTL_SECONDS + 1

    _new_game()

    assert stale_id not in ui.SESSIONS
    waiting.run()
    assert session.engine.board.count(Player.O) == 0
