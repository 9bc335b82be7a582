"""FastAPI-powered web UI for playing tic-tac-toe in the browser."""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from .engine import COMPUTER_MOVE_DELAY, GameEngine
from .game import GameMode, Player
from .observer import GameObserver
from .scheduler import DeferredScheduler, ScheduledCall

logger = logging.getLogger(__name__)

COMPUTER_DELAY: float = float(
    os.environ.get("TICTACTOE_COMPUTER_DELAY", str(COMPUTER_MOVE_DELAY))
)


class MoveLog(GameObserver):
    """Remembers placed marks so the page can show the move history."""

    def __init__(self) -> None:
        self.moves: List[Dict[str, object]] = []

    def cell_changed(self, index: int, value: Optional[Player]) -> None:
        if value is None:
            self.moves.clear()
        else:
            self.moves.append({"player": value.value, "cellIndex": index})


@dataclass
class GameSession:
    """Container for an active game, its event log, and deferred AI work."""

    engine: GameEngine
    log: MoveLog
    scheduler: DeferredScheduler
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    last_seen: float = field(default_factory=lambda: time.time())


SESSIONS: Dict[str, GameSession] = {}
SESSIONS_LOCK = threading.Lock()
SESSION_TTL_SECONDS = 60 * 60  # 1 hour
app = FastAPI(title="Tic-Tac-Toe", description="Tic-tac-toe played in the browser")


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    mode: GameMode = Field(
        default=GameMode.HUMAN_VS_HUMAN,
        description="'human' for two players on one screen, 'computer' to play the AI",
    )


class MoveRequest(BaseModel):
    """Request payload for claiming a cell."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class ModeRequest(BaseModel):
    mode: GameMode


class ResetRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    keep_scores: bool = Field(default=True, alias="keepScores")


def _create_session(mode: GameMode) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    log = MoveLog()
    scheduler = DeferredScheduler()
    engine = GameEngine(
        observer=log, scheduler=scheduler, computer_delay=COMPUTER_DELAY
    )
    session = GameSession(engine=engine, log=log, scheduler=scheduler)
    if mode is not GameMode.HUMAN_VS_HUMAN:
        engine.set_mode(mode)
    session_id = uuid.uuid4().hex
    with SESSIONS_LOCK:
        _cleanup_sessions()
        SESSIONS[session_id] = session
    logger.info("Created game %s in %s mode", session_id, mode.value)
    return session_id, session


def _cleanup_sessions() -> None:
    """Forget games nobody has touched for ``SESSION_TTL_SECONDS``."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if now - session.last_seen >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        session = SESSIONS.pop(game_id, None)
        if session is not None:
            # Drops any computer reply still waiting in a background task.
            with session.lock:
                session.engine.reset_round()
    if expired:
        logger.info("Expired %d idle game(s)", len(expired))


def _get_session(game_id: str) -> GameSession:
    with SESSIONS_LOCK:
        _cleanup_sessions()
        try:
            session = SESSIONS[game_id]
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Game not found") from exc
        session.last_seen = time.time()
        return session


def _run_scheduled(session: GameSession, call: ScheduledCall) -> None:
    time.sleep(max(0.0, call.delay))
    with session.lock:
        call.run()


def _dispatch_scheduled(
    session: GameSession, background_tasks: Optional[BackgroundTasks]
) -> None:
    # Runs with session.lock held; the calls themselves wait in the background.
    for call in session.scheduler.drain():
        if background_tasks is None:
            call.run()
        else:
            background_tasks.add_task(_run_scheduled, session, call)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        engine = session.engine
        state: Dict[str, object] = {
            "id": game_id,
            "board": [c.value if c is not None else "" for c in engine.board],
            "currentPlayer": engine.current_player.value,
            "mode": engine.mode.value,
            "computerPlayer": engine.computer_player.value,
            "gameActive": engine.game_active,
            "status": engine.status,
            "winningLine": list(engine.winning_line) if engine.winning_line else None,
            "scores": engine.scoreboard.as_dict(),
            "moveLog": list(session.log.moves),
            "computerPending": engine.computer_pending,
        }
        if session.log.moves:
            state["lastMove"] = session.log.moves[-1]
        return state


def _apply_player_move(
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        engine = session.engine
        if not engine.game_active:
            raise HTTPException(status_code=400, detail="Game already finished")
        if engine.is_computer_turn:
            raise HTTPException(
                status_code=400, detail="Computer is completing its move"
            )
        if not engine.request_move(cell_index):
            raise HTTPException(status_code=400, detail="Cell is already taken")
        _dispatch_scheduled(session, background_tasks)


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.mode)
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
    _apply_player_move(session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/mode")
def change_mode(
    game_id: str, request: ModeRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.engine.set_mode(request.mode)
        _dispatch_scheduled(session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(
    game_id: str, request: ResetRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.engine.reset_round(keep_scores=request.keep_scores)
        _dispatch_scheduled(session, background_tasks)
    return _serialize_session(game_id, session)


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
      body {
        font-family: system-ui, sans-serif;
        background: #1d2330;
        color: #eef1f6;
        display: flex;
        flex-direction: column;
        align-items: center;
        margin: 0;
        padding: 2rem 1rem;
      }
      .modes button, #reset, #new-round {
        background: #2f3a50;
        color: inherit;
        border: 1px solid #4a5878;
        border-radius: 6px;
        padding: 0.5rem 1rem;
        margin: 0 0.25rem;
        cursor: pointer;
      }
      .modes button.active {
        background: #4f7cff;
        border-color: #4f7cff;
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 96px);
        gap: 6px;
        margin: 1.5rem 0;
      }
      .cell {
        width: 96px;
        height: 96px;
        background: #27304a;
        border-radius: 8px;
        font-size: 3rem;
        font-weight: 700;
        display: flex;
        align-items: center;
        justify-content: center;
        cursor: pointer;
      }
      .cell.winning-cell {
        background: #3fa46a;
      }
      #status {
        font-size: 1.25rem;
        min-height: 1.5em;
      }
      .scores {
        display: flex;
        gap: 2rem;
        margin: 1rem 0;
      }
      .scores div {
        text-align: center;
      }
      .scores span {
        display: block;
        font-size: 1.5rem;
        font-weight: 700;
      }
    </style>
  </head>
  <body>
    <h1>Tic-Tac-Toe</h1>
    <div class=\"modes\">
      <button id=\"human-mode\" class=\"active\">Human vs Human</button>
      <button id=\"computer-mode\">Human vs Computer</button>
    </div>
    <div id=\"board\"></div>
    <div id=\"status\">Loading...</div>
    <div class=\"scores\">
      <div>Player X<span id=\"x-score\">0</span></div>
      <div>Draws<span id=\"draw-score\">0</span></div>
      <div>Player O<span id=\"o-score\">0</span></div>
    </div>
    <div>
      <button id=\"new-round\">New round</button>
      <button id=\"reset\">Reset scores</button>
    </div>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const humanModeBtn = document.getElementById('human-mode');
      const computerModeBtn = document.getElementById('computer-mode');
      const cells = [];
      let gameId = null;
      let pollTimer = null;

      for (let i = 0; i < 9; i++) {
        const cell = document.createElement('div');
        cell.className = 'cell';
        cell.dataset.index = i;
        cell.addEventListener('click', () => playCell(i));
        boardEl.appendChild(cell);
        cells.push(cell);
      }

      async function api(path, body) {
        const options = body === undefined
          ? {}
          : {method: 'POST', headers: {'Content-Type': 'application/json'}, body: JSON.stringify(body)};
        const response = await fetch(path, options);
        const payload = await response.json();
        if (!response.ok) {
          throw new Error(payload.detail || 'Request failed');
        }
        return payload;
      }

      function render(state) {
        state.board.forEach((value, index) => {
          cells[index].textContent = value;
          cells[index].classList.toggle(
            'winning-cell', !!state.winningLine && state.winningLine.includes(index)
          );
        });
        statusEl.textContent = state.status;
        document.getElementById('x-score').textContent = state.scores.x;
        document.getElementById('o-score').textContent = state.scores.o;
        document.getElementById('draw-score').textContent = state.scores.draw;
        humanModeBtn.classList.toggle('active', state.mode === 'human');
        computerModeBtn.classList.toggle('active', state.mode === 'computer');
        schedulePoll(state);
      }

      function schedulePoll(state) {
        clearTimeout(pollTimer);
        if (state.computerPending) {
          pollTimer = setTimeout(async () => render(await api(`/api/game/${gameId}`)), 250);
        }
      }

      async function playCell(index) {
        if (!gameId) return;
        try {
          render(await api(`/api/game/${gameId}/move`, {cellIndex: index}));
        } catch (err) {
          console.debug(err.message);
        }
      }

      async function setMode(mode) {
        render(await api(`/api/game/${gameId}/mode`, {mode}));
      }

      async function reset(keepScores) {
        render(await api(`/api/game/${gameId}/reset`, {keepScores}));
      }

      humanModeBtn.addEventListener('click', () => setMode('human'));
      computerModeBtn.addEventListener('click', () => setMode('computer'));
      document.getElementById('new-round').addEventListener('click', () => reset(true));
      document.getElementById('reset').addEventListener('click', () => reset(false));

      (async () => {
        const state = await api('/api/game', {mode: 'human'});
        gameId = state.id;
        render(state);
      })();
    </script>
  </body>
</html>
"""
