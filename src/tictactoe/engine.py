"""Round, turn and score state machine driving a tic-tac-toe session."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from .ai import SimpleAI
from .game import (
    DRAW_STATUS,
    Cell,
    GameMode,
    Player,
    RoundOutcome,
    Scoreboard,
    WinningLine,
    evaluate_board,
    turn_status,
    win_status,
)
from .observer import GameObserver
from .scheduler import ScheduledCall, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

COMPUTER_MOVE_DELAY = 0.5


@dataclass
class GameEngine:
    """Board, turn, mode and score state for one game session.

    Every operation runs to completion on the calling thread. The only
    deferred work is the computer's reply in computer mode, which is handed
    to ``scheduler`` and tagged with the round ``generation`` so a reset
    before it fires makes it a no-op. The engine serializes its entry points
    on an internal ``RLock``; the default ``ThreadingScheduler`` runs the
    reply under the same lock.
    """

    observer: Optional[GameObserver] = None
    mode: GameMode = GameMode.HUMAN_VS_HUMAN
    ai: SimpleAI = field(default_factory=SimpleAI)
    scheduler: Optional[Scheduler] = None
    computer_delay: float = COMPUTER_MOVE_DELAY

    board: List[Cell] = field(default_factory=lambda: [None] * 9, init=False)
    current_player: Player = field(default=Player.X, init=False)
    game_active: bool = field(default=True, init=False)
    scoreboard: Scoreboard = field(default_factory=Scoreboard, init=False)
    computer_player: Player = field(default=Player.O, init=False)
    winning_line: Optional[WinningLine] = field(default=None, init=False)
    status: str = field(default=turn_status(Player.X), init=False)
    generation: int = field(default=0, init=False)

    _pending: Optional[ScheduledCall] = field(default=None, init=False, repr=False)
    _lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.scheduler is None:
            self.scheduler = ThreadingScheduler(lock=self._lock)

    def attach(self, observer: Optional[GameObserver]) -> None:
        self.observer = observer

    # ---- queries ----

    @property
    def is_computer_turn(self) -> bool:
        return (
            self.mode is GameMode.HUMAN_VS_COMPUTER
            and self.game_active
            and self.current_player is self.computer_player
        )

    @property
    def computer_pending(self) -> bool:
        pending = self._pending
        return pending is not None and not (pending.cancelled or pending.done)

    def empty_cells(self) -> List[int]:
        return [i for i, c in enumerate(self.board) if c is None]

    # ---- entry points ----

    def request_move(self, index: int, player: Optional[Player] = None) -> bool:
        """Place the current player's mark; ``False`` when the move is illegal."""
        with self._lock:
            if not self.game_active:
                return False
            if not 0 <= index < 9 or self.board[index] is not None:
                return False
            if player is not None and player is not self.current_player:
                return False

            mover = self.current_player
            self.board[index] = mover
            logger.debug("Player %s took cell %d", mover.value, index)
            self._notify("cell_changed", index, mover)

            if self.evaluate_terminal().finished:
                return True

            self.current_player = mover.opponent()
            self._set_status(turn_status(self.current_player))
            if self.is_computer_turn:
                self._schedule_computer_move()
            return True

    def evaluate_terminal(self) -> RoundOutcome:
        """Evaluate the board and, once per round, settle a win or draw."""
        with self._lock:
            outcome = evaluate_board(self.board)
            if not outcome.finished or not self.game_active:
                return outcome

            self.game_active = False
            self.scoreboard.record(outcome)
            self._notify("score_changed", self.scoreboard.snapshot())
            self._notify("round_ended", outcome)
            if outcome.winner is not None:
                self.winning_line = outcome.line
                logger.info(
                    "Player %s wins on line %s", outcome.winner.value, outcome.line
                )
                self._set_status(win_status(outcome.winner))
            else:
                logger.info("Round ended in a draw")
                self._set_status(DRAW_STATUS)
            return outcome

    def compute_computer_move(self) -> Optional[int]:
        with self._lock:
            return self.ai.choose(list(self.board), self.computer_player)

    def play_computer_move(self) -> Optional[int]:
        """Let the computer take its turn now; returns the cell it played."""
        with self._lock:
            return self._play_computer_move(self.generation)

    def set_mode(self, mode: GameMode) -> None:
        mode = GameMode(mode)
        with self._lock:
            computer_to_move = (
                mode is GameMode.HUMAN_VS_COMPUTER
                and self.game_active
                and self.current_player is Player.O
            )
            logger.info("Switching to %s mode", mode.value)
            self.mode = mode
            # The computer opens the new round when the switch happens on O's turn.
            self.computer_player = Player.X if computer_to_move else Player.O
            self._reset(keep_scores=True, schedule_opening=False)
            if computer_to_move:
                self._play_computer_move(self.generation)

    def reset_round(self, keep_scores: bool = True) -> None:
        with self._lock:
            self._reset(keep_scores=keep_scores, schedule_opening=True)

    # ---- helpers ----

    def _play_computer_move(self, generation: int) -> Optional[int]:
        if generation != self.generation or not self.is_computer_turn:
            return None
        self._cancel_pending()
        move = self.compute_computer_move()
        # The board must still be the one the move was chosen for.
        if move is None or generation != self.generation:
            return None
        self.request_move(move, self.computer_player)
        return move

    def _reset(self, keep_scores: bool, schedule_opening: bool) -> None:
        self._cancel_pending()
        self.generation += 1

        cleared = [i for i, c in enumerate(self.board) if c is not None]
        self.board = [None] * 9
        self.current_player = Player.X
        self.game_active = True
        self.winning_line = None
        for index in cleared:
            self._notify("cell_changed", index, None)
        self._set_status(turn_status(self.current_player))

        if not keep_scores:
            self.scoreboard = Scoreboard()
            self._notify("score_changed", self.scoreboard.snapshot())

        if schedule_opening and self.is_computer_turn:
            self._schedule_computer_move()

    def _schedule_computer_move(self) -> None:
        self._cancel_pending()
        generation = self.generation
        self._pending = self.scheduler.schedule(
            self.computer_delay, lambda: self._run_scheduled_move(generation)
        )

    def _run_scheduled_move(self, generation: int) -> None:
        with self._lock:
            if generation != self.generation:
                logger.debug(
                    "Dropping computer move scheduled for round %d", generation
                )
                return
            self._pending = None
            self._play_computer_move(generation)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _set_status(self, text: str) -> None:
        self.status = text
        self._notify("status_changed", text)

    def _notify(self, event: str, *args: object) -> None:
        if self.observer is not None:
            getattr(self.observer, event)(*args)
