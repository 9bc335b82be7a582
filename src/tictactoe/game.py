"""Core rules for classic 3x3 tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

WinningLine = Tuple[int, int, int]

WINNING_LINES: Tuple[WinningLine, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Player(str, Enum):
    X = "X"
    O = "O"

    def opponent(self) -> "Player":
        return Player.O if self is Player.X else Player.X


# None is an empty cell
Cell = Optional[Player]


class GameMode(str, Enum):
    HUMAN_VS_HUMAN = "human"
    HUMAN_VS_COMPUTER = "computer"


class OutcomeKind(str, Enum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


@dataclass(frozen=True)
class RoundOutcome:
    kind: OutcomeKind
    winner: Optional[Player] = None
    line: Optional[WinningLine] = None

    @property
    def finished(self) -> bool:
        return self.kind is not OutcomeKind.IN_PROGRESS


IN_PROGRESS = RoundOutcome(OutcomeKind.IN_PROGRESS)
DRAW = RoundOutcome(OutcomeKind.DRAW)


@dataclass
class Scoreboard:
    x_wins: int = 0
    o_wins: int = 0
    draws: int = 0

    def record(self, outcome: RoundOutcome) -> None:
        if outcome.kind is OutcomeKind.DRAW:
            self.draws += 1
        elif outcome.winner is Player.X:
            self.x_wins += 1
        elif outcome.winner is Player.O:
            self.o_wins += 1

    def snapshot(self) -> "Scoreboard":
        return Scoreboard(self.x_wins, self.o_wins, self.draws)

    def as_dict(self) -> Dict[str, int]:
        return {"x": self.x_wins, "o": self.o_wins, "draw": self.draws}


def evaluate_board(cells: List[Cell]) -> RoundOutcome:
    """Classify a board; the first completed line in ``WINNING_LINES`` wins."""
    for line in WINNING_LINES:
        a, b, c = line
        v = cells[a]
        if v is not None and v == cells[b] == cells[c]:
            return RoundOutcome(OutcomeKind.WIN, winner=v, line=line)
    if all(c is not None for c in cells):
        return DRAW
    return IN_PROGRESS


def parse_board(text: str) -> List[Cell]:
    """Build a board from 9 characters: 'X', 'O', and anything else for empty."""
    if len(text) != 9:
        raise ValueError("A board needs exactly 9 cells")
    return [Player(ch) if ch in ("X", "O") else None for ch in text]


def turn_status(player: Player) -> str:
    return f"Player {player.value}'s turn"


def win_status(player: Player) -> str:
    return f"Player {player.value} wins!"


DRAW_STATUS = "Game ended in a draw!"
