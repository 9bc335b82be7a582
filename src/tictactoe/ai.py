"""One-ply heuristic opponent: win if possible, otherwise block, otherwise random."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
import random

from .game import WINNING_LINES, Cell, Player


def find_winning_move(cells: List[Cell], player: Player) -> Optional[int]:
    """Return the empty cell completing a line ``player`` holds twice, if any.

    Lines are scanned in ``WINNING_LINES`` order and the first hit is used.
    """
    for line in WINNING_LINES:
        trio = [cells[i] for i in line]
        if trio.count(player) == 2 and trio.count(None) == 1:
            return line[trio.index(None)]
    return None


@dataclass
class SimpleAI:
    """Computer opponent that never looks further ahead than the next move.

    ``rng`` only decides the fallback random move; pass a seeded
    ``random.Random`` for reproducible games.
    """

    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(self, cells: List[Cell], player: Player) -> Optional[int]:
        move = find_winning_move(cells, player)
        if move is not None:
            return move
        move = find_winning_move(cells, player.opponent())
        if move is not None:
            return move
        available = [i for i, c in enumerate(cells) if c is None]
        if not available:
            return None
        return self.rng.choice(available)
