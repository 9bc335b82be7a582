"""Tic-tac-toe package exposing the game engine, AI helper, and the web application."""

from .ai import SimpleAI
from .engine import GameEngine
from .game import GameMode, Player, RoundOutcome, Scoreboard
from .observer import GameObserver
from .ui import app

__all__ = [
    "GameEngine",
    "GameMode",
    "GameObserver",
    "Player",
    "RoundOutcome",
    "Scoreboard",
    "SimpleAI",
    "app",
]
