"""Notification interface between the engine and whatever renders it."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from .game import Player, RoundOutcome, Scoreboard


class GameObserver:
    """Receives engine events synchronously. Override what you need."""

    def cell_changed(self, index: int, value: Optional["Player"]) -> None:
        pass

    def status_changed(self, text: str) -> None:
        pass

    def score_changed(self, scoreboard: "Scoreboard") -> None:
        pass

    def round_ended(self, outcome: "RoundOutcome") -> None:
        pass


class EventRecorder(GameObserver):
    """Keeps every event as ``(name, payload)`` in arrival order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, object]] = []

    def cell_changed(self, index: int, value: Optional["Player"]) -> None:
        self.events.append(("cell", (index, value)))

    def status_changed(self, text: str) -> None:
        self.events.append(("status", text))

    def score_changed(self, scoreboard: "Scoreboard") -> None:
        self.events.append(("score", scoreboard))

    def round_ended(self, outcome: "RoundOutcome") -> None:
        self.events.append(("round", outcome))

    def named(self, name: str) -> List[object]:
        return [payload for event, payload in self.events if event == name]

    def clear(self) -> None:
        self.events.clear()
