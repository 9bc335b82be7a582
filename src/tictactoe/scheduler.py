"""Delayed callbacks used for the computer's reply."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol


@dataclass
class ScheduledCall:
    """A callback waiting ``delay`` seconds; ``cancel()`` stops it running."""

    delay: float
    callback: Callable[[], None] = field(repr=False)
    cancelled: bool = False
    done: bool = False
    _guard: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def cancel(self) -> None:
        with self._guard:
            self.cancelled = True

    def run(self) -> bool:
        # Claim the call first so a concurrent cancel() either wins or loses.
        with self._guard:
            if self.cancelled or self.done:
                return False
            self.done = True
        self.callback()
        return True


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        ...


class ThreadingScheduler:
    """Fires each call on a ``threading.Timer``.

    When ``lock`` is given it is held while the callback runs, so callers
    that guard the engine with the same lock never see a half-applied move.
    """

    def __init__(self, lock: Optional[threading.RLock] = None) -> None:
        self.lock = lock

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(delay=delay, callback=callback)
        timer = threading.Timer(max(0.0, delay), self._fire, args=(call,))
        timer.daemon = True
        timer.start()
        return call

    def _fire(self, call: ScheduledCall) -> None:
        if self.lock is None:
            call.run()
            return
        with self.lock:
            call.run()


class DeferredScheduler:
    """Queues calls for the owner to run later, e.g. as a background task."""

    def __init__(self) -> None:
        self.pending: List[ScheduledCall] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(delay=delay, callback=callback)
        self.pending.append(call)
        return call

    def drain(self) -> List[ScheduledCall]:
        """Hand over every live queued call and empty the queue."""
        calls = [c for c in self.pending if not c.cancelled]
        self.pending = []
        return calls

    def run_pending(self) -> int:
        """Run queued calls immediately, ignoring their delay."""
        ran = 0
        while self.pending:
            for call in self.drain():
                if call.run():
                    ran += 1
        return ran
