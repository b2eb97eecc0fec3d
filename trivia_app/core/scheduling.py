"""Deferred callbacks used for the countdown, reveal delay and hint glow.

Architecture note:
    Everything time-based in a quiz session goes through a ``Scheduler`` so
    the session never owns a thread directly. Production uses real timers;
    tests and tooling use ``ManualScheduler`` and move a virtual clock
    forward, which makes timeout and reveal behaviour deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import itertools
import logging
from threading import Lock, Timer
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Cancellable:
        ...


class _TimerHandle:
    def __init__(self, timer: Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler:
    """Runs each callback on a daemon ``threading.Timer``."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Cancellable:
        timer = Timer(max(0.0, delay_seconds), self._run, args=(callback,))
        timer.daemon = True
        timer.start()
        return _TimerHandle(timer)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:  # pragma: no cover - logged so timer threads never die silently
            logger.exception("Scheduled callback failed")


@dataclass(order=True, slots=True)
class _ManualEntry:
    due: float
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock; callbacks run only when ``advance`` moves time past them."""

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: list[_ManualEntry] = []
        self._sequence = itertools.count()
        self._lock = Lock()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> Cancellable:
        entry = _ManualEntry(self._now + max(0.0, delay_seconds), next(self._sequence), callback)
        with self._lock:
            heapq.heappush(self._queue, entry)
        return entry

    def pending(self) -> int:
        with self._lock:
            return sum(1 for entry in self._queue if not entry.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running every callback that falls due in order."""
        target = self._now + seconds
        while True:
            with self._lock:
                if not self._queue or self._queue[0].due > target:
                    break
                entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self._now = entry.due
            entry.callback()
        self._now = target

    def run_all(self, limit: int = 10_000) -> None:
        """Drain the queue, following callbacks that schedule further callbacks."""
        for _ in range(limit):
            with self._lock:
                live = [entry for entry in self._queue if not entry.cancelled]
                if not live:
                    return
                next_due = min(entry.due for entry in live)
            self.advance(next_due - self._now)
        raise RuntimeError("Scheduler did not settle; a callback keeps re-arming itself.")


class RepeatingTimer:
    """Fires ``callback`` every ``interval`` seconds until cancelled."""

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._handle: Cancellable | None = None
        self._cancelled = False

    def start(self) -> RepeatingTimer:
        self._arm()
        return self

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def is_cancelled(self) -> bool:
        return self._cancelled

    def _arm(self) -> None:
        if not self._cancelled:
            self._handle = self._scheduler.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._arm()
        self._callback()
