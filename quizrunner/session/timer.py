"""Cancellable once-per-second tick scheduling for session countdowns."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass
class TimerState:
    limit_seconds: int
    remaining_seconds: int

    @property
    def elapsed_seconds(self) -> int:
        return self.limit_seconds - self.remaining_seconds

    @property
    def expired(self) -> bool:
        return self.remaining_seconds <= 0

    def display(self) -> str:
        return format_seconds(self.remaining_seconds)


def format_seconds(seconds: int) -> str:
    """Format a duration as ``m:ss``."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


class TickHandle:
    """Handle to a scheduled repeating tick. ``cancel`` is idempotent."""

    def __init__(self, scheduler: "TickScheduler", callback: Callable[[], object], interval: int):
        self._scheduler = scheduler
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._scheduler._discard(self)


class TickScheduler:
    """Interface for whatever drives session ticks."""

    def schedule(self, callback: Callable[[], object], interval: int = 1) -> TickHandle:
        raise NotImplementedError

    def _discard(self, handle: TickHandle) -> None:
        pass


class ManualScheduler(TickScheduler):
    """Scheduler driven explicitly by ``advance``.

    Tests advance it directly; interactive front ends advance it by the
    wall-clock seconds elapsed between user events.
    """

    def __init__(self) -> None:
        self._handles: List[TickHandle] = []
        self._elapsed: dict = {}

    def schedule(self, callback: Callable[[], object], interval: int = 1) -> TickHandle:
        if interval < 1:
            raise ValueError(f"Tick interval must be at least 1 second, got {interval}")
        handle = TickHandle(self, callback, interval)
        self._handles.append(handle)
        self._elapsed[id(handle)] = 0
        return handle

    def _discard(self, handle: TickHandle) -> None:
        if handle in self._handles:
            self._handles.remove(handle)
            self._elapsed.pop(id(handle), None)

    @property
    def active_count(self) -> int:
        return len(self._handles)

    def advance(self, seconds: int = 1) -> None:
        """Let ``seconds`` whole seconds pass, firing due callbacks in order."""
        for _ in range(max(0, int(seconds))):
            for handle in list(self._handles):
                if handle.cancelled:
                    continue
                self._elapsed[id(handle)] += 1
                if self._elapsed[id(handle)] >= handle.interval:
                    self._elapsed[id(handle)] = 0
                    handle.callback()
