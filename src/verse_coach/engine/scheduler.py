"""Keyed timer abstraction used for debouncing.

``AsyncioScheduler`` runs on the event loop. ``ManualScheduler`` keeps a
virtual clock that callers advance explicitly, so debounce behaviour can be
driven deterministically.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

Action = Callable[[], None]


class Scheduler(Protocol):
    def schedule(self, key: str, delay_ms: int, action: Action) -> None:
        """Run ``action`` after ``delay_ms``, replacing any timer pending under ``key``."""

    def cancel(self, key: str) -> bool:
        """Drop the timer pending under ``key``. Returns whether one existed."""

    def pending(self, key: str) -> bool: ...


class AsyncioScheduler:
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._handles: dict[str, asyncio.TimerHandle] = {}

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, key: str, delay_ms: int, action: Action) -> None:
        self.cancel(key)
        self._handles[key] = self._get_loop().call_later(
            max(delay_ms, 0) / 1000, self._fire, key, action
        )

    def _fire(self, key: str, action: Action) -> None:
        self._handles.pop(key, None)
        action()

    def cancel(self, key: str) -> bool:
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def pending(self, key: str) -> bool:
        return key in self._handles


class ManualScheduler:
    """Virtual-time scheduler; nothing fires until :meth:`advance` is called."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._seq = itertools.count()
        self._timers: dict[str, tuple[int, int, Action]] = {}

    def schedule(self, key: str, delay_ms: int, action: Action) -> None:
        self._timers[key] = (self.now_ms + max(delay_ms, 0), next(self._seq), action)

    def cancel(self, key: str) -> bool:
        return self._timers.pop(key, None) is not None

    def pending(self, key: str) -> bool:
        return key in self._timers

    def advance(self, ms: int) -> int:
        """Move the clock forward, firing due timers in order. Returns how many fired."""
        target = self.now_ms + ms
        fired = 0
        while True:
            due = [
                (when, seq, key) for key, (when, seq, _) in self._timers.items()
                if when <= target
            ]
            if not due:
                break
            when, _, key = min(due)
            _, _, action = self._timers.pop(key)
            self.now_ms = when
            action()
            fired += 1
        self.now_ms = target
        return fired
