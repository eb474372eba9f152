"""Countdown timer owned by an attempt session.

The timer is an explicit resource: ``start()`` spawns the ticking task,
``stop()`` ends it, and a stopped timer's remaining time never changes
again until it is started.  ``tick()`` performs a single decrement and
is public so tests can drive the countdown without sleeping.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CountdownTimer:
    def __init__(
        self,
        total_seconds: int | None,
        on_expire: Callable[[], None],
        *,
        interval: float = 1.0,
    ) -> None:
        self._remaining = total_seconds
        self._on_expire = on_expire
        self._interval = interval
        self._running = False
        self._expired = False
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_minutes(
        cls,
        time_limit: int | None,
        on_expire: Callable[[], None],
        *,
        interval: float = 1.0,
    ) -> CountdownTimer:
        total = time_limit * 60 if time_limit else None
        return cls(total, on_expire, interval=interval)

    @property
    def remaining(self) -> int | None:
        return self._remaining

    @property
    def is_inert(self) -> bool:
        """No time limit: no countdown and no expiry."""
        return self._remaining is None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def expired(self) -> bool:
        return self._expired

    def tick(self) -> None:
        if not self._running or self._remaining is None or self._remaining <= 0:
            return
        self._remaining -= 1
        if self._remaining == 0 and not self._expired:
            self._expired = True
            self._running = False
            logger.info("Countdown reached zero")
            self._on_expire()

    def start(self) -> None:
        if self.is_inert or self._expired or self._running:
            return
        self._running = True
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            # stop() may have landed while we slept.
            if not self._running:
                break
            self.tick()

    def stop(self) -> None:
        self._running = False
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    def format_remaining(self) -> str:
        """Render remaining time as ``m:ss``; empty when there is no limit."""
        if self._remaining is None:
            return ""
        minutes, seconds = divmod(self._remaining, 60)
        return f"{minutes}:{seconds:02d}"
