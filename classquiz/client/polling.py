"""Explicit polling tasks with scoped lifetimes.

A poll is an owned asyncio task started by ``start()`` and cancelled by
``stop()``; used as an async context manager it lives exactly as long
as the ``async with`` block.  A failed fetch or a failing result handler is
logged and the next round still happens.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, Protocol, TypeVar

from classquiz.client.api_client import QuizApiClient
from classquiz.client.errors import ApiError
from classquiz.core.config import SETTINGS
from classquiz.schemas import NotificationPage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollingTask(Generic[T]):
    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        interval: float,
        on_result: Callable[[T], None],
        *,
        name: str = "poll",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._fetch = fetch
        self._interval = interval
        self._on_result = on_result
        self._name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=self._name
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            try:
                result = await self._fetch()
            except ApiError as e:
                logger.warning("%s: fetch failed (%s)", self._name, e.message)
            else:
                try:
                    self._on_result(result)
                except Exception:
                    logger.exception("%s: result handler failed", self._name)
            await asyncio.sleep(self._interval)

    async def __aenter__(self) -> PollingTask[T]:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()


class Toaster(Protocol):
    def toast(self, level: str, message: str) -> None: ...


class NotificationPoller:
    """Polls the notification feed and toasts each unread item once."""

    def __init__(
        self,
        api: QuizApiClient,
        ui: Toaster,
        *,
        interval: float | None = None,
        limit: int = 50,
    ) -> None:
        self._api = api
        self._ui = ui
        self._limit = limit
        self._seen: set[str] = set()
        self.unread_count = 0
        self._task: PollingTask[NotificationPage] = PollingTask(
            self._fetch,
            SETTINGS.notification_poll_interval if interval is None else interval,
            self.handle_page,
            name="notifications",
        )

    async def _fetch(self) -> NotificationPage:
        return await self._api.list_notifications(limit=self._limit)

    def handle_page(self, page: NotificationPage) -> None:
        self.unread_count = page.unread_count
        # Feed is newest first; toast oldest first.
        for notification in reversed(page.notifications):
            if notification.id in self._seen:
                continue
            self._seen.add(notification.id)
            if not notification.is_read:
                self._ui.toast("info", notification.message)

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    async def __aenter__(self) -> NotificationPoller:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
