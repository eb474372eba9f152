from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from classquiz.models.notification import Notification


class NotificationRepo(Protocol):
    def add(self, notification: Notification) -> None: ...
    def list_for_user(
        self, user_id: str, *, limit: int = 50, offset: int = 0
    ) -> list[Notification]: ...
    def unread_count(self, user_id: str) -> int: ...
    def mark_read(self, user_id: str, notification_id: str) -> bool: ...
    def mark_all_read(self, user_id: str) -> int: ...
    def delete(self, user_id: str, notification_id: str) -> bool: ...

class InMemoryNotificationRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Notification] = {}

    def add(self, notification: Notification) -> None:
        self._by_id[notification.id] = notification

    def list_for_user(
        self, user_id: str, *, limit: int = 50, offset: int = 0
    ) -> list[Notification]:
        # Newest first; equal timestamps fall back to reverse insertion order.
        mine = [n for n in reversed(self._by_id.values()) if n.user_id == user_id]
        mine.sort(key=lambda n: n.created_at, reverse=True)
        return mine[offset : offset + limit]

    def unread_count(self, user_id: str) -> int:
        return sum(
            1 for n in self._by_id.values() if n.user_id == user_id and not n.is_read
        )

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        n = self._by_id.get(notification_id)
        if n is None or n.user_id != user_id:
            return False
        self._by_id[notification_id] = replace(n, is_read=True)
        return True

    def mark_all_read(self, user_id: str) -> int:
        updated = 0
        for nid, n in list(self._by_id.items()):
            if n.user_id == user_id and not n.is_read:
                self._by_id[nid] = replace(n, is_read=True)
                updated += 1
        return updated

    def delete(self, user_id: str, notification_id: str) -> bool:
        n = self._by_id.get(notification_id)
        if n is None or n.user_id != user_id:
            return False
        del self._by_id[notification_id]
        return True
