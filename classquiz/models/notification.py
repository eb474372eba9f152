from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from uuid import uuid4

from classquiz.models.quiz import utcnow


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    user_id: str
    type: str  # quiz_assigned|student_enrolled
    message: str
    link: str | None = None
    is_read: bool = False
    created_at: datetime.datetime = field(default_factory=utcnow)

    @staticmethod
    def new(
        *, user_id: str, type: str, message: str, link: str | None = None
    ) -> Notification:
        return Notification(
            id=str(uuid4()), user_id=user_id, type=type, message=message, link=link
        )
