from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Literal
from uuid import uuid4

QuizStatus = Literal["Draft", "Upcoming", "Active", "Closed"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def derive_status(
    *,
    is_published: bool,
    start_time: datetime.datetime | None,
    end_time: datetime.datetime | None,
    now: datetime.datetime,
) -> QuizStatus:
    """Lifecycle status from the publication flag and the time window.

    Status is never stored: it changes with the clock, so it is computed
    on every read.
    """
    if not is_published:
        return "Draft"
    if start_time is not None and now < start_time:
        return "Upcoming"
    if end_time is not None and now > end_time:
        return "Closed"
    return "Active"


@dataclass(frozen=True, slots=True)
class Quiz:
    id: str
    title: str
    teacher_id: str
    description: str | None = None
    class_id: str | None = None
    time_limit: int | None = None  # minutes
    total_points: int = 0
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    is_published: bool = False
    created_at: datetime.datetime = field(default_factory=utcnow)

    @staticmethod
    def new(
        *,
        title: str,
        teacher_id: str,
        description: str | None = None,
        class_id: str | None = None,
        time_limit: int | None = None,
        start_time: datetime.datetime | None = None,
        end_time: datetime.datetime | None = None,
        is_published: bool = False,
    ) -> Quiz:
        return Quiz(
            id=str(uuid4()),
            title=title,
            teacher_id=teacher_id,
            description=description,
            class_id=class_id,
            time_limit=time_limit,
            start_time=start_time,
            end_time=end_time,
            is_published=is_published,
        )

    def status_at(self, now: datetime.datetime) -> QuizStatus:
        return derive_status(
            is_published=self.is_published,
            start_time=self.start_time,
            end_time=self.end_time,
            now=now,
        )
