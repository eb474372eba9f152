from __future__ import annotations

import datetime
from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Attempt:
    """One student's pass at a quiz.

    Created open when the student starts the quiz; the only mutation is
    the submission, which sets score, submitted_at and is_completed.
    """

    id: str
    quiz_id: str
    student_id: str
    started_at: datetime.datetime
    submitted_at: datetime.datetime | None = None
    score: int | None = None
    total_points: int | None = None
    time_taken: int | None = None  # seconds
    is_completed: bool = False

    @staticmethod
    def new(
        *, quiz_id: str, student_id: str, started_at: datetime.datetime
    ) -> Attempt:
        return Attempt(
            id=str(uuid4()),
            quiz_id=quiz_id,
            student_id=student_id,
            started_at=started_at,
        )


@dataclass(frozen=True, slots=True)
class Answer:
    """Graded answer, written once at submission time."""

    id: str
    attempt_id: str
    question_id: str
    answer: str
    is_correct: bool
    points_earned: int

    @staticmethod
    def new(
        *,
        attempt_id: str,
        question_id: str,
        answer: str,
        is_correct: bool,
        points_earned: int,
    ) -> Answer:
        return Answer(
            id=str(uuid4()),
            attempt_id=attempt_id,
            question_id=question_id,
            answer=answer,
            is_correct=is_correct,
            points_earned=points_earned,
        )
