"""Wire schemas shared by the quiz service and the attempt client.

JSON on the wire is camelCase (``timeLimit``, ``questionId``); Python
code uses snake_case attributes.  ``populate_by_name`` lets either
spelling validate, and FastAPI serializes response models by alias.
"""

from __future__ import annotations

import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from classquiz.models.question import QuestionType, parse_options
from classquiz.models.quiz import QuizStatus


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AttemptErrorCode(StrEnum):
    """Reason codes for refused attempt creation.

    Sent as ``detail.code``; the accompanying message keeps the legacy
    wording for clients that still match on text.
    """

    QUIZ_NOT_FOUND = "quiz_not_found"
    NOT_PUBLISHED = "not_published"
    NOT_ASSIGNED = "not_assigned"
    NOT_ENROLLED = "not_enrolled"
    NOT_STARTED = "not_started"
    ACTIVE_ATTEMPT = "active_attempt"


class ErrorDetail(WireModel):
    code: str
    message: str


# --- Quizzes ---------------------------------------------------------------


def _assume_utc(value: datetime.datetime | None) -> datetime.datetime | None:
    """Naive datetimes on the wire are taken as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=datetime.UTC)
    return value


class QuizIn(WireModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    class_id: str | None = None
    time_limit: int | None = Field(default=None, ge=1)
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    is_published: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def window_in_utc(
        cls, value: datetime.datetime | None
    ) -> datetime.datetime | None:
        return _assume_utc(value)


class QuizUpdateIn(WireModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    class_id: str | None = None
    time_limit: int | None = Field(default=None, ge=1)
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    is_published: bool | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def window_in_utc(
        cls, value: datetime.datetime | None
    ) -> datetime.datetime | None:
        return _assume_utc(value)


class QuizOut(WireModel):
    id: str
    title: str
    description: str | None = None
    class_id: str | None = None
    teacher_id: str | None = None
    time_limit: int | None = None
    total_points: int = 0
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    is_published: bool = False
    status: QuizStatus

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def window_in_utc(
        cls, value: datetime.datetime | None
    ) -> datetime.datetime | None:
        return _assume_utc(value)


# --- Questions -------------------------------------------------------------


class QuestionIn(WireModel):
    question_text: str
    question_type: QuestionType
    correct_answer: str
    points: int = Field(default=1, ge=0)
    order_index: int | None = None
    options: list[str] | None = None


class QuestionUpdateIn(WireModel):
    question_text: str | None = None
    question_type: QuestionType | None = None
    correct_answer: str | None = None
    points: int | None = Field(default=None, ge=0)
    order_index: int | None = None
    options: list[str] | None = None


class QuestionOut(WireModel):
    id: str
    quiz_id: str
    question_text: str
    question_type: QuestionType
    points: int
    order_index: int
    options: list[str] = []
    correct_answer: str

    @field_validator("options", mode="before")
    @classmethod
    def decode_options(cls, value: object) -> list[str]:
        return parse_options(value)


# --- Attempts and answers ----------------------------------------------------


class AttemptCreateIn(WireModel):
    quiz_id: str | None = None


class AttemptCreatedOut(WireModel):
    id: str
    quiz_id: str
    student_id: str
    started_at: datetime.datetime
    is_completed: bool = False

    @field_validator("started_at", mode="after")
    @classmethod
    def started_in_utc(cls, value: datetime.datetime) -> datetime.datetime:
        return _assume_utc(value)  # type: ignore[return-value]


class AttemptOut(WireModel):
    id: str
    quiz_id: str
    student_id: str
    started_at: datetime.datetime
    submitted_at: datetime.datetime | None = None
    score: int | None = None
    total_points: int | None = None
    time_taken: int | None = None
    is_completed: bool = False
    quiz_title: str | None = None

    @field_validator("started_at", "submitted_at", mode="after")
    @classmethod
    def times_in_utc(
        cls, value: datetime.datetime | None
    ) -> datetime.datetime | None:
        return _assume_utc(value)


class AnswerIn(WireModel):
    question_id: str | None = None
    answer: str | None = None


class SubmitIn(WireModel):
    answers: list[AnswerIn] = []


class SubmitOut(WireModel):
    message: str = "Quiz submitted successfully"
    attempt_id: str
    score: int
    total_possible_points: int
    time_taken: int | None = None


class AnswerOut(WireModel):
    id: str
    attempt_id: str
    question_id: str
    answer: str
    is_correct: bool
    points_earned: int


# --- Classes ---------------------------------------------------------------


class ClassIn(WireModel):
    name: str
    description: str | None = None


class ClassOut(WireModel):
    id: str
    name: str
    description: str | None = None
    class_code: str
    teacher_id: str


class EnrollmentIn(WireModel):
    class_id: str | None = None


class EnrollByCodeIn(WireModel):
    class_code: str


class EnrollmentOut(WireModel):
    id: str
    class_id: str
    student_id: str
    enrolled_at: datetime.datetime


class ClassRosterOut(WireModel):
    enrollments: list[EnrollmentOut] = []
    total_students: int = 0


class LeaderboardEntryOut(WireModel):
    student_id: str
    total_score: int
    attempts_completed: int
    rank: int


# --- Notifications -----------------------------------------------------------


class NotificationOut(WireModel):
    id: str
    type: str
    message: str
    link: str | None = None
    is_read: bool = False
    created_at: datetime.datetime

    @field_validator("created_at", mode="after")
    @classmethod
    def created_in_utc(cls, value: datetime.datetime) -> datetime.datetime:
        return _assume_utc(value)  # type: ignore[return-value]


class NotificationPage(WireModel):
    notifications: list[NotificationOut] = []
    unread_count: int = 0
