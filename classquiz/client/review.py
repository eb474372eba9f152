"""Read-only reconstruction of a submitted attempt.

Questions and stored answers are zipped by question id.  Correctness is
recomputed locally with the same exact string comparison the service
grades with, so the review never disagrees with the score.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from classquiz.client.api_client import QuizApiClient
from classquiz.client.errors import ApiError
from classquiz.models.question import CHOICE_TYPES, TRUE_FALSE_OPTIONS
from classquiz.schemas import AnswerOut, AttemptOut, QuestionOut

logger = logging.getLogger(__name__)


class ReviewError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class OptionMark:
    """One option of a choice question.

    ``chosen`` and ``correct`` are independent: the option the student
    picked is marked even when wrong, and the correct one is always
    revealed.
    """

    option: str
    chosen: bool
    correct: bool

    @property
    def correct_and_chosen(self) -> bool:
        return self.chosen and self.correct

    @property
    def correct_not_chosen(self) -> bool:
        return self.correct and not self.chosen

    @property
    def incorrect_and_chosen(self) -> bool:
        return self.chosen and not self.correct


@dataclass(frozen=True, slots=True)
class QuestionReview:
    question_id: str
    question_text: str
    question_type: str
    submitted_answer: str | None
    correct_answer: str
    is_correct: bool
    points_earned: int
    points_available: int
    options: tuple[OptionMark, ...] = ()


@dataclass(frozen=True, slots=True)
class AttemptReview:
    quiz_id: str
    quiz_title: str
    attempt_id: str
    score: int
    total_points: int
    time_taken: int | None
    items: tuple[QuestionReview, ...]

    @property
    def percentage(self) -> int:
        if self.total_points <= 0:
            return 0
        return round(self.score / self.total_points * 100)


def review_question(question: QuestionOut, answer: AnswerOut | None) -> QuestionReview:
    submitted = answer.answer if answer is not None else None
    is_correct = submitted is not None and submitted == question.correct_answer

    marks: tuple[OptionMark, ...] = ()
    if question.question_type in CHOICE_TYPES:
        options = list(question.options)
        if not options and question.question_type == "true-false":
            options = list(TRUE_FALSE_OPTIONS)
        marks = tuple(
            OptionMark(
                option=opt,
                chosen=submitted == opt,
                correct=opt == question.correct_answer,
            )
            for opt in options
        )

    return QuestionReview(
        question_id=question.id,
        question_text=question.question_text,
        question_type=question.question_type,
        submitted_answer=submitted,
        correct_answer=question.correct_answer,
        is_correct=is_correct,
        points_earned=answer.points_earned if answer is not None else 0,
        points_available=question.points,
        options=marks,
    )


def latest_submitted(attempts: list[AttemptOut]) -> AttemptOut | None:
    submitted = [a for a in attempts if a.submitted_at is not None]
    if not submitted:
        return None
    return max(submitted, key=lambda a: a.submitted_at)


class ReviewRenderer:
    def __init__(self, api: QuizApiClient) -> None:
        self._api = api

    async def render(
        self, quiz_id: str, attempt_id: str | None = None
    ) -> AttemptReview:
        try:
            attempt = await self._resolve_attempt(quiz_id, attempt_id)
            quiz = await self._api.get_quiz(quiz_id)
            questions = await self._api.list_questions(quiz_id)
            answers = await self._api.list_answers(attempt.id)
        except ApiError as e:
            logger.warning("Review of quiz=%s failed: %s", quiz_id, e.message)
            if e.status_code == 404:
                raise ReviewError("Quiz or attempt not found") from e
            raise ReviewError(f"Failed to load review: {e.message}") from e

        by_question = {a.question_id: a for a in answers}
        items = tuple(review_question(q, by_question.get(q.id)) for q in questions)
        earned = sum(item.points_earned for item in items)
        available = sum(q.points for q in questions)

        return AttemptReview(
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            attempt_id=attempt.id,
            score=attempt.score if attempt.score is not None else earned,
            total_points=attempt.total_points or quiz.total_points or available,
            time_taken=attempt.time_taken,
            items=items,
        )

    async def _resolve_attempt(
        self, quiz_id: str, attempt_id: str | None
    ) -> AttemptOut:
        attempts = await self._api.list_attempts(quiz_id=quiz_id, is_completed=True)
        if attempt_id is not None:
            found = next((a for a in attempts if a.id == attempt_id), None)
        else:
            found = latest_submitted(attempts)
        if found is None:
            raise ReviewError("No submitted attempt found for this quiz")
        return found
