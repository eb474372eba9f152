"""Attempt lifecycle on the service side: opening, grading, listing.

Starting an attempt runs its eligibility checks in a fixed order so the
first failing rule decides the reason code the client sees.  Grading is
exact string comparison between the submitted and the correct answer;
no case folding or whitespace trimming is applied.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from classquiz.core.metrics import (
    ATTEMPT_REJECTIONS,
    ATTEMPTS_STARTED,
    SCORE_RATIO,
    SUBMISSIONS,
)
from classquiz.models.attempt import Answer, Attempt
from classquiz.models.principal import Principal
from classquiz.models.question import Question
from classquiz.repos.attempt_repo import AttemptRepo
from classquiz.repos.classroom_repo import EnrollmentRepo
from classquiz.repos.question_repo import QuestionRepo
from classquiz.repos.quiz_repo import QuizRepo
from classquiz.schemas import AttemptErrorCode

logger = logging.getLogger(__name__)


class AttemptRejected(Exception):
    """Attempt creation refused; carries the code and HTTP status to return."""

    def __init__(self, code: AttemptErrorCode, message: str, status_code: int):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


class SubmissionRejected(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AttemptNotFoundError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class SubmittedAnswer:
    question_id: str
    answer: str


@dataclass(frozen=True, slots=True)
class GradeResult:
    attempt: Attempt
    answers: list[Answer]
    score: int
    total_possible_points: int


def _reject(code: AttemptErrorCode, message: str, status_code: int) -> AttemptRejected:
    ATTEMPT_REJECTIONS.labels(code=code.value).inc()
    logger.warning("Attempt refused code=%s: %s", code.value, message)
    return AttemptRejected(code, message, status_code)


def start_attempt(
    quizzes: QuizRepo,
    enrollments: EnrollmentRepo,
    attempts: AttemptRepo,
    *,
    quiz_id: str,
    student_id: str,
    now: datetime.datetime,
) -> Attempt:
    quiz = quizzes.get(quiz_id)
    if quiz is None:
        raise _reject(AttemptErrorCode.QUIZ_NOT_FOUND, "Quiz not found", 404)
    if not quiz.is_published:
        raise _reject(
            AttemptErrorCode.NOT_PUBLISHED, "Quiz is not published yet", 403
        )
    if quiz.class_id is None:
        raise _reject(
            AttemptErrorCode.NOT_ASSIGNED, "Quiz is not assigned to a class", 403
        )
    if enrollments.get(quiz.class_id, student_id) is None:
        raise _reject(
            AttemptErrorCode.NOT_ENROLLED,
            "You are not enrolled in the class for this quiz",
            403,
        )
    if quiz.start_time is not None and now < quiz.start_time:
        raise _reject(
            AttemptErrorCode.NOT_STARTED,
            f"Quiz has not started yet. It starts at {quiz.start_time.isoformat()}",
            403,
        )
    if attempts.find_active(quiz_id, student_id) is not None:
        raise _reject(
            AttemptErrorCode.ACTIVE_ATTEMPT,
            "You already have an active attempt for this quiz",
            409,
        )

    attempt = Attempt.new(quiz_id=quiz_id, student_id=student_id, started_at=now)
    attempts.add(attempt)
    ATTEMPTS_STARTED.inc()
    logger.info(
        "Attempt %s opened by student=%s",
        attempt.id,
        student_id,
        extra={"quiz_id": quiz_id, "attempt_id": attempt.id},
    )
    return attempt


def grade_answers(
    attempt_id: str,
    questions: Iterable[Question],
    submitted: Iterable[SubmittedAnswer],
) -> tuple[list[Answer], int, int]:
    """Grade submitted answers against the quiz's questions.

    Returns (answers, score, total_possible_points).  Answers to unknown
    questions are dropped; only the first answer per question counts.
    """
    by_id = {q.id: q for q in questions}
    total = sum(q.points for q in by_id.values())
    graded: list[Answer] = []
    seen: set[str] = set()
    score = 0
    for item in submitted:
        question = by_id.get(item.question_id)
        if question is None or item.question_id in seen:
            continue
        seen.add(item.question_id)
        is_correct = item.answer == question.correct_answer
        earned = question.points if is_correct else 0
        score += earned
        graded.append(
            Answer.new(
                attempt_id=attempt_id,
                question_id=question.id,
                answer=item.answer,
                is_correct=is_correct,
                points_earned=earned,
            )
        )
    return graded, score, total


def parse_submission(
    raw_answers: list[tuple[str | None, str | None]],
) -> list[SubmittedAnswer]:
    """Validate the (question_id, answer) pairs of a submit request."""
    if not raw_answers:
        SUBMISSIONS.labels(result="rejected").inc()
        raise SubmissionRejected("Answers array is required and must not be empty")
    parsed = []
    for index, (question_id, answer) in enumerate(raw_answers):
        if not question_id:
            SUBMISSIONS.labels(result="rejected").inc()
            raise SubmissionRejected(f"Invalid answer format at index {index}")
        parsed.append(SubmittedAnswer(question_id=question_id, answer=answer or ""))
    return parsed


def submit_attempt(
    attempts: AttemptRepo,
    questions: QuestionRepo,
    *,
    attempt_id: str,
    student_id: str,
    submitted: list[SubmittedAnswer],
    now: datetime.datetime,
) -> GradeResult:
    attempt = attempts.get(attempt_id)
    if attempt is None or attempt.student_id != student_id or attempt.is_completed:
        SUBMISSIONS.labels(result="rejected").inc()
        logger.warning(
            "Submit refused for attempt=%s student=%s",
            attempt_id,
            student_id,
            extra={"attempt_id": attempt_id},
        )
        raise SubmissionRejected("Attempt not found or already completed", 404)

    answers, score, total = grade_answers(
        attempt.id, questions.list_for_quiz(attempt.quiz_id), submitted
    )
    time_taken = max(0, round((now - attempt.started_at).total_seconds()))
    graded = replace(
        attempt,
        submitted_at=now,
        score=score,
        total_points=total,
        time_taken=time_taken,
    )
    try:
        completed = attempts.complete(graded, answers)
    except (KeyError, ValueError):
        # Lost a race with a concurrent submit of the same attempt.
        SUBMISSIONS.labels(result="rejected").inc()
        raise SubmissionRejected(
            "Attempt not found or already completed", 404
        ) from None

    SUBMISSIONS.labels(result="graded").inc()
    if total > 0:
        SCORE_RATIO.observe(score / total)
    logger.info(
        "Attempt graded score=%d/%d time_taken=%ds",
        score,
        total,
        time_taken,
        extra={"quiz_id": attempt.quiz_id, "attempt_id": attempt.id},
    )
    return GradeResult(
        attempt=completed, answers=answers, score=score, total_possible_points=total
    )


def list_attempts_for(
    attempts: AttemptRepo,
    quizzes: QuizRepo,
    principal: Principal,
    *,
    quiz_id: str | None = None,
    student_id: str | None = None,
    is_completed: bool | None = None,
) -> list[Attempt]:
    """Students see their own attempts; teachers see attempts on their quizzes."""
    if principal.is_teacher:
        owned = {q.id for q in quizzes.list_by_teacher(principal.user_id)}
        quiz_ids = owned if quiz_id is None else owned & {quiz_id}
        return attempts.find(
            quiz_ids=quiz_ids, student_id=student_id, is_completed=is_completed
        )
    return attempts.find(
        quiz_ids=None if quiz_id is None else {quiz_id},
        student_id=principal.user_id,
        is_completed=is_completed,
    )


def list_answers_for(
    attempts: AttemptRepo,
    quizzes: QuizRepo,
    principal: Principal,
    *,
    attempt_id: str,
) -> list[Answer]:
    attempt = attempts.get(attempt_id)
    if attempt is None:
        raise AttemptNotFoundError("Attempt not found")
    if principal.is_teacher:
        quiz = quizzes.get(attempt.quiz_id)
        visible = quiz is not None and quiz.teacher_id == principal.user_id
    else:
        visible = attempt.student_id == principal.user_id
    if not visible:
        # Same answer as a missing attempt; ids are not probeable.
        raise AttemptNotFoundError("Attempt not found")
    return attempts.list_answers({attempt_id})
