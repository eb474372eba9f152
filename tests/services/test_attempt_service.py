from __future__ import annotations

import datetime

import pytest

from classquiz.models.attempt import Attempt
from classquiz.models.classroom import Enrollment
from classquiz.models.question import Question
from classquiz.models.quiz import Quiz, utcnow
from classquiz.repos.attempt_repo import InMemoryAttemptRepo
from classquiz.repos.classroom_repo import InMemoryEnrollmentRepo
from classquiz.repos.question_repo import InMemoryQuestionRepo
from classquiz.repos.quiz_repo import InMemoryQuizRepo
from classquiz.schemas import AttemptErrorCode
from classquiz.services import attempt_service
from classquiz.services.attempt_service import (
    AttemptRejected,
    SubmissionRejected,
    SubmittedAnswer,
)

NOW = datetime.datetime(2026, 3, 1, 9, 0, tzinfo=datetime.UTC)


def _question(qid: str, correct: str, points: int = 1) -> Question:
    return Question(
        id=qid,
        quiz_id="quiz-1",
        question_text=f"Question {qid}",
        question_type="short-answer",
        correct_answer=correct,
        points=points,
    )


# ---- grading ----


def test_grade_answers_exact_match_only() -> None:
    questions = [_question("a", "Paris", 2), _question("b", "True"), _question("c", "4")]
    answers, score, total = attempt_service.grade_answers(
        "att-1",
        questions,
        [
            SubmittedAnswer("a", "Paris"),
            SubmittedAnswer("b", "true"),
            SubmittedAnswer("c", " 4"),
        ],
    )
    assert score == 2
    assert total == 4
    assert [a.is_correct for a in answers] == [True, False, False]
    assert [a.points_earned for a in answers] == [2, 0, 0]
    assert {a.attempt_id for a in answers} == {"att-1"}


def test_grade_answers_drops_unknown_and_duplicate_questions() -> None:
    answers, score, total = attempt_service.grade_answers(
        "att-1",
        [_question("a", "x")],
        [
            SubmittedAnswer("ghost", "x"),
            SubmittedAnswer("a", "wrong"),
            SubmittedAnswer("a", "x"),
        ],
    )
    assert [a.answer for a in answers] == ["wrong"]
    assert score == 0
    assert total == 1


def test_unanswered_questions_still_count_toward_total() -> None:
    _, score, total = attempt_service.grade_answers(
        "att-1", [_question("a", "x", 3), _question("b", "y", 2)], [SubmittedAnswer("a", "x")]
    )
    assert (score, total) == (3, 5)


# ---- parse_submission ----


def test_parse_submission_rejects_empty() -> None:
    with pytest.raises(SubmissionRejected, match="must not be empty") as exc:
        attempt_service.parse_submission([])
    assert exc.value.status_code == 400


def test_parse_submission_reports_bad_index() -> None:
    with pytest.raises(SubmissionRejected, match="index 2"):
        attempt_service.parse_submission([("a", "1"), ("b", None), ("", "x")])


def test_parse_submission_treats_missing_answer_as_blank() -> None:
    parsed = attempt_service.parse_submission([("a", None)])
    assert parsed == [SubmittedAnswer("a", "")]


# ---- start_attempt ----


@pytest.fixture
def repos():
    quizzes = InMemoryQuizRepo()
    enrollments = InMemoryEnrollmentRepo()
    attempts = InMemoryAttemptRepo()
    return quizzes, enrollments, attempts


def _add_quiz(quizzes: InMemoryQuizRepo, **overrides) -> Quiz:
    fields = {
        "title": "Quiz",
        "teacher_id": "t-1",
        "class_id": "class-1",
        "is_published": True,
    }
    fields.update(overrides)
    quiz = Quiz.new(**fields)
    quizzes.add(quiz)
    return quiz


def test_start_attempt_opens_attempt(repos) -> None:
    quizzes, enrollments, attempts = repos
    quiz = _add_quiz(quizzes)
    enrollments.add(Enrollment.new(class_id="class-1", student_id="s-1"))

    attempt = attempt_service.start_attempt(
        quizzes, enrollments, attempts, quiz_id=quiz.id, student_id="s-1", now=NOW
    )
    assert attempt.started_at == NOW
    assert attempts.find_active(quiz.id, "s-1") == attempt


def test_start_attempt_at_exact_start_time_is_allowed(repos) -> None:
    quizzes, enrollments, attempts = repos
    quiz = _add_quiz(quizzes, start_time=NOW)
    enrollments.add(Enrollment.new(class_id="class-1", student_id="s-1"))
    attempt_service.start_attempt(
        quizzes, enrollments, attempts, quiz_id=quiz.id, student_id="s-1", now=NOW
    )


def test_not_started_reported_before_active_attempt(repos) -> None:
    quizzes, enrollments, attempts = repos
    quiz = _add_quiz(quizzes, start_time=NOW + datetime.timedelta(minutes=5))
    enrollments.add(Enrollment.new(class_id="class-1", student_id="s-1"))
    attempts.add(Attempt.new(quiz_id=quiz.id, student_id="s-1", started_at=NOW))

    with pytest.raises(AttemptRejected) as exc:
        attempt_service.start_attempt(
            quizzes, enrollments, attempts, quiz_id=quiz.id, student_id="s-1", now=NOW
        )
    assert exc.value.code is AttemptErrorCode.NOT_STARTED
    assert exc.value.status_code == 403
    assert "It starts at 2026-03-01T09:05:00+00:00" in exc.value.message


def test_not_enrolled_reported_before_not_started(repos) -> None:
    quizzes, enrollments, attempts = repos
    quiz = _add_quiz(quizzes, start_time=NOW + datetime.timedelta(hours=1))
    with pytest.raises(AttemptRejected) as exc:
        attempt_service.start_attempt(
            quizzes, enrollments, attempts, quiz_id=quiz.id, student_id="s-1", now=NOW
        )
    assert exc.value.code is AttemptErrorCode.NOT_ENROLLED


# ---- submit_attempt ----


def test_submit_attempt_records_score_and_time(repos) -> None:
    _, _, attempts = repos
    questions = InMemoryQuestionRepo()
    questions.add(_question("a", "x", 2))
    attempt = Attempt.new(quiz_id="quiz-1", student_id="s-1", started_at=NOW)
    attempts.add(attempt)

    result = attempt_service.submit_attempt(
        attempts,
        questions,
        attempt_id=attempt.id,
        student_id="s-1",
        submitted=[SubmittedAnswer("a", "x")],
        now=NOW + datetime.timedelta(seconds=90.4),
    )
    assert result.score == 2
    assert result.total_possible_points == 2
    assert result.attempt.is_completed
    assert result.attempt.time_taken == 90
    assert result.attempt.submitted_at == NOW + datetime.timedelta(seconds=90.4)
    assert attempts.list_answers({attempt.id}) == result.answers


def test_submit_attempt_refuses_completed_attempt(repos) -> None:
    _, _, attempts = repos
    attempt = Attempt.new(quiz_id="quiz-1", student_id="s-1", started_at=NOW)
    attempts.add(attempt)
    kwargs = dict(
        attempt_id=attempt.id,
        student_id="s-1",
        submitted=[SubmittedAnswer("a", "x")],
        now=NOW,
    )
    attempt_service.submit_attempt(attempts, InMemoryQuestionRepo(), **kwargs)
    with pytest.raises(SubmissionRejected) as exc:
        attempt_service.submit_attempt(attempts, InMemoryQuestionRepo(), **kwargs)
    assert exc.value.status_code == 404


def test_submit_attempt_refuses_other_student(repos) -> None:
    _, _, attempts = repos
    attempt = Attempt.new(quiz_id="quiz-1", student_id="s-1", started_at=NOW)
    attempts.add(attempt)
    with pytest.raises(SubmissionRejected):
        attempt_service.submit_attempt(
            attempts,
            InMemoryQuestionRepo(),
            attempt_id=attempt.id,
            student_id="s-2",
            submitted=[SubmittedAnswer("a", "x")],
            now=utcnow(),
        )
