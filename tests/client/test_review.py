from __future__ import annotations

import asyncio
import datetime

import pytest

from classquiz.client.errors import ApiError
from classquiz.client.review import (
    ReviewError,
    ReviewRenderer,
    latest_submitted,
    review_question,
)
from classquiz.schemas import AnswerOut, AttemptOut, QuestionOut, QuizOut

T0 = datetime.datetime(2026, 2, 1, 10, 0, tzinfo=datetime.UTC)


def _question(qid: str, qtype: str = "multiple-choice", **overrides) -> QuestionOut:
    fields = {
        "id": qid,
        "quiz_id": "quiz-1",
        "question_text": f"Question {qid}",
        "question_type": qtype,
        "points": 2,
        "order_index": 0,
        "options": ["a", "b", "c"],
        "correct_answer": "b",
    }
    fields.update(overrides)
    return QuestionOut(**fields)


def _answer(qid: str, value: str, points: int = 0) -> AnswerOut:
    return AnswerOut(
        id=f"ans-{qid}",
        attempt_id="att-1",
        question_id=qid,
        answer=value,
        is_correct=points > 0,
        points_earned=points,
    )


def _attempt(aid: str, submitted_at: datetime.datetime | None, score: int = 0) -> AttemptOut:
    return AttemptOut(
        id=aid,
        quiz_id="quiz-1",
        student_id="s-1",
        started_at=T0,
        submitted_at=submitted_at,
        score=score,
        total_points=4,
        is_completed=submitted_at is not None,
    )


@pytest.mark.parametrize(
    ("submitted", "correct", "expected"),
    [
        ("Paris", "Paris", True),
        ("paris", "Paris", False),
        ("Paris ", "Paris", False),
        ("", "Paris", False),
    ],
)
def test_correctness_is_exact_string_equality(submitted, correct, expected) -> None:
    question = _question("q1", "short-answer", options=[], correct_answer=correct)
    assert review_question(question, _answer("q1", submitted)).is_correct is expected


def test_wrong_choice_marks_both_options() -> None:
    review = review_question(_question("q1"), _answer("q1", "a"))
    marks = {m.option: m for m in review.options}
    assert marks["a"].incorrect_and_chosen
    assert marks["b"].correct_not_chosen
    assert not marks["c"].chosen and not marks["c"].correct
    assert not review.is_correct


def test_right_choice_is_correct_and_chosen() -> None:
    review = review_question(_question("q1"), _answer("q1", "b", points=2))
    marks = {m.option: m for m in review.options}
    assert marks["b"].correct_and_chosen
    assert not marks["b"].correct_not_chosen
    assert review.points_earned == 2
    assert review.points_available == 2


def test_missing_answer_is_unanswered() -> None:
    review = review_question(_question("q1"), None)
    assert review.submitted_answer is None
    assert not review.is_correct
    assert not any(m.chosen for m in review.options)


def test_true_false_without_options_gets_defaults() -> None:
    question = _question("q1", "true-false", options=[], correct_answer="False")
    review = review_question(question, _answer("q1", "False", points=2))
    assert [m.option for m in review.options] == ["True", "False"]


def test_malformed_options_degrade_to_empty() -> None:
    question = _question("q1", options="{broken")
    review = review_question(question, _answer("q1", "b"))
    assert review.options == ()
    assert review.is_correct


def test_latest_submitted_picks_newest_submit_time() -> None:
    attempts = [
        _attempt("old", T0 + datetime.timedelta(minutes=5)),
        _attempt("open", None),
        _attempt("new", T0 + datetime.timedelta(minutes=50)),
    ]
    assert latest_submitted(attempts).id == "new"
    assert latest_submitted([_attempt("open", None)]) is None


class ReviewApi:
    def __init__(self) -> None:
        self.attempts = [
            _attempt("att-0", T0 + datetime.timedelta(minutes=1), score=0),
            _attempt("att-1", T0 + datetime.timedelta(minutes=9), score=2),
        ]
        self.quiz_error: ApiError | None = None
        self.answer_requests: list[str] = []

    async def list_attempts(self, *, quiz_id=None, is_completed=None):
        assert is_completed is True
        return self.attempts

    async def get_quiz(self, quiz_id: str) -> QuizOut:
        if self.quiz_error is not None:
            raise self.quiz_error
        return QuizOut(
            id=quiz_id, title="Sets", total_points=4, is_published=True, status="Closed"
        )

    async def list_questions(self, quiz_id: str) -> list[QuestionOut]:
        return [_question("q1"), _question("q2", order_index=1, correct_answer="c")]

    async def list_answers(self, attempt_id: str) -> list[AnswerOut]:
        self.answer_requests.append(attempt_id)
        return [_answer("q1", "b", points=2)]


def test_renderer_defaults_to_latest_attempt() -> None:
    api = ReviewApi()
    review = asyncio.run(ReviewRenderer(api).render("quiz-1"))  # type: ignore[arg-type]
    assert api.answer_requests == ["att-1"]
    assert review.attempt_id == "att-1"
    assert review.quiz_title == "Sets"
    assert [i.is_correct for i in review.items] == [True, False]
    assert review.items[1].submitted_answer is None
    assert (review.score, review.total_points, review.percentage) == (2, 4, 50)


def test_renderer_honours_explicit_attempt() -> None:
    api = ReviewApi()
    review = asyncio.run(ReviewRenderer(api).render("quiz-1", "att-0"))  # type: ignore[arg-type]
    assert review.attempt_id == "att-0"


def test_renderer_missing_attempt_is_an_error() -> None:
    api = ReviewApi()
    with pytest.raises(ReviewError, match="No submitted attempt"):
        asyncio.run(ReviewRenderer(api).render("quiz-1", "ghost"))  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (ApiError(404, "Quiz not found"), "Quiz or attempt not found"),
        (ApiError(None, "Network error: down"), "Failed to load review: Network error: down"),
    ],
)
def test_renderer_api_failures(error: ApiError, message: str) -> None:
    api = ReviewApi()
    api.quiz_error = error
    with pytest.raises(ReviewError) as exc:
        asyncio.run(ReviewRenderer(api).render("quiz-1"))  # type: ignore[arg-type]
    assert str(exc.value) == message
