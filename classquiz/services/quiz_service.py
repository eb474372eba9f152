from __future__ import annotations

import datetime
import logging
from dataclasses import replace
from typing import Any

from classquiz.models.principal import Principal
from classquiz.models.question import (
    TRUE_FALSE_OPTIONS,
    Question,
    QuestionType,
    validate_question,
)
from classquiz.models.quiz import Quiz
from classquiz.repos.classroom_repo import ClassroomRepo, EnrollmentRepo
from classquiz.repos.question_repo import QuestionRepo
from classquiz.repos.quiz_repo import QuizRepo

logger = logging.getLogger(__name__)


class QuizNotFoundError(Exception):
    pass


class QuizAccessDenied(Exception):
    pass


class QuizValidationError(ValueError):
    pass


def _check_window(
    start_time: datetime.datetime | None, end_time: datetime.datetime | None
) -> None:
    if start_time is not None and end_time is not None and end_time <= start_time:
        raise QuizValidationError("End time must be after start time")


def _check_class_owner(
    classrooms: ClassroomRepo, class_id: str | None, teacher_id: str
) -> None:
    if class_id is None:
        return
    classroom = classrooms.get(class_id)
    if classroom is None:
        raise QuizValidationError("Class not found")
    if classroom.teacher_id != teacher_id:
        raise QuizAccessDenied("You can only assign quizzes to your own classes")


def _recompute_total(
    quizzes: QuizRepo, questions: QuestionRepo, quiz_id: str
) -> int:
    total = sum(q.points for q in questions.list_for_quiz(quiz_id))
    quizzes.update(quiz_id, total_points=total)
    return total


def _options_for(
    question_type: str, options: list[str] | tuple[str, ...] | None
) -> tuple[str, ...]:
    if question_type == "short-answer":
        return ()
    if question_type == "true-false" and not options:
        return TRUE_FALSE_OPTIONS
    return tuple(options or ())


def _owned_quiz(quizzes: QuizRepo, quiz_id: str, teacher_id: str) -> Quiz:
    quiz = quizzes.get(quiz_id)
    if quiz is None:
        raise QuizNotFoundError("Quiz not found")
    if quiz.teacher_id != teacher_id:
        logger.warning("Teacher %s denied access to quiz %s", teacher_id, quiz_id)
        raise QuizAccessDenied("You do not own this quiz")
    return quiz


def create_quiz(
    quizzes: QuizRepo,
    classrooms: ClassroomRepo,
    *,
    teacher_id: str,
    title: str,
    description: str | None = None,
    class_id: str | None = None,
    time_limit: int | None = None,
    start_time: datetime.datetime | None = None,
    end_time: datetime.datetime | None = None,
    is_published: bool = False,
) -> Quiz:
    _check_window(start_time, end_time)
    _check_class_owner(classrooms, class_id, teacher_id)
    quiz = Quiz.new(
        title=title,
        teacher_id=teacher_id,
        description=description,
        class_id=class_id,
        time_limit=time_limit,
        start_time=start_time,
        end_time=end_time,
        is_published=is_published,
    )
    quizzes.add(quiz)
    logger.info(
        "Created quiz id=%s teacher=%s published=%s",
        quiz.id,
        teacher_id,
        is_published,
        extra={"quiz_id": quiz.id},
    )
    return quiz


def update_quiz(
    quizzes: QuizRepo,
    classrooms: ClassroomRepo,
    *,
    quiz_id: str,
    teacher_id: str,
    changes: dict[str, Any],
) -> tuple[Quiz, Quiz]:
    """Apply a partial update. Returns (before, after) so callers can react
    to a publication flip."""
    before = _owned_quiz(quizzes, quiz_id, teacher_id)
    _check_window(
        changes.get("start_time", before.start_time),
        changes.get("end_time", before.end_time),
    )
    if "class_id" in changes:
        _check_class_owner(classrooms, changes["class_id"], teacher_id)
    after = quizzes.update(quiz_id, **changes)
    if after is None:
        raise QuizNotFoundError("Quiz not found")
    logger.info(
        "Updated quiz id=%s fields=%s",
        quiz_id,
        sorted(changes),
        extra={"quiz_id": quiz_id},
    )
    return before, after


def delete_quiz(
    quizzes: QuizRepo, questions: QuestionRepo, *, quiz_id: str, teacher_id: str
) -> None:
    _owned_quiz(quizzes, quiz_id, teacher_id)
    removed = questions.delete_for_quiz(quiz_id)
    quizzes.delete(quiz_id)
    logger.info(
        "Deleted quiz id=%s with %d question(s)",
        quiz_id,
        removed,
        extra={"quiz_id": quiz_id},
    )


def get_quiz_for(
    quizzes: QuizRepo,
    enrollments: EnrollmentRepo,
    *,
    quiz_id: str,
    principal: Principal,
) -> Quiz:
    """Fetch a quiz the principal may see.

    Teachers see only their own quizzes; students see published quizzes
    of classes they are enrolled in.
    """
    quiz = quizzes.get(quiz_id)
    if quiz is None:
        raise QuizNotFoundError("Quiz not found")
    if principal.is_teacher:
        if quiz.teacher_id != principal.user_id:
            raise QuizAccessDenied("You do not own this quiz")
        return quiz
    if not quiz.is_published:
        raise QuizAccessDenied("Quiz is not published")
    if quiz.class_id is None or enrollments.get(
        quiz.class_id, principal.user_id
    ) is None:
        raise QuizAccessDenied("You are not enrolled in this quiz's class")
    return quiz


def list_quizzes_for(
    quizzes: QuizRepo, enrollments: EnrollmentRepo, principal: Principal
) -> list[Quiz]:
    if principal.is_teacher:
        return quizzes.list_by_teacher(principal.user_id)
    class_ids = enrollments.class_ids_for_student(principal.user_id)
    return [q for q in quizzes.list_by_classes(class_ids) if q.is_published]


def list_questions_for(
    quizzes: QuizRepo,
    questions: QuestionRepo,
    enrollments: EnrollmentRepo,
    *,
    quiz_id: str,
    principal: Principal,
    now: datetime.datetime,
) -> list[Question]:
    quiz = get_quiz_for(
        quizzes, enrollments, quiz_id=quiz_id, principal=principal
    )
    if not principal.is_teacher and quiz.status_at(now) == "Upcoming":
        raise QuizAccessDenied("Quiz has not started yet")
    return questions.list_for_quiz(quiz_id)


def add_question(
    quizzes: QuizRepo,
    questions: QuestionRepo,
    *,
    quiz_id: str,
    teacher_id: str,
    question_text: str,
    question_type: QuestionType,
    correct_answer: str,
    points: int = 1,
    order_index: int | None = None,
    options: list[str] | None = None,
) -> Question:
    """Append a question and recompute the quiz's total points.

    Raises QuestionValidationError (from the model) on invalid input.
    """
    _owned_quiz(quizzes, quiz_id, teacher_id)
    existing = questions.list_for_quiz(quiz_id)

    question = Question.new(
        quiz_id=quiz_id,
        question_text=question_text,
        question_type=question_type,
        correct_answer=correct_answer,
        points=points,
        order_index=len(existing) if order_index is None else order_index,
        options=_options_for(question_type, options),
    )
    questions.add(question)

    total = _recompute_total(quizzes, questions, quiz_id)
    logger.info(
        "Added %s question to quiz=%s; total_points=%d",
        question_type,
        quiz_id,
        total,
        extra={"quiz_id": quiz_id},
    )
    return question


def _quiz_question(
    questions: QuestionRepo, quiz_id: str, question_id: str
) -> Question:
    question = questions.get(question_id)
    if question is None or question.quiz_id != quiz_id:
        raise QuizNotFoundError("Question not found")
    return question


def update_question(
    quizzes: QuizRepo,
    questions: QuestionRepo,
    *,
    quiz_id: str,
    question_id: str,
    teacher_id: str,
    changes: dict[str, Any],
) -> Question:
    """Apply a partial question update and recompute the quiz's total points.

    Switching to short-answer drops the options; a true-false question
    left without options gets the default pair.
    """
    _owned_quiz(quizzes, quiz_id, teacher_id)
    current = _quiz_question(questions, quiz_id, question_id)
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        raise QuizValidationError("No fields to update")

    question_type = changes.get("question_type", current.question_type)
    options = changes["options"] if "options" in changes else current.options
    updated = replace(
        current, **{**changes, "options": _options_for(question_type, options)}
    )
    validate_question(updated)
    questions.replace(updated)

    total = _recompute_total(quizzes, questions, quiz_id)
    logger.info(
        "Updated question=%s fields=%s; total_points=%d",
        question_id,
        sorted(changes),
        total,
        extra={"quiz_id": quiz_id},
    )
    return updated


def delete_question(
    quizzes: QuizRepo,
    questions: QuestionRepo,
    *,
    quiz_id: str,
    question_id: str,
    teacher_id: str,
) -> None:
    _owned_quiz(quizzes, quiz_id, teacher_id)
    _quiz_question(questions, quiz_id, question_id)
    questions.delete(question_id)
    total = _recompute_total(quizzes, questions, quiz_id)
    logger.info(
        "Deleted question=%s; total_points=%d",
        question_id,
        total,
        extra={"quiz_id": quiz_id},
    )
