"""Quiz and question endpoints.

Quiz ``status`` is derived on every read from the publication flag and
the start/end window; it is never accepted from the client.
"""

from __future__ import annotations

import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from classquiz.api.dependencies import require_teacher, require_user
from classquiz.models.principal import Principal
from classquiz.models.question import Question, QuestionValidationError
from classquiz.models.quiz import Quiz, utcnow
from classquiz.repos.registry import (
    classroom_repo,
    enrollment_repo,
    notification_repo,
    question_repo,
    quiz_repo,
)
from classquiz.schemas import (
    QuestionIn,
    QuestionOut,
    QuestionUpdateIn,
    QuizIn,
    QuizOut,
    QuizUpdateIn,
)
from classquiz.services import notification_service, quiz_service
from classquiz.services.quiz_service import (
    QuizAccessDenied,
    QuizNotFoundError,
    QuizValidationError,
)

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


def _quiz_out(quiz: Quiz, now: datetime.datetime) -> QuizOut:
    return QuizOut(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        class_id=quiz.class_id,
        teacher_id=quiz.teacher_id,
        time_limit=quiz.time_limit,
        total_points=quiz.total_points,
        start_time=quiz.start_time,
        end_time=quiz.end_time,
        is_published=quiz.is_published,
        status=quiz.status_at(now),
    )


def _question_out(question: Question) -> QuestionOut:
    return QuestionOut(
        id=question.id,
        quiz_id=question.quiz_id,
        question_text=question.question_text,
        question_type=question.question_type,
        points=question.points,
        order_index=question.order_index,
        options=question.options,  # type: ignore[arg-type]
        correct_answer=question.correct_answer,
    )


def _translate(e: Exception) -> HTTPException:
    if isinstance(e, QuizNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, QuizAccessDenied):
        return HTTPException(status_code=403, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


_QUIZ_ERRORS = (
    QuizNotFoundError,
    QuizAccessDenied,
    QuizValidationError,
    QuestionValidationError,
)


@router.get("", response_model=list[QuizOut])
def list_quizzes(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[QuizOut]:
    now = utcnow()
    quizzes = quiz_service.list_quizzes_for(quiz_repo, enrollment_repo, principal)
    return [_quiz_out(q, now) for q in quizzes]


@router.post("", response_model=QuizOut, status_code=status.HTTP_201_CREATED)
def create_quiz(
    body: QuizIn,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> QuizOut:
    try:
        quiz = quiz_service.create_quiz(
            quiz_repo,
            classroom_repo,
            teacher_id=principal.user_id,
            **body.model_dump(),
        )
    except _QUIZ_ERRORS as e:
        raise _translate(e) from None
    if quiz.is_published:
        notification_service.notify_quiz_assigned(
            notification_repo, enrollment_repo, quiz
        )
    return _quiz_out(quiz, utcnow())


@router.get("/{quiz_id}", response_model=QuizOut)
def get_quiz(
    quiz_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> QuizOut:
    try:
        quiz = quiz_service.get_quiz_for(
            quiz_repo, enrollment_repo, quiz_id=quiz_id, principal=principal
        )
    except _QUIZ_ERRORS as e:
        raise _translate(e) from None
    return _quiz_out(quiz, utcnow())


@router.put("/{quiz_id}", response_model=QuizOut)
def update_quiz(
    quiz_id: str,
    body: QuizUpdateIn,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> QuizOut:
    try:
        before, after = quiz_service.update_quiz(
            quiz_repo,
            classroom_repo,
            quiz_id=quiz_id,
            teacher_id=principal.user_id,
            changes=body.model_dump(exclude_unset=True),
        )
    except _QUIZ_ERRORS as e:
        raise _translate(e) from None
    if after.is_published and not before.is_published:
        notification_service.notify_quiz_assigned(
            notification_repo, enrollment_repo, after
        )
    return _quiz_out(after, utcnow())


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz(
    quiz_id: str,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> Response:
    try:
        quiz_service.delete_quiz(
            quiz_repo, question_repo, quiz_id=quiz_id, teacher_id=principal.user_id
        )
    except _QUIZ_ERRORS as e:
        raise _translate(e) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{quiz_id}/questions", response_model=list[QuestionOut])
def list_questions(
    quiz_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> list[QuestionOut]:
    try:
        questions = quiz_service.list_questions_for(
            quiz_repo,
            question_repo,
            enrollment_repo,
            quiz_id=quiz_id,
            principal=principal,
            now=utcnow(),
        )
    except _QUIZ_ERRORS as e:
        raise _translate(e) from None
    return [_question_out(q) for q in questions]


@router.post(
    "/{quiz_id}/questions",
    response_model=QuestionOut,
    status_code=status.HTTP_201_CREATED,
)
def add_question(
    quiz_id: str,
    body: QuestionIn,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> QuestionOut:
    try:
        question = quiz_service.add_question(
            quiz_repo,
            question_repo,
            quiz_id=quiz_id,
            teacher_id=principal.user_id,
            **body.model_dump(),
        )
    except _QUIZ_ERRORS as e:
        raise _translate(e) from None
    return _question_out(question)


@router.put("/{quiz_id}/questions/{question_id}", response_model=QuestionOut)
def update_question(
    quiz_id: str,
    question_id: str,
    body: QuestionUpdateIn,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> QuestionOut:
    try:
        question = quiz_service.update_question(
            quiz_repo,
            question_repo,
            quiz_id=quiz_id,
            question_id=question_id,
            teacher_id=principal.user_id,
            changes=body.model_dump(exclude_unset=True),
        )
    except _QUIZ_ERRORS as e:
        raise _translate(e) from None
    return _question_out(question)


@router.delete(
    "/{quiz_id}/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT
)
def delete_question(
    quiz_id: str,
    question_id: str,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> Response:
    try:
        quiz_service.delete_question(
            quiz_repo,
            question_repo,
            quiz_id=quiz_id,
            question_id=question_id,
            teacher_id=principal.user_id,
        )
    except _QUIZ_ERRORS as e:
        raise _translate(e) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
