"""Attempt endpoints: open, submit, list.

Refused attempt creation returns ``detail`` as ``{"code", "message"}``
so clients can branch on the code rather than on message text.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from classquiz.api.dependencies import require_student, require_user
from classquiz.models.attempt import Attempt
from classquiz.models.principal import Principal
from classquiz.models.quiz import utcnow
from classquiz.repos.registry import (
    attempt_repo,
    enrollment_repo,
    question_repo,
    quiz_repo,
)
from classquiz.schemas import (
    AttemptCreatedOut,
    AttemptCreateIn,
    AttemptErrorCode,
    AttemptOut,
    ErrorDetail,
    SubmitIn,
    SubmitOut,
)
from classquiz.services import attempt_service
from classquiz.services.attempt_service import AttemptRejected, SubmissionRejected

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


def _attempt_out(attempt: Attempt, quiz_title: str | None = None) -> AttemptOut:
    return AttemptOut(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        student_id=attempt.student_id,
        started_at=attempt.started_at,
        submitted_at=attempt.submitted_at,
        score=attempt.score,
        total_points=attempt.total_points,
        time_taken=attempt.time_taken,
        is_completed=attempt.is_completed,
        quiz_title=quiz_title,
    )


@router.post(
    "", response_model=AttemptCreatedOut, status_code=status.HTTP_201_CREATED
)
def create_attempt(
    body: AttemptCreateIn,
    principal: Annotated[Principal, Depends(require_student)],
) -> AttemptCreatedOut:
    if not body.quiz_id:
        raise HTTPException(status_code=400, detail="Quiz ID is required")
    try:
        attempt = attempt_service.start_attempt(
            quiz_repo,
            enrollment_repo,
            attempt_repo,
            quiz_id=body.quiz_id,
            student_id=principal.user_id,
            now=utcnow(),
        )
    except AttemptRejected as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=ErrorDetail(code=e.code.value, message=e.message).model_dump(),
        ) from None
    except ValueError:
        # The repo refused a second open attempt created concurrently.
        raise HTTPException(
            status_code=409,
            detail=ErrorDetail(
                code=AttemptErrorCode.ACTIVE_ATTEMPT.value,
                message="You already have an active attempt for this quiz",
            ).model_dump(),
        ) from None
    return AttemptCreatedOut(
        id=attempt.id,
        quiz_id=attempt.quiz_id,
        student_id=attempt.student_id,
        started_at=attempt.started_at,
        is_completed=attempt.is_completed,
    )


@router.post("/{attempt_id}/submit", response_model=SubmitOut)
def submit_attempt(
    attempt_id: str,
    body: SubmitIn,
    principal: Annotated[Principal, Depends(require_student)],
) -> SubmitOut:
    try:
        submitted = attempt_service.parse_submission(
            [(a.question_id, a.answer) for a in body.answers]
        )
        result = attempt_service.submit_attempt(
            attempt_repo,
            question_repo,
            attempt_id=attempt_id,
            student_id=principal.user_id,
            submitted=submitted,
            now=utcnow(),
        )
    except SubmissionRejected as e:
        raise HTTPException(status_code=e.status_code, detail=e.message) from None
    return SubmitOut(
        attempt_id=result.attempt.id,
        score=result.score,
        total_possible_points=result.total_possible_points,
        time_taken=result.attempt.time_taken,
    )


@router.get("", response_model=list[AttemptOut])
def list_attempts(
    principal: Annotated[Principal, Depends(require_user)],
    quiz_id: Annotated[str | None, Query(alias="quizId")] = None,
    student_id: Annotated[str | None, Query(alias="studentId")] = None,
    is_completed: Annotated[bool | None, Query(alias="isCompleted")] = None,
) -> list[AttemptOut]:
    attempts = attempt_service.list_attempts_for(
        attempt_repo,
        quiz_repo,
        principal,
        quiz_id=quiz_id,
        student_id=student_id,
        is_completed=is_completed,
    )
    titles: dict[str, str | None] = {}
    out = []
    for attempt in attempts:
        if attempt.quiz_id not in titles:
            quiz = quiz_repo.get(attempt.quiz_id)
            titles[attempt.quiz_id] = quiz.title if quiz else None
        out.append(_attempt_out(attempt, titles[attempt.quiz_id]))
    return out
