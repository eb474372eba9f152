from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from classquiz.api.dependencies import require_user
from classquiz.models.principal import Principal
from classquiz.repos.registry import attempt_repo, quiz_repo
from classquiz.schemas import AnswerOut
from classquiz.services import attempt_service
from classquiz.services.attempt_service import AttemptNotFoundError

router = APIRouter(prefix="/api/answers", tags=["attempts"])


@router.get("", response_model=list[AnswerOut])
def list_answers(
    principal: Annotated[Principal, Depends(require_user)],
    attempt_id: Annotated[str, Query(alias="attemptId")],
) -> list[AnswerOut]:
    try:
        answers = attempt_service.list_answers_for(
            attempt_repo, quiz_repo, principal, attempt_id=attempt_id
        )
    except AttemptNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return [
        AnswerOut(
            id=a.id,
            attempt_id=a.attempt_id,
            question_id=a.question_id,
            answer=a.answer,
            is_correct=a.is_correct,
            points_earned=a.points_earned,
        )
        for a in answers
    ]
