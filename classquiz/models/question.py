from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Literal
from uuid import uuid4

logger = logging.getLogger(__name__)

QuestionType = Literal["multiple-choice", "true-false", "short-answer"]

QUESTION_TYPES: tuple[str, ...] = ("multiple-choice", "true-false", "short-answer")
CHOICE_TYPES: frozenset[str] = frozenset({"multiple-choice", "true-false"})
TRUE_FALSE_OPTIONS: tuple[str, ...] = ("True", "False")


class QuestionValidationError(ValueError):
    pass


def parse_options(raw: object) -> list[str]:
    """Normalize a stored options value into a list of strings.

    Options arrive either as a native list or as a JSON-encoded string.
    Anything that does not decode to a list degrades to an empty list.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding malformed options payload: %.60r", raw)
            return []
    if not isinstance(raw, (list, tuple)):
        logger.warning("Discarding non-list options of type=%s", type(raw).__name__)
        return []
    return [str(opt) for opt in raw if opt is not None]


@dataclass(frozen=True, slots=True)
class Question:
    id: str
    quiz_id: str
    question_text: str
    question_type: QuestionType
    correct_answer: str
    points: int = 1
    order_index: int = 0
    options: tuple[str, ...] = ()

    @staticmethod
    def new(
        *,
        quiz_id: str,
        question_text: str,
        question_type: QuestionType,
        correct_answer: str,
        points: int = 1,
        order_index: int = 0,
        options: tuple[str, ...] = (),
    ) -> Question:
        question = Question(
            id=str(uuid4()),
            quiz_id=quiz_id,
            question_text=question_text,
            question_type=question_type,
            correct_answer=correct_answer,
            points=points,
            order_index=order_index,
            options=options,
        )
        validate_question(question)
        return question

    @property
    def is_choice(self) -> bool:
        return self.question_type in CHOICE_TYPES


def validate_question(question: Question) -> None:
    if not question.question_text.strip():
        raise QuestionValidationError("question text must be non-empty")
    if not question.correct_answer.strip():
        raise QuestionValidationError("correct answer must be non-empty")
    if question.question_type not in QUESTION_TYPES:
        raise QuestionValidationError(
            f"invalid question type {question.question_type!r}"
        )
    if question.points < 0:
        raise QuestionValidationError("points must not be negative")
    if question.question_type == "multiple-choice":
        filled = [opt for opt in question.options if opt.strip()]
        if len(filled) < 2:
            raise QuestionValidationError(
                "multiple-choice questions need at least 2 non-empty options"
            )
