from __future__ import annotations

import datetime
import secrets
import string
from dataclasses import dataclass, field
from uuid import uuid4

from classquiz.models.quiz import utcnow

_CODE_ALPHABET = string.ascii_uppercase + string.digits
CLASS_CODE_LENGTH = 6


def generate_class_code() -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(CLASS_CODE_LENGTH))


@dataclass(frozen=True, slots=True)
class Classroom:
    id: str
    name: str
    class_code: str
    teacher_id: str
    description: str | None = None
    created_at: datetime.datetime = field(default_factory=utcnow)

    @staticmethod
    def new(
        *, name: str, teacher_id: str, description: str | None = None
    ) -> Classroom:
        return Classroom(
            id=str(uuid4()),
            name=name,
            class_code=generate_class_code(),
            teacher_id=teacher_id,
            description=description,
        )


@dataclass(frozen=True, slots=True)
class Enrollment:
    id: str
    class_id: str
    student_id: str
    enrolled_at: datetime.datetime = field(default_factory=utcnow)

    @staticmethod
    def new(*, class_id: str, student_id: str) -> Enrollment:
        return Enrollment(id=str(uuid4()), class_id=class_id, student_id=student_id)
