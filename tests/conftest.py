from __future__ import annotations

import datetime
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import classquiz` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from classquiz.client.api_client import QuizApiClient  # noqa: E402
from classquiz.main import app  # noqa: E402
from classquiz.models.classroom import Classroom, Enrollment  # noqa: E402
from classquiz.models.question import Question  # noqa: E402
from classquiz.models.quiz import Quiz, utcnow  # noqa: E402
from classquiz.repos import registry  # noqa: E402
from classquiz.services import token_service  # noqa: E402

TEACHER_ID = "teacher-1"
STUDENT_ID = "student-1"


@pytest.fixture(autouse=True)
def reset_repos() -> None:
    """Clear every in-memory repo between tests."""
    registry.classroom_repo._by_id.clear()  # type: ignore[attr-defined]
    registry.classroom_repo._by_code.clear()  # type: ignore[attr-defined]
    registry.enrollment_repo._store.clear()  # type: ignore[attr-defined]
    registry.quiz_repo._by_id.clear()  # type: ignore[attr-defined]
    registry.question_repo._by_quiz.clear()  # type: ignore[attr-defined]
    registry.attempt_repo._attempts.clear()  # type: ignore[attr-defined]
    registry.attempt_repo._answers.clear()  # type: ignore[attr-defined]
    registry.notification_repo._by_id.clear()  # type: ignore[attr-defined]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = STUDENT_ID,
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str | None) -> dict[str, str]:
    if token is None:
        return {}
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_token() -> str:
    return mint_token(username=STUDENT_ID, roles=["student"])


@pytest.fixture
def teacher_token() -> str:
    return mint_token(username=TEACHER_ID, roles=["teacher"])


def asgi_api_client(token: str | None) -> QuizApiClient:
    """Attempt-client API wrapper talking to the real app in-process."""
    return QuizApiClient(
        "http://testserver",
        lambda: token,
        transport=httpx.ASGITransport(app=app),
    )


# ---------------------------------------------------------------------------
# Seed helpers (write straight to the repos, bypassing the HTTP layer)
# ---------------------------------------------------------------------------


def seed_class(teacher_id: str = TEACHER_ID, name: str = "Physics 101") -> Classroom:
    classroom = Classroom.new(name=name, teacher_id=teacher_id)
    registry.classroom_repo.add(classroom)
    return classroom


def seed_enrollment(class_id: str, student_id: str = STUDENT_ID) -> Enrollment:
    enrollment = Enrollment.new(class_id=class_id, student_id=student_id)
    registry.enrollment_repo.add(enrollment)
    return enrollment


def seed_quiz(
    *,
    class_id: str | None,
    teacher_id: str = TEACHER_ID,
    title: str = "Kinematics",
    time_limit: int | None = None,
    is_published: bool = True,
    start_time: datetime.datetime | None = None,
    end_time: datetime.datetime | None = None,
) -> Quiz:
    quiz = Quiz.new(
        title=title,
        teacher_id=teacher_id,
        class_id=class_id,
        time_limit=time_limit,
        is_published=is_published,
        start_time=start_time,
        end_time=end_time,
    )
    registry.quiz_repo.add(quiz)
    return quiz


def seed_question(
    quiz_id: str,
    *,
    text: str = "Is velocity a vector?",
    question_type: str = "true-false",
    correct_answer: str = "True",
    points: int = 1,
    options: tuple[str, ...] = ("True", "False"),
) -> Question:
    existing = registry.question_repo.list_for_quiz(quiz_id)
    question = Question.new(
        quiz_id=quiz_id,
        question_text=text,
        question_type=question_type,  # type: ignore[arg-type]
        correct_answer=correct_answer,
        points=points,
        order_index=len(existing),
        options=options,
    )
    registry.question_repo.add(question)
    total = sum(q.points for q in existing) + points
    registry.quiz_repo.update(quiz_id, total_points=total)
    return question


def seed_open_quiz(**quiz_kwargs) -> tuple[Classroom, Quiz]:
    """A published quiz in a class the default student is enrolled in."""
    classroom = seed_class()
    seed_enrollment(classroom.id)
    quiz = seed_quiz(class_id=classroom.id, **quiz_kwargs)
    return classroom, quiz


def hours(n: float) -> datetime.datetime:
    return utcnow() + datetime.timedelta(hours=n)
