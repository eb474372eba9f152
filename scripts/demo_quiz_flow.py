"""Demo: a teacher sets up a quiz, a student takes it through the attempt client.

Everything runs in-process: the teacher side uses FastAPI's TestClient,
the student side drives AttemptSession over httpx's ASGI transport.

Run with:
    python scripts/demo_quiz_flow.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import httpx
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from classquiz.client.api_client import QuizApiClient  # noqa: E402
from classquiz.client.polling import NotificationPoller  # noqa: E402
from classquiz.client.review import ReviewRenderer  # noqa: E402
from classquiz.client.session import AttemptSession, LoggingSessionUI  # noqa: E402
from classquiz.main import app  # noqa: E402
from classquiz.services import token_service  # noqa: E402

TEACHER = "demo-teacher"
STUDENT = "demo-student"


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def set_up_quiz(client: TestClient, teacher_token: str, student_token: str) -> str:
    # ── Step 1: teacher creates a class ─────────────────────────────
    r = client.post(
        "/api/classes", json={"name": "Demo Physics"}, headers=_auth(teacher_token)
    )
    classroom = r.json()
    print(f"1. POST /api/classes              → {r.status_code}  code={classroom['classCode']}")

    # ── Step 2: student joins with the code ─────────────────────────
    r = client.post(
        "/api/enrollments/by-code",
        json={"classCode": classroom["classCode"].lower()},
        headers=_auth(student_token),
    )
    print(f"2. POST /api/enrollments/by-code  → {r.status_code}")

    # ── Step 3: teacher drafts a quiz with two questions ────────────
    r = client.post(
        "/api/quizzes",
        json={"title": "Vectors", "classId": classroom["id"], "timeLimit": 5},
        headers=_auth(teacher_token),
    )
    quiz = r.json()
    print(f"3. POST /api/quizzes              → {r.status_code}  status={quiz['status']}")
    for body in (
        {
            "questionText": "Velocity is a vector.",
            "questionType": "true-false",
            "correctAnswer": "True",
            "points": 2,
        },
        {
            "questionText": "Which is a scalar?",
            "questionType": "multiple-choice",
            "options": ["force", "mass", "displacement"],
            "correctAnswer": "mass",
            "points": 3,
        },
    ):
        r = client.post(
            f"/api/quizzes/{quiz['id']}/questions",
            json=body,
            headers=_auth(teacher_token),
        )
        print(f"   POST /api/quizzes/…/questions  → {r.status_code}")

    # ── Step 4: publishing notifies the class ───────────────────────
    r = client.put(
        f"/api/quizzes/{quiz['id']}",
        json={"isPublished": True},
        headers=_auth(teacher_token),
    )
    print(f"4. PUT  /api/quizzes/{{id}}         → {r.status_code}  status={r.json()['status']}")
    return quiz["id"]


async def take_quiz(quiz_id: str, student_token: str) -> None:
    ui = LoggingSessionUI()
    async with QuizApiClient(
        "http://demo",
        lambda: student_token,
        transport=httpx.ASGITransport(app=app),
    ) as api:
        # ── Step 5: first notification poll ─────────────────────────
        async with NotificationPoller(api, ui, interval=60) as poller:
            await asyncio.sleep(0.05)
        print(f"5. notifications                  → unread={poller.unread_count}")

        # ── Step 6: load, answer, submit ────────────────────────────
        session = AttemptSession(api, quiz_id, ui, redirect_delay=0)
        await session.load()
        print(
            f"6. session.load()                 → {session.state}  "
            f"time left {session.timer.format_remaining()}"
        )
        first, second = session.questions
        session.answer(first.id, "True")
        session.answer(second.id, "force")
        await session.submit()
        print(f"   session.submit()               → {session.state}  {ui.toasts[-1][1]}")

        # ── Step 7: review ──────────────────────────────────────────
        review = await ReviewRenderer(api).render(quiz_id, session.attempt_id)
        print(f"7. review                         → {review.score}/{review.total_points}")
        for item in review.items:
            marks = ", ".join(
                f"{m.option}{'*' if m.chosen else ''}{'✓' if m.correct else ''}"
                for m in item.options
            )
            print(f"   {'✓' if item.is_correct else '✗'} {item.question_text}  [{marks}]")


def main() -> None:
    teacher_token = token_service.create_access_token(sub=TEACHER, roles=["teacher"])
    student_token = token_service.create_access_token(sub=STUDENT, roles=["student"])

    client = TestClient(app)
    quiz_id = set_up_quiz(client, teacher_token, student_token)
    asyncio.run(take_quiz(quiz_id, student_token))

    # ── Step 8: teacher checks the leaderboard ──────────────────────
    classes = client.get("/api/classes", headers=_auth(teacher_token)).json()
    r = client.get(
        f"/api/classes/{classes[0]['id']}/leaderboard", headers=_auth(teacher_token)
    )
    print(f"8. GET  /api/classes/{{id}}/leaderboard → {r.status_code}  {r.json()}")

    print("\nAll steps completed.")


if __name__ == "__main__":
    main()
