from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth

# ---- 404: undefined routes ----


def test_undefined_route_returns_404(client: TestClient) -> None:
    resp = client.get("/nonexistent")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Not Found"}


def test_undefined_nested_route_returns_404(client: TestClient) -> None:
    resp = client.get("/api/v2/quizzes")
    assert resp.status_code == 404


# ---- 405: wrong HTTP method on existing routes ----


def test_delete_attempts_returns_405(client: TestClient, student_token: str) -> None:
    resp = client.delete("/api/attempts", headers=auth(student_token))
    assert resp.status_code == 405


def test_put_health_returns_405(client: TestClient) -> None:
    resp = client.put("/health", json={"status": "bad"})
    assert resp.status_code == 405


def test_get_submit_returns_405(client: TestClient, student_token: str) -> None:
    resp = client.get("/api/attempts/some-id/submit", headers=auth(student_token))
    assert resp.status_code == 405


# ---- 422: malformed bodies ----


def test_submit_with_non_list_answers_returns_422(
    client: TestClient, student_token: str
) -> None:
    resp = client.post(
        "/api/attempts/some-id/submit",
        json={"answers": "all of them"},
        headers=auth(student_token),
    )
    assert resp.status_code == 422


def test_quiz_with_zero_time_limit_returns_422(
    client: TestClient, teacher_token: str
) -> None:
    resp = client.post(
        "/api/quizzes",
        json={"title": "Instant", "timeLimit": 0},
        headers=auth(teacher_token),
    )
    assert resp.status_code == 422


def test_question_with_unknown_type_returns_422(
    client: TestClient, teacher_token: str
) -> None:
    resp = client.post(
        "/api/quizzes/any/questions",
        json={"questionText": "?", "questionType": "essay", "correctAnswer": "x"},
        headers=auth(teacher_token),
    )
    assert resp.status_code == 422
