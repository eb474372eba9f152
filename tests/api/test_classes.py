from __future__ import annotations

import string
from dataclasses import replace

from fastapi.testclient import TestClient

from classquiz.models.attempt import Attempt
from classquiz.models.quiz import utcnow
from classquiz.repos import registry
from tests.conftest import (
    STUDENT_ID,
    TEACHER_ID,
    auth,
    mint_token,
    seed_class,
    seed_enrollment,
    seed_quiz,
)


def test_teacher_creates_class_with_join_code(
    client: TestClient, teacher_token: str
) -> None:
    resp = client.post(
        "/api/classes",
        json={"name": "  Chemistry  ", "description": "Period 2"},
        headers=auth(teacher_token),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Chemistry"
    assert data["teacherId"] == TEACHER_ID
    assert len(data["classCode"]) == 6
    assert set(data["classCode"]) <= set(string.ascii_uppercase + string.digits)


def test_blank_class_name_is_400(client: TestClient, teacher_token: str) -> None:
    resp = client.post("/api/classes", json={"name": "   "}, headers=auth(teacher_token))
    assert resp.status_code == 400


def test_student_cannot_create_class(client: TestClient, student_token: str) -> None:
    resp = client.post("/api/classes", json={"name": "X"}, headers=auth(student_token))
    assert resp.status_code == 403


def test_list_classes_by_role(
    client: TestClient, teacher_token: str, student_token: str
) -> None:
    mine = seed_class()
    seed_class(teacher_id="someone-else", name="Other")
    seed_enrollment(mine.id)

    teacher_view = client.get("/api/classes", headers=auth(teacher_token)).json()
    assert [c["id"] for c in teacher_view] == [mine.id]

    student_view = client.get("/api/classes", headers=auth(student_token)).json()
    assert [c["id"] for c in student_view] == [mine.id]


def test_enroll_by_id_notifies_teacher(
    client: TestClient, student_token: str
) -> None:
    classroom = seed_class()
    resp = client.post(
        "/api/enrollments", json={"classId": classroom.id}, headers=auth(student_token)
    )
    assert resp.status_code == 201
    assert resp.json()["studentId"] == STUDENT_ID
    assert registry.notification_repo.unread_count(TEACHER_ID) == 1


def test_enroll_by_code_is_case_insensitive(
    client: TestClient, student_token: str
) -> None:
    classroom = seed_class()
    resp = client.post(
        "/api/enrollments/by-code",
        json={"classCode": classroom.class_code.lower()},
        headers=auth(student_token),
    )
    assert resp.status_code == 201
    assert resp.json()["classId"] == classroom.id


def test_enroll_unknown_class_is_404(client: TestClient, student_token: str) -> None:
    resp = client.post(
        "/api/enrollments/by-code",
        json={"classCode": "NOPE00"},
        headers=auth(student_token),
    )
    assert resp.status_code == 404


def test_enroll_without_target_is_400(client: TestClient, student_token: str) -> None:
    resp = client.post("/api/enrollments", json={}, headers=auth(student_token))
    assert resp.status_code == 400


def test_duplicate_enrollment_is_409(client: TestClient, student_token: str) -> None:
    classroom = seed_class()
    seed_enrollment(classroom.id)
    resp = client.post(
        "/api/enrollments", json={"classId": classroom.id}, headers=auth(student_token)
    )
    assert resp.status_code == 409


def _complete_attempt(quiz_id: str, student_id: str, score: int) -> None:
    attempt = Attempt.new(quiz_id=quiz_id, student_id=student_id, started_at=utcnow())
    registry.attempt_repo.add(attempt)
    graded = replace(attempt, score=score, total_points=10, submitted_at=utcnow())
    registry.attempt_repo.complete(graded, [])


def test_leaderboard_ranks_by_total_score(
    client: TestClient, teacher_token: str
) -> None:
    classroom = seed_class()
    for sid in ("amy", "bob", "cat"):
        seed_enrollment(classroom.id, student_id=sid)
    q1 = seed_quiz(class_id=classroom.id)
    q2 = seed_quiz(class_id=classroom.id, title="Dynamics")
    _complete_attempt(q1.id, "bob", 7)
    _complete_attempt(q2.id, "bob", 2)
    _complete_attempt(q1.id, "amy", 9)

    resp = client.get(
        f"/api/classes/{classroom.id}/leaderboard", headers=auth(teacher_token)
    )
    assert resp.status_code == 200
    board = resp.json()
    assert [(e["studentId"], e["totalScore"], e["rank"]) for e in board] == [
        ("amy", 9, 1),
        ("bob", 9, 2),
        ("cat", 0, 3),
    ]
    assert board[1]["attemptsCompleted"] == 2


def test_leaderboard_hidden_from_outsiders(client: TestClient) -> None:
    classroom = seed_class()
    outsider = mint_token(username="stranger", roles=["student"])
    other_teacher = mint_token(username="t2", roles=["teacher"])
    url = f"/api/classes/{classroom.id}/leaderboard"
    assert client.get(url, headers=auth(outsider)).status_code == 403
    assert client.get(url, headers=auth(other_teacher)).status_code == 403
    missing = client.get("/api/classes/nope/leaderboard", headers=auth(outsider))
    assert missing.status_code == 404


# ---- class maintenance ----


def test_teacher_renames_class_and_keeps_code(
    client: TestClient, teacher_token: str
) -> None:
    classroom = seed_class()
    resp = client.put(
        f"/api/classes/{classroom.id}",
        json={"name": " Physics 102 ", "description": "Spring"},
        headers=auth(teacher_token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert (data["name"], data["description"]) == ("Physics 102", "Spring")
    assert data["classCode"] == classroom.class_code
    renamed = registry.classroom_repo.get_by_code(classroom.class_code)
    assert renamed.name == "Physics 102"


def test_class_update_rules(client: TestClient, teacher_token: str) -> None:
    classroom = seed_class()
    foreign = seed_class(teacher_id="teacher-2", name="Theirs")

    blank = client.put(
        f"/api/classes/{classroom.id}", json={"name": "  "}, headers=auth(teacher_token)
    )
    assert blank.status_code == 400
    theirs = client.put(
        f"/api/classes/{foreign.id}", json={"name": "Mine"}, headers=auth(teacher_token)
    )
    assert theirs.status_code == 404
    assert registry.classroom_repo.get(foreign.id).name == "Theirs"


def test_delete_class_drops_enrollments_and_detaches_quizzes(
    client: TestClient, teacher_token: str, student_token: str
) -> None:
    classroom = seed_class()
    seed_enrollment(classroom.id)
    quiz = seed_quiz(class_id=classroom.id)

    resp = client.delete(f"/api/classes/{classroom.id}", headers=auth(teacher_token))
    assert resp.status_code == 204
    assert registry.classroom_repo.get(classroom.id) is None
    assert registry.classroom_repo.get_by_code(classroom.class_code) is None
    assert registry.enrollment_repo.get(classroom.id, STUDENT_ID) is None
    assert registry.quiz_repo.get(quiz.id).class_id is None
    assert client.get("/api/classes", headers=auth(student_token)).json() == []

    again = client.delete(f"/api/classes/{classroom.id}", headers=auth(teacher_token))
    assert again.status_code == 404


def test_only_owner_deletes_class(client: TestClient, student_token: str) -> None:
    classroom = seed_class()
    other_teacher = mint_token(username="teacher-2", roles=["teacher"])
    url = f"/api/classes/{classroom.id}"
    assert client.delete(url, headers=auth(other_teacher)).status_code == 404
    assert client.delete(url, headers=auth(student_token)).status_code == 403
    assert registry.classroom_repo.get(classroom.id) is not None


# ---- enrollments ----


def test_roster_is_for_the_class_teacher(
    client: TestClient, teacher_token: str, student_token: str
) -> None:
    classroom = seed_class()
    seed_enrollment(classroom.id)
    seed_enrollment(classroom.id, student_id="student-2")
    url = f"/api/classes/{classroom.id}/enrollments"

    resp = client.get(url, headers=auth(teacher_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["totalStudents"] == 2
    assert {e["studentId"] for e in data["enrollments"]} == {STUDENT_ID, "student-2"}

    other_teacher = mint_token(username="teacher-2", roles=["teacher"])
    assert client.get(url, headers=auth(other_teacher)).status_code == 403
    assert client.get(url, headers=auth(student_token)).status_code == 403


def test_enrollment_listing_by_role(
    client: TestClient, teacher_token: str, student_token: str
) -> None:
    mine = seed_class()
    second = seed_class(name="Astronomy")
    foreign = seed_class(teacher_id="teacher-2", name="Biology")
    seed_enrollment(mine.id)
    seed_enrollment(foreign.id)
    seed_enrollment(second.id, student_id="student-2")

    student_view = client.get("/api/enrollments", headers=auth(student_token)).json()
    assert {e["classId"] for e in student_view} == {mine.id, foreign.id}

    teacher_view = client.get("/api/enrollments", headers=auth(teacher_token)).json()
    assert {(e["classId"], e["studentId"]) for e in teacher_view} == {
        (mine.id, STUDENT_ID),
        (second.id, "student-2"),
    }

    filtered = client.get(
        "/api/enrollments", params={"classId": second.id}, headers=auth(teacher_token)
    ).json()
    assert [e["studentId"] for e in filtered] == ["student-2"]


def test_enrollment_removed_by_student_or_class_teacher(
    client: TestClient, teacher_token: str, student_token: str
) -> None:
    classroom = seed_class()
    own = seed_enrollment(classroom.id)
    other = seed_enrollment(classroom.id, student_id="student-2")

    outsider = mint_token(username="student-3", roles=["student"])
    denied = client.delete(f"/api/enrollments/{own.id}", headers=auth(outsider))
    assert denied.status_code == 403

    by_student = client.delete(f"/api/enrollments/{own.id}", headers=auth(student_token))
    assert by_student.status_code == 204
    by_teacher = client.delete(f"/api/enrollments/{other.id}", headers=auth(teacher_token))
    assert by_teacher.status_code == 204
    assert registry.enrollment_repo.list_for_class(classroom.id) == []

    missing = client.delete(f"/api/enrollments/{own.id}", headers=auth(student_token))
    assert missing.status_code == 404


def test_student_leaves_class(
    client: TestClient, teacher_token: str, student_token: str
) -> None:
    classroom = seed_class()
    seed_enrollment(classroom.id)
    url = f"/api/classes/{classroom.id}/enrollments/leave"

    assert client.delete(url, headers=auth(teacher_token)).status_code == 403
    assert client.delete(url, headers=auth(student_token)).status_code == 204
    assert registry.enrollment_repo.get(classroom.id, STUDENT_ID) is None

    again = client.delete(url, headers=auth(student_token))
    assert again.status_code == 404
    assert again.json()["detail"] == "You are not enrolled in this class"
