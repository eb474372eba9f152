"""Class, enrollment and leaderboard endpoints.

Teachers create classes and hand out the generated join code; students
enroll by class id or by that code. Deleting a class removes its
enrollments and leaves its quizzes without a class.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from classquiz.api.dependencies import require_student, require_teacher, require_user
from classquiz.models.classroom import Classroom, Enrollment
from classquiz.models.principal import Principal
from classquiz.repos.registry import (
    attempt_repo,
    classroom_repo,
    enrollment_repo,
    notification_repo,
    quiz_repo,
)
from classquiz.schemas import (
    ClassIn,
    ClassOut,
    ClassRosterOut,
    EnrollByCodeIn,
    EnrollmentIn,
    EnrollmentOut,
    LeaderboardEntryOut,
)
from classquiz.services import classroom_service, leaderboard_service
from classquiz.services.classroom_service import (
    AlreadyEnrolledError,
    ClassroomAccessDenied,
    ClassroomNotFoundError,
    ClassroomValidationError,
    EnrollmentNotFoundError,
)

router = APIRouter(prefix="/api/classes", tags=["classes"])
enrollments_router = APIRouter(prefix="/api/enrollments", tags=["classes"])


def _class_out(classroom: Classroom) -> ClassOut:
    return ClassOut(
        id=classroom.id,
        name=classroom.name,
        description=classroom.description,
        class_code=classroom.class_code,
        teacher_id=classroom.teacher_id,
    )


def _enrollment_out(enrollment: Enrollment) -> EnrollmentOut:
    return EnrollmentOut(
        id=enrollment.id,
        class_id=enrollment.class_id,
        student_id=enrollment.student_id,
        enrolled_at=enrollment.enrolled_at,
    )


@router.get("", response_model=list[ClassOut])
def list_classes(
    principal: Annotated[Principal, Depends(require_user)],
) -> list[ClassOut]:
    classrooms = classroom_service.list_classrooms_for(
        principal, classroom_repo, enrollment_repo
    )
    return [_class_out(c) for c in classrooms]


@router.post("", response_model=ClassOut, status_code=status.HTTP_201_CREATED)
def create_class(
    body: ClassIn,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> ClassOut:
    try:
        classroom = classroom_service.create_classroom(
            classroom_repo,
            name=body.name,
            description=body.description,
            teacher_id=principal.user_id,
        )
    except ClassroomValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return _class_out(classroom)


@router.put("/{class_id}", response_model=ClassOut)
def update_class(
    class_id: str,
    body: ClassIn,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> ClassOut:
    try:
        classroom = classroom_service.update_classroom(
            classroom_repo,
            class_id=class_id,
            teacher_id=principal.user_id,
            name=body.name,
            description=body.description,
        )
    except ClassroomValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    except ClassroomNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return _class_out(classroom)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(
    class_id: str,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> Response:
    try:
        classroom_service.delete_classroom(
            classroom_repo,
            enrollment_repo,
            quiz_repo,
            class_id=class_id,
            teacher_id=principal.user_id,
        )
    except ClassroomNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{class_id}/enrollments", response_model=ClassRosterOut)
def get_roster(
    class_id: str,
    principal: Annotated[Principal, Depends(require_teacher)],
) -> ClassRosterOut:
    try:
        roster = classroom_service.list_class_roster(
            classroom_repo,
            enrollment_repo,
            class_id=class_id,
            teacher_id=principal.user_id,
        )
    except ClassroomAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e)) from None
    return ClassRosterOut(
        enrollments=[_enrollment_out(e) for e in roster],
        total_students=len(roster),
    )


@router.delete(
    "/{class_id}/enrollments/leave", status_code=status.HTTP_204_NO_CONTENT
)
def leave_class(
    class_id: str,
    principal: Annotated[Principal, Depends(require_student)],
) -> Response:
    try:
        classroom_service.leave_classroom(
            enrollment_repo, class_id=class_id, student_id=principal.user_id
        )
    except EnrollmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{class_id}/leaderboard", response_model=list[LeaderboardEntryOut])
def get_leaderboard(
    class_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> list[LeaderboardEntryOut]:
    classroom = classroom_repo.get(class_id)
    if classroom is None:
        raise HTTPException(status_code=404, detail="Class not found")
    if principal.is_teacher:
        allowed = classroom.teacher_id == principal.user_id
    else:
        allowed = enrollment_repo.get(class_id, principal.user_id) is not None
    if not allowed:
        raise HTTPException(status_code=403, detail="Access denied")

    entries = leaderboard_service.build_leaderboard(
        quiz_repo, attempt_repo, enrollment_repo, class_id=class_id
    )
    return [
        LeaderboardEntryOut(
            student_id=e.student_id,
            total_score=e.total_score,
            attempts_completed=e.attempts_completed,
            rank=e.rank,
        )
        for e in entries
    ]


def _enroll(student_id: str, **target: str | None) -> EnrollmentOut:
    try:
        enrollment = classroom_service.enroll(
            classroom_repo,
            enrollment_repo,
            notification_repo,
            student_id=student_id,
            **target,
        )
    except ClassroomValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    except ClassroomNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except AlreadyEnrolledError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return _enrollment_out(enrollment)


@enrollments_router.post(
    "", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED
)
def enroll(
    body: EnrollmentIn,
    principal: Annotated[Principal, Depends(require_student)],
) -> EnrollmentOut:
    return _enroll(principal.user_id, class_id=body.class_id)


@enrollments_router.post(
    "/by-code", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED
)
def enroll_by_code(
    body: EnrollByCodeIn,
    principal: Annotated[Principal, Depends(require_student)],
) -> EnrollmentOut:
    return _enroll(principal.user_id, class_code=body.class_code)


@enrollments_router.get("", response_model=list[EnrollmentOut])
def list_enrollments(
    principal: Annotated[Principal, Depends(require_user)],
    class_id: Annotated[str | None, Query(alias="classId")] = None,
) -> list[EnrollmentOut]:
    enrollments = classroom_service.list_enrollments_for(
        principal, classroom_repo, enrollment_repo, class_id=class_id
    )
    return [_enrollment_out(e) for e in enrollments]


@enrollments_router.delete(
    "/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT
)
def delete_enrollment(
    enrollment_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> Response:
    try:
        classroom_service.delete_enrollment(
            classroom_repo,
            enrollment_repo,
            enrollment_id=enrollment_id,
            principal=principal,
        )
    except EnrollmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except ClassroomAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e)) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
