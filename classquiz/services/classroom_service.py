from __future__ import annotations

import logging

from classquiz.models.classroom import Classroom, Enrollment
from classquiz.models.principal import Principal
from classquiz.repos.classroom_repo import ClassroomRepo, EnrollmentRepo
from classquiz.repos.notification_repo import NotificationRepo
from classquiz.repos.quiz_repo import QuizRepo
from classquiz.services import notification_service

logger = logging.getLogger(__name__)

_CODE_ATTEMPTS = 5


class ClassroomValidationError(ValueError):
    pass


class ClassroomNotFoundError(Exception):
    pass


class AlreadyEnrolledError(Exception):
    pass


class ClassroomAccessDenied(Exception):
    pass


class EnrollmentNotFoundError(Exception):
    pass


def create_classroom(
    repo: ClassroomRepo,
    *,
    name: str,
    teacher_id: str,
    description: str | None = None,
) -> Classroom:
    name = name.strip()
    if not name:
        logger.warning("Rejected blank class name from teacher=%s", teacher_id)
        raise ClassroomValidationError("Class name is required")

    # Codes are short and random; retry the rare collision.
    for _ in range(_CODE_ATTEMPTS):
        classroom = Classroom.new(
            name=name, teacher_id=teacher_id, description=description
        )
        if repo.get_by_code(classroom.class_code) is None:
            repo.add(classroom)
            logger.info(
                "Created class id=%s code=%s teacher=%s",
                classroom.id,
                classroom.class_code,
                teacher_id,
            )
            return classroom
    raise RuntimeError("could not allocate a unique class code")


def list_classrooms_for(
    principal: Principal, classrooms: ClassroomRepo, enrollments: EnrollmentRepo
) -> list[Classroom]:
    if principal.is_teacher:
        return classrooms.list_by_teacher(principal.user_id)
    result = []
    for class_id in sorted(enrollments.class_ids_for_student(principal.user_id)):
        classroom = classrooms.get(class_id)
        if classroom is not None:
            result.append(classroom)
    return result


def enroll(
    classrooms: ClassroomRepo,
    enrollments: EnrollmentRepo,
    notifications: NotificationRepo,
    *,
    student_id: str,
    class_id: str | None = None,
    class_code: str | None = None,
) -> Enrollment:
    """Enroll a student by class id or by join code."""
    if class_id:
        classroom = classrooms.get(class_id)
    elif class_code:
        classroom = classrooms.get_by_code(class_code)
    else:
        raise ClassroomValidationError("Class ID or class code is required")

    if classroom is None:
        raise ClassroomNotFoundError("Class not found")

    if enrollments.get(classroom.id, student_id) is not None:
        logger.warning(
            "Duplicate enrollment student=%s class=%s", student_id, classroom.id
        )
        raise AlreadyEnrolledError("Student already enrolled in this class")

    enrollment = Enrollment.new(class_id=classroom.id, student_id=student_id)
    enrollments.add(enrollment)
    notification_service.notify(
        notifications,
        user_id=classroom.teacher_id,
        type="student_enrolled",
        message=f"A new student joined {classroom.name}",
        link=f"/teacher/classes/{classroom.id}",
    )
    logger.info("Enrolled student=%s in class=%s", student_id, classroom.id)
    return enrollment


def _owned_classroom(
    repo: ClassroomRepo, class_id: str, teacher_id: str
) -> Classroom:
    classroom = repo.get(class_id)
    if classroom is None or classroom.teacher_id != teacher_id:
        raise ClassroomNotFoundError(
            "Class not found or you do not have permission to change it"
        )
    return classroom


def update_classroom(
    repo: ClassroomRepo,
    *,
    class_id: str,
    teacher_id: str,
    name: str,
    description: str | None = None,
) -> Classroom:
    """Rename a class. The join code never changes."""
    name = name.strip()
    if not name:
        raise ClassroomValidationError("Class name is required")
    _owned_classroom(repo, class_id, teacher_id)
    updated = repo.update(class_id, name=name, description=description or None)
    if updated is None:
        raise ClassroomNotFoundError("Class not found")
    logger.info("Updated class id=%s teacher=%s", class_id, teacher_id)
    return updated


def delete_classroom(
    classrooms: ClassroomRepo,
    enrollments: EnrollmentRepo,
    quizzes: QuizRepo,
    *,
    class_id: str,
    teacher_id: str,
) -> None:
    """Delete a class with its enrollments.

    Quizzes assigned to the class are kept but no longer belong to any class.
    """
    _owned_classroom(classrooms, class_id, teacher_id)
    removed = enrollments.delete_for_class(class_id)
    detached = 0
    for quiz in quizzes.list_by_classes({class_id}):
        quizzes.update(quiz.id, class_id=None)
        detached += 1
    classrooms.delete(class_id)
    logger.info(
        "Deleted class id=%s: %d enrollment(s) removed, %d quiz(zes) detached",
        class_id,
        removed,
        detached,
    )


def list_enrollments_for(
    principal: Principal,
    classrooms: ClassroomRepo,
    enrollments: EnrollmentRepo,
    *,
    class_id: str | None = None,
) -> list[Enrollment]:
    """Students see their own enrollments; teachers those of their classes."""
    if principal.is_teacher:
        result = [
            e
            for c in classrooms.list_by_teacher(principal.user_id)
            for e in enrollments.list_for_class(c.id)
        ]
    else:
        result = enrollments.list_for_student(principal.user_id)
    if class_id is not None:
        result = [e for e in result if e.class_id == class_id]
    return sorted(result, key=lambda e: e.enrolled_at, reverse=True)


def list_class_roster(
    classrooms: ClassroomRepo,
    enrollments: EnrollmentRepo,
    *,
    class_id: str,
    teacher_id: str,
) -> list[Enrollment]:
    classroom = classrooms.get(class_id)
    if classroom is None or classroom.teacher_id != teacher_id:
        raise ClassroomAccessDenied(
            "Access denied: You are not the teacher of this class"
        )
    return sorted(enrollments.list_for_class(class_id), key=lambda e: e.enrolled_at)


def delete_enrollment(
    classrooms: ClassroomRepo,
    enrollments: EnrollmentRepo,
    *,
    enrollment_id: str,
    principal: Principal,
) -> None:
    """Remove an enrollment; allowed for the student or the class's teacher."""
    enrollment = enrollments.get_by_id(enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError("Enrollment not found")
    classroom = classrooms.get(enrollment.class_id)
    teacher_id = classroom.teacher_id if classroom is not None else None
    if principal.user_id not in (enrollment.student_id, teacher_id):
        logger.warning(
            "User %s denied removal of enrollment %s", principal.user_id, enrollment_id
        )
        raise ClassroomAccessDenied(
            "Access denied: You do not have permission to delete this enrollment"
        )
    enrollments.remove(enrollment.class_id, enrollment.student_id)
    logger.info(
        "Removed student=%s from class=%s by user=%s",
        enrollment.student_id,
        enrollment.class_id,
        principal.user_id,
    )


def leave_classroom(
    enrollments: EnrollmentRepo, *, class_id: str, student_id: str
) -> None:
    if not enrollments.remove(class_id, student_id):
        raise EnrollmentNotFoundError("You are not enrolled in this class")
    logger.info("Student=%s left class=%s", student_id, class_id)
