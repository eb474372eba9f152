from __future__ import annotations

from dataclasses import replace
from typing import Any, Protocol

from classquiz.models.classroom import Classroom, Enrollment


class ClassroomRepo(Protocol):
    def get(self, class_id: str) -> Classroom | None: ...
    def get_by_code(self, class_code: str) -> Classroom | None: ...
    def add(self, classroom: Classroom) -> None: ...
    def update(self, class_id: str, **changes: Any) -> Classroom | None: ...
    def delete(self, class_id: str) -> bool: ...
    def list_by_teacher(self, teacher_id: str) -> list[Classroom]: ...


class EnrollmentRepo(Protocol):
    def get(self, class_id: str, student_id: str) -> Enrollment | None: ...
    def get_by_id(self, enrollment_id: str) -> Enrollment | None: ...
    def add(self, enrollment: Enrollment) -> None: ...
    def remove(self, class_id: str, student_id: str) -> bool: ...
    def delete_for_class(self, class_id: str) -> int: ...
    def list_for_class(self, class_id: str) -> list[Enrollment]: ...
    def list_for_student(self, student_id: str) -> list[Enrollment]: ...
    def class_ids_for_student(self, student_id: str) -> set[str]: ...


class InMemoryClassroomRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Classroom] = {}
        self._by_code: dict[str, Classroom] = {}

    def get(self, class_id: str) -> Classroom | None:
        return self._by_id.get(class_id)

    def get_by_code(self, class_code: str) -> Classroom | None:
        return self._by_code.get(class_code.strip().upper())

    def add(self, classroom: Classroom) -> None:
        if classroom.class_code in self._by_code:
            raise ValueError("class code already exists")
        self._by_id[classroom.id] = classroom
        self._by_code[classroom.class_code] = classroom

    def update(self, class_id: str, **changes: Any) -> Classroom | None:
        classroom = self._by_id.get(class_id)
        if classroom is None:
            return None
        updated = replace(classroom, **changes)
        self._by_id[class_id] = updated
        self._by_code[updated.class_code] = updated
        return updated

    def delete(self, class_id: str) -> bool:
        classroom = self._by_id.pop(class_id, None)
        if classroom is None:
            return False
        self._by_code.pop(classroom.class_code, None)
        return True

    def list_by_teacher(self, teacher_id: str) -> list[Classroom]:
        return [c for c in self._by_id.values() if c.teacher_id == teacher_id]


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, str], Enrollment] = {}

    def get(self, class_id: str, student_id: str) -> Enrollment | None:
        return self._store.get((class_id, student_id))

    def get_by_id(self, enrollment_id: str) -> Enrollment | None:
        for e in self._store.values():
            if e.id == enrollment_id:
                return e
        return None

    def add(self, enrollment: Enrollment) -> None:
        key = (enrollment.class_id, enrollment.student_id)
        if key in self._store:
            raise ValueError("already enrolled")
        self._store[key] = enrollment

    def remove(self, class_id: str, student_id: str) -> bool:
        return self._store.pop((class_id, student_id), None) is not None

    def delete_for_class(self, class_id: str) -> int:
        keys = [key for key in self._store if key[0] == class_id]
        for key in keys:
            del self._store[key]
        return len(keys)

    def list_for_class(self, class_id: str) -> list[Enrollment]:
        return [e for (cid, _), e in self._store.items() if cid == class_id]

    def list_for_student(self, student_id: str) -> list[Enrollment]:
        return [e for (_, sid), e in self._store.items() if sid == student_id]

    def class_ids_for_student(self, student_id: str) -> set[str]:
        return {cid for (cid, sid) in self._store if sid == student_id}
