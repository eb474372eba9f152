from __future__ import annotations

from dataclasses import replace
from typing import Any, Protocol

from classquiz.models.quiz import Quiz


class QuizRepo(Protocol):
    def get(self, quiz_id: str) -> Quiz | None: ...
    def add(self, quiz: Quiz) -> None: ...
    def update(self, quiz_id: str, **changes: Any) -> Quiz | None: ...
    def delete(self, quiz_id: str) -> bool: ...
    def list_by_teacher(self, teacher_id: str) -> list[Quiz]: ...
    def list_by_classes(self, class_ids: set[str]) -> list[Quiz]: ...


class InMemoryQuizRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Quiz] = {}

    def get(self, quiz_id: str) -> Quiz | None:
        return self._by_id.get(quiz_id)

    def add(self, quiz: Quiz) -> None:
        if quiz.id in self._by_id:
            raise ValueError("quiz already exists")
        self._by_id[quiz.id] = quiz

    def update(self, quiz_id: str, **changes: Any) -> Quiz | None:
        quiz = self._by_id.get(quiz_id)
        if quiz is None:
            return None
        updated = replace(quiz, **changes)
        self._by_id[quiz_id] = updated
        return updated

    def delete(self, quiz_id: str) -> bool:
        return self._by_id.pop(quiz_id, None) is not None

    def list_by_teacher(self, teacher_id: str) -> list[Quiz]:
        quizzes = [q for q in self._by_id.values() if q.teacher_id == teacher_id]
        return sorted(quizzes, key=lambda q: q.created_at, reverse=True)

    def list_by_classes(self, class_ids: set[str]) -> list[Quiz]:
        quizzes = [q for q in self._by_id.values() if q.class_id in class_ids]
        return sorted(quizzes, key=lambda q: q.created_at, reverse=True)
