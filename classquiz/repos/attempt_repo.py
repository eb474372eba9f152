from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from classquiz.models.attempt import Answer, Attempt


class AttemptRepo(Protocol):
    def get(self, attempt_id: str) -> Attempt | None: ...
    def add(self, attempt: Attempt) -> None: ...
    def find_active(self, quiz_id: str, student_id: str) -> Attempt | None: ...
    def complete(self, attempt: Attempt, answers: list[Answer]) -> Attempt: ...
    def find(
        self,
        *,
        quiz_ids: set[str] | None = None,
        student_id: str | None = None,
        is_completed: bool | None = None,
    ) -> list[Attempt]: ...
    def list_answers(self, attempt_ids: set[str]) -> list[Answer]: ...


class InMemoryAttemptRepo:
    """Attempts and their answers; answers are only ever written by complete()."""

    def __init__(self) -> None:
        self._attempts: dict[str, Attempt] = {}
        self._answers: dict[str, list[Answer]] = {}

    def get(self, attempt_id: str) -> Attempt | None:
        return self._attempts.get(attempt_id)

    def add(self, attempt: Attempt) -> None:
        if self.find_active(attempt.quiz_id, attempt.student_id) is not None:
            raise ValueError("active attempt already exists")
        self._attempts[attempt.id] = attempt

    def find_active(self, quiz_id: str, student_id: str) -> Attempt | None:
        for attempt in self._attempts.values():
            if (
                attempt.quiz_id == quiz_id
                and attempt.student_id == student_id
                and not attempt.is_completed
            ):
                return attempt
        return None

    def complete(self, attempt: Attempt, answers: list[Answer]) -> Attempt:
        current = self._attempts.get(attempt.id)
        if current is None:
            raise KeyError("attempt not found")
        if current.is_completed:
            raise ValueError("attempt already completed")
        completed = replace(attempt, is_completed=True)
        self._attempts[attempt.id] = completed
        self._answers[attempt.id] = list(answers)
        return completed

    def find(
        self,
        *,
        quiz_ids: set[str] | None = None,
        student_id: str | None = None,
        is_completed: bool | None = None,
    ) -> list[Attempt]:
        result = []
        for attempt in self._attempts.values():
            if quiz_ids is not None and attempt.quiz_id not in quiz_ids:
                continue
            if student_id is not None and attempt.student_id != student_id:
                continue
            if is_completed is not None and attempt.is_completed != is_completed:
                continue
            result.append(attempt)
        return sorted(result, key=lambda a: a.started_at)

    def list_answers(self, attempt_ids: set[str]) -> list[Answer]:
        return [
            answer
            for attempt_id in attempt_ids
            for answer in self._answers.get(attempt_id, [])
        ]
