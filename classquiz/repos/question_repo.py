from __future__ import annotations

from typing import Protocol

from classquiz.models.question import Question


class QuestionRepo(Protocol):
    def get(self, question_id: str) -> Question | None: ...
    def list_for_quiz(self, quiz_id: str) -> list[Question]: ...
    def add(self, question: Question) -> None: ...
    def replace(self, question: Question) -> None: ...
    def delete(self, question_id: str) -> bool: ...
    def delete_for_quiz(self, quiz_id: str) -> int: ...


class InMemoryQuestionRepo:
    def __init__(self) -> None:
        self._by_quiz: dict[str, list[Question]] = {}

    def get(self, question_id: str) -> Question | None:
        for questions in self._by_quiz.values():
            for q in questions:
                if q.id == question_id:
                    return q
        return None

    def list_for_quiz(self, quiz_id: str) -> list[Question]:
        # sorted() is stable, so equal order_index keeps insertion order
        return sorted(self._by_quiz.get(quiz_id, []), key=lambda q: q.order_index)

    def add(self, question: Question) -> None:
        self._by_quiz.setdefault(question.quiz_id, []).append(question)

    def replace(self, question: Question) -> None:
        questions = self._by_quiz.get(question.quiz_id, [])
        for i, q in enumerate(questions):
            if q.id == question.id:
                questions[i] = question
                return
        raise KeyError(question.id)

    def delete(self, question_id: str) -> bool:
        for questions in self._by_quiz.values():
            for i, q in enumerate(questions):
                if q.id == question_id:
                    del questions[i]
                    return True
        return False

    def delete_for_quiz(self, quiz_id: str) -> int:
        return len(self._by_quiz.pop(quiz_id, []))

