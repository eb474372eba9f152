from __future__ import annotations

from collections.abc import Sequence

from classquiz.schemas import AnswerIn


class BufferFrozenError(RuntimeError):
    pass


class AnswerBuffer:
    """In-memory answers for one attempt, keyed by question id.

    Nothing is persisted: discarding the buffer discards the answers.
    While frozen (a submission is in flight) every ``set`` is refused so
    the request body is the last state the student can have produced.
    """

    def __init__(self, question_ids: Sequence[str]) -> None:
        self._order = tuple(question_ids)
        self._known = frozenset(self._order)
        self._answers: dict[str, str] = {}
        self._frozen = False

    def __len__(self) -> int:
        return len(self._order)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def set(self, question_id: str, value: str) -> None:
        if self._frozen:
            raise BufferFrozenError("answers cannot change while submitting")
        if question_id not in self._known:
            raise KeyError(f"unknown question {question_id!r}")
        self._answers[question_id] = value

    def get(self, question_id: str) -> str:
        return self._answers.get(question_id, "")

    def unanswered_count(self) -> int:
        return sum(1 for qid in self._order if not self.get(qid).strip())

    def answered_count(self) -> int:
        return len(self._order) - self.unanswered_count()

    def serialize(self) -> list[AnswerIn]:
        """One entry per question in quiz order; unanswered ones are ``""``."""
        return [AnswerIn(question_id=qid, answer=self.get(qid)) for qid in self._order]

    def freeze(self) -> None:
        self._frozen = True

    def thaw(self) -> None:
        self._frozen = False
