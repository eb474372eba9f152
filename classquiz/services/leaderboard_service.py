from __future__ import annotations

from dataclasses import dataclass

from classquiz.repos.attempt_repo import AttemptRepo
from classquiz.repos.classroom_repo import EnrollmentRepo
from classquiz.repos.quiz_repo import QuizRepo


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    student_id: str
    total_score: int
    attempts_completed: int
    rank: int


def build_leaderboard(
    quizzes: QuizRepo,
    attempts: AttemptRepo,
    enrollments: EnrollmentRepo,
    *,
    class_id: str,
) -> list[LeaderboardEntry]:
    """Rank a class's students by the summed score of completed attempts.

    Enrolled students without a completed attempt appear with zero.
    Ties are ordered by student id.
    """
    quiz_ids = {q.id for q in quizzes.list_by_classes({class_id})}
    totals: dict[str, list[int]] = {
        e.student_id: [0, 0] for e in enrollments.list_for_class(class_id)
    }
    if quiz_ids:
        for attempt in attempts.find(quiz_ids=quiz_ids, is_completed=True):
            bucket = totals.setdefault(attempt.student_id, [0, 0])
            bucket[0] += attempt.score or 0
            bucket[1] += 1

    ordered = sorted(totals.items(), key=lambda kv: (-kv[1][0], kv[0]))
    return [
        LeaderboardEntry(
            student_id=student_id,
            total_score=score,
            attempts_completed=count,
            rank=index,
        )
        for index, (student_id, (score, count)) in enumerate(ordered, start=1)
    ]
