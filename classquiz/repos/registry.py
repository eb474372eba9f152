"""Module-level repository singletons shared by the API routers.

In-memory for now; a database-backed implementation only has to satisfy
the Protocols each repo module declares.
"""

from __future__ import annotations

from classquiz.repos.attempt_repo import AttemptRepo, InMemoryAttemptRepo
from classquiz.repos.classroom_repo import (
    ClassroomRepo,
    EnrollmentRepo,
    InMemoryClassroomRepo,
    InMemoryEnrollmentRepo,
)
from classquiz.repos.notification_repo import (
    InMemoryNotificationRepo,
    NotificationRepo,
)
from classquiz.repos.question_repo import InMemoryQuestionRepo, QuestionRepo
from classquiz.repos.quiz_repo import InMemoryQuizRepo, QuizRepo

classroom_repo: ClassroomRepo = InMemoryClassroomRepo()
enrollment_repo: EnrollmentRepo = InMemoryEnrollmentRepo()
quiz_repo: QuizRepo = InMemoryQuizRepo()
question_repo: QuestionRepo = InMemoryQuestionRepo()
attempt_repo: AttemptRepo = InMemoryAttemptRepo()
notification_repo: NotificationRepo = InMemoryNotificationRepo()
