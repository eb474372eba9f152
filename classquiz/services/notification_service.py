from __future__ import annotations

import logging

from classquiz.models.notification import Notification
from classquiz.models.quiz import Quiz
from classquiz.repos.classroom_repo import EnrollmentRepo
from classquiz.repos.notification_repo import NotificationRepo

logger = logging.getLogger(__name__)


def notify(
    repo: NotificationRepo,
    *,
    user_id: str,
    type: str,
    message: str,
    link: str | None = None,
) -> Notification:
    notification = Notification.new(
        user_id=user_id, type=type, message=message, link=link
    )
    repo.add(notification)
    logger.debug("Notification type=%s queued for user=%s", type, user_id)
    return notification


def notify_quiz_assigned(
    repo: NotificationRepo, enrollments: EnrollmentRepo, quiz: Quiz
) -> int:
    """Tell every student enrolled in the quiz's class that it is available."""
    if quiz.class_id is None:
        return 0
    sent = 0
    for enrollment in enrollments.list_for_class(quiz.class_id):
        notify(
            repo,
            user_id=enrollment.student_id,
            type="quiz_assigned",
            message=f'New quiz "{quiz.title}" has been assigned to your class',
            link=f"/student/quiz/{quiz.id}",
        )
        sent += 1
    logger.info("Quiz %s published; notified %d student(s)", quiz.id, sent)
    return sent
