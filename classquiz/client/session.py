"""Attempt session: one student's pass through one quiz.

States::

    LOADING ──load ok──▶ READY ──submit──▶ SUBMITTING ──ok──▶ SUBMITTED
       │                   ▲                   │
       └──fail──▶ ERROR    └──────fail─────────┘

``load()`` fetches the quiz, then its questions, then opens an attempt;
any failure lands in ERROR and ``load()`` may be called again.  A quiz
whose end time has passed still reaches READY but with ``closed`` set,
in which case submission is a no-op.

At most one submit request is ever outstanding: ``_in_flight`` is set
before the first await of ``submit()`` and is only released when a
submission fails or a manual confirmation is declined.  The countdown
runs only while READY; entering SUBMITTING stops it and freezes the
answer buffer before the request body is built.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal, Protocol

from classquiz.client.answer_buffer import AnswerBuffer, BufferFrozenError
from classquiz.client.api_client import QuizApiClient
from classquiz.client.errors import (
    INVALID_RESPONSE,
    ApiError,
    AttemptErrorKind,
    SessionError,
    user_message,
)
from classquiz.client.timer import CountdownTimer
from classquiz.core.config import SETTINGS
from classquiz.models.quiz import utcnow
from classquiz.schemas import QuestionOut, QuizOut

logger = logging.getLogger(__name__)

ToastLevel = Literal["info", "success", "warning", "error", "loading"]


class SessionState(StrEnum):
    LOADING = "loading"
    READY = "ready"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ERROR = "error"


class SubmitTrigger(StrEnum):
    MANUAL = "manual"
    TIMER = "timer"


class SessionUI(Protocol):
    async def confirm(self, message: str) -> bool: ...
    def toast(self, level: ToastLevel, message: str) -> None: ...
    def navigate(self, path: str) -> None: ...


_TOAST_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "loading": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class LoggingSessionUI:
    """Headless UI: records and logs every effect, answers confirmations
    with a fixed choice."""

    def __init__(self, *, auto_confirm: bool = True) -> None:
        self.auto_confirm = auto_confirm
        self.confirmations: list[str] = []
        self.toasts: list[tuple[str, str]] = []
        self.navigations: list[str] = []

    async def confirm(self, message: str) -> bool:
        self.confirmations.append(message)
        logger.info("confirm %r → %s", message, self.auto_confirm)
        return self.auto_confirm

    def toast(self, level: ToastLevel, message: str) -> None:
        self.toasts.append((level, message))
        logger.log(
            _TOAST_LOG_LEVELS.get(level, logging.INFO), "toast[%s] %s", level, message
        )

    def navigate(self, path: str) -> None:
        self.navigations.append(path)
        logger.info("navigate → %s", path)


def review_path(quiz_id: str, attempt_id: str) -> str:
    return f"/student/quiz/{quiz_id}/review?attemptId={attempt_id}"


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    score: int
    total_possible_points: int

    @property
    def percentage(self) -> int:
        if self.total_possible_points <= 0:
            return 0
        return round(self.score / self.total_possible_points * 100)


class AttemptSession:
    def __init__(
        self,
        api: QuizApiClient,
        quiz_id: str,
        ui: SessionUI,
        *,
        clock: Callable[[], datetime.datetime] = utcnow,
        redirect_delay: float | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        self.quiz_id = quiz_id
        self._api = api
        self._ui = ui
        self._clock = clock
        self._redirect_delay = (
            SETTINGS.submit_redirect_delay if redirect_delay is None else redirect_delay
        )
        self._tick_interval = tick_interval

        self._state = SessionState.LOADING
        self._error: SessionError | None = None
        self._submit_error: SessionError | None = None
        self._quiz: QuizOut | None = None
        self._questions: list[QuestionOut] = []
        self._attempt_id: str | None = None
        self._closed = False
        self._buffer: AnswerBuffer | None = None
        self._timer: CountdownTimer | None = None
        self._in_flight = False
        self._auto_submit: asyncio.Task[bool] | None = None
        self._result: SubmissionResult | None = None

    # --- read-only views --------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> SessionError | None:
        """Why loading failed; set only in ERROR."""
        return self._error

    @property
    def submit_error(self) -> SessionError | None:
        """Last recoverable submission failure, if any."""
        return self._submit_error

    @property
    def quiz(self) -> QuizOut | None:
        return self._quiz

    @property
    def questions(self) -> list[QuestionOut]:
        return list(self._questions)

    @property
    def attempt_id(self) -> str | None:
        return self._attempt_id

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def buffer(self) -> AnswerBuffer | None:
        return self._buffer

    @property
    def timer(self) -> CountdownTimer | None:
        return self._timer

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def result(self) -> SubmissionResult | None:
        return self._result

    @property
    def pending_auto_submit(self) -> asyncio.Task[bool] | None:
        return self._auto_submit

    # --- loading ------------------------------------------------------------

    async def load(self) -> None:
        if self._state not in (SessionState.LOADING, SessionState.ERROR):
            raise RuntimeError(f"cannot load a session in state {self._state}")
        self._state = SessionState.LOADING
        self._error = None

        try:
            quiz = await self._api.get_quiz(self.quiz_id)
            now = self._clock()
            if not quiz.is_published or quiz.status == "Draft":
                raise SessionError(AttemptErrorKind.DRAFT)
            if quiz.start_time is not None and quiz.start_time > now:
                raise SessionError(
                    AttemptErrorKind.NOT_STARTED,
                    "This quiz has not started yet. "
                    f"It starts at {quiz.start_time.isoformat()}.",
                )
            closed = quiz.end_time is not None and quiz.end_time < now

            questions = await self._fetch_questions()
            attempt = await self._api.create_attempt(self.quiz_id)
        except ApiError as e:
            self._fail(SessionError.from_api_error(e))
            return
        except SessionError as e:
            self._fail(e)
            return

        self._quiz = quiz
        self._questions = questions
        self._attempt_id = attempt.id
        self._closed = closed
        self._buffer = AnswerBuffer([q.id for q in questions])
        self._timer = CountdownTimer.from_minutes(
            quiz.time_limit, self._on_timer_expired, interval=self._tick_interval
        )
        self._in_flight = False
        self._state = SessionState.READY
        logger.info(
            "Attempt ready questions=%d time_limit=%s closed=%s",
            len(questions),
            quiz.time_limit,
            closed,
            extra={"quiz_id": self.quiz_id, "attempt_id": attempt.id},
        )

        if closed:
            self._buffer.freeze()
            self._ui.toast("warning", user_message(AttemptErrorKind.QUIZ_CLOSED))
        else:
            self._timer.start()

    async def _fetch_questions(self) -> list[QuestionOut]:
        try:
            questions = await self._api.list_questions(self.quiz_id)
        except ApiError as e:
            if e.code == INVALID_RESPONSE:
                raise SessionError(AttemptErrorKind.INVALID_QUESTIONS) from e
            raise
        if not questions:
            raise SessionError(AttemptErrorKind.NO_QUESTIONS)
        if any(not q.id or not q.question_text.strip() for q in questions):
            raise SessionError(AttemptErrorKind.INVALID_QUESTIONS)
        return questions

    def _fail(self, err: SessionError) -> None:
        if self._timer is not None:
            self._timer.stop()
        self._error = err
        self._state = SessionState.ERROR
        logger.warning(
            "Attempt session failed kind=%s: %s",
            err.kind,
            err.message,
            extra={"quiz_id": self.quiz_id},
        )

    # --- answering ----------------------------------------------------------

    def answer(self, question_id: str, value: str) -> None:
        if self._state is not SessionState.READY or self._buffer is None:
            raise BufferFrozenError(f"answers cannot change in state {self._state}")
        self._buffer.set(question_id, value)

    # --- submission ---------------------------------------------------------

    async def submit(self, trigger: SubmitTrigger = SubmitTrigger.MANUAL) -> bool:
        """Submit the buffered answers once.

        Returns True only for the call that got the attempt graded.
        Calls made while another submission is in flight, outside READY,
        or on a closed quiz do nothing and return False.
        """
        if self._state is not SessionState.READY or self._in_flight:
            logger.debug(
                "Submit (%s) ignored state=%s in_flight=%s",
                trigger,
                self._state,
                self._in_flight,
            )
            return False
        buffer, timer, _ = self._loaded_parts()
        if self._closed:
            self._ui.toast("warning", user_message(AttemptErrorKind.QUIZ_CLOSED))
            return False

        self._in_flight = True
        if trigger is SubmitTrigger.MANUAL:
            unanswered = buffer.unanswered_count()
            if unanswered:
                try:
                    confirmed = await self._ui.confirm(
                        f"You have {unanswered} unanswered question(s). "
                        "Submit anyway?"
                    )
                except BaseException:
                    self._in_flight = False
                    raise
                if timer.expired:
                    # Time ran out while the dialog was open.
                    trigger = SubmitTrigger.TIMER
                elif not confirmed:
                    self._in_flight = False
                    return False
        return await self._send(trigger)

    async def _send(self, trigger: SubmitTrigger) -> bool:
        buffer, timer, attempt_id = self._loaded_parts()
        self._state = SessionState.SUBMITTING
        timer.stop()
        buffer.freeze()
        answers = buffer.serialize()

        self._ui.toast(
            "loading",
            "Time is up! Submitting your answers..."
            if trigger is SubmitTrigger.TIMER
            else "Submitting quiz...",
        )
        logger.info(
            "Submitting trigger=%s answered=%d/%d",
            trigger,
            buffer.answered_count(),
            len(buffer),
            extra={"quiz_id": self.quiz_id, "attempt_id": attempt_id},
        )

        try:
            graded = await self._api.submit_attempt(attempt_id, answers)
        except ApiError as e:
            self._submission_failed(e)
            return False

        self._result = SubmissionResult(
            score=graded.score, total_possible_points=graded.total_possible_points
        )
        self._submit_error = None
        self._state = SessionState.SUBMITTED
        self._ui.toast(
            "success",
            f"Quiz submitted! Score: {graded.score}/{graded.total_possible_points} "
            f"({self._result.percentage}%)",
        )
        await asyncio.sleep(self._redirect_delay)
        self._ui.navigate(review_path(self.quiz_id, attempt_id))
        return True

    def _submission_failed(self, err: ApiError) -> None:
        buffer, timer, _ = self._loaded_parts()
        self._submit_error = SessionError(
            AttemptErrorKind.SUBMIT_FAILED, f"Failed to submit quiz: {err.message}"
        )
        self._state = SessionState.READY
        buffer.thaw()
        self._in_flight = False
        logger.warning(
            "Submission failed status=%s: %s",
            err.status_code,
            err.message,
            extra={"quiz_id": self.quiz_id, "attempt_id": self._attempt_id},
        )
        self._ui.toast("error", self._submit_error.message)
        if not timer.expired:
            timer.start()

    def _loaded_parts(self) -> tuple[AnswerBuffer, CountdownTimer, str]:
        if self._buffer is None or self._timer is None or self._attempt_id is None:
            raise RuntimeError("session is not loaded")
        return self._buffer, self._timer, self._attempt_id

    def _on_timer_expired(self) -> None:
        if self._state is not SessionState.READY or self._in_flight:
            # A pending confirmation picks the expiry up when it returns.
            return
        self._auto_submit = asyncio.get_running_loop().create_task(
            self.submit(SubmitTrigger.TIMER)
        )

    def dispose(self) -> None:
        """Release the timer when the view goes away.

        Unsubmitted answers are dropped; the server-side attempt stays open.
        """
        if self._timer is not None:
            self._timer.stop()
        if self._state is SessionState.READY and self._buffer is not None:
            self._buffer.freeze()
