"""Error taxonomy for the attempt client.

HTTP and transport failures become ``ApiError`` inside the API client.
At the session boundary they are classified once into an
``AttemptErrorKind``; everything past that point branches on the enum.
"""

from __future__ import annotations

from enum import StrEnum

from classquiz.schemas import AttemptErrorCode


class ApiError(Exception):
    """A failed API call. ``status_code`` is None for transport failures."""

    def __init__(
        self, status_code: int | None, message: str, code: str | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return (
            f"ApiError(status_code={self.status_code!r}, "
            f"message={self.message!r}, code={self.code!r})"
        )


# ApiError.code for a 2xx body that did not match the expected schema.
INVALID_RESPONSE = "invalid_response"


class AttemptErrorKind(StrEnum):
    NETWORK = "network"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    NOT_PUBLISHED = "not_published"
    NOT_ENROLLED = "not_enrolled"
    NOT_STARTED = "not_started"
    ACTIVE_ATTEMPT = "active_attempt"
    DRAFT = "draft"
    NO_QUESTIONS = "no_questions"
    INVALID_QUESTIONS = "invalid_questions"
    QUIZ_CLOSED = "quiz_closed"
    SUBMIT_FAILED = "submit_failed"
    UNKNOWN = "unknown"


_CODE_KINDS: dict[str, AttemptErrorKind] = {
    AttemptErrorCode.QUIZ_NOT_FOUND: AttemptErrorKind.NOT_FOUND,
    AttemptErrorCode.NOT_PUBLISHED: AttemptErrorKind.NOT_PUBLISHED,
    AttemptErrorCode.NOT_ASSIGNED: AttemptErrorKind.FORBIDDEN,
    AttemptErrorCode.NOT_ENROLLED: AttemptErrorKind.NOT_ENROLLED,
    AttemptErrorCode.NOT_STARTED: AttemptErrorKind.NOT_STARTED,
    AttemptErrorCode.ACTIVE_ATTEMPT: AttemptErrorKind.ACTIVE_ATTEMPT,
}

# Servers that predate structured codes only send message text.
_LEGACY_SUBSTRINGS: tuple[tuple[str, AttemptErrorKind], ...] = (
    ("not enrolled", AttemptErrorKind.NOT_ENROLLED),
    ("not started", AttemptErrorKind.NOT_STARTED),
    ("active attempt", AttemptErrorKind.ACTIVE_ATTEMPT),
    ("not published", AttemptErrorKind.NOT_PUBLISHED),
)

_USER_MESSAGES: dict[AttemptErrorKind, str] = {
    AttemptErrorKind.NETWORK: (
        "Could not reach the server. Check your connection and try again."
    ),
    AttemptErrorKind.NOT_FOUND: "Quiz not found.",
    AttemptErrorKind.FORBIDDEN: "You do not have access to this quiz.",
    AttemptErrorKind.NOT_PUBLISHED: "This quiz is not published yet.",
    AttemptErrorKind.NOT_ENROLLED: "You are not enrolled in the class for this quiz.",
    AttemptErrorKind.NOT_STARTED: "This quiz has not started yet.",
    AttemptErrorKind.ACTIVE_ATTEMPT: (
        "You already have an active attempt for this quiz."
    ),
    AttemptErrorKind.DRAFT: "This quiz is still a draft and cannot be taken.",
    AttemptErrorKind.NO_QUESTIONS: "This quiz has no questions yet.",
    AttemptErrorKind.INVALID_QUESTIONS: "This quiz contains invalid questions.",
    AttemptErrorKind.QUIZ_CLOSED: (
        "This quiz is closed. Submissions are no longer accepted."
    ),
    AttemptErrorKind.SUBMIT_FAILED: "Failed to submit quiz. Please try again.",
    AttemptErrorKind.UNKNOWN: "Something went wrong loading this quiz.",
}


def classify_api_error(err: ApiError) -> AttemptErrorKind:
    if err.code == INVALID_RESPONSE:
        return AttemptErrorKind.UNKNOWN
    if err.code is not None and err.code in _CODE_KINDS:
        return _CODE_KINDS[err.code]
    text = err.message.lower()
    for needle, kind in _LEGACY_SUBSTRINGS:
        if needle in text:
            return kind
    if err.status_code is None:
        return AttemptErrorKind.NETWORK
    if err.status_code == 404:
        return AttemptErrorKind.NOT_FOUND
    if err.status_code == 403:
        return AttemptErrorKind.FORBIDDEN
    return AttemptErrorKind.UNKNOWN


def user_message(kind: AttemptErrorKind) -> str:
    return _USER_MESSAGES[kind]


class SessionError(Exception):
    """A classified failure with the text shown to the student."""

    def __init__(self, kind: AttemptErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message or user_message(kind)
        super().__init__(self.message)

    @classmethod
    def from_api_error(cls, err: ApiError) -> SessionError:
        kind = classify_api_error(err)
        if kind is AttemptErrorKind.NOT_STARTED and "starts at" in err.message:
            # Keep the server's text; it names the start time.
            return cls(kind, err.message)
        return cls(kind)
