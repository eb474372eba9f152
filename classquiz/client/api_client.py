"""Async client for the quiz REST API.

Wraps ``httpx.AsyncClient``.  Every call reads the bearer token from a
caller-supplied provider (the client never stores or refreshes it), and
every failure surfaces as ``ApiError``: non-2xx responses carry the
status and server message, transport failures carry ``status_code=None``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from classquiz.client.errors import INVALID_RESPONSE, ApiError
from classquiz.schemas import (
    AnswerIn,
    AnswerOut,
    AttemptCreatedOut,
    AttemptOut,
    NotificationPage,
    QuestionOut,
    QuizOut,
    SubmitIn,
    SubmitOut,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TokenProvider = Callable[[], str | None]

_QUIZ = TypeAdapter(QuizOut)
_QUESTIONS = TypeAdapter(list[QuestionOut])
_CREATED = TypeAdapter(AttemptCreatedOut)
_SUBMITTED = TypeAdapter(SubmitOut)
_NOTIFICATIONS = TypeAdapter(NotificationPage)
_ATTEMPTS = TypeAdapter(list[AttemptOut])
_ANSWERS = TypeAdapter(list[AnswerOut])


def _error_from_response(response: httpx.Response) -> ApiError:
    message = response.reason_phrase or f"HTTP {response.status_code}"
    code = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("detail", body.get("message"))
        if isinstance(detail, dict):
            code = detail.get("code")
            message = detail.get("message") or message
        elif isinstance(detail, str):
            message = detail
        elif isinstance(detail, list):
            message = "Invalid request"
    return ApiError(response.status_code, message, code)


class QuizApiClient:
    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._token_provider = token_provider
        self._http = httpx.AsyncClient(
            base_url=base_url, transport=transport, timeout=timeout
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> QuizApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        token = self._token_provider()
        if not token:
            raise ApiError(401, "Not authenticated")
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(None, f"Network error: {e}") from e

        if response.is_error:
            err = _error_from_response(response)
            logger.info(
                "%s %s → %d %s", method, path, response.status_code, err.message
            )
            raise err
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise ApiError(
                response.status_code, "Invalid JSON response", INVALID_RESPONSE
            ) from None

    @staticmethod
    def _parse(adapter: TypeAdapter[T], payload: Any) -> T:
        try:
            return adapter.validate_python(payload)
        except ValidationError as e:
            logger.warning("Unexpected response shape: %s", e.errors()[:3])
            raise ApiError(
                None, "Unexpected response from server", INVALID_RESPONSE
            ) from e

    async def get_quiz(self, quiz_id: str) -> QuizOut:
        payload = await self._request("GET", f"/api/quizzes/{quiz_id}")
        return self._parse(_QUIZ, payload)

    async def list_questions(self, quiz_id: str) -> list[QuestionOut]:
        payload = await self._request("GET", f"/api/quizzes/{quiz_id}/questions")
        return self._parse(_QUESTIONS, payload)

    async def create_attempt(self, quiz_id: str) -> AttemptCreatedOut:
        payload = await self._request(
            "POST", "/api/attempts", json={"quizId": quiz_id}
        )
        return self._parse(_CREATED, payload)

    async def submit_attempt(
        self, attempt_id: str, answers: list[AnswerIn]
    ) -> SubmitOut:
        body = SubmitIn(answers=answers).model_dump(mode="json", by_alias=True)
        payload = await self._request(
            "POST", f"/api/attempts/{attempt_id}/submit", json=body
        )
        return self._parse(_SUBMITTED, payload)

    async def list_attempts(
        self,
        *,
        quiz_id: str | None = None,
        is_completed: bool | None = None,
    ) -> list[AttemptOut]:
        params: dict[str, Any] = {}
        if quiz_id is not None:
            params["quizId"] = quiz_id
        if is_completed is not None:
            params["isCompleted"] = "true" if is_completed else "false"
        payload = await self._request("GET", "/api/attempts", params=params)
        return self._parse(_ATTEMPTS, payload)

    async def list_answers(self, attempt_id: str) -> list[AnswerOut]:
        payload = await self._request(
            "GET", "/api/answers", params={"attemptId": attempt_id}
        )
        return self._parse(_ANSWERS, payload)

    async def list_notifications(
        self, *, limit: int = 50, offset: int = 0
    ) -> NotificationPage:
        payload = await self._request(
            "GET", "/api/notifications", params={"limit": limit, "offset": offset}
        )
        return self._parse(_NOTIFICATIONS, payload)
