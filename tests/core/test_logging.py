from __future__ import annotations

import json
import logging
import sys

from classquiz.core.logging import (
    _ContainerFormatter,
    _JsonFormatter,
    _RequestContextFilter,
    request_id_var,
    setup_logging,
    user_id_var,
)


def _record(level: int = logging.INFO, msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="classquiz.test",
        level=level,
        pathname="svc.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG
    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_http_client_loggers() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_attaches_context_filter_to_handler() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _JsonFormatter)
    assert any(isinstance(f, _RequestContextFilter) for f in handler.filters)


def test_container_formatter_location_only_for_warnings() -> None:
    fmt = _ContainerFormatter()
    assert "[svc.py:" not in fmt.format(_record(logging.INFO))
    assert "[svc.py:42]" in fmt.format(_record(logging.WARNING, "bad thing"))


def test_context_filter_copies_contextvars() -> None:
    rid = request_id_var.set("req-9")
    uid = user_id_var.set("student-7")
    try:
        record = _record()
        assert _RequestContextFilter().filter(record) is True
    finally:
        request_id_var.reset(rid)
        user_id_var.reset(uid)
    assert record.request_id == "req-9"  # type: ignore[attr-defined]
    assert record.user_id == "student-7"  # type: ignore[attr-defined]


def test_json_formatter_produces_valid_json() -> None:
    parsed = json.loads(_JsonFormatter().format(_record(msg="graded")))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "classquiz.test"
    assert parsed["message"] == "graded"
    assert "timestamp" in parsed


def test_json_formatter_includes_attempt_context() -> None:
    record = _record(
        request_id="abc-123",
        user_id="student-1",
        quiz_id="quiz-1",
        attempt_id="att-1",
        duration_ms=12.5,
    )
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["quiz_id"] == "quiz-1"
    assert parsed["attempt_id"] == "att-1"
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_skips_placeholder_context() -> None:
    parsed = json.loads(_JsonFormatter().format(_record(request_id="-", user_id="-")))
    assert "request_id" not in parsed
    assert "user_id" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record(logging.ERROR, "Something failed")
        record.exc_info = sys.exc_info()
        output = _JsonFormatter().format(record)
    assert "ValueError: test error" in json.loads(output)["exception"]
