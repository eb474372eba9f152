from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _parse_seconds(name: str, raw: str, *, allow_zero: bool) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds (got {raw!r})") from None
    if value < 0 or (value == 0 and not allow_zero):
        raise ValueError(f"{name} out of range (got {raw!r})")
    return value


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    # Attempt client settings
    api_base_url: str = "http://localhost:8000"
    submit_redirect_delay: float = 1.5
    notification_poll_interval: float = 30.0

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    log_json = _parse_bool("LOG_JSON", _getenv("LOG_JSON", "false"))

    api_base_url = _getenv("API_BASE_URL", "http://localhost:8000").rstrip("/")
    if not api_base_url.startswith(("http://", "https://")):
        raise ValueError(f"API_BASE_URL must be an http(s) URL (got {api_base_url!r})")

    submit_redirect_delay = _parse_seconds(
        "SUBMIT_REDIRECT_DELAY", _getenv("SUBMIT_REDIRECT_DELAY", "1.5"), allow_zero=True
    )
    poll_interval = _parse_seconds(
        "NOTIFICATION_POLL_INTERVAL",
        _getenv("NOTIFICATION_POLL_INTERVAL", "30"),
        allow_zero=False,
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json,
        port=port,
        api_base_url=api_base_url,
        submit_redirect_delay=submit_redirect_delay,
        notification_poll_interval=poll_interval,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
