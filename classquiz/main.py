from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from classquiz.api.answers import router as answers_router
from classquiz.api.attempts import router as attempts_router
from classquiz.api.classes import enrollments_router
from classquiz.api.classes import router as classes_router
from classquiz.api.health import router as health_router
from classquiz.api.notifications import router as notifications_router
from classquiz.api.quizzes import router as quizzes_router
from classquiz.core.config import SETTINGS
from classquiz.core.logging import setup_logging
from classquiz.middleware.metrics import MetricsMiddleware
from classquiz.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="classquiz",
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: RequestContext → Metrics → CORS → route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(health_router)
app.include_router(classes_router)
app.include_router(enrollments_router)
app.include_router(quizzes_router)
app.include_router(attempts_router)
app.include_router(answers_router)
app.include_router(notifications_router)

logger.info(
    "classquiz started  env=%s log_level=%s port=%d docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "on" if SETTINGS.is_dev else "off",
)
