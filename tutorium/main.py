"""
Tutorium Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn tutorium.main:app)
       and by the test suite, which builds a fresh app per test.

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │                                                           │
    │  Middleware Chain:                                        │
    │  ┌────────────┐ ┌────────┐ ┌─────────┐ ┌──────┐ ┌──────┐  │
    │  │ Rate Limit │→│ Req ID │→│ Logging │→│ GZip │→│ CORS │  │
    │  └────────────┘ └────────┘ └─────────┘ └──────┘ └──────┘  │
    │                                                           │
    │  Routers (all under /api except /health):                 │
    │    auth · users · admin · courses · topics · groups ·     │
    │    students · recordings · lessons · attendance ·         │
    │    feedback · products · uploads · teachers · health      │
    │                                                           │
    │  Exception Handlers:                                      │
    │    400 validation │ 401 auth │ 403 permission │ 404       │
    │    409 conflict │ 429 rate limit │ 500 storage/db/other   │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, never fatal)
    3. Create the storage directory
    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from tutorium import __version__
from tutorium.config import settings
from tutorium.database import dispose_engine
from tutorium.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    FileStorageError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    TutoriumError,
    ValidationError,
)
from tutorium.middleware.logging import RequestLoggingMiddleware
from tutorium.middleware.rate_limit import RateLimitMiddleware
from tutorium.middleware.request_id import RequestIDMiddleware, request_id_var
from tutorium.routes import (
    admin_users,
    attendance,
    auth,
    courses,
    feedback,
    groups,
    health,
    lessons,
    products,
    recordings,
    students,
    teachers,
    topics,
    uploads,
    users,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once during app startup, before any other initialization.
    Every module logs through `logging.getLogger(__name__)`, so the
    logger name in each line points at the originating module.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Third-party libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Tutorium Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Tutorium Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# Domain error → (HTTP status, envelope `error` code, log level or None)
ERROR_STATUS = {
    ValidationError: (400, "validation_error", logging.WARNING),
    AuthenticationError: (401, "authentication_required", None),
    PermissionDeniedError: (403, "permission_denied", logging.INFO),
    NotFoundError: (404, "not_found", None),
    ConflictError: (409, "conflict", logging.INFO),
    RateLimitExceededError: (429, "rate_limit_exceeded", None),
    FileStorageError: (500, "server_error", logging.ERROR),
    DatabaseError: (500, "server_error", logging.ERROR),
}

GENERIC_SERVER_MESSAGE = "An internal error occurred. Please try again later."


def error_envelope(error: str, message: str, details=None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details or None,
        "request_id": request_id_var.get(""),
    }


def _domain_error_handler(status_code: int, error: str, log_level):
    async def handler(request: Request, exc: TutoriumError) -> JSONResponse:
        if log_level is not None:
            logger.log(
                log_level,
                "[%s] %s on %s %s: %s | Context: %s",
                request_id_var.get(""), type(exc).__name__,
                request.method, request.url.path, exc.message, exc.context,
            )

        headers = None
        if isinstance(exc, AuthenticationError):
            headers = {"WWW-Authenticate": "Bearer"}
        elif isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}

        if isinstance(exc, DatabaseError):
            # Driver messages stay in the log
            body = error_envelope(error, GENERIC_SERVER_MESSAGE)
        elif status_code >= 500:
            body = error_envelope(error, exc.message)
        else:
            body = error_envelope(error, exc.message, exc.context)
        return JSONResponse(status_code=status_code, content=body, headers=headers)

    return handler


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map domain errors onto the shared error envelope:

        {"error": ..., "message": ..., "details": ..., "request_id": ...}

    SQLAlchemy errors that escape a service and anything else unexpected
    become a bare 500; their details only go to the log.
    """
    for exc_class, (status_code, error, log_level) in ERROR_STATUS.items():
        app.add_exception_handler(exc_class, _domain_error_handler(status_code, error, log_level))

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Unhandled database error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(status_code=500, content=error_envelope("server_error", GENERIC_SERVER_MESSAGE))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_envelope(
                "server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns a fully configured instance; tests call this once per test
    so dependency overrides never leak between them.
    """
    app = FastAPI(
        title="Tutorium API",
        description=(
            "Backend for a language school: courses and topics, teacher-led groups, "
            "lesson recordings and individual lessons, attendance, feedback, "
            "products and teaching-material uploads."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # added CORS → GZip → Logging → RequestID → RateLimit,
    # executed RateLimit → RequestID → Logging → GZip → CORS

    # Credentials allowed so the httpOnly auth cookie travels cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(admin_users.router)
    app.include_router(courses.router)
    app.include_router(topics.router)
    app.include_router(groups.router)
    app.include_router(students.router)
    app.include_router(recordings.router)
    app.include_router(lessons.router)
    app.include_router(attendance.router)
    app.include_router(feedback.router)
    app.include_router(products.router)
    app.include_router(uploads.router)
    app.include_router(teachers.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `tutorium.main:app` to be importable
app = create_app()
