"""
EchoNote Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application.
How:   `create_app(settings, container)` registers middleware, exception
       handlers and routers; the lifespan builds the database engine and the
       service container unless one was passed in.
Who:   uvicorn (`uvicorn echonote.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware Chain:                                           │
    │  ┌────────────┐ ┌────────────┐ ┌────────────┐ ┌──────────┐   │
    │  │ Request ID │→│ Rate Limit │→│ Access Log │→│   CORS   │   │
    │  └────────────┘ └────────────┘ └────────────┘ └──────────┘   │
    │                                                              │
    │  Routes (/api):                                              │
    │  ┌────────────┐ ┌──────────────────┐ ┌────────────┐          │
    │  │ /notes     │ │ /notes/{id}/audio│ │ /chat/query│ /health  │
    │  │  CRUD      │ │ /notes/{id}/proc.│ └────────────┘          │
    │  └────────────┘ └──────────────────┘                         │
    │                                                              │
    │  Exception Handlers:                                         │
    │  ┌──────────────────────────────────────────────────────┐    │
    │  │ Validation→400 │ NotFound→404 │ JobState→409 │ *→500 │    │
    │  └──────────────────────────────────────────────────────┘    │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Warn about missing production settings
    3. Create engine + session factory, optionally create tables
    4. Build the service container (Gemini client, storage, services)

    Shutdown:
    1. Dispose the engine created at startup
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from echonote import __version__
from echonote.config import Settings
from echonote.database import (
    create_engine_from_settings,
    create_session_factory,
    dispose_engine,
    init_models,
)
from echonote.dependencies import ServiceContainer, build_container
from echonote.exceptions import (
    CircuitBreakerOpenError,
    DatabaseError,
    EchoNoteError,
    JobStateError,
    NotFoundError,
    ProviderError,
    StorageError,
    ValidationError,
)
from echonote.middleware.logging import RequestLoggingMiddleware
from echonote.middleware.rate_limit import RateLimitMiddleware
from echonote.middleware.request_id import RequestIDMiddleware, request_id_var
from echonote.routes import audio, chat, health, notes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-05-01T10:00:00 [INFO] echonote.services.audio_pipeline: ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("EchoNote Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: notes, chat and /health work without Gemini
        logger.error("Configuration error: %s", e)

    engine = None
    if app.state.container is None:
        engine = create_engine_from_settings(settings)
        if settings.db_auto_create:
            await init_models(engine)
            logger.info("Database tables created (db_auto_create)")
        app.state.container = build_container(settings, create_session_factory(engine))

    logger.info("Audio storage: %s", app.state.container.storage.storage_root)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("EchoNote Backend shutting down...")
    if engine is not None:
        await dispose_engine(engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    message: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Every error body: {"error": <message>, "request_id": <id>}."""
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "request_id": request_id_var.get("")},
        headers=headers,
    )


def describe_validation_errors(errors: Any) -> str:
    """Flatten pydantic errors into one line, e.g. "query: Input should be a valid string"."""
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc) or "request body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400
        NotFoundError                           → 404
        JobStateError                           → 409
        CircuitBreakerOpenError                 → 500 + Retry-After
        ProviderError, StorageError             → 500 (message returned)
        DatabaseError                           → 500 (generic message)
        EchoNoteError                           → 500 (message returned)
        Exception                               → 500 (generic message)

    Internal context (paths, SQL errors) is logged, never returned.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return error_response(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        message = describe_validation_errors(exc.errors())
        logger.warning("[%s] Invalid request body: %s", request_id_var.get(""), message)
        return error_response(400, message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, exc.message)

    @app.exception_handler(JobStateError)
    async def handle_job_state(request: Request, exc: JobStateError):
        logger.warning("[%s] %s", request_id_var.get(""), exc.message)
        return error_response(409, exc.message)

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return error_response(500, exc.message, headers={"Retry-After": str(exc.recovery_time)})

    @app.exception_handler(ProviderError)
    async def handle_provider_error(request: Request, exc: ProviderError):
        logger.error(
            "[%s] AI provider error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(500, exc.message)

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error(
            "[%s] Storage error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(500, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return error_response(500, "An internal error occurred. Please try again later.")

    @app.exception_handler(EchoNoteError)
    async def handle_app_error(request: Request, exc: EchoNoteError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return error_response(500, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            exc,
            exc_info=exc,
        )
        return error_response(500, "An unexpected error occurred. Please try again.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: configuration; read from the environment when omitted
        container: prebuilt services (tests); built in the lifespan when omitted
    """
    settings = settings or Settings()

    app = FastAPI(
        title="EchoNote API",
        description=(
            "Voice and text notes. Upload recordings to have them transcribed "
            "and summarized with Google Gemini, then search your notes by keyword."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RequestID → RateLimit → Logging → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window,
        )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(notes.router, prefix=settings.api_prefix)
    app.include_router(audio.router, prefix=settings.api_prefix)
    app.include_router(chat.router, prefix=settings.api_prefix)
    app.include_router(health.router)

    return app


app = create_app()
