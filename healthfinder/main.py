"""
HealthFinder API — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn healthfinder.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                     FastAPI App                          │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────┐ ┌────────┐ ┌───────────┐ ┌─────────┐ ┌──────┐  │
    │  │ CORS │→│ Req ID │→│ Readiness │→│ Logging │→│ GZip │  │
    │  └──────┘ └────────┘ └───────────┘ └─────────┘ └──────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌───────────────┐ ┌────────────────────┐ ┌───────────┐  │
    │  │ GET /clinics… │ │ POST /clinics/{id}/│ │GET /health│  │
    │  │               │ │      review        │ │           │  │
    │  └───────────────┘ └────────────────────┘ └───────────┘  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ Query/Validation→400 │ NotFound→404 │ Store→503    │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Connect to the store (retried), create missing tables
    3. On failure: log and keep serving; the readiness gate answers 503
       until the store becomes reachable

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from healthfinder import __version__
from healthfinder.config import settings
from healthfinder.database import connect_store, create_tables, dispose_engine
from healthfinder.exceptions import (
    DatabaseError,
    HealthFinderError,
    InvalidQueryError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from healthfinder.middleware.logging import RequestLoggingMiddleware
from healthfinder.middleware.readiness import StoreReadinessMiddleware
from healthfinder.middleware.request_id import RequestIDMiddleware, request_id_var
from healthfinder.routes import clinics, health
from healthfinder.schemas.common import error_fields, error_summaries

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once by the lifespan handler and by the seeding command.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access middleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Connect to the store on startup and release it on shutdown.

    A failed startup connection is not fatal: the process keeps running,
    /health reports "unhealthy", and every other request is answered with
    503 until the readiness gate reconnects.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("HealthFinder API %s starting up...", __version__)

    try:
        await connect_store()
        await create_tables()
    except StoreUnavailableError as e:
        logger.error("Store unavailable at startup: %s | Context: %s", e.message, e.context)
        logger.error("Requests will receive 503 until the store becomes reachable.")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("HealthFinder API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        InvalidQueryError       → 400 invalid_query
        ValidationError         → 400 validation_error
        RequestValidationError  → 400 validation_error (FastAPI body/params)
        NotFoundError           → 404 not_found
        StoreUnavailableError   → 503 service_unavailable
        DatabaseError           → 500 server_error
        HealthFinderError       → 500 internal_server_error
        Exception (fallback)    → 500 internal_server_error

    Internal details (stack traces, SQL) are logged, never returned.
    """

    @app.exception_handler(InvalidQueryError)
    async def handle_invalid_query(request: Request, exc: InvalidQueryError):
        rid = request_id_var.get("")
        logger.info("[%s] Invalid query: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "invalid_query",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Client sent invalid input; report which fields are wrong."""
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """FastAPI's own body validation, reported in the ValidationError shape."""
        rid = request_id_var.get("")
        fields = error_fields(exc.errors())
        logger.warning("[%s] Request validation failed: %s", rid, ", ".join(fields))
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": f"Request is invalid: {', '.join(fields)}",
                "details": {"fields": fields, "errors": error_summaries(exc.errors())},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(request: Request, exc: StoreUnavailableError):
        rid = request_id_var.get("")
        logger.error("[%s] Store unavailable: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=503,
            content={
                "error": "service_unavailable",
                "message": "Service unavailable",
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Generic message to the client, details logged server-side."""
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(HealthFinderError)
    async def handle_application_error(request: Request, exc: HealthFinderError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500 with a request ID, stack trace logged only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="HealthFinder API",
        description=(
            "Search, filter and review health clinics. Clinic ratings are "
            "recomputed from submitted reviews."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # CORS → RequestID → Readiness → Logging → GZip

    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware)

    # Sits outside the access log; logs its own rejections
    app.add_middleware(StoreReadinessMiddleware)

    # Ahead of the gate and the handlers, so both can read the request ID
    app.add_middleware(RequestIDMiddleware)

    # Outermost: preflights and 503s from the gate still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(clinics.router)
    app.include_router(health.router)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def index() -> str:
        return "HealthFinder API. See /docs for the endpoint reference."

    return app


# uvicorn expects `healthfinder.main:app` to be importable
app = create_app()
