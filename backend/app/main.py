"""
Voyage Teams Backend: FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan owns the database engine lifecycle.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: Request ID → Logging → GZip → CORS     │
    │                                                     │
    │  Routes:                                            │
    │    /api/voyages/teams/{team_id}/techs[...]          │
    │    /api/users/me          /health                   │
    │                                                     │
    │  Exception Handlers:                                │
    │    VoyageError → STATUS_BY_KIND[exc.kind]           │
    │    Exception   → 500                                │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, config validation, wait for the database
    Shutdown: dispose the engine (close all pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import dispose_engine, wait_for_database
from app.exceptions import STATUS_BY_KIND, VoyageError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from app.routes import health, techs, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before any other initialization.

    Format: 2024-01-15T12:00:00 [INFO] app.services.vote_service: message
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup and shutdown of process-wide resources.

    The engine is the only process-wide resource. Services never open or
    close it; they receive a session per request.
    """
    setup_logging()
    logger.info("Voyage Teams backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    try:
        await wait_for_database()
        logger.info("Database reachable")
    except Exception as e:
        # Keep serving: /health reports the outage and requests fail with 500
        logger.error("Database unreachable after retries: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("Voyage Teams backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_payload(exc: VoyageError, request_id: str) -> dict:
    """Render an application error in the ErrorResponse shape."""
    return {
        "error": exc.kind.value,
        "message": exc.message,
        "details": exc.context or None,
        "request_id": request_id,
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application errors to HTTP responses.

    This is the only place that knows status codes: services raise
    VoyageError subclasses tagged with an ErrorKind, and STATUS_BY_KIND
    decides 400 / 401 / 404 / 409.
    """

    @app.exception_handler(VoyageError)
    async def handle_voyage_error(request: Request, exc: VoyageError):
        rid = request_id_var.get("")
        status_code = STATUS_BY_KIND[exc.kind]
        logger.warning("[%s] %s (%d): %s", rid, exc.kind.value, status_code, exc.message)
        return JSONResponse(status_code=status_code, content=error_payload(exc, rid))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Storage and programming errors: stack trace to the log, generic body out."""
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
    app = FastAPI(
        title="Voyage Teams API",
        description=(
            "Team tech-stack catalog for voyage cohorts: propose technologies, "
            "vote for them, and select up to three per category."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Middleware executes in reverse order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(techs.router)
    app.include_router(users.router)
    app.include_router(health.router)

    return app


app = create_app()
