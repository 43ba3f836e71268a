"""
SpeakerHub Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn speakerhub.main:app) and by the test suite.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:  Request ID → Access Log → Auth Rate Limit  │
    │               → CORS                                     │
    │                                                          │
    │  Routes:      /api/auth  /api/speakers  /api/bookings    │
    │               /api/admin  /health                        │
    │                                                          │
    │  Access:      app.state.authenticator (token or demo),   │
    │               chosen here from settings.demo_mode        │
    │                                                          │
    │  Errors:      SpeakerHubError subclasses → 400-500 JSON  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, run the production configuration check
              (logged, never fatal), log the effective modes.
    Shutdown: dispose the database engine.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from speakerhub import __version__
from speakerhub.access import build_authenticator
from speakerhub.config import Settings, settings
from speakerhub.database import dispose_engine
from speakerhub.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    IntegrationError,
    NotFoundError,
    RateLimitExceededError,
    SpeakerHubError,
    TicketGenerationError,
    ValidationError,
)
from speakerhub.middleware.logging import RequestLoggingMiddleware
from speakerhub.middleware.rate_limit import AuthRateLimitMiddleware
from speakerhub.middleware.request_id import RequestIDMiddleware, request_id_var
from speakerhub.routes import admin, auth, bookings, health, speakers

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """Configure the root logger once, to stdout, and quieten chatty libraries."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    app_settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings.log_level)
    logger.info("=" * 60)
    logger.info("SpeakerHub Backend %s starting up...", __version__)

    # Keep serving on a bad configuration; the problems are logged loudly
    try:
        app_settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info(
        "Modes: demo_mode=%s otp_strict=%s sms=%s email=%s calendar=%s",
        app_settings.demo_mode,
        app_settings.otp_strict,
        "live" if app_settings.sms_configured else "simulated",
        "live" if app_settings.email_configured else "simulated",
        "live" if app_settings.calendar_configured else "simulated",
    )
    logger.info("Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("SpeakerHub Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the shared error body.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400
        AuthenticationError                     → 401
        AuthorizationError                      → 403
        NotFoundError                           → 404
        ConflictError                           → 409
        RateLimitExceededError                  → 429
        TicketGenerationError, DatabaseError    → 500 (details logged, not returned)
        IntegrationError                        → 502 (only the OAuth code exchange lets one escape)
        HTTPException (routing)                 → its own status
        Exception (fallback)                    → 500

    Internal details (stack traces, SQL) are never returned to the client.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        first = errors[0] if errors else {"field": "", "message": "Invalid request"}
        message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message, {"errors": errors}),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("authentication_error", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        logger.info("[%s] Forbidden: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=403,
            content=_error_body("forbidden", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("[%s] Conflict: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=409,
            content=_error_body("conflict", exc.message, exc.context),
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(TicketGenerationError)
    async def handle_ticket_error(request: Request, exc: TicketGenerationError):
        logger.error("[%s] Ticket generation failed | Context: %s", request_id_var.get(""), exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(IntegrationError)
    async def handle_integration_error(request: Request, exc: IntegrationError):
        logger.error("[%s] Upstream provider failed: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=502,
            content=_error_body("bad_gateway", exc.message),
        )

    @app.exception_handler(SpeakerHubError)
    async def handle_application_error(request: Request, exc: SpeakerHubError):
        logger.error("[%s] Unhandled application error %s: %s", request_id_var.get(""), type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        codes = {404: "not_found", 405: "method_not_allowed"}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(codes.get(exc.status_code, "http_error"), str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Assemble the application.

    `app_settings` defaults to the process-wide settings; tests pass their
    own to build, for example, a demo-mode app next to a normal one. The
    access strategy is chosen here, once, from `demo_mode`.

    Only the app-level values are taken from `app_settings`: `demo_mode`,
    CORS origins and the auth rate limit. Services and the token helpers
    keep reading the `settings` singleton (OTP mode, slot hours, JWT,
    integration credentials), so a copy that changes those has no effect.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="SpeakerHub API",
        description=(
            "Conference speaker booking: browse speakers, book one-hour sessions, "
            "receive QR tickets, and check attendees in at the venue."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.demo_mode = app_settings.demo_mode
    app.state.authenticator = build_authenticator(app_settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → AuthRateLimit → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(
        AuthRateLimitMiddleware,
        max_requests=app_settings.auth_rate_limit_requests,
        window_seconds=app_settings.auth_rate_limit_window,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(speakers.router)
    app.include_router(bookings.router)
    app.include_router(admin.router)
    app.include_router(health.router)

    return app


# uvicorn expects `speakerhub.main:app`
app = create_app()
