"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from typing import Any, Optional
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hco_backend.api.auth import router as auth_router
from hco_backend.api.middleware import CorrelationIdMiddleware
from hco_backend.api.routes import router
from hco_backend.config import get_settings
from hco_backend.exceptions import SessionError
from hco_backend.models.response import ErrorResponse
from hco_backend.services.logging_service import configure_logging, get_logger

# Missing or invalid signing secrets raise here and stop the process
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    configure_logging(settings.log_level)
    logger = get_logger("main")

    try:
        from hco_backend.database import init_database, run_migrations

        await init_database()
        await run_migrations()
        logger.info("database_initialized")
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Continuing without database - admin endpoints will fail until it is reachable",
        )

    logger.info(
        "application_started",
        environment=settings.environment,
        log_level=settings.log_level,
        cors_origin=settings.cors_origin,
    )

    yield

    try:
        from hco_backend.database import close_database

        await close_database()
    except Exception as e:
        logger.warning("database_close_failed", error=str(e))

    logger.info("application_shutdown")


app = FastAPI(
    title="HCO Backend API",
    description="Administrator sessions for the HCO website",
    version="0.1.0",
    lifespan=lifespan,
)


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    detail: Optional[Any] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Build the uniform error envelope.

    Diagnostic detail is only exposed when running in development.
    """
    correlation_id = getattr(request.state, "correlation_id", None) or str(uuid4())
    body = ErrorResponse(
        error=error,
        message=message,
        correlation_id=correlation_id,
        detail=detail if settings.is_development else None,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers={"X-Correlation-Id": correlation_id, **(headers or {})},
    )


@app.exception_handler(SessionError)
async def session_exception_handler(request: Request, exc: SessionError) -> JSONResponse:
    """Translate session errors to the error envelope."""
    logger = structlog.get_logger()
    logger.info(
        "session_error",
        error=exc.code,
        status_code=exc.status_code,
        path=request.url.path,
    )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _error_response(
        request,
        exc.status_code,
        exc.code,
        exc.message,
        detail=exc.detail,
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors as 400 invalid_input."""
    logger = structlog.get_logger()

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = f"Field '{field}': {first_error.get('msg', 'Validation failed')}"
    else:
        message = "Request validation failed"

    logger.warning("validation_error", message=message)

    return _error_response(
        request,
        400,
        "invalid_input",
        message,
        detail=[
            {"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in errors
        ],
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Unknown routes and other framework HTTP errors."""
    if exc.status_code == 404:
        return _error_response(
            request, 404, "not_found", f"Route {request.url.path} not found"
        )
    return _error_response(
        request,
        exc.status_code,
        "http_error",
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log with stack, answer a generic 500."""
    logger = structlog.get_logger()
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        origin=request.headers.get("origin"),
        error=str(exc),
        exc_info=True,
    )
    return _error_response(
        request,
        500,
        "internal_error",
        "Internal server error",
        detail=str(exc),
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origin],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    expose_headers=["Set-Cookie", "X-Correlation-Id"],
)

# Correlation ID middleware for request tracking and observability
app.add_middleware(CorrelationIdMiddleware)

app.include_router(auth_router)
app.include_router(router)
