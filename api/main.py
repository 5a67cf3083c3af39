"""
api/main.py -- FastAPI application entry point for TokenGate.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. CORSMiddleware  -- adds CORS headers for allowed browser origins
  2. log_requests    -- one access-log line per request

Lifespan opens the UserStore on startup and disposes its engine on shutdown.

Error mapping (every handler returns JSON):
  auth.errors.ValidationError      -> 422 {"message", "errors": {field: [msg]}}
  RequestValidationError (Pydantic) -> 422, same envelope
  auth.errors.AuthenticationError  -> 401 {"error": msg} + WWW-Authenticate
  HTTPException                    -> its status, {"error": detail}
  anything else                    -> 500 {"error": "Server Error"}, logged
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse, HealthResponse, ValidationErrorResponse
from api.routes.auth import router as auth_router
from auth.errors import AuthenticationError, ValidationError
from auth.store import UserStore
from core.config import get_settings

API_VERSION = "0.1.0"

settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("tokengate.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the credential store on startup; dispose of it on shutdown."""
    logger.info("TokenGate API starting up")
    app.state.user_store = UserStore(settings.database_url)
    logger.info("Credential store initialized")

    yield

    app.state.user_store.close()
    logger.info("TokenGate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title=f"{settings.app_name} API",
    description="Bearer-token authentication: register, login, current user, logout.",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix=settings.api_prefix, tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

_REQUEST_PARTS = ("body", "query", "path", "header", "cookie")


def _field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    """Flatten Pydantic errors into {field: [message, ...]}.

    Custom validators raise ValueError with a client-ready sentence; Pydantic
    wraps it as "Value error, <sentence>", so the original exception text is
    used instead of msg. Errors that are not tied to one field (malformed
    JSON, missing body) are reported under "body".
    """
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        parts = [p for p in err.get("loc", ()) if isinstance(p, str) and p not in _REQUEST_PARTS]
        field = parts[0] if parts else "body"
        kind = err.get("type", "")
        if kind == "missing":
            message = f"The {field} field is required."
        elif kind == "value_error" and "error" in err.get("ctx", {}):
            message = str(err["ctx"]["error"])
        elif kind == "string_type":
            message = f"The {field} field must be a string."
        else:
            message = err.get("msg", "Invalid value.")
        errors.setdefault(field, []).append(message)
    return errors


@app.exception_handler(ValidationError)
async def domain_validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Return 422 for input the service rejected (e.g. duplicate email)."""
    return JSONResponse(
        status_code=422,
        content=ValidationErrorResponse(errors=exc.errors).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with field-level messages when the request body fails validation."""
    return JSONResponse(
        status_code=422,
        content=ValidationErrorResponse(errors=_field_errors(exc)).model_dump(),
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Return 401 with the generic message carried by the exception."""
    logger.debug("Authentication rejected on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=401,
        content=ErrorResponse(error=exc.message).model_dump(),
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return framework HTTP errors (404, 405, ...) in the same {"error": ...} envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors, storage failures included.

    The raw exception goes to the log only, never to the response body. A
    database outage therefore surfaces as 500, never as a 401.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Server Error").model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is reachable at /up
# regardless of api_prefix.
# ---------------------------------------------------------------------------


@app.get("/up", tags=["Health"])
def health(request: Request) -> JSONResponse:
    """Return liveness plus a database round-trip check."""
    try:
        db_ok = request.app.state.user_store.ping()
    except SQLAlchemyError:
        logger.exception("Health check: database ping failed")
        db_ok = False
    body = HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
    return JSONResponse(status_code=200 if db_ok else 503, content=body.model_dump())
