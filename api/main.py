"""
api/main.py -- FastAPI application entry point for rolegate.

Run with:  uvicorn asgi:app --reload
           python main.py serve

Middleware stack (outermost to innermost):
  1. CORSMiddleware      -- adds CORS headers for allowed browser origins
  2. log_requests        -- one access-log line per request

Lifespan opens the UserStore on startup and disposes its engine on shutdown.
"""

from __future__ import annotations

import logging
import time
from http import HTTPStatus
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.errors import error_response
from api.models import ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.auth import router as auth_router
from auth.errors import AuthError, InvalidInput, StorageUnavailable
from auth.store import UserStore
from core.config import get_settings

API_VERSION = "0.1.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("rolegate.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the user store for the lifetime of the server.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    logger.info("rolegate API starting up")
    app.state.user_store = UserStore(_settings.database_url) if _settings.database_url else UserStore()
    logger.info("User store initialized (state=%s)", app.state.user_store.system_state().value)

    yield

    app.state.user_store.close()
    logger.info("rolegate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="rolegate API",
    description="Cookie session authentication with a single-role admin gate.",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


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

app.include_router(auth_router, tags=["Auth"])
app.include_router(admin_router, tags=["Admin"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves the server as {"error": <kind>, "message": <text>}.
# Messages are static per kind; nothing from the storage layer is echoed.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or wrongly typed fields are InvalidInput (400), not 422."""
    logger.info("Rejected malformed body on %s %s: %s", request.method, request.url.path, exc.errors())
    return error_response(InvalidInput("The request body is malformed."))


@app.exception_handler(OperationalError)
async def storage_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    """The database is unreachable or locked. Logged in full, reported as 503."""
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    return error_response(StorageUnavailable())


def _http_error_code(status_code: int) -> str:
    """404 -> "NotFound", 405 -> "MethodNotAllowed"; same CamelCase as the AuthError codes."""
    try:
        return "".join(HTTPStatus(status_code).phrase.replace("-", " ").split())
    except ValueError:
        return "HTTPError"


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors (404, 405) in the same envelope as everything else."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=_http_error_code(exc.status_code), message=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors. The traceback goes to the log only."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="InternalError", message="An unexpected error occurred.").model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version and whether the user store answers."""
    components = {"app": "ok", "database": "ok"}
    try:
        components["bootstrap"] = request.app.state.user_store.system_state().value
    except OperationalError:
        logger.warning("Health check: user store unreachable")
        components["database"] = "error"
    return HealthResponse(version=API_VERSION, components=components)
