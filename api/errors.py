"""
api/errors.py -- Rendering of AuthError into the JSON error envelope.

Shared by the exception handlers in api/main.py and by routes that need to
attach cookies to an error response (POST /auth/login clears the session
on InvalidCredentials).
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

from api.models import ErrorResponse
from auth.errors import AuthError


def error_response(exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.code, message=exc.message).model_dump(),
    )
