"""
auth/errors.py -- Error kinds raised by the auth flows.

Each AuthError subclass carries the wire code, HTTP status and a static
default message. The API layer renders them as {"error": code, "message": ...}
without inspecting the class further, so adding a new kind only needs a new
subclass here.

AuthorizationError is not an AuthError: it is raised by rbac.require_role()
with the user's name in it, and that detail stays in the logs. The admin
dependency translates it into Forbidden.

Layer rule: no imports from api/ or fastapi.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for errors that map onto a client-visible HTTP response."""

    code: str = "InternalError"
    status_code: int = 500
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInput(AuthError):
    code = "InvalidInput"
    status_code = 400
    message = "The request is missing required fields."


class Conflict(AuthError):
    code = "Conflict"
    status_code = 409
    message = "A user with this name or email already exists."


class InvalidCredentials(AuthError):
    code = "InvalidCredentials"
    status_code = 401
    message = "No matching user found. Please sign up first."


class Unauthenticated(AuthError):
    code = "Unauthenticated"
    status_code = 401
    message = "You must be logged in to access this resource."


class Forbidden(AuthError):
    code = "Forbidden"
    status_code = 403
    message = "You must be an admin to access this resource."


class StorageUnavailable(AuthError):
    code = "StorageUnavailable"
    status_code = 503
    message = "The user store is temporarily unavailable."


class AuthorizationError(Exception):
    """Raised when a user lacks the role an operation requires."""

    def __init__(self, user_name: str, required_role: str) -> None:
        self.user_name = user_name
        self.required_role = required_role
        super().__init__(f'User "{user_name}" does not have required role "{required_role}".')
