"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The only credential is the session cookie (see auth/sessions.py).

try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises Unauthenticated (401).
require_admin() wraps get_current_user() and raises Forbidden (403) if the
user is not an ADMIN.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.errors import AuthorizationError, Forbidden, Unauthenticated
from auth.models import Role, User
from auth.rbac import require_role
from auth.sessions import resolve_current_user

logger = logging.getLogger("rolegate.auth")


def try_get_current_user(request: Request) -> User | None:
    """Return the session's user, or None. Never raises for a bad session."""
    return resolve_current_user(request)


def get_current_user(request: Request) -> User:
    """Require authentication. Raises Unauthenticated if there is no resolvable session.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise Unauthenticated()
    return user


def require_admin(request: Request) -> User:
    """Require the ADMIN role. Raises Unauthenticated (401) or Forbidden (403).

    The AuthorizationError detail (user name, required role) goes to the log
    only; the client gets the static Forbidden message.
    """
    user = get_current_user(request)
    try:
        require_role(user, Role.ADMIN)
    except AuthorizationError as exc:
        logger.warning("Forbidden %s %s: %s", request.method, request.url.path, exc)
        raise Forbidden() from exc
    return user
