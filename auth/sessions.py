"""
auth/sessions.py -- Session cookie issue, clear and resolve.

The session is entirely client-held: one httpOnly cookie that identifies
exactly one user id. There is no server-side session table.

Security design decisions:
  Deviation from a bare-id cookie: the basic contract for this cookie is
  the user id itself, which any client can overwrite to impersonate another
  user. This module deliberately stores a python-jose HS256 JWT instead,
  with the user id as its "sub" claim, signed with SECRET_KEY. A client can
  read its own id but cannot mint a cookie for another id, and a bare-id
  cookie is rejected. Verification returns None on any failure, and every
  bad-cookie path of resolve_current_user() ends in "no user" rather than
  an exception. Storage errors from the user lookup still propagate.

  No "exp" claim and no cookie max_age: the cookie lives for the browser
  session and the token never expires on its own. Logging out or a failed
  login deletes it.

  secure / samesite come from Settings (SECURE_COOKIES, COOKIE_SAMESITE) and
  are left to the deployment.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import Request, Response
from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("rolegate.auth")

SESSION_COOKIE_NAME = "rolegate_session"

_settings = get_settings()

_ALGORITHM = "HS256"


# ---------------------------------------------------------------------------
# Token encode / decode
# ---------------------------------------------------------------------------


def create_session_token(user_id: int) -> str:
    """Encode a signed token that identifies exactly one user id."""
    return jwt.encode({"sub": str(user_id)}, _settings.secret_key, algorithm=_ALGORITHM)


def read_session_token(token: str) -> int | None:
    """Verify a session token and return the user id it carries, or None."""
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def issue_session(response: Response, user_id: int) -> None:
    """Set the session cookie for user_id, replacing any previous one."""
    response.set_cookie(
        SESSION_COOKIE_NAME,
        value=create_session_token(user_id),
        httponly=True,
        path="/",
        samesite=_settings.cookie_samesite,
        secure=_settings.secure_cookies,
    )


def clear_session(response: Response) -> None:
    """Delete the session cookie. The attributes must match issue_session()."""
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite=_settings.cookie_samesite,
        secure=_settings.secure_cookies,
    )


def resolve_current_user(request: Request) -> User | None:
    """Return the user named by the request's session cookie, or None.

    Never raises for a bad session: a missing cookie, a tampered token and a
    user id with no matching row all resolve to None.
    """
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    user_id = read_session_token(token)
    if user_id is None:
        logger.info("Rejected session cookie with invalid signature from %s", _client_host(request))
        return None
    user_store: UserStore = request.app.state.user_store
    return user_store.get_by_id(user_id)


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"
