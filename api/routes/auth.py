"""
api/routes/auth.py -- Signup, login and session endpoints.

Routes:
  POST /auth/signup   -- create a user; 201 {user}
  POST /auth/login    -- resolve a user by email or name; sets session cookie
  POST /auth/logout   -- clears the session cookie; 200
  GET  /auth/me       -- current user (requires a session)

Security:
  Login responses carry Cache-Control: no-store.
  A failed login deletes any existing session cookie, so a client never stays
  logged in as a stale identity after a rejected attempt.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.errors import error_response
from api.models import LoginRequest, MessageResponse, SignupRequest, UserEnvelope, UserPublic
from auth import service
from auth.dependencies import get_current_user
from auth.errors import InvalidCredentials
from auth.models import User
from auth.sessions import clear_session, issue_session
from auth.store import UserStore

# Auth policy:
# - POST /auth/signup:  public
# - POST /auth/login:   public
# - POST /auth/logout:  public -- clearing a cookie needs no prior auth
# - GET  /auth/me:      requires a session (get_current_user)
router = APIRouter()


@router.post("/auth/signup", response_model=UserEnvelope, status_code=201)
def signup(request: Request, body: SignupRequest) -> UserEnvelope:
    """Create a user. The first user in an empty system may become ADMIN.

    Does not log the new user in; the client calls POST /auth/login next.
    """
    user_store: UserStore = request.app.state.user_store
    user = service.signup(user_store, name=body.name, email=body.email, role=body.role)
    return UserEnvelope(user=UserPublic.from_user(user))


@router.post("/auth/login", response_model=UserEnvelope)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Look up the user by email (preferred) or name and start a session."""
    user_store: UserStore = request.app.state.user_store
    try:
        user = service.login(user_store, name=body.name, email=body.email)
    except InvalidCredentials as exc:
        resp = error_response(exc)
        clear_session(resp)
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=UserEnvelope(user=UserPublic.from_user(user)).model_dump(mode="json"),
    )
    issue_session(resp, user.id)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=MessageResponse)
async def logout() -> JSONResponse:
    """Clear the session cookie."""
    resp = JSONResponse(content=MessageResponse(message="Logged out.").model_dump())
    clear_session(resp)
    return resp


@router.get("/auth/me", response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    """Return the public fields of the user behind the session cookie."""
    return UserEnvelope(user=UserPublic.from_user(current_user))
