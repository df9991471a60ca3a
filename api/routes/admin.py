"""
api/routes/admin.py -- The admin-only resource.

Routes:
  GET /admin -- 401 without a session, 403 for a non-ADMIN session, else 200.

Reading this resource never touches the session cookie.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import AdminResponse, UserPublic
from auth.dependencies import require_admin
from auth.models import User

router = APIRouter()


@router.get("/admin", response_model=AdminResponse)
def admin(current_user: User = Depends(require_admin)) -> AdminResponse:
    return AdminResponse(
        message="Welcome to the admin API.",
        current_user=UserPublic.from_user(current_user),
        example_admin_data={"systemStatus": "ok"},
    )
