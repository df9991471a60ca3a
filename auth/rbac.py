"""
auth/rbac.py -- Role checks.

A check is an exact match against one required role. There is no
hierarchy: ADMIN does not satisfy a USER requirement, and vice versa.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from auth.errors import AuthorizationError
from auth.models import Role, User


def has_role(user: User, required_role: Role) -> bool:
    return user.role == required_role


def require_role(user: User, required_role: Role) -> None:
    """Return silently if user holds required_role, else raise AuthorizationError."""
    if not has_role(user, required_role):
        raise AuthorizationError(user.name, Role(required_role).value)
