"""
auth/service.py -- Signup and login flows.

Both flows are state-free: everything they know comes from the arguments
and the UserStore. Cookies are the caller's business (api/routes/auth.py
issues or clears the session based on what login() returns or raises).

Signup role policy:
  - Empty system: the requested role if it is a valid Role, else ADMIN.
  - Populated system: always USER, whatever was requested.
  The empty/populated decision is the user count the store reads inside
  the insert transaction, not a check made here, so two concurrent first
  signups cannot both receive the bootstrap role.

Layer rule: no imports from api/ or fastapi.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import Conflict, InvalidCredentials, InvalidInput
from auth.models import Role, User
from auth.store import UserStore

logger = logging.getLogger("rolegate.auth")


def parse_role(raw: str | None) -> Role | None:
    """Return the Role named by raw, or None for anything else (including "")."""
    if not raw:
        return None
    try:
        return Role(raw)
    except ValueError:
        return None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def signup(store: UserStore, name: str | None, email: str | None = None, role: str | None = None) -> User:
    """Create a new user and return it.

    Raises InvalidInput for an empty name and Conflict when a user with the
    same email (or, without an email, the same name) already exists.
    """
    name = _clean(name)
    email = _clean(email)
    if name is None:
        raise InvalidInput("Name is required.")

    if store.get_by_email_or_name(email=email, name=name) is not None:
        raise Conflict()

    bootstrap_role = parse_role(role) or Role.ADMIN
    try:
        user = store.create_user_with_bootstrap(name, email, bootstrap_role)
    except IntegrityError as exc:
        # Lost the race on the email UNIQUE constraint.
        raise Conflict() from exc

    if user.role == Role.ADMIN:
        logger.warning("Bootstrap admin created (id=%s, name=%s)", user.id, user.name)
    else:
        logger.info("User created (id=%s, role=%s)", user.id, user.role.value)
    return user


def login(store: UserStore, name: str | None = None, email: str | None = None) -> User:
    """Resolve the user a login request names.

    Email is preferred; the name is only consulted when no email is given.
    Raises InvalidInput if neither is supplied and InvalidCredentials if no
    user matches.
    """
    name = _clean(name)
    email = _clean(email)
    if name is None and email is None:
        raise InvalidInput("Provide at least a name or an email.")

    user = store.get_by_email_or_name(email=email, name=name)
    if user is None:
        logger.info("Login failed: no matching user (by %s)", "email" if email else "name")
        raise InvalidCredentials()
    return user
