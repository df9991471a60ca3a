"""
auth/models.py -- Domain dataclasses and enums for authentication entities.

Pattern: Data class (pure data container, zero logic). The store and the
flow functions do the work; this module only owns the domain shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of roles. Stored verbatim in users.role."""

    ADMIN = "ADMIN"
    USER = "USER"


class SystemState(str, Enum):
    """Bootstrap state of the user table.

    Derived from the user count: EMPTY while the table has no rows. The
    EMPTY -> POPULATED transition happens in the insert transaction of
    UserStore.create_user_with_bootstrap(), which holds a write lock while
    it counts.
    """

    EMPTY = "EMPTY"
    POPULATED = "POPULATED"


@dataclass
class User:
    """A registered identity.

    name is not unique; email is unique when present. Neither is ever
    mutated after creation.
    """

    name: str
    role: Role = Role.USER
    email: str | None = None
    id: int | None = None
    created_at: str | None = None
