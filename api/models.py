"""
API request and response models for rolegate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request fields are all Optional: a missing name reaches the signup flow and
comes back as InvalidInput (400), not as a schema error.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Role, User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup.

    role is a raw string: an unknown value is not an error, it just means
    "no valid role requested" to the bootstrap policy.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)
    role: Optional[str] = Field(default=None, max_length=32)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login. At least one field must be non-empty."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=320)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    """The fields of a user that may leave the server."""

    id: int
    name: str
    email: Optional[str] = None
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


class UserEnvelope(BaseModel):
    user: UserPublic


class AdminResponse(BaseModel):
    """Response body for GET /admin. Keys are camelCase on the wire."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    current_user: UserPublic = Field(alias="currentUser")
    example_admin_data: dict[str, Any] = Field(alias="exampleAdminData")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Uniform error envelope: {"error": <kind>, "message": <static text>}."""

    error: str
    message: str


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
