"""
API request and response models for the contributor accounts REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Password length policy lives in AuthService, not here, so a short password
gets the service's InvalidInput message instead of a generic validation error.
JSON field names keep the camelCase the browser client sends
(currentPassword, newPassword) through aliases.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class Credentials(BaseModel):
    """Request body for POST /register and POST /login."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(max_length=255)


class ContributionCreate(BaseModel):
    """Request body for POST /contribution.

    contribution is optional at the schema level; AuthService rejects a
    missing or empty value with InvalidInput. Whitespace is kept as sent.
    """

    contribution: Optional[str] = Field(default=None, max_length=1000)


class PasswordUpdate(BaseModel):
    """Request body for PUT /update-password."""

    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword", max_length=255)
    new_password: str = Field(alias="newPassword", max_length=255)


class PasswordReset(BaseModel):
    """Request body for POST /reset-password."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1, max_length=255)
    new_password: str = Field(alias="newPassword", max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class LoginResponse(BaseModel):
    """Response body for a successful POST /login."""

    model_config = ConfigDict(frozen=True)

    message: str
    token: str
    token_type: str = "bearer"
    expires_in: int


class ContributionsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    contributions: list[str]


class ErrorResponse(BaseModel):
    """Error envelope returned on every 4xx/5xx response.

    message is the human-readable text; code is stable for clients to branch on.
    """

    model_config = ConfigDict(frozen=True)

    message: str
    code: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
