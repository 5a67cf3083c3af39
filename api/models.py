"""
API request and response models for TokenGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Input rules:
  name and email are trimmed; password is taken verbatim (surrounding spaces
  are part of the secret). Length bounds come from core.config.Settings so
  the policy can change without a code edit. Validator messages are the text
  clients see in the 422 "errors" map, keyed by field name.
"""

from __future__ import annotations

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, field_validator

from auth.models import User
from core.config import get_settings

# ---------------------------------------------------------------------------
# Shared field checks
# ---------------------------------------------------------------------------


def _require(value: str, field: str) -> str:
    if not value:
        raise ValueError(f"The {field} field is required.")
    return value


def _normalize_email(value: str) -> str:
    """Trim, syntax-check and lowercase an email address.

    Deliverability (DNS) is not checked: registration must work offline and
    the address is an identifier here, not a mailbox we send to.
    """
    value = _require(value.strip(), "email")
    try:
        result = validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError("The email field must be a valid email address.") from exc
    return result.normalized.lower()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    model_config = ConfigDict(extra="ignore")

    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = _require(value.strip(), "name")
        limit = get_settings().name_max_length
        if len(value) > limit:
            raise ValueError(f"The name field must not be greater than {limit} characters.")
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if len(value) > 255:
            raise ValueError("The email field must not be greater than 255 characters.")
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        _require(value, "password")
        settings = get_settings()
        if len(value) < settings.password_min_length:
            raise ValueError(f"The password field must be at least {settings.password_min_length} characters.")
        if len(value) > settings.password_max_length:
            raise ValueError(
                f"The password field must not be greater than {settings.password_max_length} characters."
            )
        return value


class LoginRequest(BaseModel):
    """Request body for POST /login.

    Only presence and email syntax are checked. Length policy is a
    registration rule; applying it here would tell an attacker something
    about which passwords cannot be valid.
    """

    model_config = ConfigDict(extra="ignore")

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return _require(value, "password")


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    """The only shape in which a user leaves the server: no password, no hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(id=user.id, name=user.name, email=user.email)


class RegisterResponse(BaseModel):
    """Response for POST /register (201)."""

    model_config = ConfigDict(frozen=True)

    message: str = "User registered successfully"
    user: UserPublic


class LoginResponse(BaseModel):
    """Response for POST /login (200)."""

    model_config = ConfigDict(frozen=True)

    message: str = "Login successful"
    access_token: str
    token_type: str = "Bearer"  # noqa: S105 -- OAuth token type, not a password
    user: UserPublic


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorResponse(BaseModel):
    """Error envelope for 401/403/404/500 responses."""

    model_config = ConfigDict(frozen=True)

    error: str


class ValidationErrorResponse(BaseModel):
    """Error envelope for 422 responses: field name -> list of messages."""

    model_config = ConfigDict(frozen=True)

    message: str = "The given data was invalid."
    errors: dict[str, list[str]]


class HealthResponse(BaseModel):
    """Response for GET /up."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
