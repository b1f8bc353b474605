"""Request/response schemas for auth, profile and admin account endpoints."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, field_validator

from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.schemas.ownership import Role

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SPECIAL = re.compile(r"[\W_]")


def check_password_strength(password: str) -> str:
    """Require upper, lower, digit and special characters (length is checked by Field)."""
    missing = [
        label
        for label, pattern in (
            ("an uppercase letter", _UPPER),
            ("a lowercase letter", _LOWER),
            ("a digit", _DIGIT),
            ("a special character", _SPECIAL),
        )
        if not pattern.search(password)
    ]
    if missing:
        raise ValueError("Password must contain " + ", ".join(missing))
    return password


class RegisterRequest(BaseModel):
    """Self-registration. The role is always 'user'; staff roles are granted by an admin."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class TokenResponse(BaseModel):
    """JWT access token returned after successful login or refresh."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class AccountRecord(BaseModel):
    """Full account row as held by the identity store (includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    password_hash: str
    role: Role
    image: str
    blocked: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AccountRead(BaseModel):
    """Public account view (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    role: Role
    image: str
    blocked: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RegisterResponse(BaseModel):
    user: AccountRead
    access_token: str
    token_type: str = "bearer"


class ProfileUpdate(BaseModel):
    """Self-update: name, email and image only. Role and blocked are never accepted here."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    first_name: str | None = Field(default=None, min_length=2, max_length=50)
    last_name: str | None = Field(default=None, min_length=2, max_length=50)
    email: EmailStr | None = None
    image: HttpUrl | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str | None) -> str | None:
        return v.lower() if v else v


class RoleChangeRequest(BaseModel):
    role: Role


class UsersListResponse(BaseModel):
    """Response for GET /admin/users (admin only)."""

    users: list[AccountRead]
