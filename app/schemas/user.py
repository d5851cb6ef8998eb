"""User and authentication schemas for request/response validation."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from .base import BaseModelSchema, BaseSchema

MAX_PASSWORD_BYTES = 72


def _clean_name(v, label: str):
    # Runs before the length check so padding does not count
    if not isinstance(v, str):
        return v
    v = v.strip()
    if not v:
        raise ValueError(f"{label} cannot be empty")
    return v


def _check_password_bytes(v: str) -> str:
    # bcrypt only accepts 72 bytes of input
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return v


class UserRegisterRequest(BaseSchema):
    """Schema for user registration."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str = Field(..., max_length=50)
    last_name: str = Field(..., max_length=50)

    @field_validator("first_name", mode="before")
    @classmethod
    def validate_first_name(cls, v: str) -> str:
        return _clean_name(v, "First name")

    @field_validator("last_name", mode="before")
    @classmethod
    def validate_last_name(cls, v: str) -> str:
        return _clean_name(v, "Last name")

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_bytes(v)


class UserLoginRequest(BaseSchema):
    """Schema for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class RefreshTokenRequest(BaseSchema):
    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseSchema):
    current_password: str = Field(..., min_length=6, max_length=128)
    new_password: str = Field(..., min_length=6, max_length=128)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _check_password_bytes(v)


class UserUpdateRequest(BaseSchema):
    """Schema for updating profile information."""

    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)

    @field_validator("first_name", mode="before")
    @classmethod
    def validate_first_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v, "First name")

    @field_validator("last_name", mode="before")
    @classmethod
    def validate_last_name(cls, v: Optional[str]) -> Optional[str]:
        return _clean_name(v, "Last name")


class UserSummary(BaseSchema):
    """Embedded user reference (creator, assignee, author, uploader)."""

    id: UUID
    email: str
    first_name: str
    last_name: str


class UserResponse(BaseModelSchema):
    """Schema for user response data. Never includes the password hash."""

    email: str
    first_name: str
    last_name: str
    full_name: str


class TokenResponse(BaseSchema):
    access_token: str
    refresh_token: str


class AuthResponse(TokenResponse):
    """Tokens plus the authenticated user."""

    user: UserResponse


class TokenInfo(BaseSchema):
    user: UserSummary
    expires_at: datetime
