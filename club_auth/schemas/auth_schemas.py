"""
Authentication request/response schemas for the HTTP layer.
"""
import re
from typing import Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator

from ..core.config import settings
from ..core.security import validate_password_strength
from .user_schemas import PublicUser


def _check_password(v: str) -> str:
    is_valid, errors = validate_password_strength(v)
    if not is_valid:
        raise ValueError(f"Password validation failed: {', '.join(errors)}")
    return v


def _check_email(v: str) -> str:
    v = v.strip()
    if not re.match(settings.EMAIL_PATTERN, v):
        raise ValueError("Invalid email format")
    return v


class SignUpRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=72)  # bcrypt ignores anything longer
    username: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if not re.match(settings.USERNAME_PATTERN, v):
            raise ValueError(
                "Username must be 3-20 characters and contain only letters, numbers, and underscores"
            )
        return v


class SignUpResponse(BaseModel):
    message: str
    email: str


class LoginRequest(BaseModel):
    # "email" is the older field name; it also carried usernames
    identifier: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("identifier", "email"),
        description="Email address or username",
    )
    password: str = Field(..., min_length=1)


class AuthenticatedResponse(BaseModel):
    """Returned by flows that end with a signed-in user."""

    message: str
    user: PublicUser
    access_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    user: PublicUser


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., max_length=72)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class ResendVerificationRequest(BaseModel):
    email: str = Field(..., max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class DeleteAccountRequest(BaseModel):
    password: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
    error_code: Optional[str] = None
