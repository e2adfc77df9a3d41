"""Authentication schemas for request/response validation."""

from typing import Optional

from pydantic import Field, field_validator

from .base import BaseSchema

MIN_PASSWORD_LENGTH = 6


class CredentialsRequest(BaseSchema):
    """Email and password pair shared by sign-in and sign-up."""

    email: str = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Require a non-empty address containing '@'."""
        v = v.strip()
        if not v:
            raise ValueError("A valid email address is required")
        if "@" not in v:
            raise ValueError("The email address must contain '@'")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"The password must be at least {MIN_PASSWORD_LENGTH} characters long")
        return v


class SignInRequest(CredentialsRequest):
    """Schema for password sign-in."""


class SignUpRequest(CredentialsRequest):
    """Schema for account creation."""


class UserResponse(BaseSchema):
    """Schema for the authenticated user."""

    id: str
    email: Optional[str] = None


class AuthSession(BaseSchema):
    """Tokens issued by the auth service on sign-in."""

    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: UserResponse


class AuthResponse(BaseSchema):
    """Schema for authentication response."""

    user: UserResponse
    session: Optional[AuthSession] = None
    message: str = "Authentication successful"


class LogoutResponse(BaseSchema):
    """Schema for logout response."""

    message: str = "Logout successful"
