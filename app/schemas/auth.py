"""Request/response schemas for auth endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """New account details. Role is never accepted from the client."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: str = Field(..., min_length=3, max_length=255, description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class LoginRequest(BaseModel):
    """Credentials for login."""

    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=1, max_length=255, description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class ForgotPasswordRequest(BaseModel):
    """Start a password reset for an email address."""

    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=1, max_length=255, description="Email address")


class ResetPasswordRequest(BaseModel):
    """Complete a password reset with the token from the emailed link."""

    model_config = ConfigDict(extra="forbid")

    token: str = Field(..., min_length=1, max_length=512, description="Raw reset token")
    new_password: str = Field(..., min_length=1, max_length=128, description="New password")


class IdentityAssertion(BaseModel):
    """Identity returned after register/login. Never carries credential material."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Literal["user", "admin"]


class LoginResponse(BaseModel):
    """Identity plus the JWT the client keeps as its session."""

    user: IdentityAssertion
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class MessageResponse(BaseModel):
    """Plain acknowledgment message."""

    message: str


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[IdentityAssertion]
