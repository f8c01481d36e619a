"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ForgotPasswordRequest,
    IdentityAssertion,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UsersListResponse,
)
from app.schemas.health import HealthResponse

__all__ = [
    "ForgotPasswordRequest",
    "HealthResponse",
    "IdentityAssertion",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "UsersListResponse",
]
