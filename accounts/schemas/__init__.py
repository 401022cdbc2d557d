"""Pydantic request/response schemas."""

from accounts.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProtectedResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UpdateProfileResponse,
    UserClaims,
)
from accounts.schemas.health import HealthResponse

__all__ = [
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "ProtectedResponse",
    "RegisterRequest",
    "UpdateProfileRequest",
    "UpdateProfileResponse",
    "UserClaims",
]
