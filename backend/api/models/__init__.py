"""Pydantic models for API requests and responses."""

from .enums import AgeRange, TaleLength, TaleSort, Visibility
from .requests import (
    CreateTaleRequest,
    GenerateTaleRequest,
    LoginRequest,
    RegisterRequest,
    UpdateTaleRequest,
)
from .responses import (
    AuthorResponse,
    GenerateTaleResponse,
    LikesResponse,
    MessageResponse,
    TaleResponse,
    TokenResponse,
    UserResponse,
)

__all__ = [
    "AgeRange",
    "TaleLength",
    "TaleSort",
    "Visibility",
    "CreateTaleRequest",
    "GenerateTaleRequest",
    "LoginRequest",
    "RegisterRequest",
    "UpdateTaleRequest",
    "AuthorResponse",
    "GenerateTaleResponse",
    "LikesResponse",
    "MessageResponse",
    "TaleResponse",
    "TokenResponse",
    "UserResponse",
]
