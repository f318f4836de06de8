"""Pydantic schemas for request/response validation."""

from app.schemas.todo import (
    TodoCreate,
    TodoUpdate,
    TodoResponse,
    ActionResponse,
)
from app.schemas.user import (
    UserCreate,
    UserResponse,
    SignInRequest,
    SignUpRequest,
    PasswordSignInRequest,
    PasswordSignUpRequest,
)

__all__ = [
    "TodoCreate",
    "TodoUpdate",
    "TodoResponse",
    "ActionResponse",
    "UserCreate",
    "UserResponse",
    "SignInRequest",
    "SignUpRequest",
    "PasswordSignInRequest",
    "PasswordSignUpRequest",
]
