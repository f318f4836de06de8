"""Service layer for business logic."""

from app.services.errors import ServiceError, ServiceErrorType
from app.services.todo_service import TodoService
from app.services.user_service import UserService

__all__ = ["ServiceError", "ServiceErrorType", "TodoService", "UserService"]
