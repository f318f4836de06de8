"""Repository layer for persistence."""

from app.repositories.errors import RepositoryError, RepositoryErrorType
from app.repositories.todo_repository import TodoRepository
from app.repositories.user_repository import UserRepository

__all__ = ["RepositoryError", "RepositoryErrorType", "TodoRepository", "UserRepository"]
