"""Todo service for managing a user's todo items."""

import logging

from app.core.result import Err, Result
from app.models.todo import Todo
from app.repositories.todo_repository import TodoRepository
from app.schemas.todo import TodoCreate, TodoUpdate
from app.services.errors import ServiceError, to_service_error

logger = logging.getLogger(__name__)

ServiceResult = Result[Todo, ServiceError]


class TodoService:
    """
    Service for managing todo items.

    All operations are scoped to the acting user. Repository errors are
    translated to service errors; database details never leave this layer.
    """

    def __init__(self, repository: TodoRepository, atomic_toggle: bool = False):
        """
        Initialize the todo service.

        Args:
            repository: Todo repository bound to the request's session
            atomic_toggle: Flip ``completed`` with one conditional UPDATE
                instead of reading then writing
        """
        self.repository = repository
        self.atomic_toggle = atomic_toggle

    def get_all(self, user_id: str) -> Result[list[Todo], ServiceError]:
        """List the user's todos, newest first."""
        logger.info(f"Fetching todos for user {user_id}")
        return self.repository.find_all(user_id).map_err(to_service_error)

    def get_by_id(self, todo_id: str, user_id: str) -> ServiceResult:
        """Get one of the user's todos."""
        logger.info(f"Fetching todo {todo_id} for user {user_id}")
        return self.repository.find_by_id(todo_id, user_id).map_err(to_service_error)

    def create(self, data: TodoCreate, user_id: str) -> ServiceResult:
        """Create a todo owned by the user."""
        logger.info(f"Creating todo for user {user_id}")
        result = self.repository.create(data, user_id)
        if result.is_ok():
            logger.info(f"Created todo {result.value.id} for user {user_id}")
        return result.map_err(to_service_error)

    def update(self, todo_id: str, data: TodoUpdate, user_id: str) -> ServiceResult:
        """Apply a partial update to one of the user's todos."""
        logger.info(f"Updating todo {todo_id} for user {user_id} (fields: {sorted(data.changes())})")
        return self.repository.update(todo_id, data, user_id).map_err(to_service_error)

    def delete(self, todo_id: str, user_id: str) -> ServiceResult:
        """Delete one of the user's todos."""
        logger.info(f"Deleting todo {todo_id} for user {user_id}")
        return self.repository.delete(todo_id, user_id).map_err(to_service_error)

    def toggle_complete(self, todo_id: str, user_id: str) -> ServiceResult:
        """
        Flip the completed flag of one of the user's todos.

        By default this reads the row and then writes the negated value.
        Two concurrent toggles of the same todo can therefore both read the
        same state and one update is lost. With ``atomic_toggle`` the flip
        happens in the database in a single statement.

        Args:
            todo_id: Todo ID
            user_id: Requesting user ID

        Returns:
            Ok with the updated todo, or the error of the failed step; if
            the read fails nothing is written
        """
        logger.info(f"Toggling todo {todo_id} for user {user_id}")

        if self.atomic_toggle:
            return self.repository.toggle_completed(todo_id, user_id).map_err(to_service_error)

        found = self.repository.find_by_id(todo_id, user_id)
        if found.is_err():
            return Err(to_service_error(found.error))

        todo = found.value
        changes = TodoUpdate(completed=not todo.completed)
        return self.repository.update(todo_id, changes, user_id).map_err(to_service_error)
