"""Todo repository: the only code that touches the todos table."""

import logging

from sqlalchemy import not_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.result import Err, Ok, Result
from app.models.todo import Todo
from app.repositories.errors import RepositoryError
from app.schemas.todo import TodoCreate, TodoUpdate

logger = logging.getLogger(__name__)

RepoResult = Result[Todo, RepositoryError]


class TodoRepository:
    """
    Persistence for todo rows, scoped to their owner.

    Every read and write filters on ``user_id``. A todo that belongs to
    someone else is reported exactly like a todo that does not exist, so the
    caller cannot learn whether another user's id is valid.
    """

    def __init__(self, db: Session):
        """
        Initialize the todo repository.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def find_all(self, user_id: str) -> Result[list[Todo], RepositoryError]:
        """
        List a user's todos, newest first.

        Args:
            user_id: Owner user ID

        Returns:
            Ok with the list of todos, or Err(DATABASE_ERROR)
        """
        try:
            todos = (
                self.db.query(Todo)
                .filter(Todo.user_id == user_id)
                .order_by(Todo.created_at.desc())
                .all()
            )
            return Ok(todos)
        except SQLAlchemyError as e:
            return Err(self._fail("list todos", e))

    def find_by_id(self, todo_id: str, user_id: str) -> RepoResult:
        """
        Get a todo by ID (with ownership verification).

        Args:
            todo_id: Todo ID
            user_id: Requesting user ID

        Returns:
            Ok with the todo, or Err(NOT_FOUND) if it doesn't exist or the
            user doesn't own it
        """
        try:
            todo = self.db.query(Todo).filter(
                Todo.id == todo_id,
                Todo.user_id == user_id,
            ).first()
        except SQLAlchemyError as e:
            return Err(self._fail("fetch todo", e))

        if not todo:
            return Err(RepositoryError.not_found("Todo", "id", todo_id))

        return Ok(todo)

    def create(self, data: TodoCreate, user_id: str) -> RepoResult:
        """
        Create a new todo.

        Args:
            data: Todo creation data
            user_id: Owner user ID

        Returns:
            Ok with the created todo, or Err(DATABASE_ERROR)
        """
        todo = Todo(
            user_id=user_id,
            title=data.title,
            completed=False,
        )

        try:
            self.db.add(todo)
            self.db.commit()
            self.db.refresh(todo)
        except SQLAlchemyError as e:
            return Err(self._fail("create todo", e))

        return Ok(todo)

    def update(self, todo_id: str, data: TodoUpdate, user_id: str) -> RepoResult:
        """
        Apply a partial update to a todo the user owns.

        Ownership is re-read before writing so a missing row and someone
        else's row take the same path.

        Args:
            todo_id: Todo ID
            data: Fields to change
            user_id: Requesting user ID

        Returns:
            Ok with the updated todo, Err(NOT_FOUND) or Err(DATABASE_ERROR)
        """
        found = self.find_by_id(todo_id, user_id)
        if found.is_err():
            return found

        todo = found.value
        for field, value in data.changes().items():
            setattr(todo, field, value)

        try:
            self.db.commit()
            self.db.refresh(todo)
        except SQLAlchemyError as e:
            return Err(self._fail("update todo", e))

        return Ok(todo)

    def delete(self, todo_id: str, user_id: str) -> RepoResult:
        """
        Delete a todo the user owns.

        Args:
            todo_id: Todo ID
            user_id: Requesting user ID

        Returns:
            Ok with the deleted todo, Err(NOT_FOUND) or Err(DATABASE_ERROR)
        """
        found = self.find_by_id(todo_id, user_id)
        if found.is_err():
            return found

        todo = found.value
        try:
            self.db.delete(todo)
            self.db.commit()
        except SQLAlchemyError as e:
            return Err(self._fail("delete todo", e))

        return Ok(todo)

    def toggle_completed(self, todo_id: str, user_id: str) -> RepoResult:
        """
        Flip ``completed`` in a single conditional UPDATE.

        Args:
            todo_id: Todo ID
            user_id: Requesting user ID

        Returns:
            Ok with the updated todo, Err(NOT_FOUND) or Err(DATABASE_ERROR)
        """
        stmt = (
            update(Todo)
            .where(Todo.id == todo_id, Todo.user_id == user_id)
            .values(completed=not_(Todo.completed))
            .execution_options(synchronize_session=False)
        )

        try:
            matched = self.db.execute(stmt).rowcount
            self.db.commit()
        except SQLAlchemyError as e:
            return Err(self._fail("toggle todo", e))

        if not matched:
            return Err(RepositoryError.not_found("Todo", "id", todo_id))

        return self.find_by_id(todo_id, user_id)

    def _fail(self, action: str, error: SQLAlchemyError) -> RepositoryError:
        self.db.rollback()
        logger.error(f"Failed to {action}: {error}")
        return RepositoryError.database(error)
