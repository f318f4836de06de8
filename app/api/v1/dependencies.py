"""API dependencies for dependency injection."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.auth.identity import IdentityProvider
from app.auth.session import SessionManager
from app.config import Settings
from app.core.view_cache import ViewCache
from app.db.session import get_db
from app.models.user import User
from app.repositories.todo_repository import TodoRepository
from app.repositories.user_repository import UserRepository
from app.services.todo_service import TodoService
from app.services.user_service import UserService


def get_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_identity_provider(request: Request) -> IdentityProvider:
    """Get the process-wide identity provider created at startup."""
    return request.app.state.identity_provider


def get_view_cache(request: Request) -> ViewCache:
    """Get the process-wide view cache created at startup."""
    return request.app.state.view_cache


def get_todo_repository(db: Session = Depends(get_db)) -> TodoRepository:
    return TodoRepository(db)


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_todo_service(
    repository: TodoRepository = Depends(get_todo_repository),
    settings: Settings = Depends(get_settings),
) -> TodoService:
    """Get todo service instance."""
    return TodoService(repository, atomic_toggle=settings.ATOMIC_TOGGLE)


def get_user_service(
    repository: UserRepository = Depends(get_user_repository),
) -> UserService:
    """Get user service instance."""
    return UserService(repository)


def get_session_manager(
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    user_service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings),
) -> SessionManager:
    """Get session manager instance."""
    return SessionManager(identity_provider, user_service, settings)


def get_current_user(
    request: Request,
    session_manager: SessionManager = Depends(get_session_manager),
) -> User:
    """
    Get the user behind the request's session cookie.

    Args:
        request: Incoming request
        session_manager: Session manager instance

    Returns:
        Current User instance

    Raises:
        AuthenticationRequired: If there is no valid session; handled by
            redirecting to the sign-in page
    """
    return session_manager.require_authenticated_user(request)
