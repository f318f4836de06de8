"""Todo endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.v1.dependencies import (
    get_current_user,
    get_session_manager,
    get_settings,
    get_todo_service,
    get_view_cache,
)
from app.api.v1.validation import ValidationErrors, get_json_payload, validate_payload
from app.auth.session import SessionManager
from app.config import Settings
from app.core.result import Result
from app.core.view_cache import ViewCache
from app.models.user import User
from app.schemas.todo import ActionResponse, TodoCreate, TodoResponse, TodoUpdate
from app.services.errors import ServiceError, ServiceErrorType
from app.services.todo_service import TodoService

logger = logging.getLogger(__name__)

router = APIRouter()

VALIDATION_FAILED_MESSAGE = "Validation failed."
NOT_FOUND_MESSAGE = "Todo not found."
INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again."


def _error_message(error: ServiceError) -> str:
    if error.type == ServiceErrorType.NOT_FOUND:
        return NOT_FOUND_MESSAGE
    return INTERNAL_ERROR_MESSAGE


def _failure(error: ServiceError) -> ActionResponse:
    return ActionResponse(success=False, message=_error_message(error))


def _detail_path(settings: Settings, todo_id: str) -> str:
    return f"{settings.TODO_LIST_PATH.rstrip('/')}/{todo_id}"


def _invalidate(cache: ViewCache, settings: Settings, user_id: str, todo_id: str) -> None:
    cache.invalidate(user_id, settings.TODO_LIST_PATH, _detail_path(settings, todo_id))


@router.get(
    "",
    response_model=list[TodoResponse],
    summary="List todos",
    description="List the current user's todos, newest first.",
)
def list_todos(
    current_user: User = Depends(get_current_user),
    todo_service: TodoService = Depends(get_todo_service),
    cache: ViewCache = Depends(get_view_cache),
    settings: Settings = Depends(get_settings),
) -> list[dict]:
    """List todos through the view cache.

    A view read while a mutation lands is returned but not cached.
    """
    cached = cache.get(current_user.id, settings.TODO_LIST_PATH)
    if cached is not None:
        return cached

    generation = cache.generation(current_user.id)
    result = todo_service.get_all(current_user.id)
    if result.is_err():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_MESSAGE,
        )

    view = [TodoResponse.model_validate(todo).model_dump(mode="json") for todo in result.value]
    cache.set_if_current(current_user.id, settings.TODO_LIST_PATH, view, generation)
    return view


@router.get(
    "/{todo_id}",
    response_model=TodoResponse,
    summary="Get a todo",
    description="Get one of the current user's todos.",
)
def get_todo(
    todo_id: str,
    current_user: User = Depends(get_current_user),
    todo_service: TodoService = Depends(get_todo_service),
    cache: ViewCache = Depends(get_view_cache),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Get a todo through the view cache.

    A todo that does not exist and one owned by someone else both answer 404.
    """
    path = _detail_path(settings, todo_id)
    cached = cache.get(current_user.id, path)
    if cached is not None:
        return cached

    generation = cache.generation(current_user.id)
    result = todo_service.get_by_id(todo_id, current_user.id)
    if result.is_err():
        if result.error.type == ServiceErrorType.NOT_FOUND:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_MESSAGE,
        )

    view = TodoResponse.model_validate(result.value).model_dump(mode="json")
    cache.set_if_current(current_user.id, path, view, generation)
    return view


@router.post(
    "",
    response_model=ActionResponse,
    response_model_exclude_none=True,
    summary="Create a todo",
    description="Create a todo owned by the current user.",
)
def create_todo(
    request: Request,
    payload: Result[Any, ValidationErrors] = Depends(get_json_payload),
    session_manager: SessionManager = Depends(get_session_manager),
    todo_service: TodoService = Depends(get_todo_service),
    cache: ViewCache = Depends(get_view_cache),
    settings: Settings = Depends(get_settings),
) -> ActionResponse:
    """Validate the payload, then create the todo."""
    validated = validate_payload(TodoCreate, payload)
    if validated.is_err():
        return ActionResponse(success=False, message=VALIDATION_FAILED_MESSAGE, errors=validated.error)

    user = session_manager.require_authenticated_user(request)

    result = todo_service.create(validated.value, user.id)
    if result.is_err():
        return _failure(result.error)

    _invalidate(cache, settings, user.id, result.value.id)
    return ActionResponse(success=True, message="Todo created.")


@router.patch(
    "/{todo_id}",
    response_model=ActionResponse,
    response_model_exclude_none=True,
    summary="Update a todo",
    description="Change the title and/or completion state of one of the current user's todos.",
)
def update_todo(
    todo_id: str,
    request: Request,
    payload: Result[Any, ValidationErrors] = Depends(get_json_payload),
    session_manager: SessionManager = Depends(get_session_manager),
    todo_service: TodoService = Depends(get_todo_service),
    cache: ViewCache = Depends(get_view_cache),
    settings: Settings = Depends(get_settings),
) -> ActionResponse:
    """Validate the payload, then apply it to the todo."""
    validated = validate_payload(TodoUpdate, payload)
    if validated.is_err():
        return ActionResponse(success=False, message=VALIDATION_FAILED_MESSAGE, errors=validated.error)

    user = session_manager.require_authenticated_user(request)

    result = todo_service.update(todo_id, validated.value, user.id)
    if result.is_err():
        return _failure(result.error)

    _invalidate(cache, settings, user.id, todo_id)
    return ActionResponse(success=True, message="Todo updated.")


@router.delete(
    "/{todo_id}",
    response_model=ActionResponse,
    response_model_exclude_none=True,
    summary="Delete a todo",
)
def delete_todo(
    todo_id: str,
    current_user: User = Depends(get_current_user),
    todo_service: TodoService = Depends(get_todo_service),
    cache: ViewCache = Depends(get_view_cache),
    settings: Settings = Depends(get_settings),
) -> ActionResponse:
    """Delete one of the current user's todos."""
    result = todo_service.delete(todo_id, current_user.id)
    if result.is_err():
        return _failure(result.error)

    _invalidate(cache, settings, current_user.id, todo_id)
    return ActionResponse(success=True, message="Todo deleted.")


@router.post(
    "/{todo_id}/toggle",
    response_model=ActionResponse,
    response_model_exclude_none=True,
    summary="Toggle a todo",
    description="Flip the completion state of one of the current user's todos.",
)
def toggle_todo(
    todo_id: str,
    current_user: User = Depends(get_current_user),
    todo_service: TodoService = Depends(get_todo_service),
    cache: ViewCache = Depends(get_view_cache),
    settings: Settings = Depends(get_settings),
) -> ActionResponse:
    """Toggle one of the current user's todos."""
    result = todo_service.toggle_complete(todo_id, current_user.id)
    if result.is_err():
        return _failure(result.error)

    _invalidate(cache, settings, current_user.id, todo_id)
    return ActionResponse(success=True, message="Todo status updated.")
