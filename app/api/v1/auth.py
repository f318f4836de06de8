"""Authentication endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import RedirectResponse

from app.api.v1.dependencies import (
    get_current_user,
    get_identity_provider,
    get_session_manager,
    get_settings,
    get_user_service,
)
from app.api.v1.validation import ValidationErrors, get_json_payload, validate_payload
from app.auth.identity import IdentityError, IdentityErrorType, IdentityProvider
from app.auth.session import SessionManager
from app.config import Settings
from app.core.result import Result
from app.models.user import User
from app.schemas.todo import ActionResponse
from app.schemas.user import (
    PasswordSignInRequest,
    PasswordSignUpRequest,
    SignInRequest,
    SignUpRequest,
    UserCreate,
    UserResponse,
)
from app.services.errors import ServiceErrorType
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()

VALIDATION_FAILED_MESSAGE = "Validation failed."
USER_NOT_FOUND_MESSAGE = "User not found."
INVALID_TOKEN_MESSAGE = "Invalid token."
EMAIL_IN_USE_MESSAGE = "This email address is already in use."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
INTERNAL_ERROR_MESSAGE = "Something went wrong. Please try again."


def _identity_error_message(error: IdentityError) -> str:
    if error.type == IdentityErrorType.INVALID_CREDENTIALS:
        return INVALID_CREDENTIALS_MESSAGE
    if error.type == IdentityErrorType.EMAIL_ALREADY_IN_USE:
        return EMAIL_IN_USE_MESSAGE
    return INTERNAL_ERROR_MESSAGE


def _complete_sign_in(
    data: SignInRequest,
    response: Response,
    session_manager: SessionManager,
    user_service: UserService,
) -> ActionResponse:
    user = user_service.get_user_by_firebase_uid(data.firebase_uid)
    if user.is_err():
        if user.error.type == ServiceErrorType.NOT_FOUND:
            return ActionResponse(success=False, message=USER_NOT_FOUND_MESSAGE)
        return ActionResponse(success=False, message=INTERNAL_ERROR_MESSAGE)

    credential = session_manager.create_session_credential(data.id_token, data.firebase_uid)
    if credential.is_err():
        return ActionResponse(success=False, message=INVALID_TOKEN_MESSAGE)

    persisted = session_manager.persist_session_credential(response, credential.value)
    if persisted.is_err():
        return ActionResponse(success=False, message=INTERNAL_ERROR_MESSAGE)

    logger.info(f"User {user.value.id} signed in")
    return ActionResponse(success=True, message="Signed in.")


def _complete_sign_up(
    data: SignUpRequest,
    response: Response,
    session_manager: SessionManager,
    user_service: UserService,
) -> ActionResponse:
    credential = session_manager.create_session_credential(data.id_token, data.firebase_uid)
    if credential.is_err():
        return ActionResponse(success=False, message=INVALID_TOKEN_MESSAGE)

    user = user_service.get_or_create_user(
        UserCreate(
            firebase_uid=data.firebase_uid,
            email=data.email,
            display_name=data.display_name,
        )
    )
    if user.is_err():
        if user.error.type == ServiceErrorType.ALREADY_EXISTS:
            return ActionResponse(success=False, message=EMAIL_IN_USE_MESSAGE)
        return ActionResponse(success=False, message=INTERNAL_ERROR_MESSAGE)

    persisted = session_manager.persist_session_credential(response, credential.value)
    if persisted.is_err():
        return ActionResponse(success=False, message=INTERNAL_ERROR_MESSAGE)

    logger.info(f"User {user.value.id} signed up")
    return ActionResponse(success=True, message="Account created.")


@router.post(
    "/sign-in",
    response_model=ActionResponse,
    response_model_exclude_none=True,
    summary="Start a session",
    description="Exchange an ID token from the identity provider for a session cookie.",
)
def sign_in(
    response: Response,
    payload: Result[Any, ValidationErrors] = Depends(get_json_payload),
    session_manager: SessionManager = Depends(get_session_manager),
    user_service: UserService = Depends(get_user_service),
) -> ActionResponse:
    """Sign in an existing user."""
    validated = validate_payload(SignInRequest, payload)
    if validated.is_err():
        return ActionResponse(success=False, message=VALIDATION_FAILED_MESSAGE, errors=validated.error)

    return _complete_sign_in(validated.value, response, session_manager, user_service)


@router.post(
    "/sign-up",
    response_model=ActionResponse,
    response_model_exclude_none=True,
    summary="Register and start a session",
    description="Exchange an ID token for a session cookie, creating the local user on first use.",
)
def sign_up(
    response: Response,
    payload: Result[Any, ValidationErrors] = Depends(get_json_payload),
    session_manager: SessionManager = Depends(get_session_manager),
    user_service: UserService = Depends(get_user_service),
) -> ActionResponse:
    """Sign up a user."""
    validated = validate_payload(SignUpRequest, payload)
    if validated.is_err():
        return ActionResponse(success=False, message=VALIDATION_FAILED_MESSAGE, errors=validated.error)

    return _complete_sign_up(validated.value, response, session_manager, user_service)


@router.post(
    "/sign-in/password",
    response_model=ActionResponse,
    response_model_exclude_none=True,
    summary="Sign in with email and password",
)
def sign_in_with_password(
    response: Response,
    payload: Result[Any, ValidationErrors] = Depends(get_json_payload),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    session_manager: SessionManager = Depends(get_session_manager),
    user_service: UserService = Depends(get_user_service),
) -> ActionResponse:
    """Authenticate with the identity provider, then sign in."""
    validated = validate_payload(PasswordSignInRequest, payload)
    if validated.is_err():
        return ActionResponse(success=False, message=VALIDATION_FAILED_MESSAGE, errors=validated.error)

    form = validated.value
    authenticated = identity_provider.sign_in_with_password(form.email, form.password)
    if authenticated.is_err():
        return ActionResponse(success=False, message=_identity_error_message(authenticated.error))

    return _complete_sign_in(
        SignInRequest(id_token=authenticated.value.id_token, firebase_uid=authenticated.value.uid),
        response,
        session_manager,
        user_service,
    )


@router.post(
    "/sign-up/password",
    response_model=ActionResponse,
    response_model_exclude_none=True,
    summary="Sign up with email and password",
)
def sign_up_with_password(
    response: Response,
    payload: Result[Any, ValidationErrors] = Depends(get_json_payload),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    session_manager: SessionManager = Depends(get_session_manager),
    user_service: UserService = Depends(get_user_service),
) -> ActionResponse:
    """Create the identity provider account, then sign up."""
    validated = validate_payload(PasswordSignUpRequest, payload)
    if validated.is_err():
        return ActionResponse(success=False, message=VALIDATION_FAILED_MESSAGE, errors=validated.error)

    form = validated.value
    registered = identity_provider.sign_up_with_password(form.email, form.password)
    if registered.is_err():
        return ActionResponse(success=False, message=_identity_error_message(registered.error))

    return _complete_sign_up(
        SignUpRequest(
            id_token=registered.value.id_token,
            firebase_uid=registered.value.uid,
            email=form.email,
            display_name=form.display_name,
        ),
        response,
        session_manager,
        user_service,
    )


@router.post(
    "/sign-out",
    summary="End the session",
    description="Clear the session cookie and redirect to the sign-in page. Always succeeds.",
    status_code=status.HTTP_303_SEE_OTHER,
    response_class=RedirectResponse,
)
def sign_out(
    request: Request,
    session_manager: SessionManager = Depends(get_session_manager),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Sign out.

    The redirect is returned even when the cookie cannot be cleared or the
    provider cannot revoke the session; both failures are only logged.
    """
    response = RedirectResponse(url=settings.SIGN_IN_PATH, status_code=status.HTTP_303_SEE_OTHER)

    cleared = session_manager.clear_session_credential(response)
    if cleared.is_err():
        logger.warning(f"Ignoring sign-out failure: {cleared.error.message}")

    credential = session_manager.session_credential(request)
    if credential:
        try:
            identity_provider.sign_out(credential)
        except Exception:
            logger.exception("Identity provider sign-out failed")

    return response


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get the signed-in user's information.",
)
def get_me(
    current_user: User = Depends(get_current_user),
) -> User:
    """Get current user information."""
    return current_user
