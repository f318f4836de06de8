"""
Session management on top of the identity provider.

A session is a signed, time-limited credential minted by the identity
provider from a fresh ID token and stored in an HTTP-only cookie. It is not
stored server-side: every request that needs the user verifies the cookie
with the provider and loads the local user row.

Two tiers of checks exist:

- ``has_active_session_cookie`` only looks at cookie presence and is used by
  the routing guard on every navigation.
- ``current_user`` / ``require_authenticated_user`` verify the credential and
  are used by the entry points that read or mutate data.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum as PyEnum
from typing import Mapping, Optional

from fastapi import Request, Response

from app.auth.identity import IdentityProvider, IdentityProviderError
from app.config import Settings
from app.core.result import Err, Ok, Result
from app.models.user import User
from app.services.errors import ServiceErrorType
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


class AuthErrorType(str, PyEnum):
    """Enumeration of session failures."""

    INVALID_TOKEN = "INVALID_TOKEN"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class AuthError:
    """A failed session operation."""

    type: AuthErrorType
    message: str


class AuthenticationRequired(Exception):
    """
    Raised to divert a request to the sign-in page.

    Handled application-wide by redirecting; it never reaches the client as
    an error body.
    """

    def __init__(self, reason: str = "Authentication required"):
        self.reason = reason
        super().__init__(reason)


def has_session_cookie(cookies: Mapping[str, str], cookie_name: str) -> bool:
    """Whether a non-empty session cookie is present. No verification."""
    return bool(cookies.get(cookie_name))


class SessionManager:
    """Creates, verifies and destroys session cookies."""

    def __init__(
        self,
        identity_provider: IdentityProvider,
        user_service: UserService,
        settings: Settings,
    ):
        """
        Initialize the session manager.

        Args:
            identity_provider: Process-wide identity provider client
            user_service: User service bound to the request's session
            settings: Application settings (cookie name, lifetime, security)
        """
        self.identity_provider = identity_provider
        self.user_service = user_service
        self.cookie_name = settings.SESSION_COOKIE_NAME
        self.max_age = settings.session_max_age
        self.secure = settings.session_cookie_secure

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(seconds=self.max_age)

    def create_session_credential(
        self, id_token: str, firebase_uid: Optional[str] = None
    ) -> Result[str, AuthError]:
        """
        Exchange an ID token for a session credential.

        Args:
            id_token: Freshly issued ID token
            firebase_uid: Subject the caller claims to be; when given, the
                token must belong to it

        Returns:
            Ok with the credential, or Err(INVALID_TOKEN)
        """
        try:
            claims = self.identity_provider.verify_token(id_token)
            if firebase_uid is not None and claims.get("uid") != firebase_uid:
                logger.warning(f"ID token subject does not match {firebase_uid}")
                return Err(AuthError(AuthErrorType.INVALID_TOKEN, "ID token does not match the account"))

            credential = self.identity_provider.issue_session_credential(id_token, self.session_ttl)
        except IdentityProviderError as e:
            logger.error(f"Failed to create session cookie: {e.message}")
            return Err(AuthError(AuthErrorType.INVALID_TOKEN, e.message))

        return Ok(credential)

    def persist_session_credential(self, response: Response, credential: str) -> Result[None, AuthError]:
        """
        Store the credential in the session cookie on ``response``.

        Returns:
            Ok(None), or Err(INTERNAL_ERROR) if the cookie could not be set
        """
        try:
            response.set_cookie(
                key=self.cookie_name,
                value=credential,
                max_age=self.max_age,
                path="/",
                httponly=True,
                secure=self.secure,
                samesite="lax",
            )
        except Exception as e:
            logger.exception("Failed to set session cookie")
            return Err(AuthError(AuthErrorType.INTERNAL_ERROR, f"Failed to set session cookie: {e}"))

        return Ok(None)

    def clear_session_credential(self, response: Response) -> Result[None, AuthError]:
        """
        Remove the session cookie on ``response``.

        Failures are logged and returned; the sign-out flow ignores them.
        """
        try:
            response.delete_cookie(
                key=self.cookie_name,
                path="/",
                httponly=True,
                secure=self.secure,
                samesite="lax",
            )
        except Exception as e:
            logger.exception("Failed to clear session cookie")
            return Err(AuthError(AuthErrorType.INTERNAL_ERROR, f"Failed to clear session cookie: {e}"))

        return Ok(None)

    def current_user(self, request: Request) -> Result[Optional[User], AuthError]:
        """
        Resolve the user behind the request's session cookie.

        Returns:
            - Ok(None) when there is no cookie (anonymous)
            - Ok(User) when the cookie verifies and the user exists
            - Err(SESSION_EXPIRED) when verification fails
            - Err(USER_NOT_FOUND) when no local user matches the subject
            - Err(INTERNAL_ERROR) when the user lookup itself fails
        """
        credential = request.cookies.get(self.cookie_name)
        if not credential:
            return Ok(None)

        try:
            claims = self.identity_provider.verify_session_credential(credential)
        except IdentityProviderError as e:
            logger.warning(f"Failed to verify session: {e.message}")
            return Err(AuthError(AuthErrorType.SESSION_EXPIRED, e.message))

        firebase_uid = claims["uid"]
        result = self.user_service.get_user_by_firebase_uid(firebase_uid)
        if result.is_err():
            if result.error.type == ServiceErrorType.NOT_FOUND:
                logger.warning(f"User {firebase_uid} not found in database")
                return Err(AuthError(AuthErrorType.USER_NOT_FOUND, "User not found in database"))
            return Err(AuthError(AuthErrorType.INTERNAL_ERROR, result.error.message))

        return Ok(result.value)

    def require_authenticated_user(self, request: Request) -> User:
        """
        Return the authenticated user or divert to sign-in.

        Raises:
            AuthenticationRequired: If there is no valid session
        """
        result = self.current_user(request)
        if result.is_err():
            raise AuthenticationRequired(result.error.type.value)
        if result.value is None:
            raise AuthenticationRequired("No session")
        return result.value

    def has_active_session_cookie(self, request: Request) -> bool:
        return has_session_cookie(request.cookies, self.cookie_name)

    def session_credential(self, request: Request) -> Optional[str]:
        """Raw credential from the request, if any."""
        return request.cookies.get(self.cookie_name) or None
