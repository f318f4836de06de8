"""Identity provider abstraction."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum as PyEnum
from typing import Any

from app.core.result import Result


class IdentityErrorType(str, PyEnum):
    """Enumeration of email/password authentication failures."""

    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_ALREADY_IN_USE = "EMAIL_ALREADY_IN_USE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass(frozen=True)
class IdentityError:
    """A rejected email/password sign-in or sign-up."""

    type: IdentityErrorType
    message: str


@dataclass(frozen=True)
class AuthCredentials:
    """Result of a successful email/password authentication."""

    uid: str
    id_token: str


class IdentityProviderError(Exception):
    """Token or credential verification/issuance failed."""

    def __init__(self, message: str = "Identity provider error"):
        self.message = message
        super().__init__(message)


class IdentityProvider(ABC):
    """
    Abstract interface for the external identity provider.

    Allows swapping Firebase for the in-process local provider (development
    and tests) by implementing this interface. Implementations are shared by
    all requests and must be safe for concurrent use.
    """

    @abstractmethod
    def sign_in_with_password(
        self, email: str, password: str
    ) -> Result[AuthCredentials, IdentityError]:
        """
        Authenticate with email and password.

        Returns:
            Ok with uid and a fresh ID token, or
            Err(INVALID_CREDENTIALS | UNKNOWN_ERROR)
        """
        pass

    @abstractmethod
    def sign_up_with_password(
        self, email: str, password: str
    ) -> Result[AuthCredentials, IdentityError]:
        """
        Create an account with email and password.

        Returns:
            Ok with uid and a fresh ID token, or
            Err(EMAIL_ALREADY_IN_USE | UNKNOWN_ERROR)
        """
        pass

    @abstractmethod
    def sign_out(self, session_credential: str) -> None:
        """
        End the session represented by ``session_credential``.

        Best effort: implementations log failures instead of raising.
        """
        pass

    @abstractmethod
    def verify_token(self, id_token: str) -> dict[str, Any]:
        """
        Verify an ID token.

        Returns:
            Decoded claims; ``uid`` holds the subject id

        Raises:
            IdentityProviderError: If the token is invalid or expired
        """
        pass

    @abstractmethod
    def issue_session_credential(self, id_token: str, ttl: timedelta) -> str:
        """
        Exchange a fresh ID token for a session credential.

        Raises:
            IdentityProviderError: If the token is rejected
        """
        pass

    @abstractmethod
    def verify_session_credential(self, session_credential: str) -> dict[str, Any]:
        """
        Verify a session credential, including revocation.

        Returns:
            Decoded claims; ``uid`` holds the subject id

        Raises:
            IdentityProviderError: If the credential is invalid, expired or revoked
        """
        pass

    def close(self) -> None:
        """Release network clients. Called on application shutdown."""
        pass
