"""Authentication: identity providers, sessions and the routing guard."""

from app.auth.identity import (
    AuthCredentials,
    IdentityError,
    IdentityErrorType,
    IdentityProvider,
    IdentityProviderError,
)
from app.auth.session import (
    AuthError,
    AuthErrorType,
    AuthenticationRequired,
    SessionManager,
)

__all__ = [
    "AuthCredentials",
    "IdentityError",
    "IdentityErrorType",
    "IdentityProvider",
    "IdentityProviderError",
    "AuthError",
    "AuthErrorType",
    "AuthenticationRequired",
    "SessionManager",
]
