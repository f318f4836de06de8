"""Firebase Authentication implementation of the identity provider."""

import logging
from datetime import timedelta
from typing import Any, Optional

import firebase_admin
import httpx
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from app.auth.identity import (
    AuthCredentials,
    IdentityError,
    IdentityErrorType,
    IdentityProvider,
    IdentityProviderError,
)
from app.config import Settings
from app.core.result import Err, Ok, Result

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"

# Identity Toolkit error codes for a wrong email/password pair
_INVALID_CREDENTIAL_CODES = {
    "EMAIL_NOT_FOUND",
    "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS",
    "USER_DISABLED",
}


class FirebaseIdentityProvider(IdentityProvider):
    """
    Firebase identity provider.

    Token verification and session cookies go through the Firebase Admin
    SDK. Email/password sign-in and sign-up use the Identity Toolkit REST
    API, which the Admin SDK does not expose.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        """
        Initialize the Firebase app and the REST client.

        Args:
            settings: Application settings
            http_client: Client for Identity Toolkit calls (defaults to a new one)
        """
        self.api_key = settings.FIREBASE_API_KEY

        try:
            self.app = firebase_admin.get_app()
            logger.info("Firebase app already initialized.")
        except ValueError:
            logger.info("Initializing Firebase app...")
            if settings.GOOGLE_APPLICATION_CREDENTIALS:
                cred = credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
            else:
                # For environments like Cloud Run where the service account is implicit
                cred = credentials.ApplicationDefault()

            options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
            self.app = firebase_admin.initialize_app(cred, options)
            logger.info("Firebase app initialized successfully.")

        self.http_client = http_client or httpx.Client(timeout=settings.IDENTITY_HTTP_TIMEOUT)

    def sign_in_with_password(
        self, email: str, password: str
    ) -> Result[AuthCredentials, IdentityError]:
        return self._password_request("accounts:signInWithPassword", email, password)

    def sign_up_with_password(
        self, email: str, password: str
    ) -> Result[AuthCredentials, IdentityError]:
        return self._password_request("accounts:signUp", email, password)

    def sign_out(self, session_credential: str) -> None:
        """Revoke the subject's refresh tokens so existing sessions stop verifying."""
        try:
            claims = auth.verify_session_cookie(session_credential, app=self.app)
            auth.revoke_refresh_tokens(claims["uid"], app=self.app)
            logger.info(f"Revoked sessions for {claims['uid']}")
        except (FirebaseError, ValueError) as e:
            logger.warning(f"Could not revoke session on sign-out: {e}")

    def verify_token(self, id_token: str) -> dict[str, Any]:
        try:
            return auth.verify_id_token(id_token, app=self.app)
        except (FirebaseError, ValueError) as e:
            raise IdentityProviderError(f"Invalid ID token: {e}") from e

    def issue_session_credential(self, id_token: str, ttl: timedelta) -> str:
        try:
            return auth.create_session_cookie(id_token, expires_in=ttl, app=self.app)
        except (FirebaseError, ValueError) as e:
            raise IdentityProviderError(f"Failed to create session cookie: {e}") from e

    def verify_session_credential(self, session_credential: str) -> dict[str, Any]:
        try:
            return auth.verify_session_cookie(session_credential, check_revoked=True, app=self.app)
        except (FirebaseError, ValueError) as e:
            raise IdentityProviderError(f"Invalid session cookie: {e}") from e

    def close(self) -> None:
        self.http_client.close()

    def _password_request(
        self, endpoint: str, email: str, password: str
    ) -> Result[AuthCredentials, IdentityError]:
        url = f"{IDENTITY_TOOLKIT_URL}/{endpoint}?key={self.api_key}"
        payload = {"email": email, "password": password, "returnSecureToken": True}

        try:
            resp = self.http_client.post(url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            return Err(self._map_rest_error(e.response))
        except httpx.HTTPError as e:
            logger.error(f"Identity Toolkit request to {endpoint} failed: {e}")
            return Err(IdentityError(IdentityErrorType.UNKNOWN_ERROR, str(e)))

        id_token = data.get("idToken")
        uid = data.get("localId")
        if not id_token or not uid:
            logger.error("Identity Toolkit response missing idToken or localId.")
            return Err(
                IdentityError(
                    IdentityErrorType.UNKNOWN_ERROR,
                    "Could not retrieve ID token from authentication service.",
                )
            )

        return Ok(AuthCredentials(uid=uid, id_token=id_token))

    @staticmethod
    def _map_rest_error(response: httpx.Response) -> IdentityError:
        try:
            message = response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            message = f"HTTP {response.status_code}"

        # Messages look like "EMAIL_EXISTS" or "TOO_MANY_ATTEMPTS_TRY_LATER : ..."
        code = message.split(":", 1)[0].strip()

        if code in _INVALID_CREDENTIAL_CODES:
            return IdentityError(IdentityErrorType.INVALID_CREDENTIALS, "Invalid email or password.")
        if code == "EMAIL_EXISTS":
            return IdentityError(
                IdentityErrorType.EMAIL_ALREADY_IN_USE,
                "This email address is already in use.",
            )

        logger.warning(f"Identity Toolkit rejected request: {message}")
        return IdentityError(IdentityErrorType.UNKNOWN_ERROR, message)
