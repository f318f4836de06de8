"""In-process identity provider for local development and tests."""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import jwt, JWTError

from app.auth.identity import (
    AuthCredentials,
    IdentityError,
    IdentityErrorType,
    IdentityProvider,
    IdentityProviderError,
)
from app.core.result import Err, Ok, Result

logger = logging.getLogger(__name__)

# JWT settings
ALGORITHM = "HS256"
ID_TOKEN_TTL = timedelta(hours=1)

TOKEN_TYPE_ID = "id"
TOKEN_TYPE_SESSION = "session"


@dataclass
class _LocalAccount:
    uid: str
    email: str
    hashed_password: str


class LocalIdentityProvider(IdentityProvider):
    """
    Identity provider that keeps accounts in memory.

    ID tokens and session credentials are HS256 JWTs signed with the
    application's secret key. The ``typ`` claim keeps an ID token from being
    accepted as a session credential and vice versa. Signing out revokes the
    presented session credential only.
    """

    def __init__(self, secret_key: str):
        self.secret_key = secret_key
        self._accounts: dict[str, _LocalAccount] = {}
        self._revoked: set[str] = set()
        self._lock = threading.Lock()

    def sign_in_with_password(
        self, email: str, password: str
    ) -> Result[AuthCredentials, IdentityError]:
        with self._lock:
            account = self._accounts.get(email.lower())

        if not account or not self._verify_password(password, account.hashed_password):
            return Err(
                IdentityError(IdentityErrorType.INVALID_CREDENTIALS, "Invalid email or password.")
            )

        return Ok(AuthCredentials(uid=account.uid, id_token=self.create_id_token(account.uid, account.email)))

    def sign_up_with_password(
        self, email: str, password: str
    ) -> Result[AuthCredentials, IdentityError]:
        key = email.lower()
        hashed_password = self._hash_password(password)

        with self._lock:
            if key in self._accounts:
                return Err(
                    IdentityError(
                        IdentityErrorType.EMAIL_ALREADY_IN_USE,
                        "This email address is already in use.",
                    )
                )
            account = _LocalAccount(uid=uuid.uuid4().hex[:28], email=email, hashed_password=hashed_password)
            self._accounts[key] = account

        logger.info(f"Created local account {account.uid}")
        return Ok(AuthCredentials(uid=account.uid, id_token=self.create_id_token(account.uid, account.email)))

    def sign_out(self, session_credential: str) -> None:
        try:
            claims = self._decode(session_credential, TOKEN_TYPE_SESSION)
        except IdentityProviderError as e:
            logger.warning(f"Could not revoke session on sign-out: {e.message}")
            return

        with self._lock:
            self._revoked.add(claims["jti"])
        logger.info(f"Revoked session for {claims['uid']}")

    def verify_token(self, id_token: str) -> dict[str, Any]:
        return self._decode(id_token, TOKEN_TYPE_ID)

    def issue_session_credential(self, id_token: str, ttl: timedelta) -> str:
        claims = self.verify_token(id_token)
        return self._encode(claims["uid"], claims.get("email"), TOKEN_TYPE_SESSION, ttl)

    def verify_session_credential(self, session_credential: str) -> dict[str, Any]:
        claims = self._decode(session_credential, TOKEN_TYPE_SESSION)

        with self._lock:
            revoked = claims.get("jti") in self._revoked
        if revoked:
            raise IdentityProviderError("Session has been revoked")

        return claims

    def create_id_token(self, uid: str, email: Optional[str] = None) -> str:
        """Issue an ID token for ``uid`` as the provider would after sign-in."""
        return self._encode(uid, email, TOKEN_TYPE_ID, ID_TOKEN_TTL)

    def _encode(self, uid: str, email: Optional[str], token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": uid,
            "uid": uid,
            "email": email,
            "typ": token_type,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)

    def _decode(self, token: str, token_type: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except JWTError as e:
            raise IdentityProviderError(f"Invalid token: {str(e)}") from e

        if claims.get("typ") != token_type or not claims.get("uid"):
            raise IdentityProviderError(f"Invalid token: expected a {token_type} token")

        return claims

    def _hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        password_bytes = password.encode("utf-8")
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode("utf-8")

    def _verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        password_bytes = plain_password.encode("utf-8")
        hashed_bytes = hashed_password.encode("utf-8")
        return bcrypt.checkpw(password_bytes, hashed_bytes)
