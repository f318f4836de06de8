"""
Routing guard for navigation paths.

Runs as raw ASGI middleware (avoids BaseHTTPMiddleware wrapping the request
stream). It only checks whether the session cookie is present; the
credential is verified later by the entry points that need the user.
"""

import logging
from typing import Optional

from starlette.requests import HTTPConnection
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from app.auth.session import has_session_cookie
from app.config import Settings

logger = logging.getLogger(__name__)


def _matches(path: str, prefixes: list[str]) -> bool:
    return any(path == prefix or path.startswith(prefix.rstrip("/") + "/") for prefix in prefixes)


def resolve_guard_redirect(path: str, has_session: bool, settings: Settings) -> Optional[str]:
    """
    Decide where a navigation request should go.

    Args:
        path: Request path
        has_session: Whether the session cookie is present
        settings: Application settings (protected/auth paths, targets)

    Returns:
        Redirect target, or None to let the request through
    """
    if not has_session and _matches(path, settings.PROTECTED_PATHS):
        return settings.SIGN_IN_PATH

    if has_session and _matches(path, settings.AUTH_PATHS):
        return settings.TODO_LIST_PATH

    return None


class SessionGuardMiddleware:
    """Redirect anonymous users away from protected pages and signed-in users away from auth pages."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        # Starlette puts the application on the scope before running middleware
        settings: Settings = scope["app"].state.settings
        connection = HTTPConnection(scope)
        has_session = has_session_cookie(connection.cookies, settings.SESSION_COOKIE_NAME)
        target = resolve_guard_redirect(connection.url.path, has_session, settings)

        if target is None:
            await self.app(scope, receive, send)
            return

        logger.debug(f"Guard redirecting {connection.url.path} to {target}")
        response = RedirectResponse(url=target, status_code=302)
        await response(scope, receive, send)
