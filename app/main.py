"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from app.api.v1.router import api_router
from app.auth.guard import SessionGuardMiddleware
from app.auth.identity import IdentityProvider
from app.auth.session import AuthenticationRequired
from app.config import Settings, settings
from app.core.logging_config import setup_logging
from app.core.view_cache import ViewCache
from app.db.base import Base
from app.db.session import create_db_engine, create_session_factory

logger = logging.getLogger(__name__)


def create_identity_provider(settings: Settings) -> IdentityProvider:
    """Build the identity provider selected by ``IDENTITY_PROVIDER``."""
    provider = settings.IDENTITY_PROVIDER.strip().lower()

    if provider == "local":
        from app.auth.local_identity import LocalIdentityProvider

        return LocalIdentityProvider(settings.SECRET_KEY)

    if provider == "firebase":
        from app.auth.firebase_identity import FirebaseIdentityProvider

        return FirebaseIdentityProvider(settings)

    raise ValueError(f"Unknown identity provider: {settings.IDENTITY_PROVIDER}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    settings = app.state.settings
    setup_logging(settings)

    # Startup: process-wide clients, shared by all requests
    engine = create_db_engine(settings)
    Base.metadata.create_all(bind=engine)

    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.identity_provider = create_identity_provider(settings)
    app.state.view_cache = ViewCache(
        maxsize=settings.VIEW_CACHE_MAXSIZE,
        ttl=settings.VIEW_CACHE_TTL,
    )
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")

    yield

    # Shutdown
    app.state.identity_provider.close()
    engine.dispose()


async def authentication_required_handler(request: Request, exc: AuthenticationRequired) -> RedirectResponse:
    """Divert unauthenticated requests to the sign-in page."""
    logger.info(f"Redirecting {request.url.path} to sign-in: {exc.reason}")
    sign_in_path = request.app.state.settings.SIGN_IN_PATH
    return RedirectResponse(url=sign_in_path, status_code=status.HTTP_303_SEE_OTHER)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="A multi-user todo list service with session cookie authentication.",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        lifespan=lifespan,
    )

    # Handlers, middleware and dependencies read settings from here
    app.state.settings = settings

    # Routing guard for page navigation
    app.add_middleware(SessionGuardMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthenticationRequired, authentication_required_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return app


app = create_application()


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.APP_NAME}
