"""
FastAPI Main Application
========================

Main FastAPI application instance with middleware, routes, and lifespan management.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.middleware.error_handler import error_handler_middleware, request_validation_handler
from api.middleware.rate_limiter import setup_rate_limiting
from api.routes import auth, contacts, health, todos
from api.services.owned_records import ContactStore, TodoStore
from api.services.user_service import UserService
from api.utils.file_handler import FileHandler
from api.utils.security import PasswordHasher, TokenService
from config import API_VERSION, Settings, get_settings
from core.document_store import DocumentStoreProtocol, create_document_store


# Set up module logger
logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=settings.log_format
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStoreProtocol] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (uses get_settings() if not provided)
        store: Pre-built document store (created from settings if not provided)

    Returns:
        FastAPI: The configured application
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan event handler for startup and shutdown.

        Startup:
        - Builds the token service (fails fast without a signing secret)
        - Connects the document store and ensures indexes
        - Stores services in app.state for dependency injection

        Shutdown:
        - Closes the store and clears state
        """
        logger.info("Starting TodoBook API...")

        token_service = TokenService.from_settings(settings)
        document_store = store or create_document_store(settings)
        await document_store.connect()

        user_service = UserService(
            document_store,
            token_service,
            PasswordHasher(rounds=settings.bcrypt_rounds)
        )
        await user_service.ensure_indexes()

        app.state.settings = settings
        app.state.store = document_store
        app.state.token_service = token_service
        app.state.user_service = user_service
        app.state.todo_store = TodoStore(document_store, settings)
        app.state.contact_store = ContactStore(document_store, settings)
        app.state.file_handler = FileHandler(settings)

        if settings.jwt_access_token_expire_minutes is None:
            logger.warning("Token expiry disabled: tokens stay valid until the signing secret changes")
        logger.info(f"TodoBook API ready ({settings.store_backend} store) at http://{settings.api_host}:{settings.api_port}")

        yield  # Application runs here

        logger.info("Shutting down TodoBook API...")
        await document_store.close()
        for name in ("store", "token_service", "user_service", "todo_store", "contact_store", "file_handler"):
            setattr(app.state, name, None)

    app = FastAPI(
        title="TodoBook API",
        description="""
        Todos and contacts, visible only to the user who created them.

        ## Authentication
        Sign up or sign in to obtain a token, then send it in the
        `authorization` header (raw or as `Bearer <token>`).
        """,
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json"
    )
    app.state.settings = settings

    # =========================================================================
    # Middleware Setup (order matters - last added = outermost)
    # =========================================================================

    # Global error handling middleware
    app.middleware("http")(error_handler_middleware)

    # CORS middleware - allow cross-origin requests from configured origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Rate limiting setup
    limiter = setup_rate_limiting(app, settings)

    # =========================================================================
    # Router Registration
    # =========================================================================
    app.include_router(health.router, tags=["health"])
    app.include_router(auth.create_router(limiter, settings), tags=["auth"])
    app.include_router(todos.router, tags=["todos"])
    app.include_router(contacts.router, tags=["contacts"])

    return app


app = create_app()
