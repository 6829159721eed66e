"""
FastAPI application for the bookshelf service.

This is the HTTP API the frontend talks to. Everything with design content
lives in `bookshelf.auth` and `bookshelf.services`; this module wires it
together and maps domain errors to responses.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookshelf.api.books import build_book_router
from bookshelf.auth import AccountService, TokenService, UserStore, auth_router
from bookshelf.config import Settings, configure_logging, get_settings
from bookshelf.core.errors import AuthenticationError, BookshelfError, ValidationError
from bookshelf.core.models import Visibility
from bookshelf.integrations.sentry import init_sentry
from bookshelf.services.books import BookService
from bookshelf.storage import StorageProvider, create_local_storage

logger = logging.getLogger(__name__)


# =============================================================================
# Error handlers
# =============================================================================


async def handle_authentication_error(request: Request, exc: AuthenticationError):
    # Missing, invalid and expired tokens all look the same to the client.
    return JSONResponse(
        status_code=401,
        content={"message": AuthenticationError.default_message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def handle_domain_error(request: Request, exc: BookshelfError):
    content = {"message": exc.message}
    if isinstance(exc, ValidationError):
        content["fields"] = exc.fields
    if exc.status_code >= 500:
        logger.error("%s on %s %s", type(exc).__name__, request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=content)


def _error_field(err: dict) -> str:
    loc = err.get("loc") or ("body",)
    # A JSON decode error is located by character offset, not by field.
    if err.get("type") == "json_invalid" or not isinstance(loc[-1], str):
        return "body"
    return loc[-1]


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    fields = sorted({_error_field(err) for err in exc.errors()})
    return await handle_domain_error(request, ValidationError(fields))


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Something went wrong!"})


# =============================================================================
# App factory
# =============================================================================


def create_app(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
) -> FastAPI:
    """
    Build the application.

    Storage, the token service and the book services are created in the
    lifespan and hung on `app.state`; route dependencies read them from
    there.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        settings.check_secrets()

        if init_sentry(settings):
            logger.info("Sentry error tracking enabled")

        store = storage or create_local_storage()
        users = UserStore(store.metadata, settings.password_hash_iterations)
        tokens = TokenService(
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.jwt_access_token_expire_minutes,
        )

        app.state.settings = settings
        app.state.storage = store
        app.state.users = users
        app.state.token_service = tokens
        app.state.accounts = AccountService(users, tokens)
        app.state.books = BookService.private(store.metadata, users)
        app.state.profile_books = BookService.shared(store.metadata, users)

        logger.info("Bookshelf API starting in %s mode", settings.environment)
        yield
        logger.info("Bookshelf API shutting down")

    app = FastAPI(
        title="Bookshelf API",
        description="Private book collections and a shared catalog",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthenticationError, handle_authentication_error)
    app.add_exception_handler(BookshelfError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(auth_router)
    app.include_router(build_book_router("/books", "books", Visibility.PRIVATE, "Book"))
    app.include_router(
        build_book_router("/profilebooks", "profile_books", Visibility.SHARED, "Profile Book")
    )

    @app.get("/")
    async def root():
        return {"message": "Bookstore API Running"}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "bookshelf-api"}

    return app
