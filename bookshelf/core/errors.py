"""
Error taxonomy.

Every failure the service can produce is one of these. The HTTP layer maps
them to responses via `status_code`; the core raises them and never returns
error values.
"""

from __future__ import annotations


class BookshelfError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 500
    default_message: str = "Something went wrong!"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# =============================================================================
# Input
# =============================================================================


class ValidationError(BookshelfError):
    """Missing or malformed input fields."""

    status_code = 400
    default_message = "Send all required fields: title, author, publishYear"

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = fields
        if message is None and fields:
            message = f"Missing or invalid fields: {', '.join(fields)}"
        super().__init__(message)


# =============================================================================
# Authorization
# =============================================================================


class NotFoundError(BookshelfError):
    """Id does not resolve to a record the caller may see."""

    status_code = 404
    default_message = "Not found"


class NotAuthorizedError(BookshelfError):
    """Record exists and is visible, but the caller does not own it."""

    status_code = 403
    default_message = "Not authorized"


# =============================================================================
# Authentication
# =============================================================================


class AuthenticationError(BookshelfError):
    """
    Base for request authentication failures.

    Subclasses are kept apart for logging and tests; at the HTTP boundary
    they all collapse to the same 401 response.
    """

    status_code = 401
    default_message = "Not authenticated"


class MissingTokenError(AuthenticationError):
    """No bearer token on the request."""


class InvalidTokenError(AuthenticationError):
    """Token is malformed or its signature does not match."""


class ExpiredTokenError(AuthenticationError):
    """Token has expired."""


class InvalidCredentialsError(BookshelfError):
    """Username/password pair did not match."""

    status_code = 401
    default_message = "Invalid username or password"


class DuplicateUsernameError(BookshelfError):
    """Registration with a username that is already taken."""

    status_code = 409
    default_message = "Username already exists"


# =============================================================================
# Storage
# =============================================================================


class StoreError(BookshelfError):
    """Underlying persistence failure."""

    status_code = 500
