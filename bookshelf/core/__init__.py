"""
Core module - data models, error taxonomy and shared utilities.
"""

from bookshelf.core.models import (
    Book,
    BookCreate,
    BookUpdate,
    BookWithOwner,
    Operation,
    OwnerSummary,
    User,
    Visibility,
)
from bookshelf.core.errors import (
    AuthenticationError,
    BookshelfError,
    DuplicateUsernameError,
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    NotAuthorizedError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from bookshelf.core.utils import generate_id, utc_now

__all__ = [
    # Models
    "Book",
    "BookCreate",
    "BookUpdate",
    "BookWithOwner",
    "Operation",
    "OwnerSummary",
    "User",
    "Visibility",
    # Errors
    "AuthenticationError",
    "BookshelfError",
    "DuplicateUsernameError",
    "ExpiredTokenError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "MissingTokenError",
    "NotAuthorizedError",
    "NotFoundError",
    "StoreError",
    "ValidationError",
    # Utils
    "generate_id",
    "utc_now",
]
