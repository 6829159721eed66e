"""
Services - the lifecycle of book records.
"""

from bookshelf.services.books import BookService, validate_create, validate_update

__all__ = [
    "BookService",
    "validate_create",
    "validate_update",
]
