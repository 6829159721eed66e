"""
Storage abstraction layer.

All persistence goes through these interfaces. This allows swapping
implementations (in-memory → MongoDB, PostgreSQL, etc.) without changing
application code.

Implementations raise `StoreError` for backend failures. "Not there" is
never an error at this layer: lookups return None and mutations return
False.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


# =============================================================================
# Storage Interfaces
# =============================================================================


class MetadataStorage(ABC):
    """
    Storage for structured documents (users, books, profile books).

    Documents are plain dicts addressed by a stable id within a collection.
    """

    @abstractmethod
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Save a document to a collection."""
        pass

    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        pass

    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """Delete a document."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Query documents by field equality."""
        pass

    @abstractmethod
    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        """Partial update of a document."""
        pass

    @abstractmethod
    async def push(self, collection: str, id: str, field: str, value: Any) -> bool:
        """Append `value` to the array at `field` (no duplicates)."""
        pass

    @abstractmethod
    async def pull(self, collection: str, id: str, field: str, value: Any) -> bool:
        """Remove every occurrence of `value` from the array at `field`."""
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for storage backends.

    Initialize once at app startup with appropriate implementations.
    Services receive this and use the interfaces without knowing
    the underlying implementation.
    """

    model_config = {"arbitrary_types_allowed": True}

    metadata: MetadataStorage


# =============================================================================
# Collection Names (for MetadataStorage)
# =============================================================================


class Collections:
    """Standard collection/table names."""

    USERS = "users"
    BOOKS = "books"
    PROFILE_BOOKS = "profile_books"
