"""
Local storage implementation for development and tests.

Everything lives in process memory and is lost on restart.
"""

from __future__ import annotations

import copy
from typing import Any

from bookshelf.storage.base import MetadataStorage, StorageProvider


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory document storage. Returns copies, never live references."""

    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}

    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        self._data.setdefault(collection, {})[id] = copy.deepcopy(data)

    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(id)
        return copy.deepcopy(doc) if doc is not None else None

    async def delete(self, collection: str, id: str) -> bool:
        if collection in self._data and id in self._data[collection]:
            del self._data[collection][id]
            return True
        return False

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        results = list(self._data.get(collection, {}).values())

        if filters:
            results = [
                doc for doc in results
                if all(doc.get(key) == value for key, value in filters.items())
            ]

        end = None if limit is None else offset + limit
        return [copy.deepcopy(doc) for doc in results[offset:end]]

    async def update(self, collection: str, id: str, updates: dict[str, Any]) -> bool:
        doc = self._data.get(collection, {}).get(id)
        if doc is None:
            return False
        doc.update(copy.deepcopy(updates))
        return True

    async def push(self, collection: str, id: str, field: str, value: Any) -> bool:
        doc = self._data.get(collection, {}).get(id)
        if doc is None:
            return False
        items = doc.setdefault(field, [])
        if value not in items:
            items.append(value)
        return True

    async def pull(self, collection: str, id: str, field: str, value: Any) -> bool:
        doc = self._data.get(collection, {}).get(id)
        if doc is None:
            return False
        doc[field] = [item for item in doc.get(field, []) if item != value]
        return True


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> StorageProvider:
    """Create a StorageProvider with in-memory implementations."""
    return StorageProvider(metadata=InMemoryMetadataStorage())
