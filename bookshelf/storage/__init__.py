"""
Storage abstractions.

- MetadataStorage → in-memory for development; swap for a document store
  (MongoDB, PostgreSQL JSONB) in deployment.
"""

from bookshelf.storage.base import (
    MetadataStorage,
    StorageProvider,
    Collections,
)
from bookshelf.storage.local import InMemoryMetadataStorage, create_local_storage

__all__ = [
    "MetadataStorage",
    "StorageProvider",
    "Collections",
    "InMemoryMetadataStorage",
    "create_local_storage",
]
