"""
Book service - lifecycle of private books and shared profile books.

One class serves both resource families. They differ only in:
- which collection the records live in
- which back-reference array on the user tracks them
- the visibility class handed to the ownership policy

Every method takes the acting user's id explicitly. Nothing is read from
request state.

Create and delete are two writes (the book, then the owner's
back-reference array) with no transaction around them. If the second write
fails it is logged and the first one stands. Listings never read the
back-reference array, so that drift is invisible to callers.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from bookshelf.auth.policies import Decision, DenyReason, authorize
from bookshelf.auth.users import UserStore
from bookshelf.core.errors import NotFoundError, StoreError, ValidationError
from bookshelf.core.models import (
    Book,
    BookCreate,
    BookUpdate,
    BookWithOwner,
    Operation,
    OwnerSummary,
    Visibility,
)
from bookshelf.core.utils import generate_id, utc_now
from bookshelf.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ["title", "author", "publishYear"]


# =============================================================================
# Validation
# =============================================================================


def _wire_name(model: type[BaseModel], field_name: str) -> str:
    field = model.model_fields[field_name]
    return field.alias or field_name


def _parse(model: type[BaseModel], fields: Any) -> BaseModel:
    """Validate raw input into `model`, reporting bad fields by wire name."""
    if not isinstance(fields, dict):
        raise ValidationError(["body"], "Request body must be a JSON object")
    try:
        return model.model_validate(fields)
    except PydanticValidationError as e:
        names = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ValidationError(names) from e


def validate_create(fields: Any) -> BookCreate:
    """All of title, author and publishYear must be present and valid."""
    return _parse(BookCreate, fields)


def validate_update(fields: Any) -> dict[str, Any]:
    """
    Validate a partial update.

    Returns only the fields that were sent, keyed by attribute name. Sending
    a field as null counts as invalid; sending none of them is rejected.
    """
    parsed = _parse(BookUpdate, fields)

    nulls = sorted(
        _wire_name(BookUpdate, name)
        for name in parsed.model_fields_set
        if getattr(parsed, name) is None
    )
    if nulls:
        raise ValidationError(nulls)

    changes = parsed.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError(
            UPDATABLE_FIELDS,
            f"Send at least one of: {', '.join(UPDATABLE_FIELDS)}",
        )
    return changes


# =============================================================================
# Service
# =============================================================================


class BookService:
    """
    Create, read, update and delete books of one visibility class.

    Usage:
        books = BookService.private(storage.metadata, users)
        book = await books.create(actor_id, {"title": "Dune", ...})
    """

    def __init__(
        self,
        metadata: MetadataStorage,
        users: UserStore,
        collection: str,
        visibility: Visibility,
        backref_field: str,
        id_prefix: str,
        label: str,
    ):
        self.metadata = metadata
        self.users = users
        self.collection = collection
        self.visibility = visibility
        self.backref_field = backref_field
        self.id_prefix = id_prefix
        self.label = label

    @classmethod
    def private(cls, metadata: MetadataStorage, users: UserStore) -> BookService:
        return cls(
            metadata,
            users,
            collection=Collections.BOOKS,
            visibility=Visibility.PRIVATE,
            backref_field="books",
            id_prefix="book",
            label="Book",
        )

    @classmethod
    def shared(cls, metadata: MetadataStorage, users: UserStore) -> BookService:
        return cls(
            metadata,
            users,
            collection=Collections.PROFILE_BOOKS,
            visibility=Visibility.SHARED,
            backref_field="profile_books",
            id_prefix="pbook",
            label="Profile Book",
        )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def _fetch(self, book_id: str) -> Book | None:
        data = await self.metadata.get(self.collection, book_id)
        return Book.model_validate(data) if data else None

    async def _fetch_authorized(
        self, actor_id: str, book_id: str, operation: Operation
    ) -> Book:
        book = await self._fetch(book_id)
        decision = authorize(actor_id, book, operation, self.visibility)
        if not decision.allowed:
            logger.info(
                "Denied %s on %s %s for %s: %s",
                operation.value, self.label, book_id, actor_id, decision.reason.value,
            )
            decision.raise_for_denial(self._denial_message(decision, operation))
        return book

    def _denial_message(self, decision: Decision, operation: Operation) -> str:
        if decision.reason == DenyReason.NOT_FOUND:
            return f"{self.label} not found"
        verb = "update" if operation == Operation.WRITE else operation.value
        return f"Not authorized to {verb} this {self.label.lower()}"

    async def _with_owner(self, book: Book) -> BookWithOwner:
        owners = await self.users.get_owner_summaries({book.owner})
        return BookWithOwner(**book.model_dump(), user=owners.get(book.owner))

    # -------------------------------------------------------------------------
    # Back-references (best effort)
    # -------------------------------------------------------------------------

    async def _sync_backref(self, method: str, owner_id: str, book_id: str) -> None:
        op = getattr(self.metadata, method)
        try:
            found = await op(Collections.USERS, owner_id, self.backref_field, book_id)
        except StoreError:
            logger.warning(
                "Could not %s %s on user %s.%s",
                method, book_id, owner_id, self.backref_field,
                exc_info=True,
            )
            return
        if not found:
            logger.warning(
                "User %s missing while syncing %s for %s", owner_id, self.backref_field, book_id
            )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def create(self, actor_id: str, fields: Any) -> Book:
        """Validate and store a new book owned by `actor_id`."""
        data = validate_create(fields)

        now = utc_now()
        book = Book(
            id=generate_id(self.id_prefix),
            title=data.title,
            author=data.author,
            publish_year=data.publish_year,
            owner=actor_id,
            created_at=now,
            updated_at=now,
        )
        await self.metadata.save(self.collection, book.id, book.model_dump())
        await self._sync_backref("push", actor_id, book.id)

        logger.info("Created %s %s for %s", self.label, book.id, actor_id)
        return book

    async def update(self, actor_id: str, book_id: str, fields: Any) -> Book:
        """Apply a partial update. Ownership never changes."""
        book = await self._fetch_authorized(actor_id, book_id, Operation.WRITE)
        changes = validate_update(fields)
        # Re-sending the current values is a no-op; `updated_at` stays put.
        if all(getattr(book, name) == value for name, value in changes.items()):
            return book
        changes["updated_at"] = utc_now()

        if not await self.metadata.update(self.collection, book_id, changes):
            raise NotFoundError(f"{self.label} not found")

        return book.model_copy(update=changes)

    async def delete(self, actor_id: str, book_id: str) -> None:
        """Remove a book and drop it from its owner's back-references."""
        book = await self._fetch_authorized(actor_id, book_id, Operation.DELETE)

        if not await self.metadata.delete(self.collection, book_id):
            raise NotFoundError(f"{self.label} not found")
        await self._sync_backref("pull", book.owner, book_id)

        logger.info("Deleted %s %s for %s", self.label, book_id, actor_id)

    async def get_one(self, actor_id: str, book_id: str) -> Book:
        """
        Fetch one book the actor may read.

        Private books of other users are reported as not found. Shared
        books come back with their owner's public summary attached.
        """
        book = await self._fetch_authorized(actor_id, book_id, Operation.READ)
        if self.visibility == Visibility.SHARED:
            return await self._with_owner(book)
        return book

    async def list_mine(self, actor_id: str) -> list[Book]:
        """Books owned by `actor_id`, oldest first."""
        docs = await self.metadata.query(self.collection, {"owner": actor_id})
        books = [Book.model_validate(doc) for doc in docs]
        return sorted(books, key=lambda b: b.created_at)

    async def list_all(self) -> list[BookWithOwner]:
        """Every shared book, each with its owner's public summary."""
        if self.visibility != Visibility.SHARED:
            raise RuntimeError("list_all is only available for shared books")

        docs = await self.metadata.query(self.collection)
        books = sorted((Book.model_validate(doc) for doc in docs), key=lambda b: b.created_at)
        owners: dict[str, OwnerSummary] = await self.users.get_owner_summaries(
            {book.owner for book in books}
        )
        return [
            BookWithOwner(**book.model_dump(), user=owners.get(book.owner))
            for book in books
        ]
