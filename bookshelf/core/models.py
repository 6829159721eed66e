"""
Core data models for the bookshelf service.

Users own two kinds of books: private books that only they can see, and
profile books that form a shared catalog everyone can read. Both carry the
same fields and the same `owner` reference; only the visibility differs.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookshelf.core.utils import generate_id, utc_now


# =============================================================================
# Enums
# =============================================================================


class Visibility(str, Enum):
    """Who may read a resource."""

    PRIVATE = "private"  # Owner only
    SHARED = "shared"    # Any authenticated user; owner-only writes


class Operation(str, Enum):
    """What a caller wants to do with a resource."""

    READ = "read"
    WRITE = "write"
    DELETE = "delete"


# =============================================================================
# User
# =============================================================================


class User(BaseModel):
    """
    A registered user.

    `books` and `profile_books` are back-references kept in step with the
    book collections. They are a convenience cache; ownership is always
    decided from the book's own `owner` field.
    """

    id: str = Field(default_factory=lambda: generate_id("user"))
    username: str
    password_hash: str

    books: list[str] = Field(default_factory=list)
    profile_books: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utc_now)


class OwnerSummary(BaseModel):
    """Public projection of a user. Never includes credentials."""

    id: str
    username: str

    @classmethod
    def from_user(cls, user: User) -> OwnerSummary:
        return cls(id=user.id, username=user.username)


# =============================================================================
# Books
# =============================================================================


class Book(BaseModel):
    """A book record. `owner` is fixed at creation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    author: str
    publish_year: int = Field(alias="publishYear")
    owner: str

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class BookWithOwner(Book):
    """A shared book as other users see it, with its owner attached."""

    user: OwnerSummary | None = None


# =============================================================================
# Input payloads
# =============================================================================


def _year_not_bool(value: Any) -> Any:
    # bool is an int subclass; lax parsing would take `true` as year 1.
    if isinstance(value, bool):
        raise ValueError("publishYear must be a number")
    return value


class BookCreate(BaseModel):
    """Fields required to create a book."""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    publish_year: int = Field(alias="publishYear", gt=0)

    @field_validator("publish_year", mode="before")
    @classmethod
    def check_year(cls, value: Any) -> Any:
        return _year_not_bool(value)


class BookUpdate(BaseModel):
    """Partial update. Only fields that are present get applied."""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    title: str | None = Field(default=None, min_length=1)
    author: str | None = Field(default=None, min_length=1)
    publish_year: int | None = Field(default=None, alias="publishYear", gt=0)

    @field_validator("publish_year", mode="before")
    @classmethod
    def check_year(cls, value: Any) -> Any:
        return _year_not_bool(value)
