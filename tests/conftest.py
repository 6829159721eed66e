"""
Shared fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest

from bookshelf.auth import AccountService, TokenService, UserStore
from bookshelf.services.books import BookService
from bookshelf.storage import InMemoryMetadataStorage

SECRET = "test-secret-key-that-is-long-enough-for-hs256"

# Cheap hashing keeps the suite fast.
TEST_ITERATIONS = 1_000


class FakeClock:
    """A clock tests can move by hand."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens(clock):
    return TokenService(SECRET, expire_minutes=60, clock=clock)


@pytest.fixture
def metadata():
    return InMemoryMetadataStorage()


@pytest.fixture
def users(metadata):
    return UserStore(metadata, password_iterations=TEST_ITERATIONS)


@pytest.fixture
def accounts(users, tokens):
    return AccountService(users, tokens)


@pytest.fixture
def books(metadata, users):
    return BookService.private(metadata, users)


@pytest.fixture
def profile_books(metadata, users):
    return BookService.shared(metadata, users)


@pytest.fixture
def secret():
    return SECRET
