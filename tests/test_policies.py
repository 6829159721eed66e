"""
Tests for the authentication gate and the ownership policy.
"""

import dataclasses

import pytest

from bookshelf.auth.context import AuthContext
from bookshelf.auth.policies import (
    Decision,
    DenyReason,
    authenticate_header,
    authorize,
    extract_bearer_token,
)
from bookshelf.core.errors import (
    ExpiredTokenError,
    InvalidTokenError,
    MissingTokenError,
    NotAuthorizedError,
    NotFoundError,
)
from bookshelf.core.models import Book, Operation, Visibility


@pytest.fixture
def book():
    return Book(id="book_1", title="Dune", author="Herbert", publish_year=1965, owner="alice")


ALL_OPS = [Operation.READ, Operation.WRITE, Operation.DELETE]


# =============================================================================
# Gate Tests
# =============================================================================


class TestExtractBearerToken:
    def test_bearer(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_scheme_case_insensitive(self):
        assert extract_bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [
        None,
        "",
        "Bearer",
        "Bearer ",
        "Basic dXNlcjpwYXNz",
        "Token abc",
        "Bearer a b",
    ])
    def test_missing_or_malformed(self, header):
        with pytest.raises(MissingTokenError):
            extract_bearer_token(header)


class TestAuthenticateHeader:
    def test_valid_token(self, tokens):
        ctx = authenticate_header(f"Bearer {tokens.issue('alice')}", tokens)
        assert ctx == AuthContext(user_id="alice")
        assert ctx.actor_id == "alice"

    def test_missing(self, tokens):
        with pytest.raises(MissingTokenError):
            authenticate_header(None, tokens)

    def test_invalid(self, tokens):
        with pytest.raises(InvalidTokenError):
            authenticate_header("Bearer nope", tokens)

    def test_expired(self, tokens, clock):
        header = f"Bearer {tokens.issue('alice')}"
        clock.advance(hours=2)
        with pytest.raises(ExpiredTokenError):
            authenticate_header(header, tokens)

    def test_context_is_read_only(self, tokens):
        ctx = authenticate_header(f"Bearer {tokens.issue('alice')}", tokens)
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.user_id = "mallory"


# =============================================================================
# Ownership Policy Tests
# =============================================================================


class TestAuthorizePrivate:
    @pytest.mark.parametrize("op", ALL_OPS)
    def test_owner_allowed(self, book, op):
        assert authorize("alice", book, op, Visibility.PRIVATE).allowed

    @pytest.mark.parametrize("op", ALL_OPS)
    def test_other_user_sees_not_found(self, book, op):
        decision = authorize("bob", book, op, Visibility.PRIVATE)
        assert decision == Decision.deny(DenyReason.NOT_FOUND)

    @pytest.mark.parametrize("op", ALL_OPS)
    def test_missing_resource(self, op):
        decision = authorize("alice", None, op, Visibility.PRIVATE)
        assert decision.reason == DenyReason.NOT_FOUND


class TestAuthorizeShared:
    def test_anyone_reads(self, book):
        assert authorize("bob", book, Operation.READ, Visibility.SHARED).allowed

    @pytest.mark.parametrize("op", [Operation.WRITE, Operation.DELETE])
    def test_other_user_not_authorized(self, book, op):
        decision = authorize("bob", book, op, Visibility.SHARED)
        assert decision == Decision.deny(DenyReason.NOT_AUTHORIZED)

    @pytest.mark.parametrize("op", ALL_OPS)
    def test_owner_allowed(self, book, op):
        assert authorize("alice", book, op, Visibility.SHARED).allowed

    @pytest.mark.parametrize("op", ALL_OPS)
    def test_missing_resource_checked_first(self, op):
        decision = authorize("alice", None, op, Visibility.SHARED)
        assert decision.reason == DenyReason.NOT_FOUND


class TestDecision:
    def test_allow_does_not_raise(self):
        Decision.allow().raise_for_denial()

    def test_not_found(self):
        with pytest.raises(NotFoundError, match="Book not found"):
            Decision.deny(DenyReason.NOT_FOUND).raise_for_denial("Book not found")

    def test_not_authorized(self):
        with pytest.raises(NotAuthorizedError):
            Decision.deny(DenyReason.NOT_AUTHORIZED).raise_for_denial()
