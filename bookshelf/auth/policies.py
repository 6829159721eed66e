"""
Policies - authentication gate and ownership authorization.

Two pieces live here:

- The gate: `require_auth` is a FastAPI dependency that turns a bearer
  token into an `AuthContext`, or rejects the request with 401.
- The ownership policy: `authorize()` is a pure function deciding whether
  an actor may read, write or delete a given book.

Usage:
    @router.get("/{book_id}")
    async def get_book(book_id: str, ctx: AuthContext = Depends(require_auth)):
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bookshelf.auth.context import AuthContext
from bookshelf.auth.jwt import TokenService
from bookshelf.core.errors import (
    AuthenticationError,
    MissingTokenError,
    NotAuthorizedError,
    NotFoundError,
)
from bookshelf.core.models import Book, Operation, Visibility
from bookshelf.integrations.sentry import set_user

logger = logging.getLogger(__name__)


# =============================================================================
# Gate
# =============================================================================


# Doesn't fail on its own; missing tokens are reported as MissingTokenError.
optional_bearer = HTTPBearer(auto_error=False)


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header."""
    if not authorization:
        raise MissingTokenError()
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise MissingTokenError()
    return token


def authenticate_header(authorization: str | None, tokens: TokenService) -> AuthContext:
    """
    Run the gate for one request.

    Start → token extracted → verified → authenticated. Any failure raises
    an AuthenticationError subclass. The user store is not consulted; the
    token's subject is trusted until the token expires.
    """
    token = extract_bearer_token(authorization)
    try:
        user_id = tokens.verify(token)
    except AuthenticationError as e:
        logger.info("Rejected token: %s", type(e).__name__)
        raise
    return AuthContext(user_id=user_id)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def require_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext:
    """FastAPI dependency resolving the caller's AuthContext."""
    if credentials is None:
        raise MissingTokenError()
    ctx = authenticate_header(
        f"{credentials.scheme} {credentials.credentials}", tokens
    )
    set_user(ctx.user_id)
    return ctx


# =============================================================================
# Ownership policy
# =============================================================================


class DenyReason(str, Enum):
    NOT_FOUND = "not_found"
    NOT_AUTHORIZED = "not_authorized"


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: DenyReason | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason) -> Decision:
        return cls(allowed=False, reason=reason)

    def raise_for_denial(self, message: str | None = None) -> None:
        """Raise the matching domain error if this is a denial."""
        if self.allowed:
            return
        if self.reason == DenyReason.NOT_FOUND:
            raise NotFoundError(message)
        raise NotAuthorizedError(message)


def authorize(
    actor_id: str,
    resource: Book | None,
    operation: Operation,
    visibility: Visibility,
) -> Decision:
    """
    Decide whether `actor_id` may perform `operation` on `resource`.

    - A missing resource is always NOT_FOUND, before ownership is looked at.
    - Private: only the owner may do anything. Everyone else gets
      NOT_FOUND, for writes as well as reads, so a private book's existence
      never leaks.
    - Shared: anyone may read; only the owner may write or delete, others
      get NOT_AUTHORIZED.
    """
    if resource is None:
        return Decision.deny(DenyReason.NOT_FOUND)

    if resource.owner == actor_id:
        return Decision.allow()

    if visibility == Visibility.PRIVATE:
        return Decision.deny(DenyReason.NOT_FOUND)

    if operation == Operation.READ:
        return Decision.allow()

    return Decision.deny(DenyReason.NOT_AUTHORIZED)
