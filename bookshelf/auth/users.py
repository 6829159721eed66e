"""
Credential store and account operations.

Users live in the `users` collection of the metadata storage. Registration
and login are the only two ways to obtain a token.
"""

from __future__ import annotations

import logging

from bookshelf.auth.jwt import (
    LoginRequest,
    TokenResponse,
    TokenService,
    UserCreate,
    hash_password,
    verify_password,
)
from bookshelf.core.errors import DuplicateUsernameError, InvalidCredentialsError
from bookshelf.core.models import OwnerSummary, User
from bookshelf.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)


class UserStore:
    """Lookup and creation of user records."""

    def __init__(self, metadata: MetadataStorage, password_iterations: int = 100_000):
        self.metadata = metadata
        self.password_iterations = password_iterations
        # Checked against when the username is unknown, at the same cost as
        # a real hash, so a miss takes as long as a wrong password.
        self._dummy_hash = hash_password("not-a-real-password", password_iterations)

    async def create_user(self, data: UserCreate) -> User:
        """Create a new user. Raises DuplicateUsernameError if taken."""
        if await self.get_user_by_username(data.username):
            raise DuplicateUsernameError()

        user = User(
            username=data.username,
            password_hash=hash_password(data.password, self.password_iterations),
        )
        await self.metadata.save(Collections.USERS, user.id, user.model_dump())
        logger.info("Registered user %s (%s)", user.username, user.id)
        return user

    async def get_user(self, user_id: str) -> User | None:
        data = await self.metadata.get(Collections.USERS, user_id)
        return User.model_validate(data) if data else None

    async def get_user_by_username(self, username: str) -> User | None:
        matches = await self.metadata.query(
            Collections.USERS, {"username": username}, limit=1
        )
        return User.model_validate(matches[0]) if matches else None

    async def authenticate(self, username: str, password: str) -> User:
        """Return the user if the password matches, else raise."""
        user = await self.get_user_by_username(username)
        if user is None:
            verify_password(password, self._dummy_hash)
            raise InvalidCredentialsError()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return user

    async def get_owner_summaries(self, user_ids: set[str]) -> dict[str, OwnerSummary]:
        """Public projections for a batch of user ids. Unknown ids are skipped."""
        summaries = {}
        for user_id in user_ids:
            user = await self.get_user(user_id)
            if user:
                summaries[user_id] = OwnerSummary.from_user(user)
        return summaries


class AccountService:
    """Register and log in, issuing a token on success."""

    def __init__(self, users: UserStore, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    def _token_for(self, user: User) -> TokenResponse:
        return TokenResponse(
            access_token=self.tokens.issue(user.id),
            expires_in=self.tokens.expires_in,
            user=OwnerSummary.from_user(user),
        )

    async def register(self, data: UserCreate) -> TokenResponse:
        user = await self.users.create_user(data)
        return self._token_for(user)

    async def login(self, data: LoginRequest) -> TokenResponse:
        try:
            user = await self.users.authenticate(data.username, data.password)
        except InvalidCredentialsError:
            logger.info("Failed login for %r", data.username)
            raise
        return self._token_for(user)
