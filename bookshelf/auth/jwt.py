# =============================================================================
# JWT Authentication Implementation
# =============================================================================
#
# This module provides:
#   - Token issuing and verification (TokenService)
#   - Password hashing
#   - Request/response models for the auth endpoints
#
# Tokens are stateless: nothing is stored server-side, so expiry is the
# only way a token stops working.
#
# =============================================================================

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

import jwt
from pydantic import BaseModel, Field

from bookshelf.core.errors import ExpiredTokenError, InvalidTokenError
from bookshelf.core.models import OwnerSummary
from bookshelf.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


# =============================================================================
# Models
# =============================================================================


class TokenPayload(BaseModel):
    """Decoded JWT claims."""
    sub: str  # user_id
    exp: int
    iat: int
    type: str
    jti: str


class TokenResponse(BaseModel):
    """Returned by register and login."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until the token expires
    user: OwnerSummary


class UserCreate(BaseModel):
    """User registration data."""
    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    username: str
    password: str


# =============================================================================
# Password Hashing
# =============================================================================


def hash_password(password: str, iterations: int = 100_000) -> str:
    """
    Hash a password using PBKDF2-SHA256 with a random salt.

    Returns: iterations:salt:hash format string
    """
    salt = secrets.token_hex(32)
    hash_bytes = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations=iterations,
    )
    return f"{iterations}:{salt}:{hash_bytes.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        iterations, salt, stored_hash = password_hash.split(":")
        hash_bytes = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            salt.encode("utf-8"),
            iterations=int(iterations),
        )
        return secrets.compare_digest(hash_bytes.hex(), stored_hash)
    except (ValueError, AttributeError):
        return False


# =============================================================================
# Token Service
# =============================================================================


class TokenService:
    """
    Issues and verifies signed, time-bounded access tokens.

    Built once at startup. The signing key and expiry window are fixed for
    the life of the instance. `clock` exists so tests can move time.

    Usage:
        tokens = TokenService(settings.jwt_secret_key, expire_minutes=60)
        token = tokens.issue("user_abc")
        tokens.verify(token)  # -> "user_abc"
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires_delta = timedelta(minutes=expire_minutes)
        self._clock = clock

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return int(self._expires_delta.total_seconds())

    def issue(self, user_id: str) -> str:
        """Create a signed access token for `user_id`."""
        now = self._clock()
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + self._expires_delta,
            "type": ACCESS_TOKEN_TYPE,
            "jti": generate_id("tok"),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> TokenPayload:
        """
        Decode and validate a token.

        Raises:
            InvalidTokenError: bad signature, malformed, or wrong token type
            ExpiredTokenError: current time is at or past `exp`
        """
        try:
            # Expiry is checked below against our own clock.
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["sub", "exp", "iat"],
                },
            )
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError(f"Expected {ACCESS_TOKEN_TYPE} token")

        exp = payload["exp"]
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise InvalidTokenError("Invalid token: exp is not a timestamp")

        if self._clock().timestamp() >= exp:
            raise ExpiredTokenError("Token has expired")

        return TokenPayload(
            sub=payload["sub"],
            exp=int(exp),
            iat=int(payload["iat"]),
            type=payload["type"],
            jti=payload.get("jti", ""),
        )

    def verify(self, token: str) -> str:
        """Return the user id the token was issued to."""
        return self.decode(token).sub
