"""
Authentication and ownership authorization.

Design principles:
1. One dependency (`require_auth`) turns a bearer token into an AuthContext
2. Ownership, not roles: `authorize()` compares the actor with the owner
3. The actor id is passed explicitly to every service call
"""

from bookshelf.auth.context import AuthContext
from bookshelf.auth.policies import (
    Decision,
    DenyReason,
    authenticate_header,
    authorize,
    require_auth,
)
from bookshelf.auth.jwt import (
    LoginRequest,
    TokenResponse,
    TokenService,
    UserCreate,
    hash_password,
    verify_password,
)
from bookshelf.auth.users import AccountService, UserStore
from bookshelf.auth.routes import router as auth_router

__all__ = [
    # Main interface
    "require_auth",
    "authenticate_header",
    "authorize",
    "AuthContext",
    "Decision",
    "DenyReason",
    # Tokens and credentials
    "TokenService",
    "TokenResponse",
    "UserCreate",
    "LoginRequest",
    "hash_password",
    "verify_password",
    "AccountService",
    "UserStore",
    # Router
    "auth_router",
]
