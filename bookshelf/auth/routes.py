# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /auth/register     - Create account, get a token
#   POST /auth/login        - Get a token
#   GET  /auth/me           - Get current user
#
# There is no logout: tokens are stateless and the client discards them.
#
# =============================================================================

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from bookshelf.auth.context import AuthContext
from bookshelf.auth.jwt import LoginRequest, TokenResponse, UserCreate
from bookshelf.auth.policies import require_auth
from bookshelf.auth.users import AccountService, UserStore
from bookshelf.core.errors import NotFoundError

router = APIRouter(prefix="/auth", tags=["auth"])


class UserResponse(BaseModel):
    """User data returned to client (no credentials)."""
    id: str
    username: str
    created_at: datetime


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts


def get_user_store(request: Request) -> UserStore:
    return request.app.state.users


# =============================================================================
# Public Endpoints
# =============================================================================


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    data: UserCreate,
    accounts: AccountService = Depends(get_account_service),
):
    """Create a new account and return a token."""
    return await accounts.register(data)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Authenticate and get a token."""
    return await accounts.login(data)


# =============================================================================
# Protected Endpoints
# =============================================================================


@router.get("/me", response_model=UserResponse)
async def get_current_user(
    ctx: AuthContext = Depends(require_auth),
    users: UserStore = Depends(get_user_store),
):
    """Get the current authenticated user."""
    user = await users.get_user(ctx.user_id)
    if not user:
        raise NotFoundError("User not found")
    return UserResponse(id=user.id, username=user.username, created_at=user.created_at)
