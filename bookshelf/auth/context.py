"""
Auth context - who is making the request.

This is the lightweight object handed to route handlers once the gate has
verified the caller's token. It is frozen: nothing downstream can change
who the actor is.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthContext:
    """
    The authenticated identity for a request.

    Usage in routes:
        async def my_route(ctx: AuthContext = Depends(require_auth)):
            await books.list_mine(ctx.user_id)
    """

    user_id: str

    @property
    def actor_id(self) -> str:
        """Alias used by the book services, which speak of actors."""
        return self.user_id
