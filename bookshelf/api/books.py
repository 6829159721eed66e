"""
Book routes.

The private `/books` and shared `/profilebooks` families expose the same
five operations; `build_book_router` produces either one, bound to the
BookService stored on `app.state` under `service_name`.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from bookshelf.auth import AuthContext, require_auth
from bookshelf.core.errors import ValidationError
from bookshelf.core.models import Book, BookWithOwner, Visibility
from bookshelf.services.books import BookService


# =============================================================================
# Response Models
# =============================================================================


class BookList(BaseModel):
    count: int
    data: list[Book]


class SharedBookList(BaseModel):
    count: int
    data: list[BookWithOwner]


class BookMessage(BaseModel):
    message: str
    data: Book | None = None


# =============================================================================
# Router factory
# =============================================================================


async def read_fields(request: Request) -> Any:
    """
    Parse the JSON body.

    Called from inside the handler, after `require_auth` has run, so an
    unauthenticated request never gets as far as body parsing.
    """
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(["body"], "Request body must be valid JSON") from e


def _service_dependency(service_name: str) -> Callable[[Request], BookService]:
    def get_service(request: Request) -> BookService:
        return getattr(request.app.state, service_name)
    return get_service


def build_book_router(
    prefix: str,
    service_name: str,
    visibility: Visibility,
    label: str,
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[service_name])
    get_service = _service_dependency(service_name)
    shared = visibility == Visibility.SHARED
    one_model = BookWithOwner if shared else Book

    @router.post("", response_model=Book, status_code=201)
    async def create_book(
        request: Request,
        ctx: AuthContext = Depends(require_auth),
        books: BookService = Depends(get_service),
    ):
        return await books.create(ctx.actor_id, await read_fields(request))

    if shared:
        @router.get("", response_model=SharedBookList)
        async def list_books(
            ctx: AuthContext = Depends(require_auth),
            books: BookService = Depends(get_service),
        ):
            """Every shared book, with the username of whoever added it."""
            data = await books.list_all()
            return SharedBookList(count=len(data), data=data)

        @router.get("/mine", response_model=BookList)
        async def list_my_books(
            ctx: AuthContext = Depends(require_auth),
            books: BookService = Depends(get_service),
        ):
            data = await books.list_mine(ctx.actor_id)
            return BookList(count=len(data), data=data)
    else:
        @router.get("", response_model=BookList)
        async def list_books(
            ctx: AuthContext = Depends(require_auth),
            books: BookService = Depends(get_service),
        ):
            """Only the caller's own books."""
            data = await books.list_mine(ctx.actor_id)
            return BookList(count=len(data), data=data)

    @router.get("/{book_id}", response_model=one_model)
    async def get_book(
        book_id: str,
        ctx: AuthContext = Depends(require_auth),
        books: BookService = Depends(get_service),
    ):
        return await books.get_one(ctx.actor_id, book_id)

    @router.put("/{book_id}", response_model=BookMessage)
    async def update_book(
        book_id: str,
        request: Request,
        ctx: AuthContext = Depends(require_auth),
        books: BookService = Depends(get_service),
    ):
        book = await books.update(ctx.actor_id, book_id, await read_fields(request))
        return BookMessage(message=f"{label} updated successfully", data=book)

    @router.delete("/{book_id}", response_model=BookMessage)
    async def delete_book(
        book_id: str,
        ctx: AuthContext = Depends(require_auth),
        books: BookService = Depends(get_service),
    ):
        await books.delete(ctx.actor_id, book_id)
        return BookMessage(message=f"{label} deleted successfully")

    return router
