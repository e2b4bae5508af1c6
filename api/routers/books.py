"""
Book endpoints.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Path, Query, status

from api.auth import require_user
from api.deps import get_book_usecase
from api.models import (
    CreateBookRequest,
    Envelope,
    GetManyBooksRequest,
    UpdateBookRequest,
    respond,
    respond_paginated,
)
from catalog.schemas import BookResponse, DeletedResponse
from catalog.search import BookFilter, PageRequest
from catalog.usecases import BookUseCase

router = APIRouter(prefix="/books", tags=["Books"], dependencies=[Depends(require_user)])


@router.get("", response_model=Envelope[List[BookResponse]])
async def get_books(
    query: Annotated[GetManyBooksRequest, Query()],
    books: BookUseCase = Depends(get_book_usecase),
):
    """
    Search books with pagination.

    - **title**: Case-insensitive title substring
    - **isbn**: Case-insensitive ISBN substring
    - **author_id**: Exact author identifier
    - **author_name**: Case-insensitive author name substring
    - **page**: Page number (starts from 1)
    - **size**: Items per page
    """
    page = PageRequest.of(query.page, query.size)
    filters = BookFilter(
        title=query.title,
        isbn=query.isbn,
        author_id=query.author_id,
        author_name=query.author_name,
    )

    items, total = await books.get_many(filters, page)
    return respond_paginated(items, total, page)


@router.get("/{id}", response_model=Envelope[BookResponse])
async def get_book(
    id: int = Path(..., gt=0, description="Book identifier"),
    books: BookUseCase = Depends(get_book_usecase),
):
    book = await books.get(id)
    return respond(book)


@router.post("", response_model=Envelope[BookResponse], status_code=status.HTTP_201_CREATED)
async def create_book(
    payload: CreateBookRequest,
    books: BookUseCase = Depends(get_book_usecase),
):
    """Create a book for an existing author. The ISBN must be unused."""
    book = await books.create(payload.title, payload.isbn, payload.author_id)
    return respond(book, status.HTTP_201_CREATED)


@router.put("/{id}", response_model=Envelope[BookResponse])
async def update_book(
    payload: UpdateBookRequest,
    id: int = Path(..., gt=0, description="Book identifier"),
    books: BookUseCase = Depends(get_book_usecase),
):
    book = await books.update(
        id,
        title=payload.title,
        isbn=payload.isbn,
        author_id=payload.author_id,
    )
    return respond(book)


@router.delete("/{id}", response_model=Envelope[DeletedResponse])
async def delete_book(
    id: int = Path(..., gt=0, description="Book identifier"),
    books: BookUseCase = Depends(get_book_usecase),
):
    deleted_id = await books.delete(id)
    return respond(DeletedResponse(id=deleted_id))
