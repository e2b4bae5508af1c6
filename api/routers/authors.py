"""
Author endpoints.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Path, Query, status

from api.auth import require_user
from api.deps import get_author_usecase
from api.models import (
    CreateAuthorRequest,
    Envelope,
    GetManyAuthorsRequest,
    UpdateAuthorRequest,
    respond,
    respond_paginated,
)
from catalog.schemas import AuthorResponse, DeletedResponse
from catalog.search import AuthorFilter, PageRequest
from catalog.usecases import AuthorUseCase

router = APIRouter(prefix="/authors", tags=["Authors"], dependencies=[Depends(require_user)])


@router.get("", response_model=Envelope[List[AuthorResponse]])
async def get_authors(
    query: Annotated[GetManyAuthorsRequest, Query()],
    authors: AuthorUseCase = Depends(get_author_usecase),
):
    """
    Search authors with pagination.

    - **name**: Case-insensitive name substring
    - **birthdate_start**: Earliest birthdate, inclusive
    - **birthdate_end**: Latest birthdate, inclusive
    - **page**: Page number (starts from 1)
    - **size**: Items per page
    """
    page = PageRequest.of(query.page, query.size)
    filters = AuthorFilter(
        name=query.name,
        birthdate_start=query.birthdate_start,
        birthdate_end=query.birthdate_end,
    )

    items, total = await authors.get_many(filters, page)
    return respond_paginated(items, total, page)


@router.get("/{id}", response_model=Envelope[AuthorResponse])
async def get_author(
    id: int = Path(..., gt=0, description="Author identifier"),
    authors: AuthorUseCase = Depends(get_author_usecase),
):
    author = await authors.get(id)
    return respond(author)


@router.post("", response_model=Envelope[AuthorResponse], status_code=status.HTTP_201_CREATED)
async def create_author(
    payload: CreateAuthorRequest,
    authors: AuthorUseCase = Depends(get_author_usecase),
):
    author = await authors.create(payload.name, payload.birthdate)
    return respond(author, status.HTTP_201_CREATED)


@router.put("/{id}", response_model=Envelope[AuthorResponse])
async def update_author(
    payload: UpdateAuthorRequest,
    id: int = Path(..., gt=0, description="Author identifier"),
    authors: AuthorUseCase = Depends(get_author_usecase),
):
    """Update the supplied fields of an author; omitted or empty fields are kept."""
    author = await authors.update(id, name=payload.name, birthdate=payload.birthdate)
    return respond(author)


@router.delete("/{id}", response_model=Envelope[DeletedResponse])
async def delete_author(
    id: int = Path(..., gt=0, description="Author identifier"),
    authors: AuthorUseCase = Depends(get_author_usecase),
):
    """Delete an author. Its books are kept and list with an empty author name."""
    deleted_id = await authors.delete(id)
    return respond(DeletedResponse(id=deleted_id))
