"""
Request and response contract for the HTTP API.

Request models declare the structural and semantic constraints of every
inbound payload. ``collect_violations`` turns a pydantic error list into
field-level violations, and the ``respond*`` helpers build the response
envelope shared by every endpoint.
"""

import hashlib
import json
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Iterable, List, Mapping, Optional, TypeVar

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from catalog.search import PageRequest, total_pages

DataT = TypeVar("DataT")

PARSE_FAILURE_MESSAGE = "failed to parse request"

# pydantic error types raised by a declared constraint, as opposed to a value
# that could not be parsed at all
CONSTRAINT_ERROR_TYPES = {
    "missing",
    "greater_than",
    "greater_than_equal",
    "less_than",
    "less_than_equal",
    "string_too_short",
    "string_too_long",
    "too_short",
}

# Leading location parts naming the request section rather than a field
_REQUEST_SECTIONS = {"body", "query", "path", "header", "cookie"}


# Requests

class PaginationRequest(BaseModel):
    """Page selection. Zero or absent means the default."""
    page: int = Field(0, ge=0, description="Page number (starts from 1)")
    size: int = Field(0, ge=0, description="Items per page")


class GetManyAuthorsRequest(PaginationRequest):
    """Query parameters for author listing."""
    name: Optional[str] = Field(None, description="Case-insensitive name substring")
    birthdate_start: Optional[datetime] = Field(None, description="Earliest birthdate, inclusive")
    birthdate_end: Optional[datetime] = Field(None, description="Latest birthdate, inclusive")


class CreateAuthorRequest(BaseModel):
    """Body for author creation."""
    name: str = Field(..., min_length=1, description="Author name")
    birthdate: datetime = Field(..., description="Author birthdate")


class UpdateAuthorRequest(BaseModel):
    """Body for a partial author update. Omitted or empty fields are kept."""
    name: Optional[str] = Field(None, description="New author name")
    birthdate: Optional[datetime] = Field(None, description="New author birthdate")


class GetManyBooksRequest(PaginationRequest):
    """Query parameters for book listing."""
    title: Optional[str] = Field(None, description="Case-insensitive title substring")
    isbn: Optional[str] = Field(None, description="Case-insensitive ISBN substring")
    author_id: Optional[int] = Field(None, gt=0, description="Exact author identifier")
    author_name: Optional[str] = Field(None, description="Case-insensitive author name substring")


class CreateBookRequest(BaseModel):
    """Body for book creation."""
    title: str = Field(..., min_length=1, description="Book title")
    isbn: str = Field(..., min_length=1, description="ISBN, unique across books")
    author_id: int = Field(..., gt=0, description="Identifier of an existing author")


class UpdateBookRequest(BaseModel):
    """Body for a partial book update. Omitted or empty fields are kept."""
    title: Optional[str] = Field(None, description="New title")
    isbn: Optional[str] = Field(None, description="New ISBN")
    author_id: Optional[int] = Field(None, gt=0, description="New author identifier")


class RegisterUserRequest(BaseModel):
    """Body for user registration."""
    username: str = Field(..., min_length=1, description="Unique username")
    password: str = Field(..., min_length=1, description="Plain password, stored hashed")


class LoginRequest(BaseModel):
    """Body for login."""
    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="Plain password")


# Validation

class ViolationKind(str, Enum):
    """Why a value was rejected."""
    CONSTRAINT = "constraint"
    PARSE = "parse"


class FieldViolation(BaseModel):
    """One rejected field of a request."""
    field: str = Field(..., description="Field name, empty for the whole payload")
    kind: ViolationKind = Field(..., description="Constraint violation or parse failure")
    message: str = Field("", description="Validator message")


def collect_violations(errors: Iterable[Mapping[str, Any]]) -> List[FieldViolation]:
    """
    Turn a pydantic/FastAPI error list into field-level violations.

    Args:
        errors: Items shaped like ``ValidationError.errors()``

    Returns:
        One violation per error, in order
    """
    violations = []
    for error in errors:
        location = list(error.get("loc", ()))
        if location and location[0] in _REQUEST_SECTIONS:
            location = location[1:]
        field = str(location[-1]) if location else ""

        if field and error.get("type") in CONSTRAINT_ERROR_TYPES:
            kind = ViolationKind.CONSTRAINT
        else:
            kind = ViolationKind.PARSE

        violations.append(FieldViolation(field=field, kind=kind, message=str(error.get("msg", ""))))
    return violations


def violation_message(violations: List[FieldViolation]) -> str:
    """
    Client-facing message for a rejected request.

    Any parse failure yields the generic message; otherwise the first
    violated field is named.
    """
    if not violations or any(v.kind == ViolationKind.PARSE for v in violations):
        return PARSE_FAILURE_MESSAGE
    return f"validation error in field {violations[0].field}"


# Responses

class Pagination(BaseModel):
    """Pagination metadata of a listing."""
    page: int = Field(..., description="Current page number")
    size: int = Field(..., description="Items per page")
    total_item: int = Field(..., description="Total number of matching items")
    total_page: int = Field(..., description="Total number of pages")


class Envelope(BaseModel, Generic[DataT]):
    """Response envelope shared by every endpoint."""
    error: Optional[str] = Field(None, description="Error message")
    pagination: Optional[Pagination] = Field(None, description="Present on listings")
    data: Optional[DataT] = Field(None, description="Response payload")
    data_hash: Optional[str] = Field(None, description="SHA-256 of the JSON payload")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")


def calculate_hash(payload: Any) -> str:
    """SHA-256 hex digest of the compact JSON encoding of ``payload``."""
    encoded = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def respond(
    data: Any,
    status_code: int = status.HTTP_200_OK,
    pagination: Optional[Pagination] = None,
) -> JSONResponse:
    """Successful response carrying ``data``."""
    payload = jsonable_encoder(data)
    content = {"data": payload, "data_hash": calculate_hash(payload)}
    if pagination is not None:
        content["pagination"] = pagination.model_dump()
    return JSONResponse(status_code=status_code, content=content)


def respond_paginated(items: List[Any], total: int, page: PageRequest) -> JSONResponse:
    """Successful listing response with pagination metadata."""
    pagination = Pagination(
        page=page.page,
        size=page.size,
        total_item=total,
        total_page=total_pages(total, page.size),
    )
    return respond(items, pagination=pagination)


def respond_error(status_code: int, message: str, headers: Optional[Mapping[str, str]] = None) -> JSONResponse:
    """Failed response carrying only an error message."""
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "data": None},
        headers=dict(headers) if headers else None,
    )
