"""Pagination entities for requests, responses and metadata."""

from .requests import (
    SortOrder,
    SortField,
    PaginationRequest,
    CursorPageRequest,
    OffsetPageRequest,
    SliceRequest,
)
from .responses import (
    PaginationMetadata,
    PaginationResponse,
    QueryResult,
    CursorResult,
    PagedResult,
    SliceResult,
)

__all__ = [
    # Requests
    "SortOrder",
    "SortField",
    "PaginationRequest",
    "CursorPageRequest",
    "OffsetPageRequest",
    "SliceRequest",

    # Responses
    "PaginationMetadata",
    "PaginationResponse",
    "QueryResult",
    "CursorResult",
    "PagedResult",
    "SliceResult",
]
