"""Pagination for nosql-persistence.

Three independent strategies:
- Cursor (keyset) pagination, stable under concurrent mutation
- Offset pagination with an optional total count
- Slices for "load more" style access

Each lowers a request into a provider QuerySpec and wraps the provider's
raw page into a result envelope carrying the provider's charge.
"""

from .entities import (
    # Requests
    SortOrder,
    SortField,
    PaginationRequest,
    CursorPageRequest,
    OffsetPageRequest,
    SliceRequest,

    # Responses
    PaginationMetadata,
    PaginationResponse,
    QueryResult,
    CursorResult,
    PagedResult,
    SliceResult,
)
from .cursor import CursorToken
from .paginators import (
    CursorPaginator,
    OffsetPaginator,
    SlicePaginator,
    PaginationEngine,
)
from .protocols import (
    CursorPaginatedRepository,
    PaginatedRepository,
    SlicedRepository,
    HybridPaginatedRepository,
)

__all__ = [
    # Entities - Requests
    "SortOrder",
    "SortField",
    "PaginationRequest",
    "CursorPageRequest",
    "OffsetPageRequest",
    "SliceRequest",

    # Entities - Responses
    "PaginationMetadata",
    "PaginationResponse",
    "QueryResult",
    "CursorResult",
    "PagedResult",
    "SliceResult",

    # Cursor tokens
    "CursorToken",

    # Paginators
    "CursorPaginator",
    "OffsetPaginator",
    "SlicePaginator",
    "PaginationEngine",

    # Protocols
    "CursorPaginatedRepository",
    "PaginatedRepository",
    "SlicedRepository",
    "HybridPaginatedRepository",
]
