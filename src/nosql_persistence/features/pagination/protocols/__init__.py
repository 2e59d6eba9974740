"""Pagination protocols."""

from .repository import (
    CursorPaginatedRepository,
    PaginatedRepository,
    SlicedRepository,
    HybridPaginatedRepository,
)

__all__ = [
    "CursorPaginatedRepository",
    "PaginatedRepository",
    "SlicedRepository",
    "HybridPaginatedRepository",
]
