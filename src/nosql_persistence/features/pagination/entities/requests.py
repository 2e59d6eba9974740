"""Pagination request entities."""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from ....core.exceptions import InvalidPaginationError
from ...query import DEFAULT_SORT, Predicate, SortField, SortOrder


@dataclass(frozen=True)
class PaginationRequest:
    """Base pagination request.

    ``include_deleted`` is always explicit here; defaults live on the
    repository methods only.
    """

    include_deleted: bool
    predicate: Optional[Predicate] = None
    sort_fields: Tuple[SortField, ...] = field(default_factory=lambda: DEFAULT_SORT)

    def __post_init__(self):
        """Normalise sort fields to a tuple."""
        sort_fields = tuple(self.sort_fields or ())
        for sort_field in sort_fields:
            if not isinstance(sort_field, SortField):
                raise InvalidPaginationError(f"Invalid sort field: {sort_field!r}")
        object.__setattr__(self, "sort_fields", sort_fields or DEFAULT_SORT)


@dataclass(frozen=True)
class CursorPageRequest(PaginationRequest):
    """Keyset page request; ``cursor`` comes from a previous CursorResult."""

    page_size: int = 50
    cursor: Optional[str] = None

    def __post_init__(self):
        """Validate cursor pagination parameters."""
        super().__post_init__()
        if self.page_size < 1:
            raise InvalidPaginationError("Page size must be >= 1")


@dataclass(frozen=True)
class OffsetPageRequest(PaginationRequest):
    """Offset-based page request (page number / page size)."""

    page_number: int = 1
    page_size: int = 50
    include_total_count: bool = False

    def __post_init__(self):
        """Validate pagination parameters."""
        super().__post_init__()
        if self.page_number < 1:
            raise InvalidPaginationError("Page number must be >= 1")
        if self.page_size < 1:
            raise InvalidPaginationError("Page size must be >= 1")

    @property
    def offset(self) -> int:
        """Calculate offset from page number and page size."""
        return (self.page_number - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass(frozen=True)
class SliceRequest(PaginationRequest):
    """Request for at most ``count`` items plus a has-more flag."""

    count: int = 50

    def __post_init__(self):
        super().__post_init__()
        if self.count < 1:
            raise InvalidPaginationError("Count must be >= 1")


__all__ = [
    "SortOrder",
    "SortField",
    "PaginationRequest",
    "CursorPageRequest",
    "OffsetPageRequest",
    "SliceRequest",
]
