"""Pagination result envelopes and performance metadata.

Every envelope carries ``charge``, the provider's estimated execution cost.
It is passed through untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PaginationMetadata:
    """Timing metadata for one paged query."""

    query_duration_ms: Optional[float] = None
    count_duration_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None

    @classmethod
    def create_performance_metadata(
        cls,
        query_start: datetime,
        query_end: datetime,
        count_start: Optional[datetime] = None,
        count_end: Optional[datetime] = None
    ) -> "PaginationMetadata":
        """Create metadata with calculated durations."""
        query_duration = (query_end - query_start).total_seconds() * 1000

        count_duration = None
        if count_start and count_end:
            count_duration = (count_end - count_start).total_seconds() * 1000

        total_duration = query_duration
        if count_duration:
            total_duration += count_duration

        return cls(
            query_duration_ms=query_duration,
            count_duration_ms=count_duration,
            total_duration_ms=total_duration,
        )


class PaginationResponse(Generic[T]):
    """Base response with common helpers."""

    items: List[T]

    @property
    def count(self) -> int:
        """Get number of items in the current page."""
        return len(self.items)

    @property
    def has_items(self) -> bool:
        return len(self.items) > 0


@dataclass(frozen=True)
class QueryResult(PaginationResponse[T]):
    """Plain query result."""

    items: List[T] = field(default_factory=list)
    charge: float = 0.0


@dataclass(frozen=True)
class CursorResult(PaginationResponse[T]):
    """Keyset page. ``next_cursor`` is None exactly when nothing follows."""

    items: List[T] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False
    charge: float = 0.0
    metadata: Optional[PaginationMetadata] = None

    @property
    def size(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class PagedResult(PaginationResponse[T]):
    """Offset page.

    ``total_count`` is only known when it was requested; every derived field
    that depends on it is None otherwise. ``has_next_page`` is three-valued:
    None means unknown, not False.
    """

    items: List[T] = field(default_factory=list)
    page_number: int = 1
    page_size: int = 50
    total_count: Optional[int] = None
    charge: float = 0.0
    metadata: Optional[PaginationMetadata] = None

    @property
    def total_pages(self) -> Optional[int]:
        """ceil(total_count / page_size), when the total is known."""
        if self.total_count is None:
            return None
        return (self.total_count + self.page_size - 1) // self.page_size

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> Optional[bool]:
        total_pages = self.total_pages
        if total_pages is None:
            return None
        return self.page_number < total_pages

    @property
    def previous_page_number(self) -> int:
        return max(self.page_number - 1, 1)

    @property
    def next_page_number(self) -> Optional[int]:
        """Next page when one is known to exist, else the last page (if known)."""
        if self.has_next_page:
            return self.page_number + 1
        return self.total_pages

    @property
    def is_first_page(self) -> bool:
        return self.page_number == 1

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size

    @property
    def page_info(self) -> Dict[str, Any]:
        """Get comprehensive page information."""
        return {
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_count": self.total_count,
            "total_pages": self.total_pages,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
            "next_page_number": self.next_page_number,
            "previous_page_number": self.previous_page_number,
            "items_on_page": self.count,
            "charge": self.charge,
        }


@dataclass(frozen=True)
class SliceResult(PaginationResponse[T]):
    """At most ``count`` items plus whether more exist."""

    items: List[T] = field(default_factory=list)
    has_more: bool = False
    charge: float = 0.0
