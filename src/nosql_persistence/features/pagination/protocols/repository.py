"""Repository protocols for pagination support."""

from typing import Optional, Protocol, Sequence, TypeVar, runtime_checkable

from ....core.cancellation import CancellationToken
from ...query import Predicate, SortField
from ..entities import CursorResult, PagedResult, SliceResult

T = TypeVar("T")


@runtime_checkable
class CursorPaginatedRepository(Protocol[T]):
    """Protocol for repositories that support keyset pagination."""

    async def page_cursor(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> CursorResult[T]:
        """Fetch the page after ``cursor``.

        Args:
            predicate: Filter, None matches all
            include_deleted: Include soft-deleted entities
            page_size: Items per page, defaults to the configured page size
            cursor: Token from a previous result, None for the first page
            sort_fields: Sort order; ``id`` is always appended as tie-breaker

        Returns:
            Page with ``next_cursor`` set exactly when more items exist
        """
        ...


@runtime_checkable
class PaginatedRepository(Protocol[T]):
    """Protocol for repositories that support offset-based pagination."""

    async def page(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        page_number: int = 1,
        page_size: Optional[int] = None,
        include_total_count: bool = False,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> PagedResult[T]:
        """Fetch page ``page_number``.

        Args:
            predicate: Filter, None matches all
            include_deleted: Include soft-deleted entities
            page_number: 1-based page number, any page may be requested
            page_size: Items per page
            include_total_count: Run the extra count query so totals are known

        Returns:
            Paged result with three-valued ``has_next_page``
        """
        ...


@runtime_checkable
class SlicedRepository(Protocol[T]):
    """Protocol for repositories that support "load more" slices."""

    async def slice(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        count: Optional[int] = None,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> SliceResult[T]:
        """Fetch at most ``count`` items and whether more exist."""
        ...


@runtime_checkable
class HybridPaginatedRepository(
    CursorPaginatedRepository[T], PaginatedRepository[T], SlicedRepository[T], Protocol
):
    """Protocol for repositories supporting all three strategies."""
    pass
