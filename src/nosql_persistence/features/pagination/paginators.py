"""Pagination strategies.

Each paginator lowers a request into a provider-executable QuerySpec and
wraps the provider's raw page into a result envelope. Both steps are pure;
the only I/O happens in the provider call between them.

Cursor and slice requests fetch one extra item: its presence is what
decides ``has_more`` (and whether a next cursor is issued) without a count
query.
"""

import logging
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from ...config.settings import PersistenceSettings, get_settings
from ...core.exceptions import InvalidPaginationError
from ..query import (
    ProviderPage,
    QuerySpec,
    keyset_fields,
    keyset_values,
    scope_deleted,
    sort_signature,
)
from .cursor import CursorToken
from .entities import (
    CursorPageRequest,
    CursorResult,
    OffsetPageRequest,
    PagedResult,
    PaginationMetadata,
    PaginationRequest,
    SliceRequest,
    SliceResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
Converter = Callable[[Dict[str, Any]], T]


def _signature(request: PaginationRequest) -> str:
    return sort_signature(keyset_fields(request.sort_fields))


class CursorPaginator(Generic[T]):
    """Keyset pagination: stable under concurrent inserts and deletes."""

    def build_query(self, request: CursorPageRequest) -> QuerySpec:
        after = None
        if request.cursor:
            after = CursorToken.decode(request.cursor, _signature(request)).values
            if len(after) != len(keyset_fields(request.sort_fields)):
                raise InvalidPaginationError("Cursor does not match the sort keyset")

        return QuerySpec(
            predicate=scope_deleted(request.predicate, request.include_deleted),
            sort_fields=request.sort_fields,
            limit=request.page_size + 1,
            after=after,
        )

    def build_result(
        self,
        request: CursorPageRequest,
        page: ProviderPage,
        convert: Converter,
        metadata: Optional[PaginationMetadata] = None
    ) -> CursorResult[T]:
        documents = page.documents
        has_more = len(documents) > request.page_size
        if has_more:
            documents = documents[:request.page_size]

        next_cursor = None
        if has_more and documents:
            keyset = keyset_fields(request.sort_fields)
            next_cursor = CursorToken(
                keyset_values(documents[-1], keyset),
                sort_signature(keyset),
            ).encode()

        return CursorResult(
            items=[convert(document) for document in documents],
            next_cursor=next_cursor,
            has_more=has_more,
            charge=page.charge,
            metadata=metadata,
        )


class OffsetPaginator(Generic[T]):
    """Page-number pagination with an optional total count.

    Results may shift between calls when the data changes in between, and
    deep pages cost more on stores without an efficient skip.
    """

    def build_query(self, request: OffsetPageRequest) -> QuerySpec:
        return QuerySpec(
            predicate=scope_deleted(request.predicate, request.include_deleted),
            sort_fields=request.sort_fields,
            limit=request.limit,
            offset=request.offset,
            include_total=request.include_total_count,
        )

    def build_result(
        self,
        request: OffsetPageRequest,
        page: ProviderPage,
        convert: Converter,
        metadata: Optional[PaginationMetadata] = None
    ) -> PagedResult[T]:
        total_count = page.total_count if request.include_total_count else None
        return PagedResult(
            items=[convert(document) for document in page.documents[:request.page_size]],
            page_number=request.page_number,
            page_size=request.page_size,
            total_count=total_count,
            charge=page.charge,
            metadata=metadata,
        )


class SlicePaginator(Generic[T]):
    """"Load more" slices; ordering is only consistent within one call."""

    def build_query(self, request: SliceRequest) -> QuerySpec:
        return QuerySpec(
            predicate=scope_deleted(request.predicate, request.include_deleted),
            sort_fields=request.sort_fields,
            limit=request.count + 1,
        )

    def build_result(self, request: SliceRequest, page: ProviderPage, convert: Converter) -> SliceResult[T]:
        documents = page.documents
        has_more = len(documents) > request.count
        return SliceResult(
            items=[convert(document) for document in documents[:request.count]],
            has_more=has_more,
            charge=page.charge,
        )


class PaginationEngine:
    """Bundles the three strategies and enforces configured page-size bounds."""

    def __init__(self, settings: Optional[PersistenceSettings] = None):
        self.settings = settings or get_settings()
        self.cursor = CursorPaginator()
        self.offset = OffsetPaginator()
        self.slice = SlicePaginator()

    def check_size(self, size: int, name: str = "page_size") -> None:
        limit = self.settings.max_page_size
        if size > limit:
            logger.warning(f"Rejected {name}={size}, above max_page_size={limit}")
            raise InvalidPaginationError(f"{name} must be between 1 and {limit}")

    def cursor_query(self, request: CursorPageRequest) -> QuerySpec:
        self.check_size(request.page_size)
        return self.cursor.build_query(request)

    def offset_query(self, request: OffsetPageRequest) -> QuerySpec:
        self.check_size(request.page_size)
        return self.offset.build_query(request)

    def slice_query(self, request: SliceRequest) -> QuerySpec:
        self.check_size(request.count, "count")
        return self.slice.build_query(request)
