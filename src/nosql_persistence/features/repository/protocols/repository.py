"""Repository protocols.

Read, write and batch contracts are separate so that callers can depend on
the narrowest one they need; Repository composes all three.
"""

from typing import (
    Any, AsyncIterator, Callable, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar, Union,
    runtime_checkable,
)

from ....core.cancellation import CancellationToken
from ...pagination import HybridPaginatedRepository, QueryResult
from ...patch import PatchOperationBuilder
from ...query import Predicate, SortField
from ..entities import RestoreResult

T = TypeVar("T")


@runtime_checkable
class ReadOnlyRepository(HybridPaginatedRepository[T], Protocol[T]):
    """Read operations. ``include_deleted`` defaults to False everywhere."""

    async def get(
        self,
        id: str,
        include_deleted: bool = False,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> T:
        """Get an entity by id; raises EntityNotFoundError when absent (or soft deleted)."""
        ...

    async def get_many(
        self,
        ids: Sequence[str],
        include_deleted: bool = False,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        ...

    async def get_all(
        self,
        include_deleted: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        ...

    async def first_or_none(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[T]:
        ...

    async def query(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> QueryResult[T]:
        ...

    async def query_raw(
        self,
        query: Any,
        parameters: Optional[Mapping[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> QueryResult[T]:
        """Run a provider-native query; no implicit soft-delete filter is added."""
        ...

    def stream(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        max_results: Optional[int] = None,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> AsyncIterator[T]:
        ...

    async def exists(
        self,
        id: str,
        include_deleted: bool = False,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> bool:
        ...

    async def exists_where(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> bool:
        ...

    async def count(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> int:
        ...


@runtime_checkable
class WriteOnlyRepository(Protocol[T]):
    """Single-entity write operations."""

    async def create(self, entity: T, cancellation: Optional[CancellationToken] = None) -> T:
        ...

    async def create_many(self, entities: Sequence[T], cancellation: Optional[CancellationToken] = None) -> List[T]:
        ...

    async def update(
        self,
        entity: T,
        ignore_etag: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> T:
        """Replace the stored entity, verifying its concurrency tag unless ``ignore_etag``."""
        ...

    async def update_many(
        self,
        entities: Sequence[T],
        ignore_etag: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        ...

    async def update_partial(
        self,
        id: str,
        build: Callable[[PatchOperationBuilder[T]], Any],
        concurrency_token: Optional[str] = None,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> T:
        """Apply the operations recorded by ``build`` atomically."""
        ...

    async def restore(
        self,
        id: str,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> RestoreResult[T]:
        ...

    async def delete(
        self,
        entity_or_id: Union[T, str],
        soft_delete: Optional[bool] = None,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> T:
        """Soft delete when supported (or requested), otherwise remove permanently."""
        ...


@runtime_checkable
class BatchRepository(Protocol[T]):
    """Same-partition batch operations, rejected before any I/O on partition mismatch."""

    async def create_batch(self, entities: Sequence[T], cancellation: Optional[CancellationToken] = None) -> List[T]:
        ...

    async def update_batch(
        self,
        entities: Sequence[T],
        ignore_etag: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        ...

    async def delete_batch(
        self,
        entities: Sequence[T],
        soft_delete: Optional[bool] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        ...

    async def restore_batch(
        self,
        entities: Sequence[T],
        cancellation: Optional[CancellationToken] = None
    ) -> List[Tuple[str, bool]]:
        ...


@runtime_checkable
class Repository(ReadOnlyRepository[T], WriteOnlyRepository[T], BatchRepository[T], Protocol[T]):
    """Full repository contract."""
    pass
