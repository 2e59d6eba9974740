"""
Document Repository

Repository facade over a DocumentProvider. Enforces the invariants that do
not belong to any particular store before delegating to the provider:
soft delete vs hard delete branching, restore bookkeeping, concurrency tag
verification, implicit soft-delete filtering and same-partition batches.
"""

import inspect
import logging
from contextlib import aclosing
from typing import (
    Any, AsyncIterator, Awaitable, Callable, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, Type,
    TypeVar, Union,
)

from ....config.settings import PersistenceSettings, get_settings
from ....core.cancellation import CancellationToken, check_cancelled, run_cancellable
from ....core.exceptions import (
    BatchOperationError,
    BatchSizeExceededError,
    ConcurrencyConflictError,
    EntityNotFoundError,
    OperationCanceledError,
    PartitionMismatchError,
    UnsupportedCapabilityError,
)
from ....utils.datetime import utc_now
from ...entities import (
    DEFAULT_PARTITION_KEY_PATH,
    BaseEntity,
    Capability,
    ContainerSettings,
    capabilities_of,
    get_container_settings,
    require_capability,
)
from ...pagination import (
    CursorPageRequest,
    CursorResult,
    OffsetPageRequest,
    PagedResult,
    PaginationEngine,
    PaginationMetadata,
    QueryResult,
    SliceRequest,
    SliceResult,
)
from ...patch import PatchOperation, PatchOperationBuilder
from ...query import Predicate, QuerySpec, SortField, scope_deleted
from ..audit import AuditContext, StaticAuditContext
from ..entities import (
    BatchItemOutcome,
    BatchOperation,
    BatchOperationType,
    ProviderWriteResult,
    RestoreResult,
)
from ..protocols import DocumentProvider

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseEntity)

PatchBuild = Callable[[PatchOperationBuilder[T]], Any]


class DocumentRepository(Generic[T]):
    """Repository for one entity type stored through a DocumentProvider.

    Example:
        repository = DocumentRepository(Order, InMemoryDocumentProvider())
        order = await repository.create(Order(customer_id="c1"))
        await repository.update_partial(order.id, lambda p: p.increment(lambda o: o.revision, 1))
    """

    def __init__(
        self,
        entity_type: Type[T],
        provider: DocumentProvider,
        settings: Optional[PersistenceSettings] = None,
        audit_context: Optional[AuditContext] = None
    ):
        self._entity_type = entity_type
        self._provider = provider
        self._settings = settings or get_settings()
        self._audit = audit_context or StaticAuditContext(
            self._settings.system_user, self._settings.default_time_zone
        )
        self._container = get_container_settings(entity_type)
        self._capabilities = capabilities_of(entity_type)
        self._pagination = PaginationEngine(self._settings)
        self._initialized = False

    @property
    def entity_type(self) -> Type[T]:
        return self._entity_type

    @property
    def container(self) -> ContainerSettings:
        return self._container

    def supports(self, capability: Capability) -> bool:
        return capability in self._capabilities

    async def initialize(self, cancellation: Optional[CancellationToken] = None) -> None:
        """Hand container metadata to the provider once."""
        if self._initialized:
            return
        await run_cancellable(
            self._provider.setup_container(self._container), cancellation, self._operation("initialize")
        )
        self._initialized = True
        logger.debug(f"Container '{self._container.name}' ready for {self._entity_type.__name__}")

    # Helpers

    def _operation(self, name: str) -> str:
        return f"{self._entity_type.__name__}.{name}"

    async def _run(self, awaitable: Awaitable[Any], cancellation: Optional[CancellationToken], name: str) -> Any:
        try:
            await self.initialize(cancellation)
        except OperationCanceledError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise
        return await run_cancellable(awaitable, cancellation, self._operation(name))

    def _to_entity(self, document: Dict[str, Any]) -> T:
        return self._entity_type.from_document(document)

    def _partition(self, id: str, partition_key: Optional[str]) -> str:
        if partition_key is not None:
            return partition_key
        if self._container.partition_key_path != DEFAULT_PARTITION_KEY_PATH:
            raise ValueError(
                f"partition_key is required for {self._entity_type.__name__} "
                f"(partitioned by {self._container.partition_key_path})"
            )
        return id

    def _not_found(self, id: str) -> EntityNotFoundError:
        return EntityNotFoundError(self._entity_type.__name__, id)

    @staticmethod
    def _is_deleted(document: Mapping[str, Any]) -> bool:
        return document.get("isDeleted") is True

    def _stored_etag(self, document: Mapping[str, Any]) -> Optional[str]:
        if Capability.CONCURRENCY_TAG not in self._capabilities:
            return None
        return document.get("_etag", "")

    def _entity_etag(self, entity: T, ignore_etag: bool = False) -> Optional[str]:
        if ignore_etag or Capability.CONCURRENCY_TAG not in self._capabilities:
            return None
        return entity.etag

    def _page_size(self, requested: Optional[int]) -> int:
        return requested if requested is not None else self._settings.default_page_size

    def _require(self, capability: Capability, operation: str) -> None:
        try:
            require_capability(self._entity_type, capability, operation)
        except UnsupportedCapabilityError as e:
            logger.warning(f"Rejected {operation}: {e.message}")
            raise

    def _resolve_soft_delete(self, soft_delete: Optional[bool]) -> bool:
        if soft_delete is None:
            return Capability.SOFT_DELETE in self._capabilities
        if soft_delete:
            self._require(Capability.SOFT_DELETE, "soft delete")
        return soft_delete

    def _stamp_created(self, entity: T) -> T:
        if Capability.AUDIT not in self._capabilities:
            return entity.model_copy(deep=True)
        return entity.model_copy(
            update={
                "created_on": entity.created_on or utc_now(),
                "created_by": entity.created_by or self._audit.current_user(),
                "created_in_time_zone": entity.created_in_time_zone or self._audit.current_time_zone(),
                "modified_by": self._audit.current_user(),
                "modified_in_time_zone": self._audit.current_time_zone(),
            },
            deep=True,
        )

    def _stamp_modified(self, entity: T) -> T:
        if Capability.AUDIT not in self._capabilities:
            return entity.model_copy(deep=True)
        return entity.model_copy(
            update={
                "modified_by": self._audit.current_user(),
                "modified_in_time_zone": self._audit.current_time_zone(),
            },
            deep=True,
        )

    def _builder(self) -> PatchOperationBuilder[T]:
        return PatchOperationBuilder(self._entity_type)

    def _with_audit(self, builder: PatchOperationBuilder[T]) -> PatchOperationBuilder[T]:
        if Capability.AUDIT in self._capabilities:
            builder.set(lambda e: e.modified_by, self._audit.current_user())
            builder.set(lambda e: e.modified_in_time_zone, self._audit.current_time_zone())
        return builder

    def _soft_delete_operations(self) -> Tuple[PatchOperation, ...]:
        builder = (
            self._builder()
            .set(lambda e: e.is_deleted, True)
            .set(lambda e: e.deleted_by, self._audit.current_user())
            .set(lambda e: e.deleted_on, utc_now())
            .set(lambda e: e.deleted_in_time_zone, self._audit.current_time_zone())
        )
        return self._with_audit(builder).build()

    def _restore_operations(self) -> Tuple[PatchOperation, ...]:
        builder = (
            self._builder()
            .set(lambda e: e.is_deleted, False)
            .set(lambda e: e.deleted_by, "")
            .set(lambda e: e.deleted_on, None)
            .set(lambda e: e.deleted_in_time_zone, None)
            .increment(lambda e: e.restore_count, 1)
        )
        return self._with_audit(builder).build()

    async def _write(
        self,
        awaitable: Awaitable[ProviderWriteResult],
        id: str,
        if_match: Optional[str],
        cancellation: Optional[CancellationToken],
        name: str
    ) -> ProviderWriteResult:
        try:
            result = await self._run(awaitable, cancellation, name)
        except ConcurrencyConflictError:
            logger.warning(f"Concurrency conflict on {name} of {self._entity_type.__name__} '{id}' (if_match={if_match})")
            raise
        logger.debug(f"{name} {self._entity_type.__name__} '{id}' (charge={result.charge})")
        return result

    async def _read(self, id: str, partition_key: str, cancellation: Optional[CancellationToken], name: str):
        return await self._run(self._provider.read(self._container, id, partition_key), cancellation, name)

    # Reads

    async def get(
        self,
        id: str,
        include_deleted: bool = False,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> T:
        document = await self._read(id, self._partition(id, partition_key), cancellation, "get")
        if document is None or (not include_deleted and self._is_deleted(document)):
            raise self._not_found(id)
        return self._to_entity(document)

    async def get_many(
        self,
        ids: Sequence[str],
        include_deleted: bool = False,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        if not ids:
            return []
        keys = [(id, self._partition(id, partition_key)) for id in ids]
        documents = await self._run(self._provider.read_many(self._container, keys), cancellation, "get_many")
        return [
            self._to_entity(document)
            for document in documents
            if include_deleted or not self._is_deleted(document)
        ]

    async def get_all(
        self,
        include_deleted: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        result = await self.query(None, include_deleted, cancellation=cancellation)
        return result.items

    async def first_or_none(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> Optional[T]:
        spec = QuerySpec(scope_deleted(predicate, include_deleted), tuple(sort_fields), limit=1)
        page = await self._run(self._provider.query(self._container, spec), cancellation, "first_or_none")
        return self._to_entity(page.documents[0]) if page.documents else None

    async def query(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> QueryResult[T]:
        spec = QuerySpec(scope_deleted(predicate, include_deleted), tuple(sort_fields))
        page = await self._run(self._provider.query(self._container, spec), cancellation, "query")
        return QueryResult(items=[self._to_entity(document) for document in page.documents], charge=page.charge)

    async def query_raw(
        self,
        query: Any,
        parameters: Optional[Mapping[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> QueryResult[T]:
        """Run a provider-native query; no implicit soft-delete filter is added."""
        page = await self._run(
            self._provider.execute_raw(self._container, query, parameters), cancellation, "query_raw"
        )
        return QueryResult(items=[self._to_entity(document) for document in page.documents], charge=page.charge)

    async def stream(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        max_results: Optional[int] = None,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> AsyncIterator[T]:
        """Lazily yield matching entities, checking cancellation at each element."""
        operation = self._operation("stream")
        check_cancelled(cancellation, operation)
        await self.initialize(cancellation)

        spec = QuerySpec(scope_deleted(predicate, include_deleted), tuple(sort_fields), limit=max_results)
        async with aclosing(self._provider.stream(self._container, spec)) as documents:
            async for document in documents:
                check_cancelled(cancellation, operation)
                yield self._to_entity(document)

    async def exists(
        self,
        id: str,
        include_deleted: bool = False,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> bool:
        document = await self._read(id, self._partition(id, partition_key), cancellation, "exists")
        return document is not None and (include_deleted or not self._is_deleted(document))

    async def exists_where(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> bool:
        return await self.first_or_none(predicate, include_deleted, cancellation=cancellation) is not None

    async def count(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> int:
        return await self._run(
            self._provider.count(self._container, scope_deleted(predicate, include_deleted)),
            cancellation,
            "count",
        )

    # Pagination

    async def page_cursor(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> CursorResult[T]:
        request = CursorPageRequest(
            include_deleted=include_deleted,
            predicate=predicate,
            sort_fields=tuple(sort_fields),
            page_size=self._page_size(page_size),
            cursor=cursor,
        )
        spec = self._pagination.cursor_query(request)

        query_start = utc_now()
        page = await self._run(self._provider.query(self._container, spec), cancellation, "page_cursor")
        metadata = PaginationMetadata.create_performance_metadata(query_start, utc_now())

        return self._pagination.cursor.build_result(request, page, self._to_entity, metadata)

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
        request = OffsetPageRequest(
            include_deleted=include_deleted,
            predicate=predicate,
            sort_fields=tuple(sort_fields),
            page_number=page_number,
            page_size=self._page_size(page_size),
            include_total_count=include_total_count,
        )
        spec = self._pagination.offset_query(request)

        query_start = utc_now()
        page = await self._run(self._provider.query(self._container, spec), cancellation, "page")
        metadata = PaginationMetadata.create_performance_metadata(query_start, utc_now())

        return self._pagination.offset.build_result(request, page, self._to_entity, metadata)

    async def slice(
        self,
        predicate: Optional[Predicate] = None,
        include_deleted: bool = False,
        count: Optional[int] = None,
        sort_fields: Sequence[SortField] = (),
        cancellation: Optional[CancellationToken] = None
    ) -> SliceResult[T]:
        request = SliceRequest(
            include_deleted=include_deleted,
            predicate=predicate,
            sort_fields=tuple(sort_fields),
            count=self._page_size(count),
        )
        spec = self._pagination.slice_query(request)
        page = await self._run(self._provider.query(self._container, spec), cancellation, "slice")
        return self._pagination.slice.build_result(request, page, self._to_entity)

    # Writes

    async def create(self, entity: T, cancellation: Optional[CancellationToken] = None) -> T:
        document = self._stamp_created(entity).to_document()
        result = await self._write(
            self._provider.create(self._container, document), entity.id, None, cancellation, "create"
        )
        return self._to_entity(result.document)

    async def create_many(self, entities: Sequence[T], cancellation: Optional[CancellationToken] = None) -> List[T]:
        created = []
        for entity in entities:
            created.append(await self.create(entity, cancellation))
        return created

    async def update(
        self,
        entity: T,
        ignore_etag: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> T:
        if_match = self._entity_etag(entity, ignore_etag)
        document = self._stamp_modified(entity).to_document()
        result = await self._write(
            self._provider.replace(self._container, document, if_match), entity.id, if_match, cancellation, "update"
        )
        return self._to_entity(result.document)

    async def update_many(
        self,
        entities: Sequence[T],
        ignore_etag: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        updated = []
        for entity in entities:
            updated.append(await self.update(entity, ignore_etag, cancellation))
        return updated

    async def update_partial(
        self,
        id: str,
        build: PatchBuild,
        concurrency_token: Optional[str] = None,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> T:
        """Apply the operations recorded by ``build`` atomically.

        ``build`` receives a fresh PatchOperationBuilder; path errors surface
        here, before any I/O. ``concurrency_token`` (an etag) is verified
        against the stored document when given.
        """
        builder = self._builder()
        build(builder)
        operations = self._with_audit(builder).build()
        result = await self._write(
            self._provider.patch(
                self._container, id, self._partition(id, partition_key), operations, concurrency_token
            ),
            id,
            concurrency_token,
            cancellation,
            "update_partial",
        )
        return self._to_entity(result.document)

    async def restore(
        self,
        id: str,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> RestoreResult[T]:
        """Undo a soft delete; a no-op reporting ``restored=False`` when not deleted."""
        self._require(Capability.RESTORE, "restore")
        partition = self._partition(id, partition_key)

        document = await self._read(id, partition, cancellation, "restore")
        if document is None:
            raise self._not_found(id)
        if not self._is_deleted(document):
            return RestoreResult(restored=False, entity=self._to_entity(document))

        if_match = self._stored_etag(document)
        result = await self._write(
            self._provider.patch(self._container, id, partition, self._restore_operations(), if_match),
            id,
            if_match,
            cancellation,
            "restore",
        )
        return RestoreResult(restored=True, entity=self._to_entity(result.document))

    async def delete(
        self,
        entity_or_id: Union[T, str],
        soft_delete: Optional[bool] = None,
        partition_key: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> T:
        """Delete an entity and return its last state.

        ``soft_delete=None`` soft deletes when the type supports it and hard
        deletes otherwise; ``False`` always removes the document. Soft
        deleting an already deleted entity changes nothing.
        """
        soft = self._resolve_soft_delete(soft_delete)
        if isinstance(entity_or_id, str):
            id = entity_or_id
            partition = self._partition(id, partition_key)
        else:
            id = entity_or_id.id
            partition = partition_key or entity_or_id.partition_key

        document = await self._read(id, partition, cancellation, "delete")
        if document is None:
            raise self._not_found(id)

        if not soft:
            await self._run(self._provider.delete(self._container, id, partition), cancellation, "delete")
            logger.debug(f"Deleted {self._entity_type.__name__} '{id}' permanently")
            return self._to_entity(document)

        if self._is_deleted(document):
            return self._to_entity(document)

        if isinstance(entity_or_id, str):
            if_match = self._stored_etag(document)
        else:
            if_match = self._entity_etag(entity_or_id)
        result = await self._write(
            self._provider.patch(self._container, id, partition, self._soft_delete_operations(), if_match),
            id,
            if_match,
            cancellation,
            "soft_delete",
        )
        return self._to_entity(result.document)

    # Batches

    def _batch_partition(self, entities: Sequence[T], operation: str) -> str:
        partition_keys = [entity.partition_key for entity in entities]
        if len(set(partition_keys)) > 1:
            logger.warning(f"Rejected {operation} for {self._entity_type.__name__}: items span several partitions")
            raise PartitionMismatchError(partition_keys)
        if len(entities) > self._settings.max_batch_size:
            raise BatchSizeExceededError(len(entities), self._settings.max_batch_size)
        return partition_keys[0]

    async def _execute_batch(
        self,
        partition_key: str,
        operations: List[BatchOperation],
        cancellation: Optional[CancellationToken],
        name: str
    ) -> Dict[str, BatchItemOutcome]:
        outcomes = await self._run(
            self._provider.execute_batch(self._container, partition_key, operations), cancellation, name
        )
        if any(not outcome.succeeded for outcome in outcomes):
            logger.warning(f"{name} for {self._entity_type.__name__} reported failed items")
            raise BatchOperationError(outcomes)
        logger.debug(f"{name} {len(operations)} {self._entity_type.__name__} items in partition '{partition_key}'")
        return {outcome.id: outcome for outcome in outcomes}

    async def create_batch(self, entities: Sequence[T], cancellation: Optional[CancellationToken] = None) -> List[T]:
        if not entities:
            return []
        partition = self._batch_partition(entities, "create_batch")
        operations = [
            BatchOperation(BatchOperationType.CREATE, entity.id, document=self._stamp_created(entity).to_document())
            for entity in entities
        ]
        outcomes = await self._execute_batch(partition, operations, cancellation, "create_batch")
        return [self._to_entity(outcomes[entity.id].document) for entity in entities]

    async def update_batch(
        self,
        entities: Sequence[T],
        ignore_etag: bool = False,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        if not entities:
            return []
        partition = self._batch_partition(entities, "update_batch")
        operations = [
            BatchOperation(
                BatchOperationType.REPLACE,
                entity.id,
                document=self._stamp_modified(entity).to_document(),
                if_match=self._entity_etag(entity, ignore_etag),
            )
            for entity in entities
        ]
        outcomes = await self._execute_batch(partition, operations, cancellation, "update_batch")
        return [self._to_entity(outcomes[entity.id].document) for entity in entities]

    async def delete_batch(
        self,
        entities: Sequence[T],
        soft_delete: Optional[bool] = None,
        cancellation: Optional[CancellationToken] = None
    ) -> List[T]:
        soft = self._resolve_soft_delete(soft_delete)
        if not entities:
            return []
        partition = self._batch_partition(entities, "delete_batch")

        if not soft:
            operations = [BatchOperation(BatchOperationType.DELETE, entity.id) for entity in entities]
            await self._execute_batch(partition, operations, cancellation, "delete_batch")
            return list(entities)

        pending = [entity for entity in entities if not entity.is_deleted]
        if not pending:
            return list(entities)
        soft_delete_operations = self._soft_delete_operations()
        operations = [
            BatchOperation(
                BatchOperationType.PATCH,
                entity.id,
                operations=soft_delete_operations,
                if_match=self._entity_etag(entity),
            )
            for entity in pending
        ]
        outcomes = await self._execute_batch(partition, operations, cancellation, "delete_batch")
        return [
            self._to_entity(outcomes[entity.id].document) if entity.id in outcomes else entity
            for entity in entities
        ]

    async def restore_batch(
        self,
        entities: Sequence[T],
        cancellation: Optional[CancellationToken] = None
    ) -> List[Tuple[str, bool]]:
        """Restore soft-deleted items; returns ``(id, restored)`` per item."""
        self._require(Capability.RESTORE, "restore_batch")
        if not entities:
            return []
        partition = self._batch_partition(entities, "restore_batch")

        pending = [entity for entity in entities if entity.is_deleted]
        if pending:
            restore_operations = self._restore_operations()
            operations = [
                BatchOperation(
                    BatchOperationType.PATCH,
                    entity.id,
                    operations=restore_operations,
                    if_match=self._entity_etag(entity),
                )
                for entity in pending
            ]
            await self._execute_batch(partition, operations, cancellation, "restore_batch")
        return [(entity.id, entity.is_deleted) for entity in entities]
