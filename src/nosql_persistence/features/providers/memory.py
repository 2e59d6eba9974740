"""In-memory document provider.

Reference implementation of the provider boundary, used by tests and local
development. Behaves like a partitioned document store: documents are keyed
by ``(partition key, id)``, every write gets a fresh quoted ``_etag`` and a
``_ts`` stamp, expired ``ttl`` documents disappear, unique keys are enforced
per partition and batches are applied all-or-nothing.
"""

import asyncio
import copy
import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

from ...core.exceptions import (
    ConcurrencyConflictError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
    PartitionMismatchError,
)
from ...utils.datetime import epoch_seconds_now
from ...utils.json_pointer import MISSING, resolve_pointer
from ..entities import ContainerSettings
from ..patch import PROVIDER_MANAGED_PATHS, PatchOperation, apply_patch
from ..query import (
    Predicate,
    ProviderPage,
    QuerySpec,
    compare_keys,
    keyset_values,
    sort_documents,
)
from ..repository.entities import (
    BatchItemOutcome,
    BatchOperation,
    BatchOperationType,
    ProviderWriteResult,
)

logger = logging.getLogger(__name__)

Partition = Dict[str, Dict[str, Any]]
RawQueryHandler = Callable[[List[Dict[str, Any]], Any, Mapping[str, Any]], List[Dict[str, Any]]]

READ_CHARGE = 1.0
WRITE_CHARGE = 5.0
QUERY_BASE_CHARGE = 2.0
QUERY_DOCUMENT_CHARGE = 0.1


def _new_etag() -> str:
    return f'"{uuid4()}"'


class InMemoryDocumentProvider:
    """Document provider keeping everything in process memory.

    Args:
        latency: Seconds to sleep before each call, to simulate I/O
        raw_query_handler: Callable used by ``execute_raw``; defaults to
            treating the query as a Predicate or a ``(document, parameters)``
            callable
        clock: Source of ``_ts`` values (epoch seconds)
        stream_page_size: Documents fetched per step while streaming
    """

    def __init__(
        self,
        latency: float = 0.0,
        raw_query_handler: Optional[RawQueryHandler] = None,
        clock: Callable[[], int] = epoch_seconds_now,
        stream_page_size: int = 100
    ):
        self.latency = latency
        self.raw_query_handler = raw_query_handler
        self.clock = clock
        self.stream_page_size = stream_page_size
        self._containers: Dict[str, Dict[str, Partition]] = {}
        self._settings: Dict[str, ContainerSettings] = {}

    async def _io(self) -> None:
        # Always yield to the loop so cancellation can win a race
        await asyncio.sleep(self.latency)

    def _partitions(self, container: ContainerSettings) -> Dict[str, Partition]:
        if container.name not in self._containers:
            self._containers[container.name] = {}
            self._settings[container.name] = container
        return self._containers[container.name]

    def _partition_of(self, container: ContainerSettings, document: Mapping[str, Any]) -> str:
        value = resolve_pointer(document, container.partition_key_path)
        return "" if value is MISSING or value is None else str(value)

    def _is_live(self, document: Mapping[str, Any], now: int) -> bool:
        ttl = document.get("ttl")
        if ttl is None or ttl < 0:
            return True
        return document.get("_ts", 0) + ttl > now

    def _live_documents(self, container: ContainerSettings) -> List[Dict[str, Any]]:
        now = self.clock()
        return [
            document
            for partition in self._partitions(container).values()
            for document in partition.values()
            if self._is_live(document, now)
        ]

    def _get(self, partition: Partition, id: str) -> Optional[Dict[str, Any]]:
        document = partition.get(id)
        if document is None:
            return None
        if not self._is_live(document, self.clock()):
            del partition[id]
            return None
        return document

    def _check_unique(self, container: ContainerSettings, partition: Partition, document: Mapping[str, Any]) -> None:
        now = self.clock()
        for name, paths in container.unique_key_groups.items():
            key = tuple(resolve_pointer(document, path) for path in paths)
            if all(value is MISSING for value in key):
                continue
            for other in partition.values():
                if other["id"] == document["id"] or not self._is_live(other, now):
                    continue
                if tuple(resolve_pointer(other, path) for path in paths) == key:
                    raise EntityAlreadyExistsError(container.name, f"{name}={list(key)}")

    def _stamp(self, document: Dict[str, Any]) -> Dict[str, Any]:
        document["_etag"] = _new_etag()
        document["_ts"] = self.clock()
        return document

    def _result(self, document: Dict[str, Any]) -> ProviderWriteResult:
        return ProviderWriteResult(
            document=copy.deepcopy(document),
            etag=document["_etag"],
            timestamp=document["_ts"],
            charge=WRITE_CHARGE,
        )

    def _check_etag(self, container: ContainerSettings, stored: Mapping[str, Any], if_match: Optional[str]) -> None:
        if if_match is not None and stored.get("_etag") != if_match:
            raise ConcurrencyConflictError(container.name, stored["id"], if_match)

    # Single-document primitives operating on one partition

    def _create(self, container: ContainerSettings, partition: Partition, document: Dict[str, Any]) -> Dict[str, Any]:
        if self._get(partition, document["id"]) is not None:
            raise EntityAlreadyExistsError(container.name, document["id"])
        self._check_unique(container, partition, document)
        stored = self._stamp(copy.deepcopy(document))
        partition[stored["id"]] = stored
        return stored

    def _replace(
        self,
        container: ContainerSettings,
        partition: Partition,
        document: Dict[str, Any],
        if_match: Optional[str]
    ) -> Dict[str, Any]:
        stored = self._get(partition, document["id"])
        if stored is None:
            raise EntityNotFoundError(container.name, document["id"])
        self._check_etag(container, stored, if_match)
        self._check_unique(container, partition, document)
        replacement = self._stamp(copy.deepcopy(document))
        partition[replacement["id"]] = replacement
        return replacement

    def _patch(
        self,
        container: ContainerSettings,
        partition: Partition,
        id: str,
        operations: Sequence[PatchOperation],
        if_match: Optional[str]
    ) -> Dict[str, Any]:
        stored = self._get(partition, id)
        if stored is None:
            raise EntityNotFoundError(container.name, id)
        self._check_etag(container, stored, if_match)
        patched = apply_patch(stored, operations, PROVIDER_MANAGED_PATHS + (container.partition_key_path,))
        self._check_unique(container, partition, patched)
        partition[id] = self._stamp(patched)
        return partition[id]

    def _delete(self, container: ContainerSettings, partition: Partition, id: str) -> None:
        if self._get(partition, id) is None:
            raise EntityNotFoundError(container.name, id)
        del partition[id]

    def _select(self, documents: List[Dict[str, Any]], spec: QuerySpec) -> Tuple[List[Dict[str, Any]], int]:
        keyset = spec.keyset
        matched = sort_documents([d for d in documents if spec.predicate.matches(d)], keyset)
        total = len(matched)
        if spec.after is not None:
            matched = [d for d in matched if compare_keys(keyset_values(d, keyset), spec.after, keyset) > 0]
        matched = matched[spec.offset:]
        if spec.limit is not None:
            matched = matched[:spec.limit]
        return matched, total

    # Provider protocol

    async def setup_container(self, container: ContainerSettings) -> None:
        self._partitions(container)
        self._settings[container.name] = container
        logger.debug(f"Container '{container.name}' set up (partition key {container.partition_key_path})")

    async def read(self, container: ContainerSettings, id: str, partition_key: str) -> Optional[Dict[str, Any]]:
        await self._io()
        document = self._get(self._partitions(container).setdefault(partition_key, {}), id)
        return copy.deepcopy(document) if document is not None else None

    async def read_many(
        self,
        container: ContainerSettings,
        keys: Sequence[Tuple[str, str]]
    ) -> List[Dict[str, Any]]:
        await self._io()
        partitions = self._partitions(container)
        documents = []
        for id, partition_key in keys:
            document = self._get(partitions.setdefault(partition_key, {}), id)
            if document is not None:
                documents.append(copy.deepcopy(document))
        return documents

    async def query(self, container: ContainerSettings, spec: QuerySpec) -> ProviderPage:
        await self._io()
        documents, total = self._select(self._live_documents(container), spec)
        return ProviderPage(
            documents=copy.deepcopy(documents),
            charge=QUERY_BASE_CHARGE + QUERY_DOCUMENT_CHARGE * len(documents),
            total_count=total if spec.include_total else None,
        )

    async def count(self, container: ContainerSettings, predicate: Predicate) -> int:
        await self._io()
        return sum(1 for document in self._live_documents(container) if predicate.matches(document))

    async def execute_raw(
        self,
        container: ContainerSettings,
        query: Any,
        parameters: Optional[Mapping[str, Any]] = None
    ) -> ProviderPage:
        await self._io()
        parameters = parameters or {}
        documents = self._live_documents(container)
        if self.raw_query_handler is not None:
            matched = self.raw_query_handler(documents, query, parameters)
        elif isinstance(query, Predicate):
            matched = [document for document in documents if query.matches(document)]
        elif callable(query):
            matched = [document for document in documents if query(document, parameters)]
        else:
            raise TypeError("InMemoryDocumentProvider raw queries must be a Predicate or a callable")
        return ProviderPage(
            documents=copy.deepcopy(matched),
            charge=QUERY_BASE_CHARGE + QUERY_DOCUMENT_CHARGE * len(matched),
        )

    async def stream(self, container: ContainerSettings, spec: QuerySpec) -> AsyncIterator[Dict[str, Any]]:
        """Walk the result in keyset steps so the full result is never materialised."""
        keyset = spec.keyset
        remaining = spec.limit
        after = spec.after
        while remaining is None or remaining > 0:
            step = self.stream_page_size if remaining is None else min(self.stream_page_size, remaining)
            page = await self.query(
                container,
                QuerySpec(predicate=spec.predicate, sort_fields=spec.sort_fields, limit=step, after=after),
            )
            for document in page.documents:
                yield document
            if len(page.documents) < step:
                return
            after = keyset_values(page.documents[-1], keyset)
            if remaining is not None:
                remaining -= len(page.documents)

    async def create(self, container: ContainerSettings, document: Dict[str, Any]) -> ProviderWriteResult:
        await self._io()
        partition = self._partitions(container).setdefault(self._partition_of(container, document), {})
        return self._result(self._create(container, partition, document))

    async def replace(
        self,
        container: ContainerSettings,
        document: Dict[str, Any],
        if_match: Optional[str] = None
    ) -> ProviderWriteResult:
        await self._io()
        partition = self._partitions(container).setdefault(self._partition_of(container, document), {})
        return self._result(self._replace(container, partition, document, if_match))

    async def patch(
        self,
        container: ContainerSettings,
        id: str,
        partition_key: str,
        operations: Sequence[PatchOperation],
        if_match: Optional[str] = None
    ) -> ProviderWriteResult:
        await self._io()
        partition = self._partitions(container).setdefault(partition_key, {})
        return self._result(self._patch(container, partition, id, operations, if_match))

    async def delete(self, container: ContainerSettings, id: str, partition_key: str) -> None:
        await self._io()
        self._delete(container, self._partitions(container).setdefault(partition_key, {}), id)

    async def execute_batch(
        self,
        container: ContainerSettings,
        partition_key: str,
        operations: Sequence[BatchOperation]
    ) -> List[BatchItemOutcome]:
        """Apply ``operations`` to a staged copy of the partition; commit only if all succeed."""
        await self._io()
        partitions = self._partitions(container)
        staged: Partition = dict(partitions.get(partition_key, {}))
        outcomes = []

        for operation in operations:
            if operation.document is not None:
                document_partition = self._partition_of(container, operation.document)
                if document_partition != partition_key:
                    raise PartitionMismatchError([partition_key, document_partition])

            if operation.operation_type is BatchOperationType.CREATE:
                document = self._create(container, staged, operation.document)
            elif operation.operation_type is BatchOperationType.REPLACE:
                document = self._replace(container, staged, operation.document, operation.if_match)
            elif operation.operation_type is BatchOperationType.PATCH:
                document = self._patch(container, staged, operation.id, operation.operations, operation.if_match)
            else:
                self._delete(container, staged, operation.id)
                document = None

            outcomes.append(BatchItemOutcome(
                id=operation.id,
                succeeded=True,
                document=copy.deepcopy(document) if document is not None else None,
            ))

        partitions[partition_key] = staged
        return outcomes

    def documents(self, container_name: str) -> List[Dict[str, Any]]:
        """Snapshot of every stored document in a container (test helper)."""
        return [
            copy.deepcopy(document)
            for partition in self._containers.get(container_name, {}).values()
            for document in partition.values()
        ]
