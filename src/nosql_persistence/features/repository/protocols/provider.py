"""Storage provider boundary.

A provider is the only component doing I/O. It receives provider-agnostic
descriptors (QuerySpec, PatchOperation, BatchOperation) and is the sole
writer of ``_etag`` and ``_ts``.
"""

from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ...entities import ContainerSettings
from ...patch import PatchOperation
from ...query import Predicate, ProviderPage, QuerySpec
from ..entities import BatchItemOutcome, BatchOperation, ProviderWriteResult


@runtime_checkable
class DocumentProvider(Protocol):
    """Protocol for document storage providers."""

    async def setup_container(self, container: ContainerSettings) -> None:
        """Prepare storage for ``container`` (idempotent)."""
        ...

    async def read(self, container: ContainerSettings, id: str, partition_key: str) -> Optional[Dict[str, Any]]:
        """Point lookup; None when absent."""
        ...

    async def read_many(
        self,
        container: ContainerSettings,
        keys: Sequence[Tuple[str, str]]
    ) -> List[Dict[str, Any]]:
        """Batched point lookups by ``(id, partition_key)``; missing items are skipped."""
        ...

    async def query(self, container: ContainerSettings, spec: QuerySpec) -> ProviderPage:
        """Execute a query descriptor."""
        ...

    async def count(self, container: ContainerSettings, predicate: Predicate) -> int:
        ...

    async def execute_raw(
        self,
        container: ContainerSettings,
        query: Any,
        parameters: Optional[Mapping[str, Any]] = None
    ) -> ProviderPage:
        """Run a provider-native query with named parameters."""
        ...

    def stream(self, container: ContainerSettings, spec: QuerySpec) -> AsyncIterator[Dict[str, Any]]:
        """Lazily yield matching documents without buffering the full result."""
        ...

    async def create(self, container: ContainerSettings, document: Dict[str, Any]) -> ProviderWriteResult:
        """Insert; raises EntityAlreadyExistsError on a duplicate id or unique key."""
        ...

    async def replace(
        self,
        container: ContainerSettings,
        document: Dict[str, Any],
        if_match: Optional[str] = None
    ) -> ProviderWriteResult:
        """Replace the stored document; raises ConcurrencyConflictError on a tag mismatch."""
        ...

    async def patch(
        self,
        container: ContainerSettings,
        id: str,
        partition_key: str,
        operations: Sequence[PatchOperation],
        if_match: Optional[str] = None
    ) -> ProviderWriteResult:
        """Apply all ``operations`` atomically or none of them."""
        ...

    async def delete(self, container: ContainerSettings, id: str, partition_key: str) -> None:
        """Remove the stored document; raises EntityNotFoundError when absent."""
        ...

    async def execute_batch(
        self,
        container: ContainerSettings,
        partition_key: str,
        operations: Sequence[BatchOperation]
    ) -> List[BatchItemOutcome]:
        """Execute same-partition operations, atomically where the store allows."""
        ...
