"""Provider boundary value types and repository results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Iterator, Optional, Tuple, TypeVar

from ...patch import PatchOperation

T = TypeVar("T")


@dataclass(frozen=True)
class ProviderWriteResult:
    """What a provider returns for a successful write.

    ``etag`` and ``timestamp`` (``_ts``) are assigned by the provider and are
    also present in ``document``.
    """

    document: Dict[str, Any]
    etag: str = ""
    timestamp: int = 0
    charge: float = 0.0


class BatchOperationType(str, Enum):
    """Operations a provider batch primitive accepts."""
    CREATE = "create"
    REPLACE = "replace"
    PATCH = "patch"
    DELETE = "delete"


@dataclass(frozen=True)
class BatchOperation:
    """One item of a same-partition batch."""

    operation_type: BatchOperationType
    id: str
    document: Optional[Dict[str, Any]] = None
    operations: Tuple[PatchOperation, ...] = ()
    if_match: Optional[str] = None


@dataclass(frozen=True)
class BatchItemOutcome:
    """Per-item result of a provider batch.

    Atomic providers raise instead of reporting failed items; non-atomic
    ones report every item so callers can see which ones failed.
    """

    id: str
    succeeded: bool
    document: Optional[Dict[str, Any]] = None
    error: Optional[Exception] = field(default=None, compare=False)


@dataclass(frozen=True)
class RestoreResult(Generic[T]):
    """Outcome of a restore: ``restored`` is False when nothing was deleted.

    Unpacks as ``restored, entity = await repository.restore(id)``.
    """

    restored: bool
    entity: T

    def __iter__(self) -> Iterator[Any]:
        return iter((self.restored, self.entity))
