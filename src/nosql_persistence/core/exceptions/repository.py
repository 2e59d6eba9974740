"""Repository-related exceptions for nosql-persistence."""

from typing import Any, List, Optional, Sequence

from .base import PersistenceError


class RepositoryError(PersistenceError):
    """Base class for repository-related errors."""
    pass


class EntityNotFoundError(RepositoryError):
    """Raised when an id or predicate matched no entity."""

    def __init__(self, entity_type: str, identifier: str):
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(
            f"{entity_type} with identifier '{identifier}' not found",
            details={"entity_type": entity_type, "identifier": identifier},
        )


class EntityAlreadyExistsError(RepositoryError):
    """Raised when trying to create an entity that already exists."""

    def __init__(self, entity_type: str, identifier: str):
        self.entity_type = entity_type
        self.identifier = identifier
        super().__init__(
            f"{entity_type} with identifier '{identifier}' already exists",
            details={"entity_type": entity_type, "identifier": identifier},
        )


class ConcurrencyConflictError(RepositoryError):
    """Raised when the stored concurrency tag no longer matches the supplied one.

    Never retried automatically: the caller has to re-fetch and re-apply.
    """

    def __init__(self, entity_type: str, identifier: str, expected_etag: Optional[str] = None):
        self.entity_type = entity_type
        self.identifier = identifier
        self.expected_etag = expected_etag
        super().__init__(
            f"Concurrency conflict for {entity_type} '{identifier}'. "
            f"Entity was modified by another process.",
            details={
                "entity_type": entity_type,
                "identifier": identifier,
                "expected_etag": expected_etag,
            },
        )


class InvalidPatchPathError(RepositoryError, ValueError):
    """Raised for a malformed or out-of-range patch path or array index."""

    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(
            f"Invalid patch path '{path}': {reason}",
            details={"path": str(path), "reason": reason},
        )


class UnsupportedCapabilityError(RepositoryError):
    """Raised when an operation needs a capability the entity type lacks."""

    def __init__(self, entity_type: str, capability: str, operation: str):
        self.entity_type = entity_type
        self.capability = capability
        self.operation = operation
        super().__init__(
            f"{operation} requires {entity_type} to support '{capability}'",
            details={"entity_type": entity_type, "capability": capability, "operation": operation},
        )


class PartitionMismatchError(RepositoryError):
    """Raised when a batch spans more than one partition key."""

    def __init__(self, partition_keys: Sequence[str]):
        self.partition_keys = sorted(set(partition_keys))
        super().__init__(
            f"Batch items must share one partition key, found {len(self.partition_keys)}: "
            f"{', '.join(self.partition_keys)}",
            details={"partition_keys": self.partition_keys},
        )


class BatchSizeExceededError(RepositoryError, ValueError):
    """Raised when a batch holds more items than the provider accepts."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Batch of {size} items exceeds the limit of {limit}",
            details={"size": size, "limit": limit},
        )


class BatchOperationError(RepositoryError):
    """Raised when a non-atomic provider reports failed batch items."""

    def __init__(self, outcomes: List[Any]):
        self.outcomes = outcomes
        failed = [outcome for outcome in outcomes if not outcome.succeeded]
        super().__init__(
            f"{len(failed)} of {len(outcomes)} batch operations failed",
            details={"failed_ids": [outcome.id for outcome in failed]},
        )


class InvalidPaginationError(RepositoryError, ValueError):
    """Raised for out-of-range page numbers, sizes or counts."""
    pass


class InvalidCursorError(InvalidPaginationError):
    """Raised when a cursor token is malformed or was issued for another sort."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid cursor: {reason}", details={"reason": reason})


class OperationCanceledError(PersistenceError):
    """Raised when cooperative cancellation was observed.

    Distinct from every other failure so callers can tell an abandoned
    operation from a failed one.
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' was canceled", details={"operation": operation})
