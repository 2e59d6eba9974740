"""Exceptions module for nosql-persistence.

The taxonomy follows the repository contract: not found, concurrency
conflict, invalid patch path, unsupported capability, partition mismatch
and cancellation, all rooted at PersistenceError.
"""

from .base import (
    PersistenceError,
    create_error_response,
)

from .repository import (
    RepositoryError,
    EntityNotFoundError,
    EntityAlreadyExistsError,
    ConcurrencyConflictError,
    InvalidPatchPathError,
    UnsupportedCapabilityError,
    PartitionMismatchError,
    BatchSizeExceededError,
    BatchOperationError,
    InvalidPaginationError,
    InvalidCursorError,
    OperationCanceledError,
)

__all__ = [
    "PersistenceError",
    "create_error_response",
    "RepositoryError",
    "EntityNotFoundError",
    "EntityAlreadyExistsError",
    "ConcurrencyConflictError",
    "InvalidPatchPathError",
    "UnsupportedCapabilityError",
    "PartitionMismatchError",
    "BatchSizeExceededError",
    "BatchOperationError",
    "InvalidPaginationError",
    "InvalidCursorError",
    "OperationCanceledError",
]
