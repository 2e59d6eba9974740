"""nosql-persistence - document repository contract with pluggable providers.

Entity identity and capabilities, partial updates, cursor/offset/slice
pagination, soft delete with restore, optimistic concurrency and
same-partition batches, over an in-memory or PostgreSQL JSONB provider.

Logging is not configured on import; call ``setup_logging()`` from the
application entry point.
"""

from .__version__ import __version__

from .config import (
    PersistenceSettings,
    get_settings,
    setup_logging,
    get_logger,
)

from .core.exceptions import (
    # Base Exception
    PersistenceError,
    RepositoryError,

    # Repository Exceptions
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

    # Utility Functions
    create_error_response,
)

from .core.cancellation import CancellationToken

from .features.entities import (
    BaseEntity,
    AuditableEntity,
    EtagEntity,
    TimeToLiveEntity,
    DocumentEntity,
    SoftDeleteEntity,
    AuditableMixin,
    EtagMixin,
    TimeToLiveMixin,
    SoftDeleteMixin,
    RestorableMixin,
    Capability,
    capabilities_of,
    container,
    unique_key,
    get_container_settings,
)

from .features.query import (
    Predicate,
    field,
    where,
    and_,
    not_deleted,
    SortField,
    SortOrder,
)

from .features.patch import (
    PatchOperation,
    PatchOperationType,
    PatchOperationBuilder,
    apply_patch,
)

from .features.pagination import (
    QueryResult,
    CursorResult,
    PagedResult,
    SliceResult,
)

from .features.repository import (
    DocumentProvider,
    DocumentRepository,
    Repository,
    ReadOnlyRepository,
    WriteOnlyRepository,
    BatchRepository,
    RestoreResult,
    AuditContext,
    StaticAuditContext,
)

from .features.providers import (
    InMemoryDocumentProvider,
    PostgresDocumentProvider,
)

__all__ = [
    "__version__",

    # Configuration
    "PersistenceSettings",
    "get_settings",
    "setup_logging",
    "get_logger",

    # Exceptions
    "PersistenceError",
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
    "create_error_response",

    # Cancellation
    "CancellationToken",

    # Entities
    "BaseEntity",
    "AuditableEntity",
    "EtagEntity",
    "TimeToLiveEntity",
    "DocumentEntity",
    "SoftDeleteEntity",
    "AuditableMixin",
    "EtagMixin",
    "TimeToLiveMixin",
    "SoftDeleteMixin",
    "RestorableMixin",
    "Capability",
    "capabilities_of",
    "container",
    "unique_key",
    "get_container_settings",

    # Queries
    "Predicate",
    "field",
    "where",
    "and_",
    "not_deleted",
    "SortField",
    "SortOrder",

    # Patches
    "PatchOperation",
    "PatchOperationType",
    "PatchOperationBuilder",
    "apply_patch",

    # Pagination
    "QueryResult",
    "CursorResult",
    "PagedResult",
    "SliceResult",

    # Repository
    "DocumentProvider",
    "DocumentRepository",
    "Repository",
    "ReadOnlyRepository",
    "WriteOnlyRepository",
    "BatchRepository",
    "RestoreResult",
    "AuditContext",
    "StaticAuditContext",

    # Providers
    "InMemoryDocumentProvider",
    "PostgresDocumentProvider",
]
