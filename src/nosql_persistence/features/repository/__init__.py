"""Repository facade, its protocols and the provider boundary."""

from .entities import (
    ProviderWriteResult,
    BatchOperationType,
    BatchOperation,
    BatchItemOutcome,
    RestoreResult,
)
from .protocols import (
    DocumentProvider,
    ReadOnlyRepository,
    WriteOnlyRepository,
    BatchRepository,
    Repository,
)
from .audit import AuditContext, StaticAuditContext
from .services import DocumentRepository

__all__ = [
    # Entities
    "ProviderWriteResult",
    "BatchOperationType",
    "BatchOperation",
    "BatchItemOutcome",
    "RestoreResult",

    # Protocols
    "DocumentProvider",
    "ReadOnlyRepository",
    "WriteOnlyRepository",
    "BatchRepository",
    "Repository",

    # Audit
    "AuditContext",
    "StaticAuditContext",

    # Services
    "DocumentRepository",
]
