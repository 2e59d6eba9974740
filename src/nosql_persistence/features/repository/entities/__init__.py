"""Repository entities."""

from .results import (
    ProviderWriteResult,
    BatchOperationType,
    BatchOperation,
    BatchItemOutcome,
    RestoreResult,
)

__all__ = [
    "ProviderWriteResult",
    "BatchOperationType",
    "BatchOperation",
    "BatchItemOutcome",
    "RestoreResult",
]
