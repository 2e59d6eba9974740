"""Repository and provider protocols."""

from .provider import DocumentProvider
from .repository import (
    ReadOnlyRepository,
    WriteOnlyRepository,
    BatchRepository,
    Repository,
)

__all__ = [
    "DocumentProvider",
    "ReadOnlyRepository",
    "WriteOnlyRepository",
    "BatchRepository",
    "Repository",
]
