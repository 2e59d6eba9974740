"""Bundled document providers."""

from .memory import InMemoryDocumentProvider
from .postgres import PostgresDocumentProvider

__all__ = [
    "InMemoryDocumentProvider",
    "PostgresDocumentProvider",
]
