"""Repository services."""

from .document_repository import DocumentRepository

__all__ = ["DocumentRepository"]
