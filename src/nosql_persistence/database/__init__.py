"""
Database connection management for the PostgreSQL provider.
"""

from .connection import DatabaseManager
from .utils import (
    quote_identifier,
    process_document_record,
    bind_named_parameters,
    path_array,
)

__all__ = [
    "DatabaseManager",
    "quote_identifier",
    "process_document_record",
    "bind_named_parameters",
    "path_array",
]
