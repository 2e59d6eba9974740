"""PostgreSQL JSONB provider."""

from .provider import PostgresDocumentProvider
from .sql import SqlBuilder, build_select, build_count, build_create_table

__all__ = [
    "PostgresDocumentProvider",
    "SqlBuilder",
    "build_select",
    "build_count",
    "build_create_table",
]
