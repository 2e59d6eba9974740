"""Pytest configuration and fixtures for nosql-persistence tests."""

from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import Field

from nosql_persistence.config.settings import PersistenceSettings
from nosql_persistence.features.entities import (
    BaseEntity,
    DocumentEntity,
    SoftDeleteEntity,
    WireModel,
    container,
    unique_key,
)
from nosql_persistence.features.providers import InMemoryDocumentProvider
from nosql_persistence.features.repository import DocumentRepository, StaticAuditContext


class OrderLine(WireModel):
    sku: str
    quantity: int = 1


@container("orders")
class Order(SoftDeleteEntity):
    """Soft-deletable entity partitioned by its own id."""

    customer_id: str = ""
    status: str = "open"
    total: float = 0
    revision: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    lines: List[OrderLine] = Field(default_factory=list)


@container("invoices", partition_key_path="/customerId")
@unique_key("/number")
class Invoice(DocumentEntity):
    """Hard-delete-only entity partitioned by customer."""

    customer_id: str
    number: str
    amount: int = 0


@container("tasks", partition_key_path="/projectId")
class Task(SoftDeleteEntity):
    """Soft-deletable entity partitioned by project."""

    project_id: str
    title: str = ""


class Note(BaseEntity):
    """Entity without optional capabilities."""

    text: str = ""


@pytest.fixture
def settings():
    """Settings with small page and batch limits."""
    return PersistenceSettings(default_page_size=10, max_page_size=100, max_batch_size=5)


@pytest.fixture
def audit_context():
    return StaticAuditContext(user="alice", time_zone="Europe/Paris")


@pytest.fixture
def provider():
    return InMemoryDocumentProvider()


@pytest.fixture
def order_repository(provider, settings, audit_context):
    return DocumentRepository(Order, provider, settings, audit_context)


@pytest.fixture
def invoice_repository(provider, settings, audit_context):
    return DocumentRepository(Invoice, provider, settings, audit_context)


@pytest.fixture
def task_repository(provider, settings, audit_context):
    return DocumentRepository(Task, provider, settings, audit_context)


@pytest.fixture
def note_repository(provider, settings, audit_context):
    return DocumentRepository(Note, provider, settings, audit_context)


@pytest.fixture
def mock_database():
    """Mock DatabaseManager for provider tests."""
    mock_db = MagicMock()
    mock_db.fetchrow = AsyncMock()
    mock_db.fetch = AsyncMock(return_value=[])
    mock_db.fetchval = AsyncMock()
    mock_db.execute = AsyncMock()
    return mock_db
