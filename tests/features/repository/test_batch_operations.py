"""Tests for same-partition transactional batches."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from nosql_persistence.core.exceptions import (
    BatchOperationError,
    BatchSizeExceededError,
    ConcurrencyConflictError,
    EntityAlreadyExistsError,
    PartitionMismatchError,
    UnsupportedCapabilityError,
)
from nosql_persistence.features.repository import BatchItemOutcome, BatchOperationType, DocumentRepository

from conftest import Invoice, Order, Task


def invoices(customer_id, count, start=0):
    return [Invoice(id=f"{customer_id}-{i}", customer_id=customer_id, number=f"N{i}") for i in range(start, start + count)]


class TestCreateBatch:
    """Test create_batch."""

    @pytest.mark.asyncio
    async def test_same_partition_batch_is_created(self, invoice_repository):
        created = await invoice_repository.create_batch(invoices("c1", 3))

        assert [invoice.id for invoice in created] == ["c1-0", "c1-1", "c1-2"]
        assert all(invoice.etag for invoice in created)
        assert all(invoice.created_by == "alice" for invoice in created)

    @pytest.mark.asyncio
    async def test_cross_partition_batch_is_rejected_before_io(self, invoice_repository, provider):
        """Test mixed partitions raise and nothing is persisted."""
        batch = invoices("c1", 2) + invoices("c2", 1)

        with pytest.raises(PartitionMismatchError) as exc_info:
            await invoice_repository.create_batch(batch)

        assert exc_info.value.partition_keys == ["c1", "c2"]
        assert provider.documents("invoices") == []

    @pytest.mark.asyncio
    async def test_id_partitioned_entities_cannot_batch_several_items(self, order_repository):
        with pytest.raises(PartitionMismatchError):
            await order_repository.create_batch([Order(id="o1"), Order(id="o2")])

    @pytest.mark.asyncio
    async def test_batch_size_limit(self, invoice_repository, provider):
        with pytest.raises(BatchSizeExceededError):
            await invoice_repository.create_batch(invoices("c1", 6))

        assert provider.documents("invoices") == []

    @pytest.mark.asyncio
    async def test_partition_checked_before_size(self, invoice_repository):
        with pytest.raises(PartitionMismatchError):
            await invoice_repository.create_batch(invoices("c1", 5) + invoices("c2", 1))

    @pytest.mark.asyncio
    async def test_failed_item_rolls_back_the_batch(self, invoice_repository, provider):
        await invoice_repository.create(Invoice(id="c1-1", customer_id="c1", number="existing"))

        with pytest.raises(EntityAlreadyExistsError):
            await invoice_repository.create_batch(invoices("c1", 3))

        assert [document["id"] for document in provider.documents("invoices")] == ["c1-1"]

    @pytest.mark.asyncio
    async def test_empty_batch(self, invoice_repository):
        assert await invoice_repository.create_batch([]) == []


class TestUpdateAndDeleteBatch:
    """Test update_batch and delete_batch."""

    @pytest.mark.asyncio
    async def test_update_batch(self, invoice_repository):
        created = await invoice_repository.create_batch(invoices("c1", 2))

        updated = await invoice_repository.update_batch(
            [invoice.model_copy(update={"amount": 10}) for invoice in created]
        )

        assert [invoice.amount for invoice in updated] == [10, 10]
        assert all(new.etag != old.etag for new, old in zip(updated, created))

    @pytest.mark.asyncio
    async def test_stale_item_fails_the_whole_batch(self, invoice_repository):
        created = await invoice_repository.create_batch(invoices("c1", 2))
        await invoice_repository.update(created[1].model_copy(update={"amount": 1}))

        with pytest.raises(ConcurrencyConflictError):
            await invoice_repository.update_batch(
                [invoice.model_copy(update={"amount": 99}) for invoice in created]
            )

        first = await invoice_repository.get("c1-0", partition_key="c1")
        second = await invoice_repository.get("c1-1", partition_key="c1")
        assert (first.amount, second.amount) == (0, 1)

    @pytest.mark.asyncio
    async def test_cross_partition_update_leaves_state(self, invoice_repository):
        first = await invoice_repository.create(Invoice(id="a", customer_id="c1", number="1"))
        second = await invoice_repository.create(Invoice(id="b", customer_id="c2", number="1"))

        with pytest.raises(PartitionMismatchError):
            await invoice_repository.update_batch([
                first.model_copy(update={"amount": 5}),
                second.model_copy(update={"amount": 5}),
            ])

        assert (await invoice_repository.get("a", partition_key="c1")).amount == 0

    @pytest.mark.asyncio
    async def test_hard_delete_batch(self, invoice_repository, provider):
        created = await invoice_repository.create_batch(invoices("c1", 3))

        await invoice_repository.delete_batch(created)

        assert provider.documents("invoices") == []

    @pytest.mark.asyncio
    async def test_soft_delete_batch_unsupported(self, invoice_repository):
        with pytest.raises(UnsupportedCapabilityError):
            await invoice_repository.delete_batch(invoices("c1", 1), soft_delete=True)


class TestSoftDeleteAndRestoreBatch:
    """Test soft delete and restore batches."""

    @pytest.fixture
    def tasks(self):
        return [Task(id=f"t{i}", project_id="p1", title=f"Task {i}") for i in range(3)]

    @pytest.mark.asyncio
    async def test_soft_delete_batch(self, task_repository, tasks):
        created = await task_repository.create_batch(tasks)

        deleted = await task_repository.delete_batch(created[:2])

        assert all(task.is_deleted and task.deleted_by == "alice" for task in deleted)
        assert await task_repository.count() == 1
        assert await task_repository.count(include_deleted=True) == 3

    @pytest.mark.asyncio
    async def test_soft_delete_batch_skips_deleted_items(self, task_repository, tasks):
        created = await task_repository.create_batch(tasks)
        deleted = await task_repository.delete_batch(created[:1])

        again = await task_repository.delete_batch(deleted + created[1:2])

        assert again[0].etag == deleted[0].etag
        assert again[1].is_deleted is True

    @pytest.mark.asyncio
    async def test_restore_batch_reports_each_item(self, task_repository, tasks):
        created = await task_repository.create_batch(tasks)
        deleted = await task_repository.delete_batch(created[:2])

        results = await task_repository.restore_batch(deleted + created[2:])

        assert results == [("t0", True), ("t1", True), ("t2", False)]
        restored = await task_repository.get("t0", partition_key="p1")
        assert restored.is_deleted is False
        assert restored.restore_count == 1

    @pytest.mark.asyncio
    async def test_restore_batch_unsupported(self, invoice_repository):
        with pytest.raises(UnsupportedCapabilityError):
            await invoice_repository.restore_batch(invoices("c1", 1))


class TestBatchOutcomes:
    """Test providers reporting per-item failures."""

    @pytest.mark.asyncio
    async def test_failed_outcomes_raise(self, settings, audit_context):
        provider = MagicMock()
        provider.setup_container = AsyncMock()
        provider.execute_batch = AsyncMock(return_value=[
            BatchItemOutcome(id="c1-0", succeeded=True, document={"id": "c1-0"}),
            BatchItemOutcome(id="c1-1", succeeded=False, error="conflict"),
        ])
        repository = DocumentRepository(Invoice, provider, settings, audit_context)

        with pytest.raises(BatchOperationError) as exc_info:
            await repository.create_batch(invoices("c1", 2))

        assert len(exc_info.value.outcomes) == 2
        operations = provider.execute_batch.call_args[0][2]
        assert [operation.operation_type for operation in operations] == [BatchOperationType.CREATE] * 2
        assert provider.execute_batch.call_args[0][1] == "c1"
