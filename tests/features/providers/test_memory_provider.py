"""Tests for the in-memory document provider."""

import pytest

from nosql_persistence.core.exceptions import (
    ConcurrencyConflictError,
    EntityNotFoundError,
    PartitionMismatchError,
)
from nosql_persistence.features.entities import ContainerSettings
from nosql_persistence.features.patch import PatchOperation, PatchOperationType
from nosql_persistence.features.providers import InMemoryDocumentProvider
from nosql_persistence.features.query import QuerySpec, SortField, field
from nosql_persistence.features.repository import BatchOperation, BatchOperationType


class TestInMemoryDocumentProvider:
    """Test provider primitives directly."""

    @pytest.fixture
    def container(self):
        return ContainerSettings(name="events", partition_key_path="/tenant")

    @pytest.fixture
    def provider(self):
        return InMemoryDocumentProvider(clock=lambda: 500)

    @pytest.mark.asyncio
    async def test_writes_stamp_etag_and_timestamp(self, provider, container):
        first = await provider.create(container, {"id": "e1", "tenant": "t1"})
        second = await provider.replace(container, {"id": "e1", "tenant": "t1", "v": 2}, first.etag)

        assert first.timestamp == 500
        assert first.document["_etag"] == first.etag
        assert second.etag != first.etag
        assert second.charge > 0

    @pytest.mark.asyncio
    async def test_reads_are_partition_scoped(self, provider, container):
        await provider.create(container, {"id": "e1", "tenant": "t1"})

        assert await provider.read(container, "e1", "t1") is not None
        assert await provider.read(container, "e1", "t2") is None

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self, provider, container):
        await provider.create(container, {"id": "e1", "tenant": "t1", "tags": []})

        document = await provider.read(container, "e1", "t1")
        document["tags"].append("x")

        assert (await provider.read(container, "e1", "t1"))["tags"] == []

    @pytest.mark.asyncio
    async def test_patch_checks_etag(self, provider, container):
        created = await provider.create(container, {"id": "e1", "tenant": "t1", "n": 1})
        operations = [PatchOperation(PatchOperationType.INCREMENT, "/n", 1)]

        await provider.patch(container, "e1", "t1", operations, created.etag)
        with pytest.raises(ConcurrencyConflictError):
            await provider.patch(container, "e1", "t1", operations, created.etag)

        assert (await provider.read(container, "e1", "t1"))["n"] == 2

    @pytest.mark.asyncio
    async def test_delete_missing(self, provider, container):
        with pytest.raises(EntityNotFoundError):
            await provider.delete(container, "missing", "t1")

    @pytest.mark.asyncio
    async def test_query_sorts_filters_and_counts(self, provider, container):
        for i, tenant in enumerate(["t1", "t2", "t1", "t2"]):
            await provider.create(container, {"id": f"e{i}", "tenant": tenant, "rank": 3 - i})

        page = await provider.query(container, QuerySpec(
            predicate=field("tenant").eq("t1"),
            sort_fields=(SortField("rank"),),
            include_total=True,
        ))

        assert [document["id"] for document in page.documents] == ["e2", "e0"]
        assert page.total_count == 2
        assert await provider.count(container, field("rank").gte(2)) == 2

    @pytest.mark.asyncio
    async def test_query_after_keyset(self, provider, container):
        for i in range(4):
            await provider.create(container, {"id": f"e{i}", "tenant": "t1"})

        page = await provider.query(container, QuerySpec(after=("e1",), limit=1))

        assert [document["id"] for document in page.documents] == ["e2"]

    @pytest.mark.asyncio
    async def test_raw_query_handler(self, container):
        provider = InMemoryDocumentProvider(
            raw_query_handler=lambda documents, query, parameters: [d for d in documents if d["id"] == parameters["id"]]
        )
        await provider.create(container, {"id": "e1", "tenant": "t1"})
        await provider.create(container, {"id": "e2", "tenant": "t1"})

        page = await provider.execute_raw(container, "ignored", {"id": "e2"})

        assert [document["id"] for document in page.documents] == ["e2"]

    @pytest.mark.asyncio
    async def test_raw_query_must_be_understood(self, provider, container):
        with pytest.raises(TypeError):
            await provider.execute_raw(container, "SELECT 1")

    @pytest.mark.asyncio
    async def test_batch_rejects_foreign_partition_documents(self, provider, container):
        operations = [
            BatchOperation(BatchOperationType.CREATE, "e1", document={"id": "e1", "tenant": "t1"}),
            BatchOperation(BatchOperationType.CREATE, "e2", document={"id": "e2", "tenant": "t2"}),
        ]

        with pytest.raises(PartitionMismatchError):
            await provider.execute_batch(container, "t1", operations)

        assert provider.documents("events") == []

    @pytest.mark.asyncio
    async def test_batch_mixes_operation_types(self, provider, container):
        await provider.create(container, {"id": "e1", "tenant": "t1", "n": 1})
        await provider.create(container, {"id": "e2", "tenant": "t1"})

        outcomes = await provider.execute_batch(container, "t1", [
            BatchOperation(BatchOperationType.CREATE, "e3", document={"id": "e3", "tenant": "t1"}),
            BatchOperation(
                BatchOperationType.PATCH, "e1", operations=(PatchOperation(PatchOperationType.INCREMENT, "/n", 4),)
            ),
            BatchOperation(BatchOperationType.DELETE, "e2"),
        ])

        assert [outcome.succeeded for outcome in outcomes] == [True, True, True]
        assert outcomes[1].document["n"] == 5
        assert outcomes[2].document is None
        assert sorted(document["id"] for document in provider.documents("events")) == ["e1", "e3"]
