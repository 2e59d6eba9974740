"""PostgreSQL JSONB document provider.

One table per container (``id``, ``partition_key``, ``document`` jsonb,
``etag``, ``ts``). Writes that check a concurrency tag lock the row with
``SELECT ... FOR UPDATE`` inside a transaction; batches run in a single
transaction so they are atomic.
"""

import json
import logging
import time
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import uuid4

import asyncpg

from ....config.settings import PersistenceSettings, get_settings
from ....core.exceptions import (
    ConcurrencyConflictError,
    EntityAlreadyExistsError,
    EntityNotFoundError,
    PartitionMismatchError,
)
from ....database.connection import DatabaseManager
from ....database.utils import bind_named_parameters, process_document_record
from ....utils.datetime import epoch_seconds_now
from ....utils.json_pointer import MISSING, resolve_pointer
from ...entities import ContainerSettings
from ...patch import PROVIDER_MANAGED_PATHS, PatchOperation, apply_patch
from ...query import Predicate, ProviderPage, QuerySpec
from ...repository.entities import (
    BatchItemOutcome,
    BatchOperation,
    BatchOperationType,
    ProviderWriteResult,
)
from .sql import LIVE_CONDITION, build_count, build_create_table, build_select, table_name

logger = logging.getLogger(__name__)


class PostgresDocumentProvider:
    """Document provider backed by PostgreSQL JSONB tables.

    ``charge`` is reported as elapsed milliseconds for the call.
    """

    def __init__(
        self,
        database: Optional[DatabaseManager] = None,
        settings: Optional[PersistenceSettings] = None,
        stream_prefetch: int = 100
    ):
        self.settings = settings or get_settings()
        self.db = database or DatabaseManager(settings=self.settings)
        self.schema = self.settings.postgres_schema
        self.stream_prefetch = stream_prefetch

    def _table(self, container: ContainerSettings) -> str:
        return table_name(self.schema, container)

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000

    @staticmethod
    def _partition_of(container: ContainerSettings, document: Mapping[str, Any]) -> str:
        value = resolve_pointer(document, container.partition_key_path)
        return "" if value is MISSING or value is None else str(value)

    @staticmethod
    def _stamp(document: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(document)
        document["_etag"] = f'"{uuid4()}"'
        document["_ts"] = epoch_seconds_now()
        return document

    # Connection-level primitives shared by single writes and batches

    async def _locked(self, connection, container: ContainerSettings, id: str, partition_key: str):
        row = await connection.fetchrow(
            f"SELECT document FROM {self._table(container)} WHERE partition_key = $1 AND id = $2 "
            f"AND {LIVE_CONDITION} FOR UPDATE",
            partition_key,
            id,
        )
        if row is None:
            raise EntityNotFoundError(container.name, id)
        return process_document_record(row)

    async def _store(self, connection, container: ContainerSettings, document: Dict[str, Any], partition_key: str):
        try:
            await connection.execute(
                f"UPDATE {self._table(container)} SET document = $3::jsonb, etag = $4, ts = $5 "
                "WHERE partition_key = $1 AND id = $2",
                partition_key,
                document["id"],
                json.dumps(document),
                document["_etag"],
                document["_ts"],
            )
        except asyncpg.UniqueViolationError as e:
            raise EntityAlreadyExistsError(container.name, document["id"]) from e

    async def _insert(self, connection, container: ContainerSettings, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = self._stamp(document)
        try:
            await connection.execute(
                f"INSERT INTO {self._table(container)} (id, partition_key, document, etag, ts) "
                "VALUES ($1, $2, $3::jsonb, $4, $5)",
                stored["id"],
                self._partition_of(container, stored),
                json.dumps(stored),
                stored["_etag"],
                stored["_ts"],
            )
        except asyncpg.UniqueViolationError as e:
            raise EntityAlreadyExistsError(container.name, stored["id"]) from e
        return stored

    async def _replace(
        self,
        connection,
        container: ContainerSettings,
        document: Dict[str, Any],
        if_match: Optional[str]
    ) -> Dict[str, Any]:
        partition_key = self._partition_of(container, document)
        current = await self._locked(connection, container, document["id"], partition_key)
        if if_match is not None and current.get("_etag") != if_match:
            raise ConcurrencyConflictError(container.name, document["id"], if_match)
        stored = self._stamp(document)
        await self._store(connection, container, stored, partition_key)
        return stored

    async def _patch(
        self,
        connection,
        container: ContainerSettings,
        id: str,
        partition_key: str,
        operations: Sequence[PatchOperation],
        if_match: Optional[str]
    ) -> Dict[str, Any]:
        current = await self._locked(connection, container, id, partition_key)
        if if_match is not None and current.get("_etag") != if_match:
            raise ConcurrencyConflictError(container.name, id, if_match)
        patched = apply_patch(current, operations, PROVIDER_MANAGED_PATHS + (container.partition_key_path,))
        stored = self._stamp(patched)
        await self._store(connection, container, stored, partition_key)
        return stored

    async def _delete(self, connection, container: ContainerSettings, id: str, partition_key: str) -> None:
        deleted = await connection.fetchval(
            f"DELETE FROM {self._table(container)} WHERE partition_key = $1 AND id = $2 RETURNING id",
            partition_key,
            id,
        )
        if deleted is None:
            raise EntityNotFoundError(container.name, id)

    def _result(self, document: Dict[str, Any], started: float) -> ProviderWriteResult:
        return ProviderWriteResult(
            document=document,
            etag=document["_etag"],
            timestamp=document["_ts"],
            charge=self._elapsed_ms(started),
        )

    # Provider protocol

    async def setup_container(self, container: ContainerSettings) -> None:
        async with self.db.transaction() as connection:
            for statement in build_create_table(self.schema, container):
                await connection.execute(statement)
        logger.info(f"Container table {self._table(container)} ensured")

    async def read(self, container: ContainerSettings, id: str, partition_key: str) -> Optional[Dict[str, Any]]:
        row = await self.db.fetchrow(
            f"SELECT document FROM {self._table(container)} "
            f"WHERE partition_key = $1 AND id = $2 AND {LIVE_CONDITION}",
            partition_key,
            id,
        )
        return process_document_record(row) if row is not None else None

    async def read_many(
        self,
        container: ContainerSettings,
        keys: Sequence[Tuple[str, str]]
    ) -> List[Dict[str, Any]]:
        if not keys:
            return []
        rows = await self.db.fetch(
            f"SELECT t.document FROM {self._table(container)} t "
            "JOIN unnest($1::text[], $2::text[]) WITH ORDINALITY AS k(id, partition_key, position) "
            "ON t.id = k.id AND t.partition_key = k.partition_key "
            f"WHERE {LIVE_CONDITION} ORDER BY k.position",
            [id for id, _ in keys],
            [partition_key for _, partition_key in keys],
        )
        return [process_document_record(row) for row in rows]

    async def query(self, container: ContainerSettings, spec: QuerySpec) -> ProviderPage:
        started = time.perf_counter()
        sql, args = build_select(self.schema, container, spec)
        rows = await self.db.fetch(sql, *args)

        total_count = None
        if spec.include_total:
            total_count = await self.count(container, spec.predicate)

        return ProviderPage(
            documents=[process_document_record(row) for row in rows],
            charge=self._elapsed_ms(started),
            total_count=total_count,
        )

    async def count(self, container: ContainerSettings, predicate: Predicate) -> int:
        sql, args = build_count(self.schema, container, predicate)
        return await self.db.fetchval(sql, *args)

    async def execute_raw(
        self,
        container: ContainerSettings,
        query: Any,
        parameters: Optional[Mapping[str, Any]] = None
    ) -> ProviderPage:
        """Run raw SQL; ``{table}`` expands to the container table, ``@name`` binds ``parameters``."""
        started = time.perf_counter()
        sql, args = bind_named_parameters(str(query).replace("{table}", self._table(container)), parameters)
        rows = await self.db.fetch(sql, *args)
        return ProviderPage(
            documents=[process_document_record(row) for row in rows],
            charge=self._elapsed_ms(started),
        )

    async def stream(self, container: ContainerSettings, spec: QuerySpec) -> AsyncIterator[Dict[str, Any]]:
        sql, args = build_select(self.schema, container, spec)
        async with self.db.transaction() as connection:
            async for row in connection.cursor(sql, *args, prefetch=self.stream_prefetch):
                yield process_document_record(row)

    async def create(self, container: ContainerSettings, document: Dict[str, Any]) -> ProviderWriteResult:
        started = time.perf_counter()
        async with self.db.acquire() as connection:
            stored = await self._insert(connection, container, document)
        return self._result(stored, started)

    async def replace(
        self,
        container: ContainerSettings,
        document: Dict[str, Any],
        if_match: Optional[str] = None
    ) -> ProviderWriteResult:
        started = time.perf_counter()
        async with self.db.transaction() as connection:
            stored = await self._replace(connection, container, document, if_match)
        return self._result(stored, started)

    async def patch(
        self,
        container: ContainerSettings,
        id: str,
        partition_key: str,
        operations: Sequence[PatchOperation],
        if_match: Optional[str] = None
    ) -> ProviderWriteResult:
        started = time.perf_counter()
        async with self.db.transaction() as connection:
            stored = await self._patch(connection, container, id, partition_key, operations, if_match)
        return self._result(stored, started)

    async def delete(self, container: ContainerSettings, id: str, partition_key: str) -> None:
        async with self.db.acquire() as connection:
            await self._delete(connection, container, id, partition_key)

    async def execute_batch(
        self,
        container: ContainerSettings,
        partition_key: str,
        operations: Sequence[BatchOperation]
    ) -> List[BatchItemOutcome]:
        """Run every operation in one transaction; any failure rolls the whole batch back."""
        outcomes = []
        async with self.db.transaction() as connection:
            for operation in operations:
                if operation.document is not None:
                    document_partition = self._partition_of(container, operation.document)
                    if document_partition != partition_key:
                        raise PartitionMismatchError([partition_key, document_partition])

                document: Optional[Dict[str, Any]] = None
                if operation.operation_type is BatchOperationType.CREATE:
                    document = await self._insert(connection, container, operation.document)
                elif operation.operation_type is BatchOperationType.REPLACE:
                    document = await self._replace(connection, container, operation.document, operation.if_match)
                elif operation.operation_type is BatchOperationType.PATCH:
                    document = await self._patch(
                        connection, container, operation.id, partition_key, operation.operations, operation.if_match
                    )
                else:
                    await self._delete(connection, container, operation.id, partition_key)

                outcomes.append(BatchItemOutcome(id=operation.id, succeeded=True, document=document))

        logger.debug(f"Committed batch of {len(operations)} operations on {self._table(container)}")
        return outcomes
