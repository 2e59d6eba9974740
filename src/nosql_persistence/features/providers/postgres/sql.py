"""SQL rendering of query descriptors over a JSONB ``document`` column.

Every value and every document path travels as a bind parameter; only
validated identifiers are interpolated.
"""

import json
from typing import Any, List, Optional, Sequence, Tuple

from ....database.utils import path_array, quote_identifier
from ....utils.json_pointer import split_pointer
from ...entities import ContainerSettings
from ...query import (
    And,
    FieldCondition,
    MatchAll,
    Not,
    Operator,
    Or,
    Predicate,
    QuerySpec,
    SortField,
    SortOrder,
)

_COMPARISONS = {
    Operator.GT: ">",
    Operator.GTE: ">=",
    Operator.LT: "<",
    Operator.LTE: "<=",
}

LIVE_CONDITION = (
    "(NOT (document ? 'ttl') OR (document->>'ttl')::bigint < 0 "
    "OR ts + (document->>'ttl')::bigint > extract(epoch from now())::bigint)"
)


def table_name(schema: str, container: ContainerSettings) -> str:
    return f"{quote_identifier(schema)}.{quote_identifier(container.name)}"


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlBuilder:
    """Accumulates bind parameters while rendering SQL fragments."""

    def __init__(self, args: Optional[List[Any]] = None):
        self.args: List[Any] = list(args or [])

    def bind(self, value: Any) -> str:
        self.args.append(value)
        return f"${len(self.args)}"

    def bind_json(self, value: Any) -> str:
        return f"{self.bind(json.dumps(value))}::jsonb"

    def json_path(self, pointer: str) -> str:
        """JSONB value at ``pointer``; JSON null and absence both become SQL NULL."""
        path = self.bind(path_array(split_pointer(pointer)))
        return f"NULLIF(document #> {path}::text[], 'null'::jsonb)"

    def text_path(self, pointer: str) -> str:
        return f"(document #>> {self.bind(path_array(split_pointer(pointer)))}::text[])"

    def predicate(self, predicate: Predicate) -> str:
        if isinstance(predicate, MatchAll):
            return "TRUE"
        if isinstance(predicate, And):
            return "(" + " AND ".join(self.predicate(operand) for operand in predicate.operands) + ")"
        if isinstance(predicate, Or):
            return "(" + " OR ".join(self.predicate(operand) for operand in predicate.operands) + ")"
        if isinstance(predicate, Not):
            return f"(NOT COALESCE({self.predicate(predicate.operand)}, FALSE))"
        if isinstance(predicate, FieldCondition):
            return self.condition(predicate)
        raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")

    def condition(self, condition: FieldCondition) -> str:
        operator = condition.operator
        value = condition.value

        if operator is Operator.EXISTS:
            path = self.bind(path_array(split_pointer(condition.path)))
            state = "IS NOT NULL" if value else "IS NULL"
            return f"(document #> {path}::text[] {state})"

        if operator is Operator.ILIKE:
            return f"({self.text_path(condition.path)} ILIKE {self.bind('%' + _escape_like(str(value)) + '%')})"

        if operator is Operator.CONTAINS:
            target = self.json_path(condition.path)
            text = self.text_path(condition.path)
            return (
                f"((jsonb_typeof({target}) = 'array' AND {target} @> {self.bind_json([value])})"
                f" OR (jsonb_typeof({target}) = 'string' AND strpos({text}, {self.bind(str(value))}) > 0))"
            )

        target = self.json_path(condition.path)
        if operator is Operator.IN:
            values = self.bind([json.dumps(item) for item in value])
            return f"({target} = ANY({values}::jsonb[]))"
        if operator is Operator.EQ:
            if value is None:
                return f"({target} IS NULL)"
            return f"({target} = {self.bind_json(value)})"
        if operator is Operator.NE:
            if value is None:
                return f"({target} IS NOT NULL)"
            return f"({target} IS NULL OR {target} <> {self.bind_json(value)})"
        if value is None:
            return "FALSE"
        return (
            f"(jsonb_typeof({target}) = jsonb_typeof({self.bind_json(value)})"
            f" AND {target} {_COMPARISONS[operator]} {self.bind_json(value)})"
        )

    def order_by(self, keyset: Sequence[SortField]) -> str:
        clauses = []
        for sort_field in keyset:
            nulls = "NULLS FIRST" if sort_field.order is SortOrder.ASC else "NULLS LAST"
            clauses.append(f"{self.json_path(sort_field.path)} {sort_field.order.to_sql()} {nulls}")
        return "ORDER BY " + ", ".join(clauses)

    def after(self, keyset: Sequence[SortField], values: Sequence[Any]) -> str:
        """Rows strictly after ``values`` under ``keyset`` (NULLs sort lowest)."""
        alternatives = []
        for position, sort_field in enumerate(keyset):
            terms = [self._equals(field, value) for field, value in zip(keyset[:position], values[:position])]
            terms.append(self._beyond(sort_field, values[position]))
            alternatives.append("(" + " AND ".join(terms) + ")")
        return "(" + " OR ".join(alternatives) + ")"

    def _equals(self, sort_field: SortField, value: Any) -> str:
        target = self.json_path(sort_field.path)
        if value is None:
            return f"{target} IS NULL"
        return f"{target} = {self.bind_json(value)}"

    def _beyond(self, sort_field: SortField, value: Any) -> str:
        target = self.json_path(sort_field.path)
        if sort_field.order is SortOrder.ASC:
            if value is None:
                return f"{target} IS NOT NULL"
            return f"{target} > {self.bind_json(value)}"
        if value is None:
            return "FALSE"
        return f"({target} < {self.bind_json(value)} OR {target} IS NULL)"


def build_select(schema: str, container: ContainerSettings, spec: QuerySpec) -> Tuple[str, List[Any]]:
    """SELECT for a QuerySpec: filter, keyset continuation, ordering, limit and offset."""
    builder = SqlBuilder()
    conditions = [LIVE_CONDITION, builder.predicate(spec.predicate)]
    if spec.after is not None:
        conditions.append(builder.after(spec.keyset, spec.after))

    sql = (
        f"SELECT document FROM {table_name(schema, container)} "
        f"WHERE {' AND '.join(conditions)} {builder.order_by(spec.keyset)}"
    )
    if spec.limit is not None:
        sql += f" LIMIT {builder.bind(spec.limit)}"
    if spec.offset:
        sql += f" OFFSET {builder.bind(spec.offset)}"
    return sql, builder.args


def build_count(schema: str, container: ContainerSettings, predicate: Predicate) -> Tuple[str, List[Any]]:
    builder = SqlBuilder()
    sql = (
        f"SELECT count(*) FROM {table_name(schema, container)} "
        f"WHERE {LIVE_CONDITION} AND {builder.predicate(predicate)}"
    )
    return sql, builder.args


def _path_literal(path: str) -> str:
    """Quoted text[] literal for a pointer, safe inside DDL."""
    elements = ",".join(
        '"' + segment.replace("\\", "\\\\").replace('"', '\\"') + '"' for segment in split_pointer(path)
    )
    return "'{" + elements.replace("'", "''") + "}'"


def build_create_table(schema: str, container: ContainerSettings) -> List[str]:
    """DDL for a container table and its unique-key indexes."""
    table = table_name(schema, container)
    statements = [
        f"CREATE SCHEMA IF NOT EXISTS {quote_identifier(schema)}",
        f"CREATE TABLE IF NOT EXISTS {table} ("
        "id text NOT NULL, "
        "partition_key text NOT NULL, "
        "document jsonb NOT NULL, "
        "etag text NOT NULL, "
        "ts bigint NOT NULL, "
        "PRIMARY KEY (partition_key, id))",
    ]
    for name, paths in container.unique_key_groups.items():
        expressions = ", ".join(f"(document #>> {_path_literal(path)})" for path in paths)
        index = quote_identifier(f"ux_{container.name}_{name}")
        statements.append(f"CREATE UNIQUE INDEX IF NOT EXISTS {index} ON {table} (partition_key, {expressions})")
    return statements
