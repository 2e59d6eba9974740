"""Sort specification and keyset ordering helpers."""

from dataclasses import dataclass
from enum import Enum
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple

from ...utils.json_pointer import MISSING, resolve_pointer
from .predicates import to_document_path

ID_PATH = "/id"


class SortOrder(str, Enum):
    """Sort order enumeration."""
    ASC = "asc"
    DESC = "desc"

    def to_sql(self) -> str:
        """Convert to SQL ORDER BY keyword."""
        return "ASC" if self == SortOrder.ASC else "DESC"


@dataclass(frozen=True)
class SortField:
    """Sort field specification; ``field`` accepts python or pointer notation."""

    field: str
    order: SortOrder = SortOrder.ASC

    def __post_init__(self):
        if not self.field or not self.field.strip("/"):
            raise ValueError(f"Invalid sort field: {self.field!r}")
        if not isinstance(self.order, SortOrder):
            object.__setattr__(self, "order", SortOrder(self.order))

    @property
    def path(self) -> str:
        return to_document_path(self.field)

    @property
    def signature(self) -> str:
        return f"{self.path}:{self.order.value}"


DEFAULT_SORT: Tuple[SortField, ...] = (SortField("id"),)


def keyset_fields(sort_fields: Sequence[SortField]) -> Tuple[SortField, ...]:
    """Sort fields with ``id`` appended as tie-breaker so the order is total."""
    fields = tuple(sort_fields) or DEFAULT_SORT
    if fields[-1].path != ID_PATH:
        fields += (SortField("id", fields[-1].order),)
    return fields


def sort_signature(sort_fields: Sequence[SortField]) -> str:
    return ",".join(sort_field.signature for sort_field in sort_fields)


def keyset_values(document: Mapping[str, Any], sort_fields: Sequence[SortField]) -> Tuple[Any, ...]:
    """Values of ``document`` at each sort path (missing becomes None)."""
    values = []
    for sort_field in sort_fields:
        value = resolve_pointer(document, sort_field.path)
        values.append(None if value is MISSING else value)
    return tuple(values)


_TYPE_RANK: Dict[type, int] = {bool: 1, int: 2, float: 2, str: 3}


def compare_values(left: Any, right: Any) -> int:
    """Total order over JSON values: None first, then bool, number, string, other."""
    if left is None or right is None:
        return (left is not None) - (right is not None)
    left_rank = _TYPE_RANK.get(type(left), 4)
    right_rank = _TYPE_RANK.get(type(right), 4)
    if left_rank != right_rank:
        return -1 if left_rank < right_rank else 1
    if left_rank == 4:
        left, right = repr(left), repr(right)
    return (left > right) - (left < right)


def compare_keys(left: Sequence[Any], right: Sequence[Any], sort_fields: Sequence[SortField]) -> int:
    """Compare two keyset tuples under ``sort_fields``."""
    for left_value, right_value, sort_field in zip(left, right, sort_fields):
        result = compare_values(left_value, right_value)
        if result:
            return result if sort_field.order is SortOrder.ASC else -result
    return 0


def sort_documents(
    documents: List[Mapping[str, Any]],
    sort_fields: Sequence[SortField]
) -> List[Mapping[str, Any]]:
    """Return ``documents`` sorted by ``sort_fields``."""
    key: Callable[[Mapping[str, Any]], Any] = cmp_to_key(
        lambda a, b: compare_keys(keyset_values(a, sort_fields), keyset_values(b, sort_fields), sort_fields)
    )
    return sorted(documents, key=key)
