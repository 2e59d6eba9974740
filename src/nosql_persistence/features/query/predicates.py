"""Provider-agnostic predicate model.

The query language belongs to the provider. The core only needs a small,
inspectable tree so that it can conjunct "not soft-deleted" onto a caller's
filter and hand the result to any provider. Paths are JSON pointers over the
stored document (camelCase keys).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from pydantic.alias_generators import to_camel

from ...utils.json_pointer import MISSING, join_pointer, resolve_pointer

SOFT_DELETE_PATH = "/isDeleted"


class Operator(str, Enum):
    """Comparison operators understood by every provider."""
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    CONTAINS = "contains"
    ILIKE = "ilike"
    EXISTS = "exists"


class Predicate(ABC):
    """Boolean expression over a stored document."""

    @abstractmethod
    def matches(self, document: Mapping[str, Any]) -> bool:
        """Evaluate against a document (used by in-process providers)."""

    def __and__(self, other: "Predicate") -> "Predicate":
        return and_(self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return Or((self, other))

    def __invert__(self) -> "Predicate":
        return Not(self)


@dataclass(frozen=True)
class MatchAll(Predicate):
    """Matches every document."""

    def matches(self, document: Mapping[str, Any]) -> bool:
        return True


MATCH_ALL = MatchAll()


def _compare(left: Any, right: Any, operator: Operator) -> bool:
    if left is None or right is None or isinstance(left, bool) != isinstance(right, bool):
        return False
    try:
        if operator is Operator.GT:
            return left > right
        if operator is Operator.GTE:
            return left >= right
        if operator is Operator.LT:
            return left < right
        return left <= right
    except TypeError:
        return False


@dataclass(frozen=True)
class FieldCondition(Predicate):
    """Single comparison against the value at ``path``."""

    path: str
    operator: Operator
    value: Any = None

    def matches(self, document: Mapping[str, Any]) -> bool:
        current = resolve_pointer(document, self.path)
        found = current is not MISSING

        if self.operator is Operator.EXISTS:
            return found == bool(self.value)
        if self.operator is Operator.NE:
            return not found or current != self.value
        if not found:
            return False
        if self.operator is Operator.EQ:
            return current == self.value
        if self.operator is Operator.IN:
            return current in self.value
        if self.operator is Operator.CONTAINS:
            if isinstance(current, (list, str)):
                return self.value in current
            return False
        if self.operator is Operator.ILIKE:
            return isinstance(current, str) and str(self.value).lower() in current.lower()
        return _compare(current, self.value, self.operator)


@dataclass(frozen=True)
class And(Predicate):
    operands: Tuple[Predicate, ...]

    def matches(self, document: Mapping[str, Any]) -> bool:
        return all(operand.matches(document) for operand in self.operands)


@dataclass(frozen=True)
class Or(Predicate):
    operands: Tuple[Predicate, ...]

    def matches(self, document: Mapping[str, Any]) -> bool:
        return any(operand.matches(document) for operand in self.operands)


@dataclass(frozen=True)
class Not(Predicate):
    operand: Predicate

    def matches(self, document: Mapping[str, Any]) -> bool:
        return not self.operand.matches(document)


def to_document_path(name: str) -> str:
    """Turn ``customer.first_name`` or ``/customer/firstName`` into a pointer."""
    if name.startswith("/"):
        return name
    return join_pointer(to_camel(segment) for segment in name.split("."))


class FieldRef:
    """Fluent builder for conditions on one document field."""

    def __init__(self, name: str):
        self.path = to_document_path(name)

    def eq(self, value: Any) -> FieldCondition:
        return FieldCondition(self.path, Operator.EQ, value)

    def ne(self, value: Any) -> FieldCondition:
        return FieldCondition(self.path, Operator.NE, value)

    def gt(self, value: Any) -> FieldCondition:
        return FieldCondition(self.path, Operator.GT, value)

    def gte(self, value: Any) -> FieldCondition:
        return FieldCondition(self.path, Operator.GTE, value)

    def lt(self, value: Any) -> FieldCondition:
        return FieldCondition(self.path, Operator.LT, value)

    def lte(self, value: Any) -> FieldCondition:
        return FieldCondition(self.path, Operator.LTE, value)

    def is_in(self, values: Any) -> FieldCondition:
        return FieldCondition(self.path, Operator.IN, tuple(values))

    def contains(self, value: Any) -> FieldCondition:
        return FieldCondition(self.path, Operator.CONTAINS, value)

    def ilike(self, value: str) -> FieldCondition:
        return FieldCondition(self.path, Operator.ILIKE, value)

    def exists(self, present: bool = True) -> FieldCondition:
        return FieldCondition(self.path, Operator.EXISTS, present)


def field(name: str) -> FieldRef:
    """Start a condition on ``name`` (python or pointer notation)."""
    return FieldRef(name)


_SUFFIXES = {
    "__ilike": Operator.ILIKE,
    "__contains": Operator.CONTAINS,
    "__exists": Operator.EXISTS,
    "__in": Operator.IN,
    "__gte": Operator.GTE,
    "__lte": Operator.LTE,
    "__gt": Operator.GT,
    "__lt": Operator.LT,
    "__ne": Operator.NE,
}


def where(**filters: Any) -> Predicate:
    """Build a conjunction from keyword filters.

    Supports the ``field__op`` suffixes ``ilike, contains, exists, in, gte,
    lte, gt, lt, ne``; a bare name means equality. ``None`` values are skipped.
    """
    conditions = []
    for name, value in filters.items():
        if value is None:
            continue

        operator = Operator.EQ
        for suffix, suffix_operator in _SUFFIXES.items():
            if name.endswith(suffix):
                name = name[:-len(suffix)]
                operator = suffix_operator
                break

        if operator is Operator.IN:
            value = tuple(value)
        conditions.append(FieldCondition(to_document_path(name), operator, value))

    return and_(*conditions)


def and_(*predicates: Optional[Predicate]) -> Predicate:
    """Conjunction that drops ``None``/MatchAll operands and flattens nesting."""
    operands: Tuple[Predicate, ...] = ()
    for predicate in predicates:
        if predicate is None or isinstance(predicate, MatchAll):
            continue
        if isinstance(predicate, And):
            operands += predicate.operands
        else:
            operands += (predicate,)

    if not operands:
        return MATCH_ALL
    if len(operands) == 1:
        return operands[0]
    return And(operands)


def not_deleted() -> Predicate:
    """Matches documents that are not soft deleted (flag absent or false)."""
    return FieldCondition(SOFT_DELETE_PATH, Operator.NE, True)


def scope_deleted(predicate: Optional[Predicate], include_deleted: bool) -> Predicate:
    """Apply the implicit soft-delete filter unless ``include_deleted``."""
    if include_deleted:
        return predicate or MATCH_ALL
    return and_(predicate, not_deleted())
