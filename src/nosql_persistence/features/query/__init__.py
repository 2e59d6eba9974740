"""Provider-agnostic query model: predicates, ordering and query descriptors."""

from .predicates import (
    Operator,
    Predicate,
    MatchAll,
    MATCH_ALL,
    FieldCondition,
    And,
    Or,
    Not,
    FieldRef,
    field,
    where,
    and_,
    not_deleted,
    scope_deleted,
    to_document_path,
    SOFT_DELETE_PATH,
)
from .ordering import (
    SortOrder,
    SortField,
    DEFAULT_SORT,
    ID_PATH,
    keyset_fields,
    keyset_values,
    sort_signature,
    compare_values,
    compare_keys,
    sort_documents,
)
from .spec import QuerySpec, ProviderPage

__all__ = [
    # Predicates
    "Operator",
    "Predicate",
    "MatchAll",
    "MATCH_ALL",
    "FieldCondition",
    "And",
    "Or",
    "Not",
    "FieldRef",
    "field",
    "where",
    "and_",
    "not_deleted",
    "scope_deleted",
    "to_document_path",
    "SOFT_DELETE_PATH",

    # Ordering
    "SortOrder",
    "SortField",
    "DEFAULT_SORT",
    "ID_PATH",
    "keyset_fields",
    "keyset_values",
    "sort_signature",
    "compare_values",
    "compare_keys",
    "sort_documents",

    # Descriptors
    "QuerySpec",
    "ProviderPage",
]
