"""Provider-executable query descriptor and raw provider page."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .ordering import SortField, keyset_fields
from .predicates import MATCH_ALL, Predicate


@dataclass(frozen=True)
class QuerySpec:
    """What a provider must execute for one query or page.

    ``after`` holds the keyset values of the last item already returned; the
    provider must return only items strictly after it under ``sort_fields``.
    """

    predicate: Predicate = MATCH_ALL
    sort_fields: Tuple[SortField, ...] = ()
    limit: Optional[int] = None
    offset: int = 0
    after: Optional[Tuple[Any, ...]] = None
    include_total: bool = False

    def __post_init__(self):
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be non-negative")
        if self.offset < 0:
            raise ValueError("offset must be non-negative")
        if self.after is not None and len(self.after) != len(self.keyset):
            raise ValueError("after must hold one value per keyset field")

    @property
    def keyset(self) -> Tuple[SortField, ...]:
        """Sort fields plus the ``id`` tie-breaker."""
        return keyset_fields(self.sort_fields)


@dataclass(frozen=True)
class ProviderPage:
    """Raw provider output for a QuerySpec."""

    documents: List[Dict[str, Any]] = field(default_factory=list)
    charge: float = 0.0
    total_count: Optional[int] = None
