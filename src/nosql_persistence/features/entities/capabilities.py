"""Capability descriptors resolved from an entity type's declared fields.

Capabilities are checked on the type, before any I/O, so operations such as
restore fail fast on entity types that cannot support them.
"""

from enum import Enum
from functools import lru_cache
from typing import Dict, FrozenSet, Type, Union

from ...core.exceptions import UnsupportedCapabilityError


class Capability(str, Enum):
    """Optional entity capabilities."""
    AUDIT = "auditable"
    CONCURRENCY_TAG = "concurrency_tag"
    TIME_TO_LIVE = "time_to_live"
    SOFT_DELETE = "soft_delete"
    RESTORE = "restore"


_SOFT_DELETE_FIELDS = frozenset({"is_deleted", "deleted_by", "deleted_on", "deleted_in_time_zone"})

_REQUIRED_FIELDS: Dict[Capability, FrozenSet[str]] = {
    Capability.AUDIT: frozenset({
        "created_on", "created_by", "created_in_time_zone",
        "modified_by", "modified_in_time_zone", "modified_on_raw",
    }),
    Capability.CONCURRENCY_TAG: frozenset({"etag"}),
    Capability.TIME_TO_LIVE: frozenset({"time_to_live_seconds"}),
    Capability.SOFT_DELETE: _SOFT_DELETE_FIELDS,
    Capability.RESTORE: _SOFT_DELETE_FIELDS | {"restore_count"},
}


@lru_cache(maxsize=None)
def capabilities_of(entity_type: Type) -> FrozenSet[Capability]:
    """Capabilities declared by ``entity_type``."""
    fields = set(getattr(entity_type, "model_fields", {}) or {})
    return frozenset(
        capability
        for capability, required in _REQUIRED_FIELDS.items()
        if required <= fields
    )


def supports(entity_or_type: Union[object, Type], capability: Capability) -> bool:
    """Check whether an entity (or entity type) declares ``capability``."""
    entity_type = entity_or_type if isinstance(entity_or_type, type) else type(entity_or_type)
    return capability in capabilities_of(entity_type)


def require_capability(entity_type: Type, capability: Capability, operation: str) -> None:
    """Raise UnsupportedCapabilityError unless ``entity_type`` supports ``capability``."""
    if not supports(entity_type, capability):
        raise UnsupportedCapabilityError(entity_type.__name__, capability.value, operation)
