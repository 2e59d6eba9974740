"""Capability protocols an entity type may or may not satisfy."""

from datetime import datetime, timedelta
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Entity(Protocol):
    """Identity contract shared by every persisted entity."""

    id: str

    @property
    def entity_type(self) -> str:
        """Concrete type name, set once at construction."""
        ...

    @property
    def partition_key(self) -> str:
        """Routing key; stable for the entity's lifetime."""
        ...


@runtime_checkable
class Auditable(Protocol):
    """Creation/modification audit metadata."""

    created_on: Optional[datetime]
    created_by: Optional[str]
    created_in_time_zone: Optional[str]
    modified_by: str
    modified_in_time_zone: Optional[str]

    @property
    def modified_on(self) -> datetime:
        """Derived from the provider's raw timestamp."""
        ...


@runtime_checkable
class ConcurrencyTagged(Protocol):
    """Optimistic concurrency tag assigned by the provider."""

    @property
    def etag(self) -> str:
        ...


@runtime_checkable
class Expirable(Protocol):
    """Time-to-live capability."""

    time_to_live_seconds: Optional[int]

    @property
    def time_to_live(self) -> Optional[timedelta]:
        ...


@runtime_checkable
class SoftDeletable(Protocol):
    """Logical deletion capability."""

    is_deleted: bool
    deleted_by: str
    deleted_on: Optional[datetime]
    deleted_in_time_zone: Optional[str]


@runtime_checkable
class Restorable(SoftDeletable, Protocol):
    """Soft delete plus a restore counter."""

    restore_count: int
