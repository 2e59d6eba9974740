"""Pydantic entity base models.

Each capability is a small mixin; concrete entities compose the mixins they
need. Documents use camelCase keys except the provider-owned wire fields
``_etag``, ``_ts`` and ``ttl``.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ...utils.datetime import timestamp_to_utc
from ...utils.json_pointer import MISSING, resolve_pointer
from .metadata import DEFAULT_PARTITION_KEY_PATH, get_container_settings

TEntity = TypeVar("TEntity", bound="BaseEntity")


class WireModel(BaseModel):
    """Base schema for documents and their nested objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        from_attributes=True,
        extra="ignore",
    )


class BaseEntity(WireModel):
    """Identity unit persisted and retrieved by a repository."""

    id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    entity_type: str = Field(default="", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _default_entity_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and not (data.get("entityType") or data.get("entity_type")):
            data = {key: value for key, value in data.items() if key != "entity_type"}
            data["entityType"] = cls.__name__
        return data

    @property
    def partition_key(self) -> str:
        """Partition key value, derived without I/O."""
        return self.get_partition_key_value()

    def get_partition_key_value(self) -> str:
        """Project the declared partition-key path; override for custom keys."""
        path = get_container_settings(type(self)).partition_key_path
        if path == DEFAULT_PARTITION_KEY_PATH:
            return self.id
        value = resolve_pointer(self.to_document(), path)
        return "" if value is MISSING or value is None else str(value)

    def to_document(self) -> Dict[str, Any]:
        """Serialise to the stored document form."""
        document = self.model_dump(mode="json", by_alias=True)
        if document.get("ttl") is None:
            document.pop("ttl", None)
        return document

    @classmethod
    def from_document(cls: Type[TEntity], document: Mapping[str, Any]) -> TEntity:
        """Validate a stored document back into this type."""
        return cls.model_validate(dict(document))


class AuditableMixin(WireModel):
    """Creation and modification audit fields."""

    created_on: Optional[datetime] = None
    created_by: Optional[str] = None
    created_in_time_zone: Optional[str] = None
    modified_by: str = ""
    modified_in_time_zone: Optional[str] = None
    modified_on_raw: int = Field(default=0, alias="_ts", frozen=True)

    @property
    def modified_on(self) -> datetime:
        """Last modification time, derived from the provider's ``_ts``."""
        return timestamp_to_utc(self.modified_on_raw)


class EtagMixin(WireModel):
    """Opaque concurrency tag assigned by the provider on every write."""

    etag: str = Field(default="", alias="_etag", frozen=True)


class TimeToLiveMixin(WireModel):
    """Optional expiry, stored as whole seconds in ``ttl``."""

    time_to_live_seconds: Optional[int] = Field(default=None, alias="ttl")

    @field_validator("time_to_live_seconds", mode="before")
    @classmethod
    def _whole_seconds(cls, value: Any) -> Any:
        if isinstance(value, timedelta):
            value = value.total_seconds()
        if isinstance(value, float):
            value = int(value)
        if isinstance(value, int) and not isinstance(value, bool) and (value == 0 or value < -1):
            raise ValueError("ttl must be a positive number of seconds or -1")
        return value

    @property
    def time_to_live(self) -> Optional[timedelta]:
        if self.time_to_live_seconds is None:
            return None
        return timedelta(seconds=self.time_to_live_seconds)

    @time_to_live.setter
    def time_to_live(self, value: Optional[Union[timedelta, int, float]]) -> None:
        self.time_to_live_seconds = value


class SoftDeleteMixin(WireModel):
    """Logical deletion marker and metadata."""

    is_deleted: bool = False
    deleted_by: str = ""
    deleted_on: Optional[datetime] = None
    deleted_in_time_zone: Optional[str] = None


class RestorableMixin(SoftDeleteMixin):
    """Soft delete plus a restore counter."""

    restore_count: int = Field(default=0, ge=0)


class AuditableEntity(AuditableMixin, BaseEntity):
    """Entity with audit fields only."""


class EtagEntity(EtagMixin, BaseEntity):
    """Entity with a concurrency tag only."""


class TimeToLiveEntity(TimeToLiveMixin, BaseEntity):
    """Entity with an expiry only."""


class DocumentEntity(EtagMixin, TimeToLiveMixin, AuditableMixin, BaseEntity):
    """Entity with concurrency tag, expiry and audit fields."""


class SoftDeleteEntity(RestorableMixin, DocumentEntity):
    """DocumentEntity that can be soft deleted and restored."""
