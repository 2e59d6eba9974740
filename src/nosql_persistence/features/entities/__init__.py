"""Entity model: capability protocols, pydantic base models and container metadata."""

from .models import (
    WireModel,
    BaseEntity,
    AuditableMixin,
    EtagMixin,
    TimeToLiveMixin,
    SoftDeleteMixin,
    RestorableMixin,
    AuditableEntity,
    EtagEntity,
    TimeToLiveEntity,
    DocumentEntity,
    SoftDeleteEntity,
)
from .protocols import (
    Entity,
    Auditable,
    ConcurrencyTagged,
    Expirable,
    SoftDeletable,
    Restorable,
)
from .capabilities import (
    Capability,
    capabilities_of,
    supports,
    require_capability,
)
from .metadata import (
    ContainerSettings,
    UniqueKey,
    container,
    unique_key,
    get_container_settings,
    DEFAULT_PARTITION_KEY_PATH,
    DEFAULT_UNIQUE_KEY_NAME,
)

__all__ = [
    # Models
    "WireModel",
    "BaseEntity",
    "AuditableMixin",
    "EtagMixin",
    "TimeToLiveMixin",
    "SoftDeleteMixin",
    "RestorableMixin",
    "AuditableEntity",
    "EtagEntity",
    "TimeToLiveEntity",
    "DocumentEntity",
    "SoftDeleteEntity",

    # Protocols
    "Entity",
    "Auditable",
    "ConcurrencyTagged",
    "Expirable",
    "SoftDeletable",
    "Restorable",

    # Capabilities
    "Capability",
    "capabilities_of",
    "supports",
    "require_capability",

    # Container metadata
    "ContainerSettings",
    "UniqueKey",
    "container",
    "unique_key",
    "get_container_settings",
    "DEFAULT_PARTITION_KEY_PATH",
    "DEFAULT_UNIQUE_KEY_NAME",
]
