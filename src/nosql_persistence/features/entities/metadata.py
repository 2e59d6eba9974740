"""Container metadata declared on entity types.

Container name, partition-key path and unique-key constraints are static
configuration. They are attached to a type with class decorators, read once
when a repository is built and forwarded to the provider untouched.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple, Type, TypeVar

T = TypeVar("T", bound=type)

DEFAULT_PARTITION_KEY_PATH = "/id"
DEFAULT_UNIQUE_KEY_NAME = "onlyUniqueKey"


def _normalize_property_path(path: str) -> str:
    if not path or not path.strip("/").strip():
        raise ValueError("A property path is required")
    return path if path.startswith("/") else f"/{path}"


@dataclass(frozen=True)
class UniqueKey:
    """One property path taking part in a named unique-key constraint."""

    name: str
    path: str

    def __post_init__(self):
        if not self.name:
            raise ValueError("A unique key name is required")
        object.__setattr__(self, "path", _normalize_property_path(self.path))


@dataclass(frozen=True)
class ContainerSettings:
    """Descriptive container configuration handed to providers at setup time."""

    name: str
    partition_key_path: str = DEFAULT_PARTITION_KEY_PATH
    unique_keys: Tuple[UniqueKey, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.name:
            raise ValueError("A container name is required")
        object.__setattr__(self, "partition_key_path", _normalize_property_path(self.partition_key_path))

    @property
    def unique_key_groups(self) -> Dict[str, Tuple[str, ...]]:
        """Unique-key paths grouped by constraint name (composite keys)."""
        groups: Dict[str, Tuple[str, ...]] = {}
        for unique in self.unique_keys:
            groups[unique.name] = groups.get(unique.name, ()) + (unique.path,)
        return groups


_containers: Dict[type, Tuple[str, str]] = {}
_unique_keys: Dict[type, Tuple[UniqueKey, ...]] = {}


def container(name: str, partition_key_path: str = DEFAULT_PARTITION_KEY_PATH) -> Callable[[T], T]:
    """Declare the container an entity type is stored in.

    Example:
        @container("orders", partition_key_path="/customerId")
        class Order(DocumentEntity): ...
    """
    if not name:
        raise ValueError("A container name is required")
    normalized = _normalize_property_path(partition_key_path)

    def decorator(cls: T) -> T:
        _containers[cls] = (name, normalized)
        return cls

    return decorator


def unique_key(path: str, name: str = DEFAULT_UNIQUE_KEY_NAME) -> Callable[[T], T]:
    """Declare a unique-key path; repeat with the same name for composite keys."""
    declared = UniqueKey(name=name, path=path)

    def decorator(cls: T) -> T:
        # Decorators apply bottom-up; prepend to keep source order
        _unique_keys[cls] = (declared,) + _unique_keys.get(cls, ())
        return cls

    return decorator


def get_container_settings(entity_type: Type) -> ContainerSettings:
    """Resolve container settings for ``entity_type``, honouring inheritance."""
    name: Optional[str] = None
    partition_key_path = DEFAULT_PARTITION_KEY_PATH
    for klass in entity_type.__mro__:
        if klass in _containers:
            name, partition_key_path = _containers[klass]
            break

    unique: Tuple[UniqueKey, ...] = ()
    for klass in reversed(entity_type.__mro__):
        for declared in _unique_keys.get(klass, ()):
            if declared not in unique:
                unique += (declared,)

    return ContainerSettings(
        name=name or entity_type.__name__,
        partition_key_path=partition_key_path,
        unique_keys=unique,
    )
