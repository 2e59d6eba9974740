"""Patch operation value types."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class PatchOperationType(str, Enum):
    """Partial-update operation kinds, named after their document-patch verbs."""
    ADD = "add"
    SET = "set"
    REPLACE = "replace"
    REMOVE = "remove"
    INCREMENT = "incr"


@dataclass(frozen=True)
class PatchOperation:
    """One step of a partial update; ``path`` is always a normalised JSON pointer."""

    operation_type: PatchOperationType
    path: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire form: ``{"op": ..., "path": ..., "value": ...}``."""
        data: Dict[str, Any] = {"op": self.operation_type.value, "path": self.path}
        if self.operation_type is not PatchOperationType.REMOVE:
            data["value"] = self.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PatchOperation":
        return cls(
            operation_type=PatchOperationType(data["op"]),
            path=data["path"],
            value=data.get("value"),
        )
