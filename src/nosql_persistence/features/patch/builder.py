"""Patch operation builder."""

from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import TypeAdapter

from ...core.exceptions import InvalidPatchPathError
from .entities.operations import PatchOperation, PatchOperationType
from .paths import normalize_path, path_segments
from .selectors import Selector, compile_selector

T = TypeVar("T")

_json = TypeAdapter(Any)


def _to_wire(value: Any) -> Any:
    return _json.dump_python(value, mode="json", by_alias=True)


class PatchOperationBuilder(Generic[T]):
    """Accumulates an ordered list of patch operations for one entity.

    Selector methods take a lambda over the entity (``lambda o: o.status``);
    the ``*_by_path`` variants take a string path and are meant for fields
    only reachable through a shared base contract. Both produce identical
    operations. Every method returns the builder for chaining.

    A builder is a short-lived, single-owner accumulator; it performs no I/O
    and is not safe to share between tasks.
    """

    def __init__(self, entity_type: Optional[Type[T]] = None):
        self.entity_type = entity_type
        self._operations: List[PatchOperation] = []

    @property
    def operations(self) -> Tuple[PatchOperation, ...]:
        return tuple(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def _selector_path(self, selector: Selector) -> str:
        return compile_selector(self.entity_type, selector)

    def _append(self, operation_type: PatchOperationType, path: str, value: Any = None) -> "PatchOperationBuilder[T]":
        pointer = normalize_path(path, operation_type)

        if operation_type is PatchOperationType.REPLACE and len(path_segments(pointer)) > 1:
            raise InvalidPatchPathError(path, "replace supports root-level properties only")

        if operation_type is PatchOperationType.INCREMENT:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"increment value must be an int or float, got {type(value).__name__}")
        elif operation_type is not PatchOperationType.REMOVE:
            value = _to_wire(value)

        self._operations.append(PatchOperation(operation_type, pointer, value))
        return self

    # Selector addressing

    def add(self, selector: Selector, value: Any) -> "PatchOperationBuilder[T]":
        """Create or replace; on an array index, insert and shift right."""
        return self._append(PatchOperationType.ADD, self._selector_path(selector), value)

    def set(self, selector: Selector, value: Any) -> "PatchOperationBuilder[T]":
        """Create or replace; on an array index, overwrite in place."""
        return self._append(PatchOperationType.SET, self._selector_path(selector), value)

    def replace(self, selector: Selector, value: Any) -> "PatchOperationBuilder[T]":
        """Replace an existing root-level property."""
        return self._append(PatchOperationType.REPLACE, self._selector_path(selector), value)

    def remove(self, selector: Selector) -> "PatchOperationBuilder[T]":
        """Remove an existing property or array element."""
        return self._append(PatchOperationType.REMOVE, self._selector_path(selector))

    def increment(self, selector: Selector, value: Union[int, float]) -> "PatchOperationBuilder[T]":
        """Add ``value`` to a numeric field, creating it when absent."""
        return self._append(PatchOperationType.INCREMENT, self._selector_path(selector), value)

    # String-path addressing

    def add_by_path(self, path: str, value: Any) -> "PatchOperationBuilder[T]":
        return self._append(PatchOperationType.ADD, path, value)

    def set_by_path(self, path: str, value: Any) -> "PatchOperationBuilder[T]":
        return self._append(PatchOperationType.SET, path, value)

    def replace_by_path(self, path: str, value: Any) -> "PatchOperationBuilder[T]":
        return self._append(PatchOperationType.REPLACE, path, value)

    def remove_by_path(self, path: str) -> "PatchOperationBuilder[T]":
        return self._append(PatchOperationType.REMOVE, path)

    def increment_by_path(self, path: str, value: Union[int, float]) -> "PatchOperationBuilder[T]":
        return self._append(PatchOperationType.INCREMENT, path, value)

    def build(self) -> Tuple[PatchOperation, ...]:
        """Return the accumulated operations as an immutable tuple."""
        if not self._operations:
            raise ValueError("A patch needs at least one operation")
        return tuple(self._operations)
