"""Reference patch applier used by the bundled providers.

Application is all-or-nothing: operations run against a deep copy and the
copy is returned only when every operation succeeded.
"""

import copy
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from ...core.exceptions import InvalidPatchPathError
from .entities.operations import PatchOperation, PatchOperationType
from .paths import APPEND_SEGMENT, is_array_index, is_within, path_segments

PROVIDER_MANAGED_PATHS = ("/id", "/_etag", "/_ts")


def _parent(document: Dict[str, Any], operation: PatchOperation) -> Any:
    segments = path_segments(operation.path)
    current: Any = document
    for segment in segments[:-1]:
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and is_array_index(segment) and int(segment) < len(current):
            current = current[int(segment)]
        else:
            raise InvalidPatchPathError(operation.path, f"parent segment '{segment}' does not exist")
    if not isinstance(current, (dict, list)):
        raise InvalidPatchPathError(operation.path, "parent is not an object or array")
    return current


def _index(operation: PatchOperation, segment: str, upper: int) -> int:
    if not is_array_index(segment):
        raise InvalidPatchPathError(operation.path, f"'{segment}' is not an array index")
    index = int(segment)
    if index > upper:
        raise InvalidPatchPathError(operation.path, f"index {index} is out of range")
    return index


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _apply_to_list(target: List[Any], segment: str, operation: PatchOperation) -> None:
    kind = operation.operation_type
    if kind is PatchOperationType.ADD:
        if segment == APPEND_SEGMENT:
            target.append(copy.deepcopy(operation.value))
        else:
            target.insert(_index(operation, segment, len(target)), copy.deepcopy(operation.value))
    elif kind is PatchOperationType.SET:
        index = _index(operation, segment, len(target))
        if index == len(target):
            target.append(copy.deepcopy(operation.value))
        else:
            target[index] = copy.deepcopy(operation.value)
    elif kind is PatchOperationType.REPLACE:
        target[_index(operation, segment, len(target) - 1)] = copy.deepcopy(operation.value)
    elif kind is PatchOperationType.REMOVE:
        del target[_index(operation, segment, len(target) - 1)]
    else:
        index = _index(operation, segment, len(target) - 1)
        if not _is_number(target[index]):
            raise InvalidPatchPathError(operation.path, "increment target is not numeric")
        target[index] += operation.value


def _apply_to_object(target: Dict[str, Any], segment: str, operation: PatchOperation) -> None:
    kind = operation.operation_type
    if kind in (PatchOperationType.ADD, PatchOperationType.SET):
        target[segment] = copy.deepcopy(operation.value)
    elif kind is PatchOperationType.REPLACE:
        if segment not in target:
            raise InvalidPatchPathError(operation.path, "replace target does not exist")
        target[segment] = copy.deepcopy(operation.value)
    elif kind is PatchOperationType.REMOVE:
        if segment not in target:
            raise InvalidPatchPathError(operation.path, "remove target does not exist")
        del target[segment]
    else:
        current = target.get(segment)
        if segment not in target or current is None:
            target[segment] = operation.value
        elif _is_number(current):
            target[segment] = current + operation.value
        else:
            raise InvalidPatchPathError(operation.path, "increment target is not numeric")


def apply_patch(
    document: Mapping[str, Any],
    operations: Sequence[PatchOperation],
    protected_paths: Iterable[str] = PROVIDER_MANAGED_PATHS
) -> Dict[str, Any]:
    """Apply ``operations`` in order to a copy of ``document``.

    Raises InvalidPatchPathError (leaving ``document`` untouched) when any
    operation addresses a missing or out-of-range target or a protected path.
    """
    protected = tuple(protected_paths)
    patched = copy.deepcopy(dict(document))

    for operation in operations:
        for guarded in protected:
            if is_within(operation.path, guarded):
                raise InvalidPatchPathError(operation.path, "path is managed by the store and cannot be patched")

        segment = path_segments(operation.path)[-1]
        parent = _parent(patched, operation)
        if isinstance(parent, list):
            _apply_to_list(parent, segment, operation)
        else:
            _apply_to_object(parent, segment, operation)

    return patched
