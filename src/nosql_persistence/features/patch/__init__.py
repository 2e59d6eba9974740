"""Partial updates: operation model, path normalisation, builder and applier."""

from .entities import PatchOperation, PatchOperationType
from .paths import normalize_path, path_segments, is_array_index, APPEND_SEGMENT
from .selectors import Selector, compile_selector
from .builder import PatchOperationBuilder
from .applier import apply_patch, PROVIDER_MANAGED_PATHS

__all__ = [
    "PatchOperation",
    "PatchOperationType",
    "normalize_path",
    "path_segments",
    "is_array_index",
    "APPEND_SEGMENT",
    "Selector",
    "compile_selector",
    "PatchOperationBuilder",
    "apply_patch",
    "PROVIDER_MANAGED_PATHS",
]
