"""Patch entities."""

from .operations import PatchOperation, PatchOperationType

__all__ = [
    "PatchOperation",
    "PatchOperationType",
]
