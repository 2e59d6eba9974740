"""Patch path normalisation.

Both addressing modes (field selectors and string paths) end up here, so a
provider only ever sees one path representation: a JSON pointer with
escaped segments, e.g. ``/lines/0/quantity`` or ``/tags/-``.
"""

import re
from typing import Tuple

from ...core.exceptions import InvalidPatchPathError
from ...utils.json_pointer import split_pointer
from .entities.operations import PatchOperationType

APPEND_SEGMENT = "-"

_BAD_ESCAPE = re.compile(r"~(?![01])")


def normalize_path(path: str, operation_type: PatchOperationType = PatchOperationType.SET) -> str:
    """Validate ``path`` and return it in pointer form.

    Accepts ``name``, ``/name``, ``a/b`` and ``/a/0``. Raises
    InvalidPatchPathError for an empty path, an empty or padded segment, a
    malformed ``~`` escape, or an append marker (``-``) that is not the last
    segment of an add.
    """
    if not isinstance(path, str):
        raise InvalidPatchPathError(path, "path must be a string")
    if not path or path == "/":
        raise InvalidPatchPathError(path, "path must address a property")

    pointer = path if path.startswith("/") else f"/{path}"
    raw_segments = pointer[1:].split("/")

    for position, segment in enumerate(raw_segments):
        if not segment:
            raise InvalidPatchPathError(path, "empty segment")
        if segment != segment.strip():
            raise InvalidPatchPathError(path, f"segment '{segment}' has surrounding whitespace")
        if _BAD_ESCAPE.search(segment):
            raise InvalidPatchPathError(path, f"segment '{segment}' has a malformed '~' escape")
        if segment == APPEND_SEGMENT:
            if position != len(raw_segments) - 1:
                raise InvalidPatchPathError(path, "'-' is only allowed as the last segment")
            if operation_type is not PatchOperationType.ADD:
                raise InvalidPatchPathError(path, "'-' (append) is only valid for add")

    return pointer


def path_segments(pointer: str) -> Tuple[str, ...]:
    """Unescaped segments of a normalised pointer."""
    return split_pointer(pointer)


def is_array_index(segment: str) -> bool:
    """Whether ``segment`` is a canonical non-negative array index."""
    return segment.isdigit() and (segment == "0" or not segment.startswith("0"))


def is_within(pointer: str, ancestor: str) -> bool:
    """Whether ``pointer`` equals ``ancestor`` or addresses something beneath it."""
    return pointer == ancestor or pointer.startswith(ancestor.rstrip("/") + "/")
