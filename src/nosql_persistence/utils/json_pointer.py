"""
JSON Pointer helpers shared by predicates, patches and providers.

Paths are always normalised to the ``/a/b/0`` form before they reach a
provider, whichever API produced them.
"""
from typing import Any, Iterable, Mapping, Tuple

MISSING = object()


def escape_segment(segment: str) -> str:
    """Escape one pointer segment (``~`` and ``/``)."""
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    """Reverse escape_segment."""
    return segment.replace("~1", "/").replace("~0", "~")


def join_pointer(segments: Iterable[str]) -> str:
    """Build a pointer from raw segments."""
    return "".join("/" + escape_segment(str(segment)) for segment in segments)


def split_pointer(pointer: str) -> Tuple[str, ...]:
    """Split a normalised pointer into raw segments."""
    if not pointer or pointer == "/":
        return ()
    if not pointer.startswith("/"):
        pointer = "/" + pointer
    return tuple(unescape_segment(segment) for segment in pointer[1:].split("/"))


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Return the value at ``pointer`` or ``MISSING`` when it does not exist."""
    current = document
    for segment in split_pointer(pointer):
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, list):
            if not segment.isdigit() or int(segment) >= len(current):
                return MISSING
            current = current[int(segment)]
        else:
            return MISSING
    return current
