"""Typed field selectors.

A selector is a callable such as ``lambda order: order.lines[0].quantity``.
It is run once against a recording proxy that walks the entity's pydantic
field declarations, so the compiled path uses the same wire aliases as the
stored document (``restore_count`` becomes ``/restoreCount``).
"""

import collections.abc
import inspect
import types
from typing import Any, Callable, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel

from ...core.exceptions import InvalidPatchPathError
from ...utils.json_pointer import join_pointer

Selector = Callable[[Any], Any]


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or (hasattr(types, "UnionType") and origin is types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
        return Any
    return annotation


def _model_type(annotation: Any) -> Optional[Type[BaseModel]]:
    if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
        return annotation
    return None


class _PathRecorder:
    """Proxy recording attribute and item access as pointer segments."""

    def __init__(self, annotation: Any, segments: Tuple[str, ...] = ()):
        object.__setattr__(self, "_annotation", _unwrap_optional(annotation))
        object.__setattr__(self, "_segments", segments)

    def __getattr__(self, name: str) -> "_PathRecorder":
        annotation = self._annotation
        described = ".".join(self._segments) or "entity"
        if name.startswith("_"):
            raise InvalidPatchPathError(name, f"'{name}' is not addressable")

        model = _model_type(annotation)
        if model is not None:
            info = model.model_fields.get(name)
            if info is None:
                raise InvalidPatchPathError(name, f"'{name}' is not a field of {model.__name__}")
            return _PathRecorder(info.annotation, self._segments + (info.alias or name,))

        if annotation is Any:
            return _PathRecorder(Any, self._segments + (name,))

        raise InvalidPatchPathError(name, f"cannot select '{name}' on {described}")

    def __getitem__(self, key: Any) -> "_PathRecorder":
        annotation = self._annotation
        origin = get_origin(annotation)
        args = get_args(annotation)

        if isinstance(key, bool) or not isinstance(key, (int, str)):
            raise InvalidPatchPathError(key, "index must be an int or a string key")

        if isinstance(key, int):
            if key < 0:
                raise InvalidPatchPathError(key, "negative array indices are not supported")
            if annotation is Any:
                element: Any = Any
            elif origin is not None and inspect.isclass(origin) and issubclass(origin, collections.abc.Sequence):
                element = args[0] if args else Any
            else:
                raise InvalidPatchPathError(key, "index access on a non-array field")
            return _PathRecorder(element, self._segments + (str(key),))

        if annotation is Any:
            value: Any = Any
        elif origin is not None and inspect.isclass(origin) and issubclass(origin, collections.abc.Mapping):
            value = args[1] if len(args) == 2 else Any
        else:
            raise InvalidPatchPathError(key, "key access on a non-mapping field")
        return _PathRecorder(value, self._segments + (key,))

    def __setattr__(self, name: str, value: Any) -> None:
        raise InvalidPatchPathError(name, "selectors must not assign")


def compile_selector(entity_type: Optional[Type[BaseModel]], selector: Selector) -> str:
    """Compile ``selector`` into a JSON pointer over ``entity_type``'s document."""
    result = selector(_PathRecorder(entity_type if entity_type is not None else Any))
    if not isinstance(result, _PathRecorder) or not result._segments:
        raise InvalidPatchPathError(
            getattr(selector, "__name__", repr(selector)),
            "selector must return a field of the entity",
        )
    return join_pointer(result._segments)
