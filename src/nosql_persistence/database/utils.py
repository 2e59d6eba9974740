"""
Database utility functions for the PostgreSQL provider.
"""

import json
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NAMED_PARAMETER = re.compile(r"(?<![:@\w])@([A-Za-z_][A-Za-z0-9_]*)")


def quote_identifier(name: str) -> str:
    """Quote a schema, table or index name after validating it."""
    if not name or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def process_document_record(data: Any, document_field: str = "document") -> Dict[str, Any]:
    """Turn a database record into a stored document.

    Handles asyncpg.Record or dict rows, JSONB returned as text, and rows
    from raw queries that do not select a ``document`` column (the row
    itself is used then).
    """
    if hasattr(data, "items"):
        data = dict(data)

    if document_field not in data:
        return data

    document = data[document_field]
    if isinstance(document, (str, bytes)):
        document = json.loads(document) if document else {}
    elif document is None:
        document = {}
    return dict(document)


def bind_named_parameters(query: str, parameters: Optional[Mapping[str, Any]] = None) -> Tuple[str, List[Any]]:
    """Rewrite ``@name`` placeholders into ``$n`` and return the ordered arguments.

    A name used several times maps to a single positional argument.
    """
    parameters = parameters or {}
    positions: Dict[str, int] = {}
    args: List[Any] = []

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in parameters:
            raise KeyError(f"Missing query parameter '@{name}'")
        if name not in positions:
            args.append(parameters[name])
            positions[name] = len(args)
        return f"${positions[name]}"

    return _NAMED_PARAMETER.sub(replace, query), args


def path_array(segments: Iterable[str]) -> List[str]:
    """Pointer segments as a Postgres ``text[]`` argument for ``#>``."""
    return [str(segment) for segment in segments]
