"""Opaque keyset cursor tokens.

A token encodes the keyset values of the last item returned plus a
signature of the sort it was produced under, as URL-safe base64 JSON
without padding. Position is relative to the sort key, never an offset.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Tuple

from ...core.exceptions import InvalidCursorError


@dataclass(frozen=True)
class CursorToken:
    """Decoded cursor: keyset values and the sort signature."""

    values: Tuple[Any, ...]
    signature: str

    def encode(self) -> str:
        """Encode cursor data to a base64 string."""
        json_str = json.dumps(
            {"k": list(self.values), "s": self.signature},
            separators=(",", ":"),
            sort_keys=True,
        )
        return base64.urlsafe_b64encode(json_str.encode()).decode().rstrip("=")

    @classmethod
    def decode(cls, cursor: str, expected_signature: str) -> "CursorToken":
        """Decode ``cursor`` and check it was issued for ``expected_signature``."""
        if not cursor:
            raise InvalidCursorError("empty cursor")

        padding = 4 - (len(cursor) % 4)
        if padding != 4:
            cursor += "=" * padding

        try:
            json_str = base64.urlsafe_b64decode(cursor.encode()).decode()
            data = json.loads(json_str)
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise InvalidCursorError(f"malformed token ({e})") from e

        if not isinstance(data, dict) or not isinstance(data.get("k"), list) or not isinstance(data.get("s"), str):
            raise InvalidCursorError("unexpected token structure")
        if data["s"] != expected_signature:
            raise InvalidCursorError("token was issued for a different sort order")

        return cls(values=tuple(data["k"]), signature=data["s"])
