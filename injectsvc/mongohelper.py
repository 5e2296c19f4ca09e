"""Conversions from hex strings to MongoDB object ids."""

from __future__ import annotations

import string
from collections.abc import Iterable

from bson import ObjectId

_HEX_DIGITS = frozenset(string.hexdigits)


class InvalidObjectIdError(ValueError):
    """Raised when a string is not a valid object id."""


def object_id_from_hex(hex_string: str) -> ObjectId:
    """Convert a 24-digit hex string to an ``ObjectId``."""
    if (
        not isinstance(hex_string, str)
        or len(hex_string) != 24
        or not _HEX_DIGITS.issuperset(hex_string)
    ):
        raise InvalidObjectIdError(
            f"the provided hex string is not a valid ObjectID {hex_string}"
        )
    return ObjectId(hex_string)


def object_ids_from_hexes(hexes: Iterable[str]) -> list[ObjectId]:
    """Convert each hex string, in order, to an ``ObjectId``."""
    return [object_id_from_hex(hex_string) for hex_string in hexes]