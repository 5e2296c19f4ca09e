"""The stored form of a user."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from bson import ObjectId


@dataclass
class User:
    """A user record; timestamps are Unix milliseconds."""

    name: str = ""
    created_at: int = 0
    updated_at: int = 0
    id: ObjectId | None = None

    def to_document(self) -> dict[str, Any]:
        """Return the document stored in the collection.

        ``_id`` is left out while the user has no id, so the database assigns one.
        """
        document: dict[str, Any] = {}
        if self.id is not None:
            document["_id"] = self.id
        document["name"] = self.name
        document["created_at"] = self.created_at
        document["updated_at"] = self.updated_at
        return document

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> User:
        """Build a user from a stored document; missing fields take defaults."""
        return cls(
            name=str(document.get("name") or ""),
            created_at=int(document.get("created_at") or 0),
            updated_at=int(document.get("updated_at") or 0),
            id=document.get("_id"),
        )