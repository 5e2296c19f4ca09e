"""Data access for users stored in MongoDB."""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Any

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from injectsvc.entity import User

COLLECTION_NAME = "user"

_ID = "_id"
_NAME = "name"
_UPDATED_AT = "updated_at"


class DaoError(Exception):
    """Raised when a database operation on users fails."""


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class UserDao:
    """Reads and writes users in the ``user`` collection of a database."""

    def __init__(self, database: Any) -> None:
        self.database = database
        self.collection = database[COLLECTION_NAME]

    def create(self, name: str) -> str:
        """Insert a new user and return its id as a hex string."""
        now = _now_millis()
        user = User(name=name, created_at=now, updated_at=now)
        try:
            result = self.collection.insert_one(user.to_document())
        except PyMongoError as exc:
            raise DaoError(f"insert user data failed: {exc}") from exc
        return str(result.inserted_id)

    def update(self, user_id: ObjectId, name: str) -> None:
        """Set a new name on the user and refresh its update time."""
        changes: dict[str, Any] = {_UPDATED_AT: _now_millis()}
        if name:
            changes[_NAME] = name
        try:
            self.collection.update_one({_ID: user_id}, {"$set": changes})
        except PyMongoError as exc:
            raise DaoError(f"update user data failed: {exc}") from exc

    def delete(self, ids: Iterable[ObjectId]) -> None:
        """Remove the users with the given ids; no ids is a no-op."""
        id_list = list(ids)
        if not id_list:
            return
        try:
            self.collection.delete_many({_ID: {"$in": id_list}})
        except PyMongoError as exc:
            raise DaoError(f"delete user data failed: {exc}") from exc

    def get_one(self, user_id: ObjectId) -> User | None:
        """Return the user with ``user_id``, or ``None`` if there is none."""
        try:
            document = self.collection.find_one({_ID: user_id})
        except PyMongoError as exc:
            raise DaoError(f"find one user data failed: {exc}") from exc
        if document is None:
            return None
        return User.from_document(document)

    def get_list(self, ids: Iterable[ObjectId] | None = None) -> list[User]:
        """Return users ordered by id; all of them when ``ids`` is empty."""
        id_list = list(ids or ())
        query: dict[str, Any] = {_ID: {"$in": id_list}} if id_list else {}
        try:
            documents = list(self.collection.find(query, sort=[(_ID, ASCENDING)]))
        except PyMongoError as exc:
            raise DaoError(f"search GetList failed: {exc}") from exc
        return [User.from_document(document) for document in documents]