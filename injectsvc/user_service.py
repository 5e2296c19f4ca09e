"""Business rules for users on top of the data-access layer."""

from __future__ import annotations

from collections.abc import Iterable

from pymongo.database import Database

from injectsvc.entity import User
from injectsvc.injection import Injector
from injectsvc.mongohelper import object_id_from_hex, object_ids_from_hexes
from injectsvc.user_dao import UserDao


class UserServiceError(ValueError):
    """Raised when a request to the user service is invalid."""


class UserService:
    """Creates, reads and deletes users by hex id."""

    def __init__(self, dao: UserDao) -> None:
        self.dao = dao

    @classmethod
    def from_injector(cls, injector: Injector) -> UserService:
        """Build a service over the database held by ``injector``."""
        return cls(UserDao(injector.invoke(Database)))

    def create(self, name: str) -> str:
        """Create a user and return its id."""
        if not name:
            raise UserServiceError("user name should not be empty")
        return self.dao.create(name)

    def get_by_id(self, user_id: str) -> User | None:
        """Return the user with ``user_id``, or ``None`` if there is none."""
        if not user_id:
            raise UserServiceError("user id should not be empty")
        return self.dao.get_one(object_id_from_hex(user_id))

    def get_list(self, ids: Iterable[str] | None = None) -> list[User]:
        """Return the users with the given ids; all users when none are given."""
        id_list = list(ids or ())
        object_ids = object_ids_from_hexes(id_list) if id_list else []
        return self.dao.get_list(object_ids)

    def delete_by_id(self, user_id: str) -> None:
        """Delete the user with ``user_id``."""
        if not user_id:
            raise UserServiceError("user id should not be empty")
        self.dao.delete([object_id_from_hex(user_id)])