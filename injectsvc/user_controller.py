"""User operations exposed to callers, with failures wrapped in one error type."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from injectsvc.entity import User
from injectsvc.user_dao import DaoError
from injectsvc.user_service import UserService


class ControllerError(Exception):
    """Raised when a user operation fails; the cause is chained."""


@contextmanager
def _wrapped(message: str) -> Iterator[None]:
    try:
        yield
    except (DaoError, ValueError) as exc:
        raise ControllerError(f"{message}: {exc}") from exc


class UserController:
    """Entry points for creating, reading, listing and deleting users."""

    def __init__(self, service: UserService) -> None:
        self.service = service

    def create(self, name: str) -> str:
        """Create a user and return its id."""
        with _wrapped("create user failed"):
            return self.service.create(name)

    def get_one(self, user_id: str) -> User | None:
        """Return the user with ``user_id``, or ``None`` if there is none."""
        with _wrapped("get user failed"):
            return self.service.get_by_id(user_id)

    def get_list(self, ids: Iterable[str] | None = None) -> list[User]:
        """Return the users with the given ids; all users when none are given."""
        with _wrapped("get user list failed"):
            return self.service.get_list(ids)

    def delete(self, user_id: str) -> None:
        """Delete the user with ``user_id``."""
        with _wrapped("delete user failed"):
            self.service.delete_by_id(user_id)