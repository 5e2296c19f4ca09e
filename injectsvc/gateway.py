"""The gateway's hello and user endpoints, backed by the user controller."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from injectsvc.entity import User
from injectsvc.injection import Injector
from injectsvc.user_controller import UserController
from injectsvc.user_service import UserService


@dataclass(frozen=True)
class ListItem:
    """A user as the gateway presents it."""

    id: str = ""
    name: str = ""
    created_at: int = 0


def _to_item(user: User) -> ListItem:
    return ListItem(
        id=str(user.id) if user.id is not None else "",
        name=user.name,
        created_at=user.created_at,
    )


class HelloController:
    """Answers the greeting endpoint."""

    def hello(self) -> str:
        return "Hello World!\n"


class GatewayUserController:
    """Forwards user requests to the user controller and reshapes the results."""

    def __init__(self, user_client: UserController) -> None:
        self.user_client = user_client

    @classmethod
    def from_injector(cls, injector: Injector) -> GatewayUserController:
        """Use the injector's user controller, or build one over its database."""
        if injector.has(UserController):
            return cls(injector.invoke(UserController))
        return cls(UserController(UserService.from_injector(injector)))

    def create(self, name: str) -> str:
        """Create a user and return its id."""
        return self.user_client.create(name)

    def get_one(self, user_id: str) -> ListItem | None:
        """Return the user with ``user_id``, or ``None`` if there is none."""
        user = self.user_client.get_one(user_id)
        return _to_item(user) if user is not None else None

    def get_list(self, ids: Iterable[str] | None = None) -> list[ListItem]:
        """Return the users with the given ids, ordered by id."""
        return [_to_item(user) for user in self.user_client.get_list(ids)]

    def delete(self, user_id: str) -> None:
        """Delete the user with ``user_id``."""
        self.user_client.delete(user_id)