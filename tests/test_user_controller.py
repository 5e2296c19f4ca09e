from types import SimpleNamespace

import pytest
from bson import ObjectId

from injectsvc.user_controller import ControllerError, UserController
from injectsvc.user_dao import UserDao
from injectsvc.user_service import UserService, UserServiceError


class FakeCollection:
    def __init__(self):
        self.docs = {}

    @staticmethod
    def _match(doc, query):
        for key, cond in query.items():
            if isinstance(cond, dict) and "$in" in cond:
                if doc.get(key) not in cond["$in"]:
                    return False
            elif doc.get(key) != cond:
                return False
        return True

    def insert_one(self, document):
        doc = dict(document)
        oid = doc.setdefault("_id", ObjectId())
        self.docs[oid] = doc
        return SimpleNamespace(inserted_id=oid)

    def find_one(self, query):
        return next(
            (dict(d) for d in self.docs.values() if self._match(d, query)), None
        )

    def find(self, query, sort=None):
        docs = [dict(d) for d in self.docs.values() if self._match(d, query)]
        for key, direction in reversed(sort or []):
            docs.sort(key=lambda d: d[key], reverse=direction < 0)
        return iter(docs)

    def delete_many(self, query):
        for oid in [k for k, d in self.docs.items() if self._match(d, query)]:
            del self.docs[oid]

    def update_one(self, query, update):
        for doc in self.docs.values():
            if self._match(doc, query):
                doc.update(update.get("$set", {}))
                return


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def ctrl():
    return UserController(UserService(UserDao(FakeDatabase())))


def test_create(ctrl):
    user_id = ctrl.create("john")
    assert len(user_id) == 24
    with pytest.raises(ControllerError):
        ctrl.create("")


def test_create_error_is_wrapped(ctrl):
    with pytest.raises(ControllerError) as info:
        ctrl.create("")
    assert str(info.value).startswith("create user failed")
    assert isinstance(info.value.__cause__, UserServiceError)


def test_get_one(ctrl):
    user_id = ctrl.create("test_user")
    user = ctrl.get_one(user_id)
    assert user.name == "test_user"
    assert str(user.id) == user_id
    with pytest.raises(ControllerError):
        ctrl.get_one("non_existent_id")


def test_get_one_absent_returns_none(ctrl):
    assert ctrl.get_one(str(ObjectId())) is None


def test_get_list(ctrl):
    user1 = ctrl.create("user1")
    user2 = ctrl.create("user2")
    listed = ctrl.get_list([user1, user2])
    assert len(listed) == 2
    assert {u.name for u in listed} == {"user1", "user2"}
    assert len(ctrl.get_list([])) >= 2
    assert len(ctrl.get_list(None)) >= 2


def test_get_list_invalid_and_absent_ids(ctrl):
    ctrl.create("user1")
    with pytest.raises(ControllerError):
        ctrl.get_list(["non_existent_id"])
    assert ctrl.get_list([str(ObjectId())]) == []


def test_delete(ctrl):
    user_id = ctrl.create("to_be_deleted")
    ctrl.delete(user_id)
    assert ctrl.get_one(user_id) is None
    with pytest.raises(ControllerError) as info:
        ctrl.delete("non_existent_id")
    assert str(info.value).startswith("delete user failed")