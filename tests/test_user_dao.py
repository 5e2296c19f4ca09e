import time
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from injectsvc.mongohelper import object_id_from_hex
from injectsvc.user_dao import DaoError, UserDao


def _matches(document, query):
    for key, condition in query.items():
        value = document.get(key)
        if isinstance(condition, dict) and "$in" in condition:
            if value not in condition["$in"]:
                return False
        elif value != condition:
            return False
    return True


class FakeCollection:
    def __init__(self):
        self.documents = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise PyMongoError("boom")

    def insert_one(self, document):
        self._check()
        document = dict(document)
        document.setdefault("_id", ObjectId())
        self.documents.append(document)
        return SimpleNamespace(inserted_id=document["_id"])

    def update_one(self, query, update):
        self._check()
        for document in self.documents:
            if _matches(document, query):
                document.update(update["$set"])
                break

    def delete_many(self, query):
        self._check()
        self.documents = [d for d in self.documents if not _matches(d, query)]

    def find_one(self, query):
        self._check()
        for document in self.documents:
            if _matches(document, query):
                return dict(document)
        return None

    def find(self, query, sort=None):
        self._check()
        found = [dict(d) for d in self.documents if _matches(d, query)]
        for key, direction in reversed(sort or []):
            found.sort(key=lambda d: d[key], reverse=direction < 0)
        return iter(found)


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def dao(database):
    return UserDao(database)


def test_create(dao):
    name = f"John-{int(time.time() * 1000)}"
    result = dao.create(name)
    assert result != ""
    stored = dao.get_one(ObjectId(result))
    assert stored.name == name


def test_create_sets_timestamps(dao):
    before = time.time_ns() // 1_000_000
    user_id = dao.create("john")
    after = time.time_ns() // 1_000_000
    user = dao.get_one(ObjectId(user_id))
    assert before <= user.created_at <= after
    assert user.created_at == user.updated_at


def test_create_uses_user_collection(dao, database):
    user_id = dao.create("john")
    assert [str(d["_id"]) for d in database["user"].documents] == [user_id]


def test_delete(dao, database):
    id1 = object_id_from_hex("6708ed8295ec40a90f4db583")
    id2 = object_id_from_hex("670a26ed3b04911806b66ee9")
    database["user"].insert_one({"_id": id1, "name": "a"})
    database["user"].insert_one({"_id": id2, "name": "b"})
    dao.delete([id1, id2])
    assert dao.get_one(id1) is None
    assert dao.get_one(id2) is None


def test_delete_empty_is_noop(dao, database):
    kept = ObjectId()
    database["user"].insert_one({"_id": kept, "name": "kept"})
    database["user"].fail = True
    dao.delete([])
    database["user"].fail = False
    assert dao.get_one(kept).name == "kept"


def test_get_one_missing(dao):
    assert dao.get_one(object_id_from_hex("67187841da7b7f684b1d8d22")) is None


def test_get_list_default_returns_all_sorted(dao):
    ids = [dao.create(f"user{n}") for n in range(3)]
    users = dao.get_list()
    assert [str(u.id) for u in users] == sorted(ids)


def test_get_list_by_ids(dao, database):
    id1 = object_id_from_hex("67162b3620c191061a0ab0c0")
    id2 = object_id_from_hex("67162b46c57af6512c59ffea")
    database["user"].insert_one({"_id": id2, "name": "second"})
    database["user"].insert_one({"_id": id1, "name": "first"})
    dao.create("other")
    users = dao.get_list([id1, id2])
    assert [u.id for u in users] == [id1, id2]
    assert [u.name for u in users] == ["first", "second"]


def test_get_list_not_found(dao):
    dao.create("john")
    assert dao.get_list([ObjectId()]) == []


def test_update_changes_name(dao):
    user_id = ObjectId(dao.create("old"))
    dao.update(user_id, "new")
    assert dao.get_one(user_id).name == "new"


def test_update_empty_name_keeps_name(dao):
    user_id = ObjectId(dao.create("keep"))
    dao.update(user_id, "")
    assert dao.get_one(user_id).name == "keep"


@pytest.mark.parametrize(
    "call",
    [
        lambda d: d.create("x"),
        lambda d: d.update(ObjectId(), "x"),
        lambda d: d.delete([ObjectId()]),
        lambda d: d.get_one(ObjectId()),
        lambda d: d.get_list(),
    ],
)
def test_database_errors_become_dao_error(dao, database, call):
    database["user"].fail = True
    with pytest.raises(DaoError):
        call(dao)
    database["user"].fail = False
    assert dao.get_list() == []