import pytest

from rigmarket.config import Settings
from rigmarket.db import MemoryDocumentStore, RedisDocumentStore, SQLiteDocumentStore, open_store
from rigmarket.seed import seed_demo_data


class FakeRedis:
    """Just the hash commands the document store uses."""

    def __init__(self):
        self.hashes = {}

    def hsetnx(self, key, field, value):
        bucket = self.hashes.setdefault(key, {})
        if field in bucket:
            return 0
        bucket[field] = value
        return 1

    def hexists(self, key, field):
        return field in self.hashes.get(key, {})

    def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value
        return 1

    def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def hdel(self, key, field):
        return 1 if self.hashes.get(key, {}).pop(field, None) is not None else 0

    def delete(self, *keys):
        return sum(1 for key in keys if self.hashes.pop(key, None) is not None)


@pytest.fixture(params=["memory", "sqlite", "redis"])
def backend(request, tmp_path):
    if request.param == "memory":
        return MemoryDocumentStore()
    if request.param == "sqlite":
        return SQLiteDocumentStore(tmp_path / "nested" / "store.db")
    return RedisDocumentStore(FakeRedis(), prefix="test")


def test_insert_get_replace_delete(backend):
    doc = {"id": "b1", "user_id": "u1", "assembly_status": "Pending", "components": [{"price": 1.5}]}
    backend.insert("builds", doc)

    assert backend.get("builds", "b1") == doc
    assert backend.get("builds", "missing") is None

    assert backend.replace("builds", {**doc, "assembly_status": "Assembling"}) is True
    assert backend.get("builds", "b1")["assembly_status"] == "Assembling"
    assert backend.replace("builds", {"id": "missing"}) is False

    assert backend.delete("builds", "b1") is True
    assert backend.delete("builds", "b1") is False
    assert backend.all("builds") == []


def test_duplicate_ids_are_rejected(backend):
    backend.insert("users", {"id": "u1", "name": "A"})
    with pytest.raises(KeyError):
        backend.insert("users", {"id": "u1", "name": "B"})
    assert backend.get("users", "u1")["name"] == "A"


def test_find_ignores_none_filters(backend):
    backend.insert("components", {"id": "a", "category": "CPU", "stock_status": True})
    backend.insert("components", {"id": "b", "category": "CPU", "stock_status": False})
    backend.insert("components", {"id": "c", "category": "GPU", "stock_status": True})

    assert {d["id"] for d in backend.find("components", category="CPU", supplier_id=None)} == {"a", "b"}
    assert [d["id"] for d in backend.find("components", category="CPU", stock_status=False)] == ["b"]
    assert backend.count("components", stock_status=True) == 2


def test_collections_are_isolated_and_clearable(backend):
    assert backend.is_empty()
    backend.insert("users", {"id": "x"})
    backend.insert("builds", {"id": "x"})

    assert backend.get("components", "x") is None
    backend.clear()
    assert backend.is_empty()


def test_memory_store_hands_out_copies():
    store = MemoryDocumentStore()
    store.insert("users", {"id": "u1", "tags": []})

    store.get("users", "u1")["tags"].append("mutated")
    assert store.get("users", "u1")["tags"] == []


def test_sqlite_store_persists_across_instances(tmp_path):
    path = tmp_path / "rigmarket.db"
    seed_demo_data(SQLiteDocumentStore(path))

    reopened = SQLiteDocumentStore(path)
    assert reopened.get("components", "psu-rm850x")["wattage"] == 850
    assert seed_demo_data(reopened)["components"] == 0


def test_seed_runs_only_on_empty_store():
    store = MemoryDocumentStore()
    counts = seed_demo_data(store)

    assert counts["users"] == 4
    assert counts["categories"] == 7
    assert len(store.all("components")) == counts["components"]
    assert seed_demo_data(store) == {"users": 0, "categories": 0, "components": 0}


def test_open_store_picks_backend(tmp_path):
    assert isinstance(open_store(Settings()), MemoryDocumentStore)
    assert isinstance(open_store(Settings(store="sqlite", sqlite_path=tmp_path / "s.db")), SQLiteDocumentStore)
