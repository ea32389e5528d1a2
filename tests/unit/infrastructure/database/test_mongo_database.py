from __future__ import annotations

from typing import Dict

import pymongo.errors
import pytest

from predictcore.infrastructure.database.mongo_database import (
    MODEL_VERSIONS_COLLECTION,
    MongoDatabase,
)
from tests.conftest import FakeCollection


class _StubMongoClient:
    def __init__(self, uri: str) -> None:
        self.uri = uri
        self.closed = False
        self.databases: Dict[str, _StubDatabase] = {}

    def __getitem__(self, name: str) -> "_StubDatabase":
        return self.databases.setdefault(name, _StubDatabase())

    def close(self) -> None:
        self.closed = True


class _StubDatabase:
    def __init__(self) -> None:
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


class _FailingIndexCollection(FakeCollection):
    def create_index(self, keys, name=None, **kwargs):
        raise pymongo.errors.OperationFailure("not authorized")


@pytest.fixture(autouse=True)
def patch_mongo_client(monkeypatch) -> None:
    monkeypatch.setattr(
        "predictcore.infrastructure.database.mongo_database.MongoClient",
        _StubMongoClient,
    )


@pytest.mark.asyncio
async def test_upsert_inserts_then_replaces() -> None:
    database = MongoDatabase("mongodb://localhost:27017", "predictcore")

    await database.upsert_one("versions", {"id": 1}, {"id": 1, "status": "candidate"})
    await database.upsert_one("versions", {"id": 1}, {"id": 1, "status": "active"})

    assert await database.find_one("versions", {"id": 1}) == {"id": 1, "status": "active"}


@pytest.mark.asyncio
async def test_find_many_filters_sorts_and_limits() -> None:
    database = MongoDatabase("mongodb://localhost:27017", "predictcore")
    for version_id, status in [(3, "retired"), (1, "retired"), (2, "active")]:
        await database.upsert_one(
            "versions", {"id": version_id}, {"id": version_id, "status": status}
        )

    retired = await database.find_many(
        "versions", {"status": "retired"}, sort_by="id", sort_direction=-1
    )
    first = await database.find_many("versions", {}, sort_by="id", limit=1)

    assert [doc["id"] for doc in retired] == [3, 1]
    assert [doc["id"] for doc in first] == [1]


@pytest.mark.asyncio
async def test_delete_reports_whether_a_document_was_removed() -> None:
    database = MongoDatabase("mongodb://localhost:27017", "predictcore")
    await database.upsert_one("versions", {"id": 1}, {"id": 1})

    assert await database.delete_one("versions", {"id": 1}) is True
    assert await database.delete_one("versions", {"id": 1}) is False
    assert await database.find_one("versions", {"id": 1}) is None


@pytest.mark.asyncio
async def test_create_indexes_on_model_versions() -> None:
    database = MongoDatabase("mongodb://localhost:27017", "predictcore")

    await database.create_indexes()

    collection = database.get_collection(MODEL_VERSIONS_COLLECTION)
    names = [name for _, name, _ in collection.created_indexes]
    assert names == ["version_id_idx", "status_idx"]
    assert collection.created_indexes[0][2] == {"unique": True}


@pytest.mark.asyncio
async def test_create_indexes_failure_is_logged_not_raised() -> None:
    database = MongoDatabase("mongodb://localhost:27017", "predictcore")
    database.db.collections[MODEL_VERSIONS_COLLECTION] = _FailingIndexCollection()

    await database.create_indexes()


def test_close_closes_client() -> None:
    database = MongoDatabase("mongodb://localhost:27017", "predictcore")

    database.close()

    assert database.client.closed is True
