"""
Pytest configuration and shared fixtures.

The Motor client is replaced by a small in-memory double that answers the
handful of collection calls the record store makes.
"""

import copy
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from railcrowd.database import CONNECTED, Database, get_database
from railcrowd.main import app


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, spec):
        for key, direction in reversed(spec):
            self._docs.sort(key=lambda d: d[key], reverse=direction < 0)
        return self

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.indexes = []
        self.fail_with = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def insert_one(self, doc):
        self._check()
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def find(self, query):
        self._check()
        return FakeCursor([copy.deepcopy(d) for d in self.docs])

    async def delete_one(self, query):
        self._check()
        for i, doc in enumerate(self.docs):
            if doc["_id"] == query["_id"]:
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def create_index(self, keys):
        self._check()
        self.indexes.append(keys)
        return "_".join(f"{k}_{d}" for k, d in keys)


class FakeMongoDatabase(dict):
    def __missing__(self, name):
        coll = self[name] = FakeCollection()
        return coll


class FakeClient(dict):
    def __missing__(self, name):
        database = self[name] = FakeMongoDatabase()
        return database

    def close(self):
        pass


@pytest.fixture
def database():
    database = Database()
    database.client = FakeClient()
    database.state = CONNECTED
    return database


@pytest.fixture
def client(database):
    app.dependency_overrides[get_database] = lambda: database
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def connection_lost():
    return ServerSelectionTimeoutError("localhost:27017: [Errno 111] Connection refused")


@pytest.fixture
def write_rejected():
    return OperationFailure("not authorized on railway_db to execute command")


@pytest.fixture
def sample_event():
    return {
        "dateKey": "2024-03-01",
        "type": "Festival",
        "station": "Central",
        "crowd": 5000,
        "level": "L-2",
    }


@pytest.fixture
def sample_plan():
    return {
        "dateKey": "2024-03-01",
        "stationName": "Central",
        "expectedCrowd": 12000,
        "grpStaff": 20,
        "rpfStaff": 15,
    }
