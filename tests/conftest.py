import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from marketplace.database.mongo import MongoStore
from marketplace.main import create_app

TEST_URI = "mongodb://localhost:27017/marketplace_test"


class FakeInsertOneResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class FakeCursor:
    def __init__(self, docs, error=None):
        self._docs = list(docs)
        self._error = error

    def sort(self, key_or_list, direction=None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction)]
        # stable sorts, least significant key first
        for key, order in reversed(keys):
            self._docs.sort(key=lambda d: d[key], reverse=order == -1)
        return self

    async def to_list(self, length):
        if self._error is not None:
            raise self._error
        docs = [dict(d) for d in self._docs]
        return docs if length is None else docs[:length]


class FakeCollection:
    """In-memory stand-in for an async pymongo collection."""

    def __init__(self):
        self.docs = []
        self.insert_error = None
        self.find_error = None

    async def insert_one(self, document):
        if self.insert_error is not None:
            raise self.insert_error
        document.setdefault("_id", ObjectId())
        self.docs.append(dict(document))
        return FakeInsertOneResult(document["_id"])

    def find(self, filter=None):
        assert not filter
        return FakeCursor(self.docs, error=self.find_error)


class FakeAdmin:
    def __init__(self):
        self.commands = []
        self.error = None

    async def command(self, name):
        self.commands.append(name)
        if self.error is not None:
            raise self.error
        return {"ok": 1.0}


class FakeMongoClient:
    def __init__(self):
        self.admin = FakeAdmin()
        self.databases = {}
        self.created = 0
        self.closed = False
        self.uri = None
        self.options = None

    def factory(self, uri, **options):
        self.created += 1
        self.uri = uri
        self.options = options
        return self

    def __getitem__(self, name):
        return self.databases.setdefault(name, _FakeDatabase())

    async def close(self):
        self.closed = True


class _FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def mongo_client():
    return FakeMongoClient()


@pytest.fixture
def store(mongo_client):
    return MongoStore(TEST_URI, client_factory=mongo_client.factory)


@pytest.fixture
def products(mongo_client):
    return mongo_client["marketplace_test"]["products"]


@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as c:
        yield c


@pytest.fixture
def unready_client(store):
    # no lifespan: the store never connects
    return TestClient(create_app(store))
