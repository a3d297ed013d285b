"""
Shared fixtures: an in-memory stand-in for batepapo.store.Store, a controllable
clock and a TestClient wired to both.
"""
import copy

import pytest
from fastapi.testclient import TestClient

from batepapo.app import create_app
from batepapo.config import Settings
from batepapo.exceptions import DuplicateEntry, StoreError
from batepapo.store import PARTICIPANTS


def _matches(doc, query):
    for key, cond in query.items():
        if key == '$or':
            if not any(_matches(doc, sub) for sub in cond):
                return False
        elif isinstance(cond, dict):
            if '$lt' in cond and not (key in doc and doc[key] < cond['$lt']):
                return False
        elif doc.get(key) != cond:
            return False
    return True


class MemoryStore:
    """Implements the Store interface over lists of dicts, in insertion order."""

    name = 'memory'

    def __init__(self):
        self.collections = {}
        self.opened = False
        self.closed = False
        self._failures = []

    def fail(self, op, collection, match=None, message='store unavailable'):
        """Make `op` on `collection` raise StoreError (only for documents/queries matching `match`)."""
        self._failures.append((op, collection, match or {}, message))

    def _check(self, op, collection, subject):
        for f_op, f_collection, match, message in self._failures:
            if f_op == op and f_collection == collection and _matches(subject, match):
                raise StoreError(message)

    def docs(self, collection):
        return self.collections.setdefault(collection, [])

    async def open(self):
        self.opened = True

    async def close(self):
        self.closed = True

    async def ping(self):
        self._check('ping', None, {})
        return sorted(self.collections)

    async def insert_one(self, collection, document):
        self._check('insert_one', collection, document)
        if collection == PARTICIPANTS and any(d['name'] == document['name'] for d in self.docs(collection)):
            raise DuplicateEntry('E11000 duplicate key error')
        self.docs(collection).append(copy.deepcopy(document))
        return len(self.docs(collection))

    async def find_one(self, collection, query):
        self._check('find_one', collection, query)
        for doc in self.docs(collection):
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def find(self, collection, query=None):
        self._check('find', collection, query or {})
        return [copy.deepcopy(d) for d in self.docs(collection) if _matches(d, query or {})]

    async def update_one(self, collection, query, changes, unset=()):
        self._check('update_one', collection, query)
        for doc in self.docs(collection):
            if _matches(doc, query):
                doc.update(changes)
                for key in unset:
                    doc.pop(key, None)
                return 1
        return 0

    async def delete_one(self, collection, query):
        self._check('delete_one', collection, query)
        docs = self.docs(collection)
        for i, doc in enumerate(docs):
            if _matches(doc, query):
                del docs[i]
                return 1
        return 0


class FakeClock:
    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(_env_file=None, SWEEP_INTERVAL_MS=60_000, SHUTDOWN_GRACE_S=1.0)


@pytest.fixture
def client(store, settings):
    with TestClient(create_app(settings, store=store)) as test_client:
        yield test_client
