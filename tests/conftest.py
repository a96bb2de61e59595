"""Shared fixtures.

The datastore is replaced by ``InMemoryStore``, which exposes the same
methods as ``shipyard.store.EntityStore`` and holds real
``google.cloud.datastore`` entities and keys. Writes made inside a
transaction are buffered and applied on commit, or dropped when the block
raises. A commit fails with ``Aborted`` when an entity the transaction read
was written by someone else in the meantime. Token verification is
replaced by ``FakeVerifier``.
"""
import copy
from datetime import datetime, timezone

import pytest
from google.api_core import exceptions as gcloud_exceptions
from google.cloud import datastore

from shipyard import create_app
from shipyard.config import BOATS, LOADS, USERS
from shipyard.errors import AuthError, BadRequest
from shipyard.store import INVALID_CURSOR


PROJECT = "test-project"

OWNER = "auth0|owner"
OTHER = "auth0|other"
STRANGER = "auth0|stranger"

TOKENS = {
    "owner-token": {"sub": OWNER},
    "other-token": {"sub": OTHER},
    "stranger-token": {"sub": STRANGER},
}


class FakeTransaction:
    def __init__(self, store):
        self.store = store
        self.writes = []
        self.reads = {}
        self.outer = None

    def __enter__(self):
        self.store.transaction_depth += 1
        self.outer = self.store.current
        self.store.current = self
        return self

    def __exit__(self, exc_type, exc, tb):
        self.store.transaction_depth -= 1
        self.store.current = self.outer
        if exc_type is not None:
            return False
        # Optimistic concurrency: anything read here must be unchanged at commit
        for ident, version in self.reads.items():
            if self.store.versions.get(ident, 0) != version:
                raise gcloud_exceptions.Aborted("Too much contention on {}".format(ident))
        if self.store.commit_error is not None:
            raise self.store.commit_error
        for apply in self.writes:
            apply()
        self.store.commits += 1
        return False


class InMemoryStore:
    def __init__(self):
        self.entities = {}
        self.versions = {}
        self.last_id = 1000
        self.current = None
        self.transaction_depth = 0
        self.commits = 0
        self.commit_error = None

    def key(self, kind, id=None):
        if id is None:
            return datastore.Key(kind, project=PROJECT)
        return datastore.Key(kind, id, project=PROJECT)

    def entity(self, kind, id=None, data=None):
        entity = datastore.Entity(key=self.key(kind, id))
        if data:
            entity.update(data)
        return entity

    def _copy(self, entity):
        copied = datastore.Entity(key=entity.key)
        copied.update(copy.deepcopy(dict(entity)))
        return copied

    def _write(self, apply):
        if self.current is not None:
            self.current.writes.append(apply)
        else:
            apply()

    def _read(self, ident):
        if self.current is not None:
            self.current.reads.setdefault(ident, self.versions.get(ident, 0))

    def _bump(self, ident):
        self.versions[ident] = self.versions.get(ident, 0) + 1

    def get(self, kind, id):
        self._read((kind, id))
        entity = self.entities.get((kind, id))
        if entity is None:
            return None
        return self._copy(entity)

    def get_multi(self, kind, ids):
        for id in ids:
            self._read((kind, id))
        return [self._copy(self.entities[(kind, id)]) for id in ids if (kind, id) in self.entities]

    def insert(self, kind, data):
        entity = self.entity(kind, data=data)
        self.put(entity)
        return entity

    def put(self, entity):
        if entity.key.is_partial:
            self.last_id += 1
            entity.key = entity.key.completed_key(self.last_id)
        stored = self._copy(entity)
        ident = (entity.key.kind, entity.key.id_or_name)

        def apply():
            self.entities[ident] = stored
            self._bump(ident)

        self._write(apply)

    def put_multi(self, entities):
        for entity in entities:
            self.put(entity)

    def delete(self, kind, id):
        def apply():
            self.entities.pop((kind, id), None)
            self._bump((kind, id))

        self._write(apply)

    def transaction(self):
        return FakeTransaction(self)

    def _of_kind(self, kind):
        found = [entity for (entity_kind, _), entity in self.entities.items() if entity_kind == kind]
        return sorted(found, key=lambda entity: entity.key.id_or_name)

    def all(self, kind):
        return [self._copy(entity) for entity in self._of_kind(kind)]

    def page(self, kind, limit, cursor=None, filters=()):
        matching = [
            entity for entity in self._of_kind(kind)
            if all(entity.get(prop) == value for prop, _, value in filters)
        ]
        try:
            start = int(cursor) if cursor else 0
        except ValueError:
            raise BadRequest(INVALID_CURSOR)
        end = start + limit
        next_cursor = str(end) if end < len(matching) else None
        return [self._copy(entity) for entity in matching[start:end]], next_cursor

    # Test helpers
    def stored(self, kind, id):
        return self.entities.get((kind, id))


class FakeVerifier:
    def __init__(self, tokens):
        self.tokens = dict(tokens)

    def verify(self, token):
        if token not in self.tokens:
            raise AuthError({"code": "invalid_header",
                             "description": "Unable to parse authentication token."}, 401)
        return self.tokens[token]


def race_after_read(store, concurrent):
    """Runs ``concurrent`` right after the next ``store.get``, as another request would."""
    def racing_get(kind, id):
        del store.get
        entity = store.get(kind, id)
        concurrent()
        return entity

    store.get = racing_get


def auth_headers(token="owner-token", accept="application/json"):
    return {"Authorization": "Bearer " + token, "Accept": accept}


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def verifier():
    return FakeVerifier(TOKENS)


@pytest.fixture
def app(store, verifier):
    return create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "AUTH0_DOMAIN": "shipyard.example.auth0.com",
            "AUTH0_CLIENT_ID": "test-client",
            "AUTH0_CLIENT_SECRET": "test-client-secret",
            "AUTH0_CALLBACK_URL": "http://localhost/auth/callback",
            "PAGE_SIZE": 5,
            "APP_ENV": "development",
        },
        store=store,
        verifier=verifier,
    )


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def registered(store):
    """Registers the owner and the other user; the stranger stays unregistered."""
    for subject in (OWNER, OTHER):
        store.put(store.entity(USERS, subject))


@pytest.fixture
def make_boat(store):
    def make(name="Orca", type="sail", length=12, owner=OWNER):
        return store.insert(BOATS, {"name": name, "type": type, "length": length,
                                    "owner": owner, "loads": []})
    return make


@pytest.fixture
def make_load(store):
    def make(volume=5, content="LEGO Blocks", creation_date=None):
        creation_date = creation_date or datetime(2021, 3, 7, tzinfo=timezone.utc)
        return store.insert(LOADS, {"volume": volume, "content": content,
                                    "creation_date": creation_date, "carrier": None})
    return make
