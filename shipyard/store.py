from flask import current_app
from google.api_core import exceptions as gcloud_exceptions
from google.cloud import datastore
from google.cloud.datastore.query import PropertyFilter

from .errors import BadRequest


STORE_EXTENSION = "shipyard.store"

INVALID_CURSOR = "The cursor is not valid"


def get_store():
    return current_app.extensions[STORE_EXTENSION]


class EntityStore:
    """Narrow view of a datastore client used by the request handlers.

    Calls made inside ``with store.transaction():`` read through the
    transaction and have their writes deferred until it commits.
    """

    def __init__(self, client):
        self.client = client

    def key(self, kind, id=None):
        if id is None:
            return self.client.key(kind)
        return self.client.key(kind, id)

    def entity(self, kind, id=None, data=None):
        entity = datastore.Entity(key=self.key(kind, id))
        if data:
            entity.update(data)
        return entity

    def get(self, kind, id):
        return self.client.get(self.key(kind, id))

    def get_multi(self, kind, ids):
        # Missing entities are left out of the result
        if not ids:
            return []
        return self.client.get_multi([self.key(kind, id) for id in ids])

    def insert(self, kind, data):
        entity = self.entity(kind, data=data)
        self.client.put(entity)
        return entity

    def put(self, entity):
        self.client.put(entity)

    def put_multi(self, entities):
        if entities:
            self.client.put_multi(entities)

    def delete(self, kind, id):
        self.client.delete(self.key(kind, id))

    def transaction(self):
        return self.client.transaction()

    def all(self, kind):
        return list(self.client.query(kind=kind).fetch())

    def page(self, kind, limit, cursor=None, filters=()):
        """Fetch one page of ``kind``.

        Returns the page's entities and the cursor of the following page,
        or None when the query is exhausted.
        """
        query = self.client.query(kind=kind)
        for prop, op, value in filters:
            query.add_filter(filter=PropertyFilter(prop, op, value))

        try:
            query_iter = query.fetch(limit=limit, start_cursor=cursor or None)
            items = list(next(query_iter.pages))
        except (ValueError, gcloud_exceptions.BadRequest):
            raise BadRequest(INVALID_CURSOR)

        next_cursor = query_iter.next_page_token
        if isinstance(next_cursor, bytes):
            next_cursor = next_cursor.decode("ascii")
        return items, next_cursor
