"""Document store backed by Redis.

Each collection is one Redis hash (document id -> JSON). ``tripId``,
``circleId`` and ``userId`` are mirrored into index sets so lookups by those
fields read only matching documents.

The store is created once at startup and passed to services; nothing in this
module holds a connection at import time.
"""

import json
import uuid
from typing import Protocol

import structlog
from redis.asyncio import Redis
from redis.exceptions import WatchError

from tripcoord.core.exceptions import StoreError
from tripcoord.db.query import candidate_values, matches

logger = structlog.get_logger(__name__)

INDEXED_FIELDS = ("tripId", "circleId", "userId")


class Collections:
    """Collection names used by the engine."""

    TRIPS = "trips"
    CIRCLES = "circles"
    MEMBERSHIPS = "memberships"
    USERS = "users"
    VOTES = "votes"
    PARTICIPANTS = "trip_participants"
    DATE_PICKS = "trip_date_picks"
    AVAILABILITIES = "availabilities"
    DATE_WINDOWS = "date_windows"
    WINDOW_SUPPORTS = "window_supports"
    MESSAGES = "trip_messages"
    JOIN_REQUESTS = "trip_join_requests"


class DocumentStore(Protocol):
    """Read/write access to document collections, keyed by ``id``."""

    async def get(self, collection: str, doc_id: str) -> dict | None: ...

    async def find(self, collection: str, query: dict | None = None) -> list[dict]: ...

    async def find_one(self, collection: str, query: dict) -> dict | None: ...

    async def insert(self, collection: str, doc: dict) -> dict: ...

    async def update(
        self,
        collection: str,
        doc_id: str,
        changes: dict,
        expected: dict | None = None,
    ) -> bool: ...


class RedisDocumentStore:
    """DocumentStore over a redis.asyncio client (``decode_responses=True``)."""

    MAX_UPDATE_ATTEMPTS = 5

    def __init__(self, redis: Redis, prefix: str = "tripcoord"):
        self.redis = redis
        self.prefix = prefix

    def _docs_key(self, collection: str) -> str:
        return f"{self.prefix}:docs:{collection}"

    def _index_key(self, collection: str, field: str, value) -> str:
        return f"{self.prefix}:idx:{collection}:{field}:{value}"

    @staticmethod
    def _decode(raw: str | None) -> dict | None:
        return json.loads(raw) if raw is not None else None

    async def get(self, collection: str, doc_id: str) -> dict | None:
        raw = await self.redis.hget(self._docs_key(collection), doc_id)
        return self._decode(raw)

    async def _candidate_ids(self, collection: str, query: dict) -> list[str] | None:
        """Ids worth loading for ``query``, or None when a full scan is needed."""
        if "id" in query:
            values = candidate_values(query["id"])
            if values is not None:
                return [str(v) for v in values]

        for field in INDEXED_FIELDS:
            if field not in query:
                continue
            values = candidate_values(query[field])
            if values is None:
                continue
            if not values:
                return []
            keys = [self._index_key(collection, field, v) for v in values]
            return list(await self.redis.sunion(keys))

        return None

    async def find(self, collection: str, query: dict | None = None) -> list[dict]:
        """Documents matching ``query``, ordered by id."""
        query = query or {}
        ids = await self._candidate_ids(collection, query)

        if ids is None:
            raws = await self.redis.hvals(self._docs_key(collection))
        elif not ids:
            return []
        else:
            raws = await self.redis.hmget(self._docs_key(collection), ids)

        docs = [json.loads(raw) for raw in raws if raw is not None]
        return sorted(
            (doc for doc in docs if matches(doc, query)),
            key=lambda d: str(d.get("id", "")),
        )

    async def find_one(self, collection: str, query: dict) -> dict | None:
        docs = await self.find(collection, query)
        return docs[0] if docs else None

    async def insert(self, collection: str, doc: dict) -> dict:
        """Insert a document, generating an id when it has none.

        The document and its index entries are written in one MULTI, so a
        reader never sees one without the other.

        Raises:
            StoreError: a document with the same id already exists, or the
                collection kept changing underneath us
        """
        doc = dict(doc)
        doc_id = str(doc.get("id") or uuid.uuid4())
        doc["id"] = doc_id
        key = self._docs_key(collection)

        async with self.redis.pipeline(transaction=True) as pipe:
            for attempt in range(1, self.MAX_UPDATE_ATTEMPTS + 1):
                try:
                    await pipe.watch(key)
                    if await pipe.hexists(key, doc_id):
                        await pipe.reset()
                        raise StoreError(f"Duplicate id '{doc_id}' in collection '{collection}'")

                    pipe.multi()
                    pipe.hset(key, doc_id, json.dumps(doc, default=str))
                    for field in INDEXED_FIELDS:
                        if doc.get(field) is not None:
                            pipe.sadd(self._index_key(collection, field, doc[field]), doc_id)
                    await pipe.execute()
                    return doc
                except WatchError:
                    logger.info(
                        "document_insert_retry",
                        collection=collection,
                        doc_id=doc_id,
                        attempt=attempt,
                    )

        raise StoreError(f"Insert of '{collection}/{doc_id}' kept conflicting")

    async def update(
        self,
        collection: str,
        doc_id: str,
        changes: dict,
        expected: dict | None = None,
    ) -> bool:
        """Apply ``changes`` to one document, optionally only if it still matches ``expected``.

        The read-check-write runs under WATCH/MULTI, so two callers racing on
        the same precondition (e.g. ``{"status": "scheduling"}``) cannot both win.

        Returns:
            True if the document was updated; False if it does not exist or no
            longer matches ``expected``

        Raises:
            StoreError: the document kept changing underneath us
        """
        key = self._docs_key(collection)

        async with self.redis.pipeline(transaction=True) as pipe:
            for attempt in range(1, self.MAX_UPDATE_ATTEMPTS + 1):
                try:
                    await pipe.watch(key)
                    current = self._decode(await pipe.hget(key, doc_id))
                    if current is None or (expected and not matches(current, expected)):
                        await pipe.reset()
                        return False

                    updated = {**current, **changes, "id": doc_id}

                    pipe.multi()
                    pipe.hset(key, doc_id, json.dumps(updated, default=str))
                    for field in INDEXED_FIELDS:
                        old, new = current.get(field), updated.get(field)
                        if old == new:
                            continue
                        if old is not None:
                            pipe.srem(self._index_key(collection, field, old), doc_id)
                        if new is not None:
                            pipe.sadd(self._index_key(collection, field, new), doc_id)
                    await pipe.execute()
                    return True
                except WatchError:
                    logger.info(
                        "document_update_retry",
                        collection=collection,
                        doc_id=doc_id,
                        attempt=attempt,
                    )

        raise StoreError(f"Update of '{collection}/{doc_id}' kept conflicting")


async def open_store(url: str, prefix: str) -> RedisDocumentStore:
    """Connect to Redis and return a ready store. Call once at startup."""
    client = Redis.from_url(url, encoding="utf-8", decode_responses=True)
    await client.ping()
    return RedisDocumentStore(client, prefix=prefix)


async def close_store(store: RedisDocumentStore) -> None:
    await store.redis.aclose()
