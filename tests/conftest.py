"""Shared test fixtures for all test groups."""

import fakeredis.aioredis
import pytest

from tripcoord.db.store import Collections, RedisDocumentStore


@pytest.fixture
async def redis():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def store(redis):
    """Empty document store over fakeredis."""
    return RedisDocumentStore(redis, prefix="test")


@pytest.fixture
def seed(store):
    """Insert documents: ``await seed(Collections.TRIPS, {...}, {...})``."""

    async def _seed(collection: str, *docs: dict) -> list[dict]:
        return [await store.insert(collection, doc) for doc in docs]

    return _seed


@pytest.fixture
async def circle_with_members(seed):
    """Circle c1 owned by alice, with bob and carol as members."""
    await seed(Collections.CIRCLES, {"id": "c1", "name": "Hiking Crew", "ownerId": "alice"})
    await seed(
        Collections.MEMBERSHIPS,
        {"id": "m1", "circleId": "c1", "userId": "alice", "role": "owner", "joinedAt": "2024-01-01T00:00:00Z"},
        {"id": "m2", "circleId": "c1", "userId": "bob", "role": "member", "joinedAt": "2024-01-02T00:00:00Z"},
        {"id": "m3", "circleId": "c1", "userId": "carol", "role": "member", "joinedAt": "2024-01-03T00:00:00Z"},
    )
    await seed(
        Collections.USERS,
        {"id": "alice", "name": "Alice Adams"},
        {"id": "bob", "name": "Bob Brown"},
        {"id": "carol", "name": "Carol Clark"},
    )
