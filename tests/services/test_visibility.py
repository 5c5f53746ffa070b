"""Tests for the store-backed privacy collaborators."""

import pytest

from tripcoord.db.store import Collections
from tripcoord.services.visibility import filter_by_owner_privacy, filter_by_traveler_privacy

pytestmark = pytest.mark.unit

PRIVATE = {"privacy": {"tripsVisibility": "private"}}


@pytest.fixture
async def dave(seed, circle_with_members):
    """dave: a c1 member who joined after every test trip was created."""
    await seed(
        Collections.MEMBERSHIPS,
        {"id": "m4", "circleId": "c1", "userId": "dave", "role": "member", "joinedAt": "2024-06-01T00:00:00Z"},
    )
    await seed(Collections.USERS, {"id": "dave", "name": "Dave Dunn"})


def hosted_trip(trip_id: str) -> dict:
    return {
        "id": trip_id,
        "circleId": "c1",
        "createdBy": "alice",
        "type": "hosted",
        "status": "locked",
        "createdAt": "2024-03-01T00:00:00Z",
    }


def collaborative_trip(trip_id: str) -> dict:
    return {**hosted_trip(trip_id), "type": "collaborative", "status": "scheduling"}


class TestFilterByTravelerPrivacy:
    async def test_private_participant_hides_hosted_trip_from_non_traveler(self, store, seed, dave):
        await store.update(Collections.USERS, "carol", PRIVATE)
        await seed(Collections.TRIPS, hosted_trip("t2"))
        await seed(
            Collections.PARTICIPANTS,
            {"id": "p1", "tripId": "t2", "userId": "alice", "status": "active"},
            {"id": "p2", "tripId": "t2", "userId": "carol"},
        )
        trips = [await store.get(Collections.TRIPS, "t2")]

        assert await filter_by_traveler_privacy(store, trips, "dave") == []
        assert await filter_by_traveler_privacy(store, trips, "carol") == trips
        assert await filter_by_traveler_privacy(store, trips, "alice") == trips

    async def test_left_participant_privacy_ignored(self, store, seed, dave):
        await store.update(Collections.USERS, "carol", PRIVATE)
        await seed(Collections.TRIPS, hosted_trip("t2"))
        await seed(
            Collections.PARTICIPANTS,
            {"id": "p1", "tripId": "t2", "userId": "alice", "status": "active"},
            {"id": "p2", "tripId": "t2", "userId": "carol", "status": "left"},
        )
        trips = [await store.get(Collections.TRIPS, "t2")]

        assert await filter_by_traveler_privacy(store, trips, "dave") == trips

    async def test_collaborative_trip_follows_member_travelers(self, store, seed, dave):
        await store.update(Collections.USERS, "carol", PRIVATE)
        await seed(Collections.TRIPS, collaborative_trip("t1"))
        trips = [await store.get(Collections.TRIPS, "t1")]

        # bob travels as a circle member; dave joined late and does not
        assert await filter_by_traveler_privacy(store, trips, "bob") == trips
        assert await filter_by_traveler_privacy(store, trips, "dave") == []

    async def test_empty_input(self, store):
        assert await filter_by_traveler_privacy(store, [], "bob") == []


class TestFilterByOwnerPrivacy:
    async def test_private_creator_hides_trip_even_from_travelers(self, store, seed, circle_with_members):
        await store.update(Collections.USERS, "alice", PRIVATE)
        await seed(Collections.TRIPS, collaborative_trip("t1"))
        trips = [await store.get(Collections.TRIPS, "t1")]

        assert await filter_by_owner_privacy(store, trips, "bob") == []
        assert await filter_by_owner_privacy(store, trips, "alice") == trips
