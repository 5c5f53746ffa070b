"""Tests for DashboardService aggregation over a fakeredis store."""

import pytest

from tripcoord.db.store import Collections
from tripcoord.services.dashboard_service import DashboardService

pytestmark = pytest.mark.unit

TODAY = "2025-05-01"


def make_trip(trip_id: str, circle_id: str = "c1", **overrides) -> dict:
    trip = {
        "id": trip_id,
        "circleId": circle_id,
        "name": trip_id.title(),
        "createdBy": "alice",
        "type": "collaborative",
        "status": "scheduling",
        "schedulingMode": "availability",
        "createdAt": "2024-03-01T00:00:00Z",
        "updatedAt": "2024-03-02T00:00:00Z",
    }
    trip.update(overrides)
    return trip


@pytest.fixture
async def two_circles(seed, circle_with_members):
    """c1 (Hiking Crew) plus c2 (Book Club), both including bob."""
    await seed(Collections.CIRCLES, {"id": "c2", "name": "Book Club", "ownerId": "bob"})
    await seed(
        Collections.MEMBERSHIPS,
        {"id": "m4", "circleId": "c2", "userId": "bob", "role": "owner", "joinedAt": "2024-01-01T00:00:00Z"},
    )


class TestGetDashboard:
    async def test_user_without_circles_gets_empty_lists(self, store):
        result = await DashboardService(store).get_dashboard("nobody", today=TODAY)
        assert result.circles == []
        assert result.global_notifications == []

    async def test_circle_with_urgent_action_comes_first(self, store, seed, two_circles):
        await seed(
            Collections.TRIPS,
            make_trip("quiet", circle_id="c1", status="locked", lockedStartDate="2025-08-01",
                      lockedEndDate="2025-08-05", startDate="2025-08-01", endDate="2025-08-05"),
            make_trip("urgent", circle_id="c2", createdBy="bob"),
        )

        result = await DashboardService(store).get_dashboard("bob", today=TODAY)

        assert [c.id for c in result.circles] == ["c2", "c1"]
        assert result.circles[0].role == "owner"
        assert result.circles[0].trips[0].pending_actions[0].priority == 1
        assert [n.id for n in result.global_notifications] == ["trip-urgent-scheduling_required"]

    async def test_notification_shape(self, store, seed, circle_with_members):
        await seed(Collections.TRIPS, make_trip("lisbon"))

        result = await DashboardService(store).get_dashboard("bob", today=TODAY)

        [note] = result.global_notifications
        assert note.title == "Lisbon"
        assert note.context == "Mark availability"
        assert note.cta_label == "Mark availability"
        assert note.href == "/trips/lisbon?returnTo=%2Fdashboard&circleId=c1"
        assert note.priority == 1
        assert note.timestamp == "2024-03-02T00:00:00Z"

    async def test_cancelled_trips_split_out(self, store, seed, circle_with_members):
        await seed(
            Collections.TRIPS,
            make_trip("live"),
            make_trip("gone", status="canceled", canceledAt="2024-04-01T00:00:00Z"),
        )

        result = await DashboardService(store).get_dashboard("bob", today=TODAY)

        [circle] = result.circles
        assert [t.id for t in circle.trips] == ["live"]
        assert [t.id for t in circle.cancelled_trips] == ["gone"]
        assert [n.id for n in result.global_notifications] == ["trip-live-scheduling_required"]

    async def test_private_owner_trips_hidden(self, store, seed, circle_with_members):
        await store.update(Collections.USERS, "alice", {"privacy": {"tripsVisibility": "private"}})
        await seed(
            Collections.TRIPS,
            make_trip("secret"),
            make_trip("open", createdBy="carol"),
        )

        result = await DashboardService(store).get_dashboard("bob", today=TODAY)

        assert [t.id for t in result.circles[0].trips] == ["open"]

    async def test_privacy_filter_is_injectable(self, store, seed, circle_with_members):
        await seed(Collections.TRIPS, make_trip("a"), make_trip("b"))

        async def only_a(store, trips, viewer_id):
            return [t for t in trips if t["id"] == "a"]

        result = await DashboardService(store, privacy_filter=only_a).get_dashboard("bob", today=TODAY)

        assert [t.id for t in result.circles[0].trips] == ["a"]

    async def test_left_circles_ignored(self, store, seed):
        await seed(Collections.CIRCLES, {"id": "c9", "name": "Old"})
        await seed(Collections.MEMBERSHIPS, {"id": "m9", "circleId": "c9", "userId": "bob", "status": "left"})
        await seed(Collections.TRIPS, make_trip("old", circle_id="c9"))

        result = await DashboardService(store).get_dashboard("bob", today=TODAY)

        assert result.circles == []

    async def test_join_requests_for_creator(self, store, seed, circle_with_members):
        await seed(Collections.USERS, {"id": "dan", "name": "Dan Day"})
        await seed(Collections.TRIPS, make_trip("hosted", type="hosted", status="locked"))
        await seed(
            Collections.JOIN_REQUESTS,
            {"id": "jr1", "tripId": "hosted", "requesterId": "dan", "status": "pending", "createdAt": "2024-04-01T00:00:00Z"},
            {"id": "jr2", "tripId": "hosted", "requesterId": "ghost", "status": "pending", "createdAt": "2024-04-02T00:00:00Z"},
            {"id": "jr3", "tripId": "hosted", "requesterId": "dan", "status": "rejected"},
        )

        result = await DashboardService(store).get_dashboard("alice", today=TODAY)

        notes = {n.id: n for n in result.global_notifications}
        assert set(notes) == {"join-request-jr1", "join-request-jr2"}
        assert notes["join-request-jr1"].context == "Dan Day wants to join"
        assert notes["join-request-jr2"].context == "Unknown wants to join"
        assert notes["join-request-jr1"].cta_label == "Review request"
        assert notes["join-request-jr1"].priority == 1
        assert [n.id for n in result.global_notifications] == ["join-request-jr2", "join-request-jr1"]

    async def test_join_requests_not_shown_to_members(self, store, seed, circle_with_members):
        await seed(Collections.TRIPS, make_trip("hosted", type="hosted", status="locked"))
        await seed(Collections.JOIN_REQUESTS, {"id": "jr1", "tripId": "hosted", "requesterId": "dan", "status": "pending"})

        result = await DashboardService(store).get_dashboard("bob", today=TODAY)

        assert result.global_notifications == []

    async def test_dashboard_is_deterministic(self, store, seed, two_circles):
        await seed(
            Collections.TRIPS,
            make_trip("a"),
            make_trip("b", status="voting"),
            make_trip("c", circle_id="c2", status="locked", startDate="2025-09-01"),
        )
        service = DashboardService(store)
        assert await service.get_dashboard("bob", today=TODAY) == await service.get_dashboard("bob", today=TODAY)


class TestGetGlobalNotifications:
    async def test_feed_matches_dashboard_and_skips_finished_trips(self, store, seed, circle_with_members):
        await seed(
            Collections.TRIPS,
            make_trip("vote", status="voting"),
            make_trip("avail"),
            make_trip("done", status="completed"),
        )
        service = DashboardService(store)

        feed = await service.get_global_notifications("bob")
        dashboard = await service.get_dashboard("bob", today=TODAY)

        assert [n.id for n in feed] == ["trip-avail-scheduling_required", "trip-vote-date_vote"]
        assert feed == dashboard.global_notifications

    async def test_no_memberships(self, store):
        assert await DashboardService(store).get_global_notifications("nobody") == []

    async def test_traveler_sees_trip_of_private_creator(self, store, seed, circle_with_members):
        await store.update(Collections.USERS, "alice", {"privacy": {"tripsVisibility": "private"}})
        await seed(Collections.TRIPS, make_trip("t1"))
        service = DashboardService(store)

        feed = await service.get_global_notifications("bob")
        dashboard = await service.get_dashboard("bob", today=TODAY)

        assert [n.id for n in feed] == ["trip-t1-scheduling_required"]
        assert dashboard.circles[0].trips == []

    async def test_feed_privacy_filter_is_injectable(self, store, seed, circle_with_members):
        await seed(Collections.TRIPS, make_trip("a"), make_trip("b"))

        async def only_b(store, trips, viewer_id):
            return [t for t in trips if t["id"] == "b"]

        feed = await DashboardService(store, feed_privacy_filter=only_b).get_global_notifications("bob")

        assert [n.id for n in feed] == ["trip-b-scheduling_required"]
