"""Tests for per-trip endpoints."""

import pytest

from tripcoord.db.store import Collections

pytestmark = pytest.mark.unit


def as_user(user_id: str) -> dict:
    return {"X-User-Id": user_id}


@pytest.fixture
async def trip(seed, circle_with_members):
    await seed(Collections.TRIPS, {
        "id": "t1",
        "circleId": "c1",
        "name": "Lisbon",
        "createdBy": "bob",
        "status": "voting",
        "schedulingMode": "date_windows",
        "createdAt": "2024-03-01T00:00:00Z",
        "promisingWindows": [
            {"startDate": "2025-06-01", "endDate": "2025-06-05"},
            {"startDate": "2025-07-01", "endDate": "2025-07-05"},
        ],
    })


class TestValidateAction:
    async def test_allowed(self, client, trip):
        response = await client.post("/api/trips/t1/actions/vote/validate", headers=as_user("carol"))
        assert response.status_code == 200
        assert response.json() == {"ok": True, "status": 200, "code": None, "message": None}

    async def test_open_voting_while_voting(self, client, trip):
        response = await client.post("/api/trips/t1/actions/open_voting/validate", headers=as_user("bob"))
        assert response.status_code == 400
        assert response.json()["detail"] == {"code": "STAGE_BLOCKED", "message": "Voting is already open"}

    async def test_leader_only(self, client, trip):
        response = await client.post("/api/trips/t1/actions/lock/validate", headers=as_user("carol"))
        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "LEADER_ONLY"

    async def test_unknown_trip(self, client):
        response = await client.post("/api/trips/nope/actions/vote/validate", headers=as_user("carol"))
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TRIP_NOT_FOUND"

    async def test_unknown_action(self, client, trip):
        response = await client.post("/api/trips/t1/actions/teleport/validate", headers=as_user("carol"))
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "UNKNOWN_ACTION"


class TestReadEndpoints:
    async def test_proposal_readiness(self, client, trip):
        response = await client.get(
            "/api/trips/t1/proposal-readiness",
            headers=as_user("bob"),
            params={"leader_override": "true"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["reason"] == "no_windows"
        assert body["stats"]["total_travelers"] == 3
        assert body["stats"]["threshold_needed"] == 2
        assert body["can_propose"] is True

    async def test_voting_status(self, client, seed, trip):
        await seed(Collections.VOTES, {"id": "v1", "tripId": "t1", "userId": "carol",
                                       "optionKey": "2025-07-01_2025-07-05", "voterName": "Carol Clark"})

        response = await client.get("/api/trips/t1/voting-status", headers=as_user("bob"))

        assert response.status_code == 200
        body = response.json()
        assert body["stage"] == "voting"
        assert body["voted_count"] == 1
        assert body["has_current_user_voted"] is False
        assert body["leading_option"]["label"] == "Jul 1–Jul 5"
        assert body["leading_option"]["voter_names"] == ["Carol"]

    async def test_card(self, client, trip):
        response = await client.get("/api/trips/t1/card", headers=as_user("carol"))
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "t1"
        assert body["traveler_count"] == 3
        assert [a["label"] for a in body["pending_actions"]] == ["Vote on dates"]

    async def test_missing_trip_is_404(self, client):
        for path in ("proposal-readiness", "voting-status", "card"):
            response = await client.get(f"/api/trips/nope/{path}", headers=as_user("bob"))
            assert response.status_code == 404
            assert response.json()["detail"]["code"] == "TRIP_NOT_FOUND"


class TestViewerAccess:
    async def test_non_member_gets_404_everywhere(self, client, trip):
        reads = ("proposal-readiness?leader_override=true", "voting-status", "card")
        for path in reads:
            response = await client.get(f"/api/trips/t1/{path}", headers=as_user("mallory"))
            assert response.status_code == 404
            assert response.json()["detail"]["code"] == "TRIP_NOT_FOUND"

        response = await client.post("/api/trips/t1/actions/vote/validate", headers=as_user("mallory"))
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TRIP_NOT_FOUND"

    async def test_leader_override_ignored_for_non_leader(self, client, trip):
        response = await client.get(
            "/api/trips/t1/proposal-readiness",
            headers=as_user("carol"),
            params={"leader_override": "true"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["can_propose"] is False
        assert body["leader_override"] is False
