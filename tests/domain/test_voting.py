"""Tests for voting status."""

import pytest

from tripcoord.domain.status import TripStatus
from tripcoord.domain.voting import format_option_label, get_voting_status, option_key

pytestmark = pytest.mark.unit

TRIP = {
    "id": "t1",
    "status": "voting",
    "promisingWindows": [
        {"startDate": "2025-06-01", "endDate": "2025-06-05"},
        {"startDate": "2025-07-10", "endDate": "2025-07-14"},
    ],
}
JUNE = option_key("2025-06-01", "2025-06-05")
JULY = option_key("2025-07-10", "2025-07-14")


def vote(user_id: str, key: str, name: str | None = None) -> dict:
    return {"tripId": "t1", "userId": user_id, "optionKey": key, "voterName": name}


class TestLabels:
    def test_option_key(self):
        assert JUNE == "2025-06-01_2025-06-05"

    def test_label(self):
        assert format_option_label("2025-06-01", "2025-06-05") == "Jun 1–Jun 5"


class TestGetVotingStatus:
    def test_not_voting(self):
        status = get_voting_status({**TRIP, "status": "scheduling"}, [], ["a", "b"], "a")
        assert status.stage == TripStatus.SCHEDULING
        assert not status.is_voting_stage
        assert status.options == []

    def test_tally_and_names(self):
        votes = [vote("a", JULY, "Alice Adams"), vote("b", JULY, "Bob Brown"), vote("c", JUNE)]
        status = get_voting_status(TRIP, votes, ["a", "b", "c", "d"], "a")
        assert status.voted_count == 3
        assert status.remaining_count == 1
        assert status.has_current_user_voted
        assert status.leading_option.option_key == JULY
        assert status.leading_option.voter_names == ["Alice", "Bob"]
        assert status.leading_votes == 2
        assert not status.is_tie
        assert status.ready_to_lock
        assert status.ready_to_lock_reason == "3/4 voted, clear leader"

    def test_all_voted_tie_is_leader_decision(self):
        votes = [vote("a", JUNE), vote("b", JULY)]
        status = get_voting_status(TRIP, votes, ["a", "b"], "c")
        assert status.is_tie
        assert not status.has_current_user_voted
        assert status.ready_to_lock
        assert status.ready_to_lock_reason == "All votes in (tie - leader decides)"

    def test_minority_voted_not_ready(self):
        status = get_voting_status(TRIP, [vote("a", JUNE)], ["a", "b", "c"], "a")
        assert not status.ready_to_lock
        assert status.leading_option.option_key == JUNE

    def test_votes_for_unknown_options_ignored(self):
        status = get_voting_status(TRIP, [vote("a", "2030-01-01_2030-01-02")], ["a", "b", "c"], "a")
        assert status.leading_option is None
        assert status.voted_count == 1
