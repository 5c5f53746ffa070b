"""Bulk evidence loading for trip card derivation.

All collections for a batch of trips are read concurrently and joined in
memory, so building N cards costs a fixed number of store queries.
"""

import asyncio
from dataclasses import dataclass, field

from tripcoord.db.store import Collections, DocumentStore


@dataclass(frozen=True)
class TripEvidence:
    """Everything derivation needs about one trip."""

    votes: list[dict] = field(default_factory=list)
    participants: list[dict] = field(default_factory=list)
    date_picks: list[dict] = field(default_factory=list)
    availabilities: list[dict] = field(default_factory=list)
    date_windows: list[dict] = field(default_factory=list)
    window_supports: list[dict] = field(default_factory=list)
    messages: list[dict] = field(default_factory=list)
    memberships: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class Evidence:
    """Evidence for a batch of trips, sliced per trip on demand."""

    votes: list[dict] = field(default_factory=list)
    participants: list[dict] = field(default_factory=list)
    date_picks: list[dict] = field(default_factory=list)
    availabilities: list[dict] = field(default_factory=list)
    date_windows: list[dict] = field(default_factory=list)
    window_supports: list[dict] = field(default_factory=list)
    messages: list[dict] = field(default_factory=list)
    memberships: list[dict] = field(default_factory=list)

    def for_trip(self, trip: dict) -> TripEvidence:
        trip_id = trip.get("id")
        circle_id = trip.get("circleId")

        def of_trip(docs: list[dict]) -> list[dict]:
            return [d for d in docs if d.get("tripId") == trip_id]

        return TripEvidence(
            votes=of_trip(self.votes),
            participants=of_trip(self.participants),
            date_picks=of_trip(self.date_picks),
            availabilities=of_trip(self.availabilities),
            date_windows=of_trip(self.date_windows),
            window_supports=of_trip(self.window_supports),
            messages=of_trip(self.messages),
            memberships=[m for m in self.memberships if m.get("circleId") == circle_id],
        )


async def load_evidence(
    store: DocumentStore,
    trip_ids: list[str],
    circle_ids: list[str],
) -> Evidence:
    """Fetch every evidence collection for ``trip_ids`` in parallel.

    Memberships are loaded for ``circle_ids`` (left members excluded).
    """
    if not trip_ids:
        return Evidence()

    by_trip = {"tripId": {"$in": list(trip_ids)}}

    (
        votes,
        participants,
        date_picks,
        availabilities,
        date_windows,
        window_supports,
        messages,
        memberships,
    ) = await asyncio.gather(
        store.find(Collections.VOTES, by_trip),
        store.find(Collections.PARTICIPANTS, by_trip),
        store.find(Collections.DATE_PICKS, by_trip),
        store.find(Collections.AVAILABILITIES, by_trip),
        store.find(Collections.DATE_WINDOWS, by_trip),
        store.find(Collections.WINDOW_SUPPORTS, by_trip),
        store.find(Collections.MESSAGES, by_trip),
        store.find(
            Collections.MEMBERSHIPS,
            {"circleId": {"$in": list(circle_ids)}, "status": {"$ne": "left"}},
        ),
    )

    return Evidence(
        votes=votes,
        participants=participants,
        date_picks=date_picks,
        availabilities=availabilities,
        date_windows=date_windows,
        window_supports=window_supports,
        messages=messages,
        memberships=memberships,
    )
