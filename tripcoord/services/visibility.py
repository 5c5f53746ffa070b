"""Privacy collaborators: decide which trips a viewer may see.

Each collaborator takes the store, the candidate trips and the viewer id, and
returns the visible subset in the input order. The dashboard hides trips by
their creator's setting; the notification feed and per-trip reads look at
every active traveler.
"""

import asyncio
from collections.abc import Awaitable, Callable

from tripcoord.db.store import Collections, DocumentStore
from tripcoord.domain.privacy import filter_trips_by_privacy, filter_trips_by_traveler_privacy
from tripcoord.domain.travelers import LateJoinerPredicate, active_traveler_ids, is_late_joiner_for_trip

PrivacyFilter = Callable[[DocumentStore, list[dict], str], Awaitable[list[dict]]]


async def filter_by_owner_privacy(store: DocumentStore, trips: list[dict], viewer_id: str) -> list[dict]:
    """Hide trips whose creator keeps trips private."""
    owner_ids = sorted({t["createdBy"] for t in trips if t.get("createdBy") and t["createdBy"] != viewer_id})
    if not owner_ids:
        return list(trips)
    owners = await store.find(Collections.USERS, {"id": {"$in": owner_ids}})
    return filter_trips_by_privacy(trips, viewer_id, {u["id"]: u for u in owners})


async def filter_by_traveler_privacy(
    store: DocumentStore,
    trips: list[dict],
    viewer_id: str,
    is_late_joiner: LateJoinerPredicate = is_late_joiner_for_trip,
) -> list[dict]:
    """Hide trips that any active traveler keeps private from viewers not traveling on them."""
    if not trips:
        return []

    trip_ids = [t["id"] for t in trips]
    circle_ids = sorted({t["circleId"] for t in trips if t.get("circleId")})
    participants, memberships = await asyncio.gather(
        store.find(Collections.PARTICIPANTS, {"tripId": {"$in": trip_ids}}),
        store.find(Collections.MEMBERSHIPS, {"circleId": {"$in": circle_ids}, "status": {"$ne": "left"}}),
    )

    traveler_ids_by_trip = {
        trip["id"]: active_traveler_ids(
            trip,
            [p for p in participants if p.get("tripId") == trip["id"]],
            [m for m in memberships if m.get("circleId") == trip.get("circleId")],
            is_late_joiner,
        )
        for trip in trips
    }

    user_ids = sorted({uid for ids in traveler_ids_by_trip.values() for uid in ids if uid != viewer_id})
    users = await store.find(Collections.USERS, {"id": {"$in": user_ids}}) if user_ids else []
    return filter_trips_by_traveler_privacy(trips, viewer_id, traveler_ids_by_trip, {u["id"]: u for u in users})
