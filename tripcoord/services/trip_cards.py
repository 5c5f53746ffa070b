"""Trip card builder: one trip + one viewer -> display-ready TripCard.

Shared by the dashboard and per-trip endpoints so both show the same status,
traveler count and pending actions.
"""

from dataclasses import asdict

from tripcoord.db.store import DocumentStore
from tripcoord.domain.pending_actions import derive_pending_actions, get_user_action_required
from tripcoord.domain.status import effective_status, normalize_trip
from tripcoord.domain.travelers import (
    LateJoinerPredicate,
    active_traveler_ids,
    is_late_joiner_for_trip,
    resolve_traveler,
)
from tripcoord.schemas.dashboard import LatestActivity, PendingActionResponse, TripCard
from tripcoord.services.evidence import TripEvidence, load_evidence


def latest_activity(messages: list[dict]) -> LatestActivity | None:
    """Most recent trip message, or None when the trip has no messages."""
    if not messages:
        return None
    latest = max(messages, key=lambda m: m.get("createdAt") or "")
    return LatestActivity(
        text=latest.get("content") or "Activity",
        created_at=latest.get("createdAt") or "",
    )


def build_trip_card(
    trip: dict,
    user_id: str,
    user_role_in_circle: str | None,
    evidence: TripEvidence,
    is_late_joiner: LateJoinerPredicate = is_late_joiner_for_trip,
) -> TripCard:
    """Build the card for ``trip`` as seen by ``user_id``.

    Args:
        trip: Trip document
        user_id: Viewer
        user_role_in_circle: Viewer's circle role ("owner" or "member")
        evidence: Evidence already filtered to this trip
        is_late_joiner: Late-joiner predicate

    Traveler status is resolved before pending actions so both derivations
    can gate on it.
    """
    state = normalize_trip(trip)

    user_picks_doc = next((dp for dp in evidence.date_picks if dp.get("userId") == user_id), None)
    user_date_picks = user_picks_doc.get("picks") if user_picks_doc else None
    user_vote = next((v for v in evidence.votes if v.get("userId") == user_id), None)
    user_participant = next((p for p in evidence.participants if p.get("userId") == user_id), None)
    user_membership = next((m for m in evidence.memberships if m.get("userId") == user_id), None)

    traveler_ids = active_traveler_ids(trip, evidence.participants, evidence.memberships, is_late_joiner)
    viewer = resolve_traveler(trip, user_participant, user_membership, is_late_joiner)

    pending = derive_pending_actions(
        trip,
        user_id,
        user_role_in_circle,
        user_date_picks,
        user_vote,
        user_participant is not None,
        evidence.availabilities,
        evidence.votes,
        is_current_user_traveler=viewer.is_active,
        date_windows=evidence.date_windows,
        window_supports=evidence.window_supports,
    )

    action_required = get_user_action_required(
        trip,
        user_id,
        user_date_picks,
        user_vote,
        evidence.availabilities,
        is_current_user_traveler=viewer.is_active,
        date_windows=evidence.date_windows,
        window_supports=evidence.window_supports,
    )

    return TripCard(
        id=trip["id"],
        circle_id=trip.get("circleId"),
        name=trip.get("name") or "",
        status=effective_status(trip).value,
        trip_status=trip.get("tripStatus"),
        start_date=trip.get("lockedStartDate") or trip.get("startDate") or None,
        end_date=trip.get("lockedEndDate") or trip.get("endDate") or None,
        traveler_count=len(traveler_ids),
        latest_activity=latest_activity(evidence.messages),
        pending_actions=[PendingActionResponse(**{**asdict(action), "type": action.type.value}) for action in pending],
        action_required=action_required,
        created_by=trip.get("createdBy"),
        type=state.trip_type.value,
        is_current_user_traveler=viewer.is_active,
        itinerary_status=trip.get("itineraryStatus"),
        locked_start_date=trip.get("lockedStartDate"),
        locked_end_date=trip.get("lockedEndDate"),
        canceled_at=trip.get("canceledAt"),
        created_at=trip.get("createdAt"),
    )


async def build_trip_cards(
    store: DocumentStore,
    trips: list[dict],
    user_id: str,
    roles_by_circle: dict[str, str | None],
    is_late_joiner: LateJoinerPredicate = is_late_joiner_for_trip,
) -> list[TripCard]:
    """Build cards for many trips with one bulk evidence load."""
    if not trips:
        return []

    circle_ids = sorted({t.get("circleId") for t in trips if t.get("circleId")})
    evidence = await load_evidence(store, [t["id"] for t in trips], circle_ids)

    return [
        build_trip_card(
            trip,
            user_id,
            roles_by_circle.get(trip.get("circleId")),
            evidence.for_trip(trip),
            is_late_joiner,
        )
        for trip in trips
    ]
