"""Traveler resolution.

A user's relationship to a trip comes from an optional participant record,
their circle membership, and the late-joiner rule. ``resolve_traveler`` is the
only place that decides what a missing record means.

Pure domain logic with no external dependencies.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum

from tripcoord.domain.status import TripType, trip_type

LateJoinerPredicate = Callable[[dict | None, dict | None], bool]


class ParticipationState(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"  # no participant record; is_active carries the default


class ParticipantStatus(StrEnum):
    ACTIVE = "active"
    LEFT = "left"
    REMOVED = "removed"


@dataclass(frozen=True)
class TravelerResolution:
    state: ParticipationState
    is_active: bool


def is_late_joiner_for_trip(membership: dict | None, trip: dict | None) -> bool:
    """Whether a circle member joined after the trip was created.

    Late joiners are not automatic travelers. The trip creator never is one,
    and records missing either timestamp are grandfathered in.
    """
    if not membership or not trip:
        return False
    if membership.get("userId") and membership.get("userId") == trip.get("createdBy"):
        return False
    joined_at = membership.get("joinedAt")
    created_at = trip.get("createdAt")
    if not joined_at or not created_at:
        return False
    return joined_at > created_at


def participant_status(participant: dict) -> str:
    """Participant status; records without one are active."""
    return participant.get("status") or ParticipantStatus.ACTIVE.value


def is_active_membership(membership: dict | None) -> bool:
    return membership is not None and membership.get("status") != "left"


def resolve_traveler(
    trip: dict,
    participant: dict | None,
    membership: dict | None,
    is_late_joiner: LateJoinerPredicate = is_late_joiner_for_trip,
) -> TravelerResolution:
    """Resolve whether one user is an active traveler on ``trip``.

    Args:
        trip: Trip document
        participant: The user's trip participant record, if any
        membership: The user's membership in the trip's circle, if any
        is_late_joiner: Late-joiner predicate

    Rules:
        - Explicit participant record decides (missing status counts as active)
        - Hosted trip, no record: not a traveler (hosted trips are opt-in)
        - Collaborative trip, no record: traveler iff still a circle member
          and not a late joiner
    """
    if participant is not None:
        if participant_status(participant) == ParticipantStatus.ACTIVE:
            return TravelerResolution(ParticipationState.ACTIVE, True)
        return TravelerResolution(ParticipationState.INACTIVE, False)

    if trip_type(trip) == TripType.HOSTED:
        return TravelerResolution(ParticipationState.UNKNOWN, False)

    if not is_active_membership(membership):
        return TravelerResolution(ParticipationState.UNKNOWN, False)

    return TravelerResolution(ParticipationState.UNKNOWN, not is_late_joiner(membership, trip))


def active_traveler_ids(
    trip: dict,
    participants: Iterable[dict],
    memberships: Iterable[dict],
    is_late_joiner: LateJoinerPredicate = is_late_joiner_for_trip,
) -> list[str]:
    """User ids of the trip's active travelers, in a stable order.

    Args:
        trip: Trip document
        participants: Participant records for this trip
        memberships: Memberships of the trip's circle (left members are ignored)
        is_late_joiner: Late-joiner predicate
    """
    participant_by_user = {p.get("userId"): p for p in participants}

    if trip_type(trip) == TripType.HOSTED:
        return [
            user_id
            for user_id, participant in participant_by_user.items()
            if participant_status(participant) == ParticipantStatus.ACTIVE
        ]

    active: list[str] = []
    seen: set[str] = set()
    for membership in memberships:
        user_id = membership.get("userId")
        if user_id in seen or not is_active_membership(membership):
            continue
        seen.add(user_id)
        resolution = resolve_traveler(
            trip, participant_by_user.get(user_id), membership, is_late_joiner
        )
        if resolution.is_active:
            active.append(user_id)
    return active
