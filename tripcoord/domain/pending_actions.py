"""Per-user pending actions for a trip.

``derive_pending_actions`` lists what a user still owes on one trip.
``get_user_action_required`` collapses the scheduling/voting subset of those
rules into the boolean behind "your turn" badges.

Pure domain logic with no external dependencies.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from tripcoord.domain.status import SchedulingMode, TripStatus, TripType, normalize_trip


class PendingActionType(StrEnum):
    SCHEDULING_REQUIRED = "scheduling_required"
    DATE_VOTE = "date_vote"
    ITINERARY_REVIEW = "itinerary_review"
    OTHER_INPUT = "other_input"


@dataclass(frozen=True)
class PendingAction:
    """A task the user has not done yet. Priority 1 is most urgent."""

    type: PendingActionType
    priority: int
    label: str
    href: str
    timestamp: str


COLLECTING_STATUSES = frozenset({TripStatus.PROPOSED, TripStatus.SCHEDULING})

SCHEDULING_LABELS = {
    SchedulingMode.DATE_WINDOWS: "Add your dates",
    SchedulingMode.TOP3_HEATMAP: "Share your dates",
    SchedulingMode.AVAILABILITY: "Mark availability",
}


def trip_href(trip: dict) -> str:
    return f"/trips/{trip.get('id')}"


def _activity_timestamp(trip: dict) -> str:
    return trip.get("updatedAt") or trip.get("createdAt") or ""


def has_shared_dates(
    mode: SchedulingMode,
    user_id: str,
    user_date_picks: Sequence | None,
    availabilities: Sequence[dict],
    date_windows: Sequence[dict],
    window_supports: Sequence[dict],
) -> bool:
    """Whether the user has given scheduling input under the trip's sub-mode."""
    if mode == SchedulingMode.DATE_WINDOWS:
        suggested = any(w.get("suggestedBy") == user_id for w in date_windows)
        supported = any(s.get("userId") == user_id for s in window_supports)
        return suggested or supported
    if mode == SchedulingMode.TOP3_HEATMAP:
        return bool(user_date_picks)
    return any(a.get("userId") == user_id for a in availabilities)


def derive_pending_actions(
    trip: dict,
    user_id: str,
    user_role_in_circle: str | None,
    user_date_picks: Sequence | None,
    user_vote: dict | None,
    is_participant: bool,
    availabilities: Sequence[dict],
    votes: Sequence[dict],
    is_current_user_traveler: bool = True,
    date_windows: Sequence[dict] = (),
    window_supports: Sequence[dict] = (),
) -> list[PendingAction]:
    """Derive the actions ``user_id`` still owes on ``trip``.

    Pure function -- same inputs always give the same, identically ordered list.

    Args:
        trip: Trip document
        user_id: Viewing user
        user_role_in_circle: "owner" or "member" (informational)
        user_date_picks: The user's top-3 picks, or None
        user_vote: The user's vote record, or None
        is_participant: Whether the user has any participant record (hosted trips)
        availabilities: Availability records for this trip
        votes: Vote records for this trip
        is_current_user_traveler: Whether the user is an active traveler
        date_windows: Date windows for this trip
        window_supports: Window supports for this trip

    Returns:
        Actions sorted by priority ascending; several may coexist.
    """
    state = normalize_trip(trip)
    if state.is_terminal:
        return []

    actions: list[PendingAction] = []
    is_creator = trip.get("createdBy") == user_id
    href = trip_href(trip)
    timestamp = _activity_timestamp(trip)

    if state.trip_type == TripType.COLLABORATIVE:
        if is_current_user_traveler and state.status in COLLECTING_STATUSES:
            if not has_shared_dates(
                state.scheduling_mode,
                user_id,
                user_date_picks,
                availabilities,
                date_windows,
                window_supports,
            ):
                actions.append(PendingAction(
                    type=PendingActionType.SCHEDULING_REQUIRED,
                    priority=1,
                    label=SCHEDULING_LABELS[state.scheduling_mode],
                    href=href,
                    timestamp=timestamp,
                ))

        if is_current_user_traveler and state.status == TripStatus.VOTING and not user_vote:
            actions.append(PendingAction(
                type=PendingActionType.DATE_VOTE,
                priority=2,
                label="Vote on dates",
                href=href,
                timestamp=timestamp,
            ))

        # Available as soon as any vote exists; there is no quorum check here
        if is_creator and state.status == TripStatus.VOTING and len(votes) > 0:
            actions.append(PendingAction(
                type=PendingActionType.DATE_VOTE,
                priority=2,
                label="Finalize dates",
                href=href,
                timestamp=timestamp,
            ))

    if state.trip_type == TripType.HOSTED:
        if not is_participant and state.status != TripStatus.LOCKED:
            actions.append(PendingAction(
                type=PendingActionType.OTHER_INPUT,
                priority=2,
                label="Join trip",
                href=href,
                timestamp=trip.get("createdAt") or "",
            ))

        if is_creator:
            itinerary_status = trip.get("itineraryStatus")
            if state.status == TripStatus.LOCKED and itinerary_status == "collecting_ideas":
                actions.append(PendingAction(
                    type=PendingActionType.ITINERARY_REVIEW,
                    priority=3,
                    label="Generate itinerary",
                    href=href,
                    timestamp=timestamp,
                ))
            elif itinerary_status == "drafting":
                actions.append(PendingAction(
                    type=PendingActionType.ITINERARY_REVIEW,
                    priority=3,
                    label="Review itinerary draft",
                    href=href,
                    timestamp=timestamp,
                ))

    return sorted(actions, key=lambda a: a.priority)


def get_user_action_required(
    trip: dict,
    user_id: str,
    user_date_picks: Sequence | None,
    user_vote: dict | None,
    availabilities: Sequence[dict] = (),
    is_current_user_traveler: bool = True,
    date_windows: Sequence[dict] = (),
    window_supports: Sequence[dict] = (),
) -> bool:
    """Whether the user has a scheduling or voting step to take right now.

    Narrower than ``derive_pending_actions``: only collaborative scheduling and
    voting count, and a leader who has voted owes nothing even while the
    finalize step is open.
    """
    if not is_current_user_traveler:
        return False

    state = normalize_trip(trip)
    if state.is_terminal or state.is_locked:
        return False
    if state.trip_type != TripType.COLLABORATIVE:
        return False

    if state.status in COLLECTING_STATUSES:
        return not has_shared_dates(
            state.scheduling_mode,
            user_id,
            user_date_picks,
            availabilities,
            date_windows,
            window_supports,
        )

    if state.status == TripStatus.VOTING:
        return not user_vote

    return False
