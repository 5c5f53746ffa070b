"""Trip state normalization.

Trips carry overlapping legacy and current fields (``status`` vs ``tripStatus``,
``proposedWindowId`` vs ``proposedWindowIds``). Everything that reasons about a
trip's phase goes through ``normalize_trip`` first so the dual-field checks live
in one place.

Pure domain logic with no external dependencies.
"""

from dataclasses import dataclass
from enum import Enum, StrEnum


class TripType(StrEnum):
    COLLABORATIVE = "collaborative"
    HOSTED = "hosted"


class TripStatus(StrEnum):
    """Legacy ``status`` field values."""

    PROPOSED = "proposed"
    SCHEDULING = "scheduling"
    VOTING = "voting"
    LOCKED = "locked"
    COMPLETED = "completed"
    CANCELED = "canceled"


class Lifecycle(StrEnum):
    """Newer ``tripStatus`` lifecycle flag. Takes precedence when terminal."""

    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class SchedulingMode(StrEnum):
    AVAILABILITY = "availability"
    TOP3_HEATMAP = "top3_heatmap"
    DATE_WINDOWS = "date_windows"


class SchedulingPhase(str, Enum):
    """Date-windows funnel sub-phase."""

    COLLECTING = "COLLECTING"
    PROPOSED = "PROPOSED"
    LOCKED = "LOCKED"


TERMINAL_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELED})

# Ordinal rank used when ordering in-progress trips
STATUS_PROGRESSION = {
    TripStatus.PROPOSED: 1,
    TripStatus.SCHEDULING: 2,
    TripStatus.VOTING: 3,
    TripStatus.LOCKED: 4,
}


@dataclass(frozen=True)
class TripState:
    """Canonical view of a trip's phase."""

    trip_type: TripType
    status: TripStatus
    scheduling_mode: SchedulingMode
    proposed_window_ids: tuple[str, ...]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_locked(self) -> bool:
        return self.status == TripStatus.LOCKED

    @property
    def has_active_proposal(self) -> bool:
        return len(self.proposed_window_ids) > 0


def trip_type(trip: dict) -> TripType:
    """Trip type, treating anything other than hosted as collaborative."""
    if trip.get("type") == TripType.HOSTED:
        return TripType.HOSTED
    return TripType.COLLABORATIVE


def default_status(kind: TripType) -> TripStatus:
    """Status assumed for old trips stored without one."""
    return TripStatus.LOCKED if kind == TripType.HOSTED else TripStatus.PROPOSED


def effective_status(trip: dict) -> TripStatus:
    """Resolve the single status a trip is in.

    A terminal ``tripStatus`` wins over the legacy field; otherwise the legacy
    ``status`` is used, defaulting by trip type when absent or unrecognized.
    """
    lifecycle = trip.get("tripStatus")
    if lifecycle == Lifecycle.CANCELLED:
        return TripStatus.CANCELED
    if lifecycle == Lifecycle.COMPLETED:
        return TripStatus.COMPLETED

    raw = trip.get("status")
    try:
        return TripStatus(raw)
    except ValueError:
        return default_status(trip_type(trip))


def scheduling_mode(trip: dict) -> SchedulingMode:
    try:
        return SchedulingMode(trip.get("schedulingMode"))
    except ValueError:
        return SchedulingMode.AVAILABILITY


def get_proposed_window_ids(trip: dict) -> list[str]:
    """Proposed window ids, accepting both the list and the single-id field."""
    ids = trip.get("proposedWindowIds") or []
    if ids:
        return list(ids)
    if trip.get("proposedWindowId"):
        return [trip["proposedWindowId"]]
    return []


def normalize_trip(trip: dict) -> TripState:
    """Map a raw trip document onto its canonical ``TripState``."""
    return TripState(
        trip_type=trip_type(trip),
        status=effective_status(trip),
        scheduling_mode=scheduling_mode(trip),
        proposed_window_ids=tuple(get_proposed_window_ids(trip)),
    )


def get_scheduling_phase(trip: dict) -> SchedulingPhase:
    """Where a trip sits in the date-windows funnel."""
    if effective_status(trip) == TripStatus.LOCKED or trip.get("lockedStartDate"):
        return SchedulingPhase.LOCKED
    if get_proposed_window_ids(trip):
        return SchedulingPhase.PROPOSED
    return SchedulingPhase.COLLECTING


def can_submit_window(trip: dict) -> bool:
    """New windows are accepted only while collecting."""
    return get_scheduling_phase(trip) == SchedulingPhase.COLLECTING


def is_trip_leader(trip: dict, user_id: str | None, circle: dict | None = None) -> bool:
    """Leader = trip creator or owner of the trip's circle."""
    if not user_id:
        return False
    if trip.get("createdBy") == user_id:
        return True
    return circle is not None and circle.get("ownerId") == user_id
