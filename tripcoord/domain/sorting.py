"""Deterministic ordering for dashboard trips, circles and notifications.

Every ordering is a single comparator chained from ordered sub-comparators,
so each sort is a total order and re-sorting sorted output is a no-op.

Works on trip-card-shaped objects (attributes ``name``, ``status``,
``start_date``, ``end_date``, ``locked_start_date``, ``locked_end_date``,
``pending_actions``, ``latest_activity``, ``canceled_at``, ``created_at``),
circle-shaped objects (``name``, ``trips``) and notification-shaped objects
(``id``, ``priority``, ``timestamp``).
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from functools import cmp_to_key
from typing import Any

from tripcoord.domain.status import STATUS_PROGRESSION, TripStatus

Comparator = Callable[[Any, Any], int]

# Trip buckets, in display order
BUCKET_PENDING = 1
BUCKET_UPCOMING = 2
BUCKET_IN_PROGRESS = 3
BUCKET_PAST = 4


@dataclass
class SortedTrips:
    active: list = field(default_factory=list)
    cancelled: list = field(default_factory=list)


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def chain(*comparators: Comparator) -> Comparator:
    """Lexicographic combination: the first non-zero comparison decides."""

    def compare(a, b) -> int:
        for comparator in comparators:
            result = comparator(a, b)
            if result:
                return result
        return 0

    return compare


def ascending(key: Callable[[Any], Any]) -> Comparator:
    return lambda a, b: _cmp(key(a), key(b))


def descending(key: Callable[[Any], Any]) -> Comparator:
    return lambda a, b: _cmp(key(b), key(a))


def present_first(key: Callable[[Any], Any], direction: Comparator) -> Comparator:
    """Order by ``key`` using ``direction``; missing values go last."""

    def compare(a, b) -> int:
        ka, kb = key(a), key(b)
        if not ka and not kb:
            return 0
        if not ka:
            return 1
        if not kb:
            return -1
        return direction(a, b)

    return compare


def true_first(predicate: Callable[[Any], bool]) -> Comparator:
    return lambda a, b: _cmp(not predicate(a), not predicate(b))


def _today(today: str | None) -> str:
    return today or date.today().isoformat()


# ──────────────────────────────────────────────────────────────────────────────
# Trips
# ──────────────────────────────────────────────────────────────────────────────


def min_action_priority(trip) -> int | None:
    priorities = [a.priority for a in (trip.pending_actions or [])]
    return min(priorities) if priorities else None


def _activity_at(trip) -> str:
    if trip.latest_activity is not None and trip.latest_activity.created_at:
        return trip.latest_activity.created_at
    return ""


def _pending_recency(trip) -> str:
    activity = _activity_at(trip)
    if activity:
        return activity
    actions = trip.pending_actions or []
    return actions[0].timestamp if actions else ""


def _status_rank(trip) -> int:
    try:
        return STATUS_PROGRESSION.get(TripStatus(trip.status), 0)
    except ValueError:
        return 0


def is_cancelled(trip) -> bool:
    return trip.status == TripStatus.CANCELED


def trip_bucket(trip, today: str) -> int:
    """Bucket a non-cancelled trip for dashboard ordering."""
    if trip.pending_actions:
        return BUCKET_PENDING
    if trip.start_date and trip.start_date >= today:
        return BUCKET_UPCOMING
    if not trip.locked_start_date and not trip.locked_end_date:
        return BUCKET_IN_PROGRESS
    if trip.end_date and trip.end_date < today:
        return BUCKET_PAST
    return BUCKET_IN_PROGRESS


def _within_bucket(today: str) -> Comparator:
    by_pending = chain(
        ascending(min_action_priority),
        descending(_pending_recency),
    )
    by_upcoming = present_first(lambda t: t.start_date, ascending(lambda t: t.start_date))
    by_progress = chain(
        ascending(_status_rank),
        descending(_activity_at),
    )
    by_past = present_first(lambda t: t.end_date, descending(lambda t: t.end_date))

    per_bucket = {
        BUCKET_PENDING: by_pending,
        BUCKET_UPCOMING: by_upcoming,
        BUCKET_IN_PROGRESS: by_progress,
        BUCKET_PAST: by_past,
    }

    def compare(a, b) -> int:
        # Only called once both trips share a bucket
        return per_bucket[trip_bucket(a, today)](a, b)

    return compare


def trip_comparator(today: str | None = None) -> Comparator:
    day = _today(today)
    return chain(
        ascending(lambda t: trip_bucket(t, day)),
        _within_bucket(day),
        ascending(lambda t: t.name or ""),
    )


def sort_trips(trips: Iterable, today: str | None = None) -> SortedTrips:
    """Sort a circle's trips for the dashboard.

    Cancelled trips are split out, most recently cancelled first. Active trips:
        1. With pending actions: lowest action priority, then most recent activity
        2. Future start date: soonest first
        3. In progress / dates not locked: status progression, then recent activity
        4. Past: most recently ended first
    Ties fall back to trip name A-Z.
    """
    trips = list(trips)
    cancelled = [t for t in trips if is_cancelled(t)]
    active = [t for t in trips if not is_cancelled(t)]

    cancelled_key = cmp_to_key(chain(
        descending(lambda t: t.canceled_at or t.created_at or ""),
        ascending(lambda t: t.name or ""),
    ))

    return SortedTrips(
        active=sorted(active, key=cmp_to_key(trip_comparator(today))),
        cancelled=sorted(cancelled, key=cancelled_key),
    )


# ──────────────────────────────────────────────────────────────────────────────
# Circles
# ──────────────────────────────────────────────────────────────────────────────


def _has_urgent_action(circle) -> bool:
    return any(a.priority <= 2 for t in circle.trips for a in (t.pending_actions or []))


def _has_any_action(circle) -> bool:
    return any(t.pending_actions for t in circle.trips)


def latest_circle_activity(circle) -> str:
    return max((_activity_at(t) for t in circle.trips), default="")


def circle_comparator(today: str | None = None) -> Comparator:
    day = _today(today)
    return chain(
        true_first(_has_urgent_action),
        true_first(_has_any_action),
        present_first(latest_circle_activity, descending(latest_circle_activity)),
        true_first(lambda c: any(t.start_date and t.start_date >= day for t in c.trips)),
        ascending(lambda c: c.name or ""),
    )


def sort_circles(circles: Iterable, today: str | None = None) -> list:
    """Order a user's circles, most in need of attention first."""
    return sorted(circles, key=cmp_to_key(circle_comparator(today)))


# ──────────────────────────────────────────────────────────────────────────────
# Notifications
# ──────────────────────────────────────────────────────────────────────────────

notification_comparator = chain(
    ascending(lambda n: n.priority),
    descending(lambda n: n.timestamp or ""),
    ascending(lambda n: n.id),
)


def sort_notifications(notifications: Iterable) -> list:
    """Priority ascending, then newest first."""
    return sorted(notifications, key=cmp_to_key(notification_comparator))
