"""DashboardService: aggregates circles, trip cards and notifications for one user.

Orchestrates domain functions with store queries. All ordering and derivation
rules live in the domain layer; this module only fetches and assembles.
"""

from urllib.parse import urlencode

import structlog

from tripcoord.core.config import get_settings
from tripcoord.db.store import Collections, DocumentStore
from tripcoord.domain.sorting import sort_circles, sort_notifications, sort_trips
from tripcoord.domain.status import TripStatus
from tripcoord.domain.travelers import LateJoinerPredicate, is_late_joiner_for_trip
from tripcoord.schemas.dashboard import CircleCard, DashboardResponse, GlobalNotification, TripCard
from tripcoord.services.trip_cards import build_trip_cards
from tripcoord.services.visibility import PrivacyFilter, filter_by_owner_privacy, filter_by_traveler_privacy

logger = structlog.get_logger(__name__)

INACTIVE_TRIP_STATUSES = [TripStatus.COMPLETED.value, TripStatus.CANCELED.value]


def _return_query(circle_id: str | None, return_path: str) -> str:
    return urlencode({"returnTo": return_path, "circleId": circle_id or ""})


def trip_notification(card: TripCard, return_path: str) -> GlobalNotification | None:
    """The card's most urgent action as a feed entry, or None when nothing is pending."""
    if not card.pending_actions:
        return None
    action = card.pending_actions[0]
    separator = "&" if "?" in action.href else "?"
    return GlobalNotification(
        id=f"trip-{card.id}-{action.type}",
        title=card.name,
        context=action.label,
        cta_label=action.label,
        href=f"{action.href}{separator}{_return_query(card.circle_id, return_path)}",
        priority=action.priority,
        timestamp=action.timestamp,
    )


class DashboardService:
    """Service layer for the cross-circle dashboard.

    Args:
        store: Document store (injected)
        privacy_filter: Async collaborator deciding which trips the dashboard shows
        feed_privacy_filter: Same, for the notification feed
        is_late_joiner: Late-joiner predicate used for traveler resolution
    """

    def __init__(
        self,
        store: DocumentStore,
        privacy_filter: PrivacyFilter = filter_by_owner_privacy,
        feed_privacy_filter: PrivacyFilter = filter_by_traveler_privacy,
        is_late_joiner: LateJoinerPredicate = is_late_joiner_for_trip,
    ):
        self.store = store
        self.privacy_filter = privacy_filter
        self.feed_privacy_filter = feed_privacy_filter
        self.is_late_joiner = is_late_joiner
        self.return_path = get_settings().dashboard_return_path

    async def _memberships(self, user_id: str) -> list[dict]:
        return await self.store.find(
            Collections.MEMBERSHIPS,
            {"userId": user_id, "status": {"$ne": "left"}},
        )

    async def _join_request_notifications(
        self,
        user_id: str,
        trips: list[dict],
    ) -> list[GlobalNotification]:
        """One priority-1 entry per pending join request on trips the user created."""
        led = {t["id"]: t for t in trips if t.get("createdBy") == user_id}
        if not led:
            return []

        requests = await self.store.find(
            Collections.JOIN_REQUESTS,
            {"tripId": {"$in": sorted(led)}, "status": "pending"},
        )
        if not requests:
            return []

        requester_ids = sorted({r["requesterId"] for r in requests if r.get("requesterId")})
        requesters = await self.store.find(Collections.USERS, {"id": {"$in": requester_ids}})
        names = {u["id"]: u.get("name") for u in requesters}

        notifications = []
        for request in sorted(requests, key=lambda r: r.get("createdAt") or ""):
            trip = led[request["tripId"]]
            name = names.get(request.get("requesterId")) or "Unknown"
            notifications.append(GlobalNotification(
                id=f"join-request-{request['id']}",
                title=trip.get("name") or "",
                context=f"{name} wants to join",
                cta_label="Review request",
                href=f"/trips/{trip['id']}?{_return_query(trip.get('circleId'), self.return_path)}",
                priority=1,
                timestamp=request.get("createdAt") or "",
            ))
        return notifications

    async def _notifications(
        self,
        user_id: str,
        cards: list[TripCard],
        trips: list[dict],
    ) -> list[GlobalNotification]:
        notifications = [n for n in (trip_notification(c, self.return_path) for c in cards) if n]
        notifications.extend(await self._join_request_notifications(user_id, trips))
        return sort_notifications(notifications)

    async def get_dashboard(self, user_id: str, today: str | None = None) -> DashboardResponse:
        """Get the full dashboard for ``user_id``.

        Args:
            user_id: Viewer
            today: ISO date used for upcoming/past bucketing (defaults to today)

        Returns:
            DashboardResponse with circles sorted by urgency; empty lists when
            the user belongs to no circle.
        """
        memberships = await self._memberships(user_id)
        if not memberships:
            return DashboardResponse()

        roles_by_circle = {m["circleId"]: m.get("role") for m in memberships}
        circle_ids = sorted(roles_by_circle)

        circles = await self.store.find(Collections.CIRCLES, {"id": {"$in": circle_ids}})
        trips = await self.store.find(Collections.TRIPS, {"circleId": {"$in": circle_ids}})
        visible = await self.privacy_filter(self.store, trips, user_id) if trips else []

        cards = await build_trip_cards(self.store, visible, user_id, roles_by_circle, self.is_late_joiner)

        cards_by_circle: dict[str, list[TripCard]] = {}
        for card in cards:
            cards_by_circle.setdefault(card.circle_id, []).append(card)

        circle_cards = []
        for circle in circles:
            ordered = sort_trips(cards_by_circle.get(circle["id"], []), today)
            circle_cards.append(CircleCard(
                id=circle["id"],
                name=circle.get("name") or "",
                role=roles_by_circle.get(circle["id"]),
                trips=ordered.active,
                cancelled_trips=ordered.cancelled,
            ))

        # Completed and cancelled trips carry no pending actions, so they drop out here
        notifications = await self._notifications(user_id, cards, visible)

        logger.info(
            "dashboard_built",
            user_id=user_id,
            circles=len(circle_cards),
            trips=len(cards),
            notifications=len(notifications),
        )

        return DashboardResponse(
            circles=sort_circles(circle_cards, today),
            global_notifications=notifications,
        )

    async def get_global_notifications(self, user_id: str) -> list[GlobalNotification]:
        """Notification feed alone, without circle cards.

        Completed and cancelled trips are skipped at query time. Visibility
        follows every active traveler's privacy, not only the creator's.
        """
        memberships = await self._memberships(user_id)
        if not memberships:
            return []

        roles_by_circle = {m["circleId"]: m.get("role") for m in memberships}
        trips = await self.store.find(
            Collections.TRIPS,
            {"circleId": {"$in": sorted(roles_by_circle)}, "status": {"$nin": INACTIVE_TRIP_STATUSES}},
        )
        visible = await self.feed_privacy_filter(self.store, trips, user_id) if trips else []

        cards = await build_trip_cards(self.store, visible, user_id, roles_by_circle, self.is_late_joiner)
        return await self._notifications(user_id, cards, visible)
