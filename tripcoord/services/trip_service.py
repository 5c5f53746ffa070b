"""TripService: per-trip orchestration over the document store.

Loads the trip and its evidence, then hands off to the pure domain functions.
Reads are scoped to the viewer: a trip outside their circles, or hidden by a
traveler's privacy setting, is reported exactly like a missing one.
"""

import structlog

from tripcoord.core.exceptions import TripNotFoundError
from tripcoord.db.store import Collections, DocumentStore
from tripcoord.domain.readiness import ProposalReadiness, can_leader_propose
from tripcoord.domain.stages import ValidationResult, validate_stage_action
from tripcoord.domain.status import TripStatus, effective_status, is_trip_leader
from tripcoord.domain.travelers import LateJoinerPredicate, active_traveler_ids, is_late_joiner_for_trip
from tripcoord.domain.voting import VotingStatus, get_voting_status
from tripcoord.schemas.dashboard import TripCard
from tripcoord.services.evidence import TripEvidence, load_evidence
from tripcoord.services.trip_cards import build_trip_card
from tripcoord.services.visibility import PrivacyFilter, filter_by_traveler_privacy

logger = structlog.get_logger(__name__)


class TripService:
    """Service layer for single-trip queries and transitions.

    Args:
        store: Document store (injected)
        is_late_joiner: Late-joiner predicate used for traveler resolution
        privacy_filter: Async collaborator deciding whether the viewer may see a trip
    """

    def __init__(
        self,
        store: DocumentStore,
        is_late_joiner: LateJoinerPredicate = is_late_joiner_for_trip,
        privacy_filter: PrivacyFilter = filter_by_traveler_privacy,
    ):
        self.store = store
        self.is_late_joiner = is_late_joiner
        self.privacy_filter = privacy_filter

    async def _get_trip(self, trip_id: str) -> dict:
        trip = await self.store.get(Collections.TRIPS, trip_id)
        if trip is None:
            raise TripNotFoundError(trip_id)
        return trip

    async def _evidence(self, trip: dict) -> TripEvidence:
        circle_ids = [trip["circleId"]] if trip.get("circleId") else []
        evidence = await load_evidence(self.store, [trip["id"]], circle_ids)
        return evidence.for_trip(trip)

    def _travelers(self, trip: dict, evidence: TripEvidence) -> list[str]:
        return active_traveler_ids(trip, evidence.participants, evidence.memberships, self.is_late_joiner)

    async def _can_view(self, trip: dict, viewer_id: str | None) -> bool:
        """Viewer is an active member of the trip's circle and passes the privacy filter."""
        if not viewer_id or not trip.get("circleId"):
            return False
        membership = await self.store.find_one(
            Collections.MEMBERSHIPS,
            {"circleId": trip["circleId"], "userId": viewer_id, "status": {"$ne": "left"}},
        )
        if membership is None:
            return False
        return bool(await self.privacy_filter(self.store, [trip], viewer_id))

    async def _get_visible_trip(self, trip_id: str, viewer_id: str | None) -> dict:
        trip = await self._get_trip(trip_id)
        if not await self._can_view(trip, viewer_id):
            logger.info("trip_access_denied", trip_id=trip_id, viewer_id=viewer_id)
            raise TripNotFoundError(trip_id)
        return trip

    async def check_action(self, trip_id: str, action: str, actor_id: str | None) -> ValidationResult:
        """Run the stage validator for ``action`` on a stored trip.

        A missing trip, or one the actor may not see, is reported through the
        result (404), not raised.
        """
        trip = await self.store.get(Collections.TRIPS, trip_id)
        if trip is not None and not await self._can_view(trip, actor_id):
            logger.info("trip_access_denied", trip_id=trip_id, viewer_id=actor_id)
            trip = None

        circle = None
        if trip is not None:
            circle = await self.store.get(Collections.CIRCLES, trip["circleId"])

        result = validate_stage_action(trip, action, actor_id, circle)
        if not result.ok:
            logger.info(
                "stage_action_denied",
                trip_id=trip_id,
                action=action,
                actor_id=actor_id,
                code=result.code,
                status=result.status,
            )
        return result

    async def get_proposal_readiness(
        self,
        trip_id: str,
        viewer_id: str,
        leader_override: bool = False,
    ) -> ProposalReadiness:
        """Readiness of the leading date window.

        ``leader_override`` is honoured only when the viewer leads the trip
        (creator or circle owner); for anyone else it is ignored.

        Raises:
            TripNotFoundError: unknown trip, or not visible to ``viewer_id``
        """
        trip = await self._get_visible_trip(trip_id, viewer_id)
        if leader_override:
            circle = await self.store.get(Collections.CIRCLES, trip["circleId"])
            if not is_trip_leader(trip, viewer_id, circle):
                logger.info("leader_override_ignored", trip_id=trip_id, viewer_id=viewer_id)
                leader_override = False

        evidence = await self._evidence(trip)
        return can_leader_propose(
            trip,
            self._travelers(trip, evidence),
            evidence.date_windows,
            evidence.window_supports,
            leader_override=leader_override,
        )

    async def get_voting_status(self, trip_id: str, viewer_id: str) -> VotingStatus:
        trip = await self._get_visible_trip(trip_id, viewer_id)
        evidence = await self._evidence(trip)
        return get_voting_status(trip, evidence.votes, self._travelers(trip, evidence), viewer_id)

    async def get_trip_card(self, trip_id: str, viewer_id: str) -> TripCard:
        """The trip card as ``viewer_id`` sees it on the dashboard."""
        trip = await self._get_visible_trip(trip_id, viewer_id)
        evidence = await self._evidence(trip)
        membership = next((m for m in evidence.memberships if m.get("userId") == viewer_id), None)
        role = membership.get("role") if membership else None
        return build_trip_card(trip, viewer_id, role, evidence, self.is_late_joiner)

    async def apply_status_transition(
        self,
        trip_id: str,
        expected_status: TripStatus | str,
        new_status: TripStatus | str,
    ) -> bool:
        """Move a trip to ``new_status`` only if it is still in ``expected_status``.

        Returns:
            True if this caller made the transition; False if the trip moved on
            first (another writer won the race)

        Raises:
            TripNotFoundError: unknown trip
        """
        trip = await self._get_trip(trip_id)
        expected = TripStatus(expected_status)
        target = TripStatus(new_status)

        if effective_status(trip) != expected:
            logger.info(
                "status_transition_conflict",
                trip_id=trip_id,
                expected=expected.value,
                actual=effective_status(trip).value,
            )
            return False

        # Exactly what was read; a concurrent status change or cancellation fails it
        precondition = {"status": trip.get("status"), "tripStatus": trip.get("tripStatus")}
        applied = await self.store.update(
            Collections.TRIPS,
            trip_id,
            {"status": target.value},
            expected=precondition,
        )
        if not applied:
            logger.info(
                "status_transition_conflict",
                trip_id=trip_id,
                expected=expected.value,
                new_status=target.value,
            )
            return False

        logger.info("status_transition_applied", trip_id=trip_id, status=target.value)
        return True
