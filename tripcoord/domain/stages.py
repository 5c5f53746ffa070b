"""Stage action validation.

Decides whether an action is currently legal for a trip. Callers apply the
decision and perform the mutation themselves.

Pure domain logic with no external dependencies.
"""

from dataclasses import dataclass
from enum import StrEnum

from tripcoord.domain.status import TripStatus, is_trip_leader, normalize_trip


class ActionName(StrEnum):
    SUBMIT_AVAILABILITY = "submit_availability"
    SUBMIT_DATE_PICKS = "submit_date_picks"
    OPEN_VOTING = "open_voting"
    VOTE = "vote"
    LOCK = "lock"
    SUBMIT_DATE_WINDOW = "submit_date_window"
    SUPPORT_WINDOW = "support_window"
    PROPOSE_DATES = "propose_dates"
    WITHDRAW_PROPOSAL = "withdraw_proposal"


class ErrorCode(StrEnum):
    TRIP_NOT_FOUND = "TRIP_NOT_FOUND"
    TRIP_CANCELED = "TRIP_CANCELED"
    TRIP_COMPLETED = "TRIP_COMPLETED"
    LEADER_ONLY = "LEADER_ONLY"
    STAGE_BLOCKED = "STAGE_BLOCKED"
    PROPOSAL_ACTIVE = "PROPOSAL_ACTIVE"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"


LEADER_ONLY_ACTIONS = frozenset({
    ActionName.OPEN_VOTING,
    ActionName.LOCK,
    ActionName.PROPOSE_DATES,
    ActionName.WITHDRAW_PROPOSAL,
})

LEADER_ONLY_MESSAGES = {
    ActionName.OPEN_VOTING: "Only the trip creator or circle owner can open voting",
    ActionName.LOCK: "Only the trip creator or circle owner can lock the trip",
    ActionName.PROPOSE_DATES: "Only the trip creator or circle owner can propose dates",
    ActionName.WITHDRAW_PROPOSAL: "Only the trip creator or circle owner can withdraw a proposal",
}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a stage check, shaped as an HTTP status/code/message triple."""

    ok: bool
    status: int = 200
    code: str | None = None
    message: str | None = None


ALLOWED = ValidationResult(ok=True)


def _reject(status: int, code: ErrorCode, message: str) -> ValidationResult:
    return ValidationResult(ok=False, status=status, code=code.value, message=message)


def _stage_blocked(message: str) -> ValidationResult:
    return _reject(400, ErrorCode.STAGE_BLOCKED, message)


def validate_stage_action(
    trip: dict | None,
    action_name: str,
    actor_user_id: str | None,
    circle: dict | None = None,
) -> ValidationResult:
    """Validate whether ``actor_user_id`` may perform ``action_name`` on ``trip`` now.

    Pure function -- no side effects, no DB access.

    Args:
        trip: Trip document, or None when the lookup found nothing
        action_name: One of ``ActionName``
        actor_user_id: User attempting the action
        circle: Owning circle document, used for the circle-owner leader check

    Returns:
        ValidationResult; ``ok`` is False with a status/code/message on rejection

    Rules (evaluated in order):
        - Missing trip -> 404 TRIP_NOT_FOUND
        - Canceled/completed trip (either status field) -> 400, blocks everything
        - Unrecognized action -> 400 UNKNOWN_ACTION
        - Leader-only action by a non-leader -> 403 LEADER_ONLY
        - Per-action stage rules; locked is absorbing
    """
    if not trip:
        return _reject(404, ErrorCode.TRIP_NOT_FOUND, "Trip not found")

    state = normalize_trip(trip)

    if state.status == TripStatus.CANCELED:
        return _reject(
            400,
            ErrorCode.TRIP_CANCELED,
            "This trip has been canceled and cannot be modified",
        )
    if state.status == TripStatus.COMPLETED:
        return _reject(
            400,
            ErrorCode.TRIP_COMPLETED,
            "This trip has been completed and cannot be modified",
        )

    try:
        action = ActionName(action_name)
    except ValueError:
        return _reject(400, ErrorCode.UNKNOWN_ACTION, f"Unknown action: {action_name}")

    if action in LEADER_ONLY_ACTIONS and not is_trip_leader(trip, actor_user_id, circle):
        return _reject(403, ErrorCode.LEADER_ONLY, LEADER_ONLY_MESSAGES[action])

    status = state.status

    if action == ActionName.SUBMIT_AVAILABILITY:
        if status == TripStatus.VOTING:
            return _stage_blocked("Availability is frozen while voting is open.")
        if status == TripStatus.LOCKED:
            return _stage_blocked("Dates are locked; scheduling is closed.")
        return ALLOWED

    if action == ActionName.SUBMIT_DATE_PICKS:
        if status == TripStatus.LOCKED:
            return _stage_blocked("Trip dates are locked; picks cannot be changed")
        return ALLOWED

    if action == ActionName.OPEN_VOTING:
        if status == TripStatus.VOTING:
            return _stage_blocked("Voting is already open")
        if status == TripStatus.LOCKED:
            return _stage_blocked("Cannot open voting for a locked trip")
        return ALLOWED

    if action == ActionName.VOTE:
        if status != TripStatus.VOTING:
            return _stage_blocked("Voting is not open for this trip")
        return ALLOWED

    if action == ActionName.LOCK:
        # Payload-specific checks (option key vs. explicit dates) belong to the caller
        if status == TripStatus.LOCKED:
            return _stage_blocked("Trip is already locked")
        return ALLOWED

    if action in (ActionName.SUBMIT_DATE_WINDOW, ActionName.SUPPORT_WINDOW):
        if status == TripStatus.LOCKED:
            return _stage_blocked("Dates are locked; windows cannot be changed")
        if state.has_active_proposal:
            return _reject(
                400,
                ErrorCode.PROPOSAL_ACTIVE,
                "Dates have been proposed; windows are closed until the proposal is withdrawn",
            )
        return ALLOWED

    if action == ActionName.PROPOSE_DATES:
        if status == TripStatus.LOCKED:
            return _stage_blocked("Dates are already locked")
        if state.has_active_proposal:
            return _reject(
                400,
                ErrorCode.PROPOSAL_ACTIVE,
                "A proposal is already active; withdraw it before proposing again",
            )
        return ALLOWED

    # WITHDRAW_PROPOSAL
    if status == TripStatus.LOCKED:
        return _stage_blocked("Dates are already locked")
    if not state.has_active_proposal:
        return _stage_blocked("There is no active proposal to withdraw")
    return ALLOWED
