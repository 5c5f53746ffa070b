"""Per-trip API endpoints.

POST /api/trips/{trip_id}/actions/{action}/validate - stage validator
GET  /api/trips/{trip_id}/proposal-readiness         - date window readiness
GET  /api/trips/{trip_id}/voting-status              - vote tally
GET  /api/trips/{trip_id}/card                       - trip card for the viewer

Trips the viewer may not see answer 404, the same as trips that do not exist.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from tripcoord.api.deps import get_trip_service
from tripcoord.core.auth import Viewer, require_viewer
from tripcoord.core.exceptions import TripNotFoundError
from tripcoord.schemas.dashboard import TripCard
from tripcoord.schemas.trips import ProposalReadinessResponse, ValidationResponse, VotingStatusResponse
from tripcoord.services.trip_service import TripService

router = APIRouter()


def _not_found(exc: TripNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "TRIP_NOT_FOUND", "message": str(exc)})


@router.post("/{trip_id}/actions/{action}/validate", response_model=ValidationResponse)
async def validate_action(
    trip_id: str,
    action: str,
    viewer: Viewer = Depends(require_viewer),
    service: TripService = Depends(get_trip_service),
) -> ValidationResponse:
    """Check whether the viewer may perform ``action`` on the trip right now.

    Denials are returned as errors with the validator's status code and a
    ``{"code", "message"}`` detail.
    """
    result = await service.check_action(trip_id, action, viewer.user_id)
    if not result.ok:
        raise HTTPException(
            status_code=result.status,
            detail={"code": result.code, "message": result.message},
        )
    return ValidationResponse(**asdict(result))


@router.get("/{trip_id}/proposal-readiness", response_model=ProposalReadinessResponse)
async def get_proposal_readiness(
    trip_id: str,
    leader_override: bool = Query(False, description="Leader proposes regardless of support; ignored for non-leaders"),
    viewer: Viewer = Depends(require_viewer),
    service: TripService = Depends(get_trip_service),
) -> ProposalReadinessResponse:
    try:
        readiness = await service.get_proposal_readiness(trip_id, viewer.user_id, leader_override=leader_override)
    except TripNotFoundError as e:
        raise _not_found(e)
    return ProposalReadinessResponse.model_validate(asdict(readiness))


@router.get("/{trip_id}/voting-status", response_model=VotingStatusResponse)
async def get_voting_status(
    trip_id: str,
    viewer: Viewer = Depends(require_viewer),
    service: TripService = Depends(get_trip_service),
) -> VotingStatusResponse:
    try:
        status = await service.get_voting_status(trip_id, viewer.user_id)
    except TripNotFoundError as e:
        raise _not_found(e)
    return VotingStatusResponse.model_validate({**asdict(status), "stage": status.stage.value})


@router.get("/{trip_id}/card", response_model=TripCard)
async def get_trip_card(
    trip_id: str,
    viewer: Viewer = Depends(require_viewer),
    service: TripService = Depends(get_trip_service),
) -> TripCard:
    try:
        return await service.get_trip_card(trip_id, viewer.user_id)
    except TripNotFoundError as e:
        raise _not_found(e)
