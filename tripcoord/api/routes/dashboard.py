"""Dashboard API endpoints.

GET /api/dashboard     - circles, trip cards and notifications for the viewer
GET /api/notifications - notification feed only (header bell)
"""

from fastapi import APIRouter, Depends, Query

from tripcoord.api.deps import get_dashboard_service
from tripcoord.core.auth import Viewer, require_viewer
from tripcoord.schemas.dashboard import DashboardResponse, GlobalNotification
from tripcoord.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    today: str | None = Query(None, description="ISO date override for upcoming/past bucketing"),
    viewer: Viewer = Depends(require_viewer),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    """Get the viewer's dashboard.

    Returns every circle the viewer belongs to with its trips sorted by
    urgency, plus the cross-trip notification feed. A viewer with no circles
    gets empty lists.
    """
    return await service.get_dashboard(viewer.user_id, today=today)


@router.get("/notifications", response_model=list[GlobalNotification])
async def get_notifications(
    viewer: Viewer = Depends(require_viewer),
    service: DashboardService = Depends(get_dashboard_service),
) -> list[GlobalNotification]:
    return await service.get_global_notifications(viewer.user_id)
