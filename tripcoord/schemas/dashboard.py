"""Pydantic schemas for dashboard responses.

Trip cards, circle cards and the cross-trip notification feed.
"""

from pydantic import BaseModel, Field


class PendingActionResponse(BaseModel):
    """One thing the viewer still needs to do on a trip."""

    type: str = Field(..., description="scheduling_required, date_vote, itinerary_review or other_input")
    priority: int = Field(..., ge=1, description="1 = most urgent")
    label: str = Field(..., description="Call to action, e.g. 'Vote on dates'")
    href: str = Field(..., description="Link to the trip")
    timestamp: str = Field("", description="Recency used for tie-breaks")


class LatestActivity(BaseModel):
    text: str = Field(..., description="Most recent trip message text")
    created_at: str = Field("", description="Message timestamp")


class TripCard(BaseModel):
    """Display-ready trip for one viewer."""

    id: str
    circle_id: str | None = None
    name: str = ""
    status: str = Field(..., description="Effective status (proposed, scheduling, voting, locked, completed, canceled)")
    trip_status: str | None = Field(None, description="Lifecycle flag (ACTIVE, CANCELLED, COMPLETED) when set")
    start_date: str | None = Field(None, description="Locked start date, else proposed start date")
    end_date: str | None = Field(None, description="Locked end date, else proposed end date")
    traveler_count: int = Field(0, ge=0)
    latest_activity: LatestActivity | None = None
    pending_actions: list[PendingActionResponse] = Field(default_factory=list)
    action_required: bool = False
    created_by: str | None = None
    type: str = "collaborative"
    is_current_user_traveler: bool = False
    itinerary_status: str | None = None
    locked_start_date: str | None = None
    locked_end_date: str | None = None
    canceled_at: str | None = None
    created_at: str | None = None


class CircleCard(BaseModel):
    """A circle and its trips, sorted for the viewer."""

    id: str
    name: str = ""
    role: str | None = Field(None, description="Viewer's role in the circle (owner or member)")
    trips: list[TripCard] = Field(default_factory=list)
    cancelled_trips: list[TripCard] = Field(default_factory=list)


class GlobalNotification(BaseModel):
    """Feed entry: a trip's most urgent action, or a join request."""

    id: str
    title: str
    context: str
    cta_label: str
    href: str
    priority: int
    timestamp: str = ""


class DashboardResponse(BaseModel):
    """Full dashboard payload. List fields default to empty arrays (never null)."""

    circles: list[CircleCard] = Field(default_factory=list)
    global_notifications: list[GlobalNotification] = Field(default_factory=list)
