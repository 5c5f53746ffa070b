"""FastAPI dependencies: the injected store and the services built on it."""

from fastapi import Depends, Request

from tripcoord.db.store import DocumentStore
from tripcoord.services.dashboard_service import DashboardService
from tripcoord.services.trip_service import TripService


def get_store(request: Request) -> DocumentStore:
    """Store created at startup (or passed to ``create_app``)."""
    return request.app.state.store


def get_dashboard_service(store: DocumentStore = Depends(get_store)) -> DashboardService:
    return DashboardService(store)


def get_trip_service(store: DocumentStore = Depends(get_store)) -> TripService:
    return TripService(store)
