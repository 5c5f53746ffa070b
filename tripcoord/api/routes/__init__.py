from fastapi import APIRouter

from tripcoord.api.routes import dashboard, health, trips

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(dashboard.router, tags=["dashboard"])
api_router.include_router(trips.router, prefix="/trips", tags=["trips"])
