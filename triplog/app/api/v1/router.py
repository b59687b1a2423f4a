"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from triplog.app.api.v1.endpoints import trips, locations, settings

router = APIRouter()

# Trips and stop editing
router.include_router(trips.router)

# Saved locations and geocoding
router.include_router(locations.router)

# Tenant settings and form calculations
router.include_router(settings.router)
router.include_router(settings.calculations_router)
