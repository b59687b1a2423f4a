"""
Saved location and geocoding endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.db.session import get_db
from triplog.app.core.dependencies import get_tenant_context
from triplog.app.schemas.location import LocationResponse, GeocodeResponse
from triplog.app.services.geocoding import geocode_address
from triplog.app.services.locations import search_locations, fetch_all_locations, format_location_address
from triplog.app.services.tenancy import TenantContext

router = APIRouter(prefix="/locations", tags=["Locations"])


def _to_response(location) -> LocationResponse:
    return LocationResponse(
        id=location.id,
        name=location.name,
        quick_code=location.quick_code,
        address=format_location_address(location),
    )


@router.get("", response_model=List[LocationResponse])
async def list_locations(
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """All saved locations of the tenant, by name."""
    return [_to_response(location) for location in await fetch_all_locations(db, tenant)]


@router.get("/search", response_model=List[LocationResponse])
async def search(
    q: str = Query("", description="Name or quick code; % and _ act as wildcards"),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Search saved locations by name or quick code (max 20, by name)."""
    return [_to_response(location) for location in await search_locations(db, tenant, q)]


@router.get("/geocode", response_model=GeocodeResponse)
async def geocode(
    address: str = Query(..., description="Free-form address"),
    tenant: TenantContext = Depends(get_tenant_context),
):
    """Best-effort coordinates for an address; found=false when unresolved."""
    result = await geocode_address(address)
    if result is None:
        return GeocodeResponse(found=False)
    return GeocodeResponse(
        found=True,
        latitude=result.latitude,
        longitude=result.longitude,
        formatted_address=result.formatted_address,
    )
