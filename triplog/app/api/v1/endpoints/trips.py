"""
Trip and stop editing API endpoints.

Each stop edit loads the trip's stops, applies the change locally, writes
it through the synchronizer and returns the resulting trip view. A failed
write answers with ERR_SYNC_001 and nothing is kept.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Path, Body
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.db.session import get_db
from triplog.app.core.dependencies import get_tenant_context
from triplog.app.domain.stops.sequence import Direction
from triplog.app.domain.stops.synchronizer import PersistenceSynchronizer
from triplog.app.schemas.stop import (
    StopInsertRequest, StopUpdateRequest, StopMoveRequest, StopMoveResponse,
    StopCompleteRequest, StopLocationRequest
)
from triplog.app.schemas.trip import (
    TripCreateRequest, TripUpdateRequest, TripDetailResponse, TripListItem, CurrentTripResponse
)
from triplog.app.services.locations import fetch_location, format_location_address
from triplog.app.services.stop_store import SqlStopStore, load_sequence
from triplog.app.services.tenancy import TenantContext
from triplog.app.services import trip_service

router = APIRouter(prefix="/trips", tags=["Trips"])


async def _open_trip(db: AsyncSession, tenant: TenantContext, trip_id: str):
    trip = await trip_service.fetch_trip(db, tenant, trip_id)
    sequence = await load_sequence(db, tenant, trip_id)
    return trip, PersistenceSynchronizer(sequence, SqlStopStore(db), tenant)


@router.get("", response_model=List[TripListItem])
async def list_trips(
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """List trips, newest first."""
    return await trip_service.list_trips(db, tenant)


@router.post("", response_model=TripDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    request: Optional[TripCreateRequest] = Body(None),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a trip numbered from the tenant's trip sequence.

    Without stops in the body the trip starts with an empty start,
    a pickup and a delivery.
    """
    request = request or TripCreateRequest()
    try:
        trip, sequence = await trip_service.create_trip(
            db,
            tenant,
            trip_date=request.date,
            revenue=request.revenue,
            expected_mileage=request.expected_mileage,
            stops=request.stops,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return trip_service.build_trip_detail(trip, sequence)


@router.get("/current", response_model=CurrentTripResponse)
async def current_trip(
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """The in-progress trip with the lowest trip number."""
    trip = await trip_service.get_current_trip(db, tenant)
    if trip is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No trip in progress"
        )
    return trip


@router.get("/{trip_id}", response_model=TripDetailResponse)
async def get_trip(
    trip_id: str = Path(..., description="Trip ID"),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Trip detail with stops, lateness, mileage and revenue per mile."""
    trip, sync = await _open_trip(db, tenant, trip_id)
    return trip_service.build_trip_detail(trip, sync.sequence)


@router.patch("/{trip_id}", response_model=TripDetailResponse)
async def update_trip(
    trip_id: str = Path(..., description="Trip ID"),
    request: TripUpdateRequest = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Update revenue and mileage figures of a trip."""
    trip = await trip_service.update_trip(db, tenant, trip_id, request.model_dump(exclude_unset=True))
    sequence = await load_sequence(db, tenant, trip_id)
    return trip_service.build_trip_detail(trip, sequence)


@router.post("/{trip_id}/stops", response_model=TripDetailResponse, status_code=status.HTTP_201_CREATED)
async def add_stop(
    trip_id: str = Path(..., description="Trip ID"),
    request: StopInsertRequest = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Insert a stop after the given position.

    Inserting ahead of the empty start or behind the reposition stop is
    rejected with 400. A saved location in the draft fills the stop's
    name and address.
    """
    trip, sync = await _open_trip(db, tenant, trip_id)
    record = await trip_service.resolve_draft(db, tenant, request.stop) if request.stop else None
    inserted = await sync.insert_stop(request.after_order, record)
    if inserted is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A stop cannot be inserted at that position"
        )
    return trip_service.build_trip_detail(trip, sync.sequence)


@router.delete("/{trip_id}/stops/{stop_id}", response_model=TripDetailResponse)
async def delete_stop(
    trip_id: str = Path(..., description="Trip ID"),
    stop_id: str = Path(..., description="Stop ID"),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Delete a stop. A trip keeps at least 2 stops (409 otherwise)."""
    trip, sync = await _open_trip(db, tenant, trip_id)
    await sync.remove_stop(stop_id)
    return trip_service.build_trip_detail(trip, sync.sequence)


@router.post("/{trip_id}/stops/{index}/move", response_model=StopMoveResponse)
async def move_stop(
    trip_id: str = Path(..., description="Trip ID"),
    index: int = Path(..., description="Current position of the stop"),
    request: StopMoveRequest = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a stop one position up or down.

    Moves that would shift the empty start or reposition stop are ignored
    (moved=false), matching disabled move buttons on the client.
    """
    trip, sync = await _open_trip(db, tenant, trip_id)
    moved = await sync.move_stop(index, Direction(request.direction))
    return StopMoveResponse(moved=moved, stops=trip_service.build_stop_views(sync.sequence))


@router.patch("/{trip_id}/stops/{stop_id}", response_model=TripDetailResponse)
async def update_stop(
    trip_id: str = Path(..., description="Trip ID"),
    stop_id: str = Path(..., description="Stop ID"),
    request: StopUpdateRequest = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Edit stop fields. Editing name or address detaches a saved location."""
    trip, sync = await _open_trip(db, tenant, trip_id)
    values = request.model_dump(exclude_unset=True)
    try:
        await sync.set_stop_fields(stop_id, values)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return trip_service.build_trip_detail(trip, sync.sequence)


@router.post("/{trip_id}/stops/{stop_id}/complete", response_model=TripDetailResponse)
async def complete_stop(
    trip_id: str = Path(..., description="Trip ID"),
    stop_id: str = Path(..., description="Stop ID"),
    request: Optional[StopCompleteRequest] = Body(None),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Mark a stop complete, stamped now or at the given time."""
    trip, sync = await _open_trip(db, tenant, trip_id)
    await sync.complete_stop(stop_id, request.completed_at if request else None)
    return trip_service.build_trip_detail(trip, sync.sequence)


@router.post("/{trip_id}/stops/{stop_id}/uncomplete", response_model=TripDetailResponse)
async def uncomplete_stop(
    trip_id: str = Path(..., description="Trip ID"),
    stop_id: str = Path(..., description="Stop ID"),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Set a completed stop back to pending and clear its completion time."""
    trip, sync = await _open_trip(db, tenant, trip_id)
    await sync.uncomplete_stop(stop_id)
    return trip_service.build_trip_detail(trip, sync.sequence)


@router.put("/{trip_id}/stops/{stop_id}/location", response_model=TripDetailResponse)
async def select_stop_location(
    trip_id: str = Path(..., description="Trip ID"),
    stop_id: str = Path(..., description="Stop ID"),
    request: StopLocationRequest = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Fill a stop's name and address from a saved location."""
    trip, sync = await _open_trip(db, tenant, trip_id)
    location = await fetch_location(db, tenant, request.location_id)
    await sync.select_location(stop_id, location.id, location.name, format_location_address(location))
    return trip_service.build_trip_detail(trip, sync.sequence)
