"""
Trip service.

Trip creation, the trip list, the "current trip" lookup and the trip detail
view with derived figures.
"""

import logging
import math
from collections import defaultdict
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.core.exceptions import ResourceNotFoundError, SyncError
from triplog.app.domain.stops import calculator
from triplog.app.domain.stops.formatting import parse_time_to_hhmm
from triplog.app.domain.stops.sequence import StopRecord, StopSequence, validate_arrangement
from triplog.app.models.enums import StopStatus, StopType
from triplog.app.models.location import Location
from triplog.app.models.stop import Stop
from triplog.app.models.trip import Trip
from triplog.app.schemas.stop import StopDraft, StopResponse
from triplog.app.schemas.trip import (
    TripDetailResponse, TripListItem, TripResponse, CurrentTripResponse
)
from triplog.app.services.locations import fetch_location, format_location_address
from triplog.app.services.stop_store import SqlStopStore
from triplog.app.services.tenancy import TenantContext
from triplog.app.services.trip_numbers import get_next_trip_number

logger = logging.getLogger(__name__)

DEFAULT_STOP_TYPES = (StopType.EMPTY_START, StopType.PICKUP, StopType.DELIVERY)


async def fetch_trip(db: AsyncSession, tenant: TenantContext, trip_id: str) -> Trip:
    result = await db.execute(
        select(Trip).where(Trip.id == trip_id, Trip.tenant_id == tenant.tenant_id)
    )
    trip = result.scalar_one_or_none()
    if trip is None:
        raise ResourceNotFoundError("Trip", trip_id)
    return trip


def draft_to_record(draft: StopDraft, location: Optional[Location] = None) -> StopRecord:
    """Build a new stop from a draft; a saved location overrides name and address."""
    expected_time = draft.expected_time
    record = StopRecord(
        type=draft.type,
        name=draft.name,
        address=draft.address,
        expected_date=draft.expected_date,
        expected_time=parse_time_to_hhmm(expected_time) if expected_time and expected_time.strip() else None,
        notes=draft.notes,
    )
    if location is not None:
        record.location_id = location.id
        record.name = location.name
        record.address = format_location_address(location)
    return record


async def resolve_draft(db: AsyncSession, tenant: TenantContext, draft: StopDraft) -> StopRecord:
    """
    Resolve a draft's saved location within the tenant.

    Raises:
        ResourceNotFoundError: the location does not exist for this tenant
    """
    location = await fetch_location(db, tenant, draft.location_id) if draft.location_id else None
    return draft_to_record(draft, location)


async def create_trip(
    db: AsyncSession,
    tenant: TenantContext,
    trip_date: Optional[date] = None,
    revenue: Optional[float] = None,
    expected_mileage: Optional[float] = None,
    stops: Optional[List[StopDraft]] = None,
) -> tuple[Trip, StopSequence]:
    """
    Create a numbered trip with its initial stops in one transaction.

    Raises:
        ValueError: the supplied stops break the boundary rules
        ResourceNotFoundError: a stop refers to an unknown saved location
        SyncError: the stop rows could not be written; nothing is kept
    """
    if stops:
        records = [await resolve_draft(db, tenant, draft) for draft in stops]
    else:
        records = [StopRecord(type=stop_type, name="") for stop_type in DEFAULT_STOP_TYPES]
    validate_arrangement(records)

    trip_number = await get_next_trip_number(db, tenant)
    trip = Trip(
        tenant_id=tenant.tenant_id,
        trip_reference=str(trip_number),
        date=trip_date or date.today(),
        revenue=revenue,
        expected_mileage=expected_mileage,
    )
    db.add(trip)
    await db.flush()

    sequence = StopSequence(trip.id, records)
    store = SqlStopStore(db)
    try:
        async with store.transaction():
            for record in sequence:
                await store.insert_stop(tenant, trip.id, record)
    except Exception as exc:
        logger.warning("Could not create trip %s: %s", trip_number, exc)
        raise SyncError("create trip", str(exc), details={"trip_reference": str(trip_number)}) from exc

    await db.refresh(trip)
    logger.info("Created trip %s (%s) with %d stops", trip.trip_reference, trip.id, len(sequence))
    return trip, sequence


async def update_trip(
    db: AsyncSession,
    tenant: TenantContext,
    trip_id: str,
    values: dict
) -> Trip:
    trip = await fetch_trip(db, tenant, trip_id)
    for key, value in values.items():
        setattr(trip, key, value)
    await db.commit()
    await db.refresh(trip)
    return trip


def build_stop_views(sequence: StopSequence) -> List[StopResponse]:
    stops = sequence.stops
    current = sequence.current_stop_index()
    views = []
    for index, stop in enumerate(stops):
        following = stops[index + 1] if index + 1 < len(stops) else None
        views.append(StopResponse(
            id=stop.id,
            order=stop.order,
            type=stop.type,
            name=stop.name,
            address=stop.address,
            location_id=stop.location_id,
            odometer_reading=stop.odometer_reading,
            mileage_to_next=stop.mileage_to_next,
            status=stop.status,
            completed_at=stop.completed_at,
            expected_date=stop.expected_date,
            expected_time=stop.expected_time,
            notes=stop.notes,
            is_late=calculator.is_late(stop),
            is_current=index == current,
            computed_mileage_to_next=calculator.mileage_between(stop, following) if following else None,
            previous_odometer=calculator.last_odometer_before(stops, stop.id),
        ))
    return views


def build_trip_detail(trip: Trip, sequence: StopSequence) -> TripDetailResponse:
    """Recompute every derived figure from the current sequence."""
    miles = calculator.total_mileage(sequence.stops)
    rate = calculator.revenue_per_mile(trip.revenue, miles)
    return TripDetailResponse(
        trip=TripResponse.model_validate(trip),
        stops=build_stop_views(sequence),
        current_stop_index=sequence.current_stop_index(),
        completed_count=sum(1 for s in sequence if s.is_complete),
        total_mileage=miles,
        revenue_per_mile=None if math.isnan(rate) else rate,
        revenue_per_mile_display=calculator.format_rate(rate),
    )


async def _stops_by_trip(db: AsyncSession, tenant: TenantContext, trip_ids: List[str]) -> dict:
    if not trip_ids:
        return {}
    result = await db.execute(
        select(Stop.trip_id, Stop.name, Stop.status).where(
            Stop.tenant_id == tenant.tenant_id,
            Stop.trip_id.in_(trip_ids)
        ).order_by(Stop.stop_order.asc())
    )
    grouped = defaultdict(list)
    for trip_id, name, status in result.all():
        grouped[trip_id].append((name or "—", status))
    return grouped


async def list_trips(db: AsyncSession, tenant: TenantContext) -> List[TripListItem]:
    """Trips newest first, with stop counts and origin/destination."""
    result = await db.execute(
        select(Trip).where(Trip.tenant_id == tenant.tenant_id)
        .order_by(Trip.date.desc(), Trip.created_at.desc())
    )
    trips = result.scalars().all()
    stops_by_trip = await _stops_by_trip(db, tenant, [t.id for t in trips])

    items = []
    for trip in trips:
        trip_stops = stops_by_trip.get(trip.id, [])
        completed = sum(1 for _, status in trip_stops if status == StopStatus.COMPLETE)
        items.append(TripListItem(
            id=trip.id,
            trip_reference=trip.trip_reference or trip.id,
            date=trip.date,
            origin=trip.origin_name or (trip_stops[0][0] if trip_stops else "—"),
            destination=trip.destination_name or (trip_stops[-1][0] if trip_stops else "—"),
            stops=len(trip_stops),
            completed=completed,
            status="Completed" if trip_stops and completed == len(trip_stops) else "In Progress",
        ))
    return items


def _reference_key(trip: Trip):
    reference = trip.trip_reference or ""
    return (0, int(reference), "") if reference.isdigit() else (1, 0, reference)


async def get_current_trip(db: AsyncSession, tenant: TenantContext) -> Optional[CurrentTripResponse]:
    """
    The in-progress trip with the lowest reference.

    A trip is in progress while any stop is pending, or while it has no
    stops at all.
    """
    result = await db.execute(select(Trip).where(Trip.tenant_id == tenant.tenant_id))
    trips = sorted(result.scalars().all(), key=_reference_key)
    stops_by_trip = await _stops_by_trip(db, tenant, [t.id for t in trips])

    for trip in trips:
        statuses = [status for _, status in stops_by_trip.get(trip.id, [])]
        all_complete = bool(statuses) and all(s == StopStatus.COMPLETE for s in statuses)
        if not all_complete:
            return CurrentTripResponse(
                id=trip.id,
                trip_reference=trip.trip_reference or "—",
                date=trip.date,
                origin_name=trip.origin_name,
                destination_name=trip.destination_name,
            )
    return None
