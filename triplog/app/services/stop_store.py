"""
SQL-backed stop store.

Implements the StopStore contract over an AsyncSession and converts between
stop rows and in-memory StopRecords.
"""

from contextlib import asynccontextmanager
from typing import Dict, Any, List

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.core.exceptions import ResourceNotFoundError
from triplog.app.domain.stops.formatting import parse_address, format_address
from triplog.app.domain.stops.sequence import StopRecord, StopSequence
from triplog.app.models.stop import Stop
from triplog.app.services.tenancy import TenantContext


def row_to_record(row: Stop) -> StopRecord:
    """Convert a stop row into the in-memory record."""
    return StopRecord(
        id=row.id,
        type=row.type,
        order=row.stop_order,
        name=row.name or "",
        address=format_address(row.address1, row.city, row.state, row.zip_code),
        location_id=row.location_id,
        odometer_reading=row.odometer_reading,
        mileage_to_next=row.mileage_to_next,
        status=row.status,
        completed_at=row.completed_at,
        expected_date=row.expected_date,
        expected_time=row.expected_time,
        notes=row.notes or "",
    )


def record_to_values(record: StopRecord) -> Dict[str, Any]:
    """Column values for a stop record (address split into its parts)."""
    parts = parse_address(record.address)
    return {
        "stop_order": record.order,
        "type": record.type,
        "location_id": record.location_id,
        "name": record.name or None,
        "address1": parts.address1 or None,
        "city": parts.city or None,
        "state": parts.state or None,
        "zip_code": parts.zip_code or None,
        "odometer_reading": record.odometer_reading,
        "mileage_to_next": record.mileage_to_next,
        "status": record.status,
        "completed_at": record.completed_at,
        "expected_date": record.expected_date,
        "expected_time": record.expected_time,
        "notes": record.notes or None,
    }


async def fetch_trip_stops(db: AsyncSession, tenant: TenantContext, trip_id: str) -> List[StopRecord]:
    """All stops of a trip in stop order."""
    result = await db.execute(
        select(Stop).where(
            Stop.trip_id == trip_id,
            Stop.tenant_id == tenant.tenant_id
        ).order_by(Stop.stop_order.asc())
    )
    return [row_to_record(row) for row in result.scalars().all()]


async def load_sequence(db: AsyncSession, tenant: TenantContext, trip_id: str) -> StopSequence:
    return StopSequence(trip_id, await fetch_trip_stops(db, tenant, trip_id))


class SqlStopStore:
    """
    StopStore over an AsyncSession.

    Writes issued inside transaction() are committed together or rolled
    back together.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def transaction(self):
        try:
            yield self
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def insert_stop(self, tenant: TenantContext, trip_id: str, stop: StopRecord) -> None:
        row = Stop(
            id=stop.id,
            tenant_id=tenant.tenant_id,
            trip_id=trip_id,
            **record_to_values(stop)
        )
        self.db.add(row)
        await self.db.flush()

    async def update_stop(self, tenant: TenantContext, trip_id: str, stop: StopRecord) -> None:
        result = await self.db.execute(
            update(Stop).where(
                Stop.id == stop.id,
                Stop.trip_id == trip_id,
                Stop.tenant_id == tenant.tenant_id
            ).values(**record_to_values(stop))
        )
        if result.rowcount == 0:
            raise ResourceNotFoundError("Stop", stop.id)

    async def delete_stop(self, tenant: TenantContext, trip_id: str, stop_id: str) -> None:
        result = await self.db.execute(
            delete(Stop).where(
                Stop.id == stop_id,
                Stop.trip_id == trip_id,
                Stop.tenant_id == tenant.tenant_id
            )
        )
        if result.rowcount == 0:
            raise ResourceNotFoundError("Stop", stop_id)

    async def rewrite_order(self, tenant: TenantContext, trip_id: str, stop_ids: List[str]) -> None:
        """Set stop_order = list position for every stop of the trip."""
        for index, stop_id in enumerate(stop_ids):
            result = await self.db.execute(
                update(Stop).where(
                    Stop.id == stop_id,
                    Stop.trip_id == trip_id,
                    Stop.tenant_id == tenant.tenant_id
                ).values(stop_order=index)
            )
            if result.rowcount == 0:
                raise ResourceNotFoundError("Stop", stop_id)
