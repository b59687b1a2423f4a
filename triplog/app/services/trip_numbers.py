"""
Per-tenant reference allocator.

Trip numbers start at 100 and order numbers at 1 unless the tenant set
other values in settings. Allocating returns the current value and stores
the next one.
"""

from typing import Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.core.config import settings
from triplog.app.models.tenant_settings import TenantSettings
from triplog.app.services.tenancy import TenantContext


async def _get_or_create_settings(db: AsyncSession, tenant: TenantContext) -> TenantSettings:
    result = await db.execute(
        select(TenantSettings).where(TenantSettings.tenant_id == tenant.tenant_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = TenantSettings(
            tenant_id=tenant.tenant_id,
            trip_number_sequence=settings.default_trip_number,
            order_number_sequence=settings.default_order_number,
        )
        db.add(row)
        await db.flush()
    return row


async def get_next_trip_number(db: AsyncSession, tenant: TenantContext) -> int:
    """
    Hand out the next trip number and advance the sequence.
    
    The caller commits (the number is persisted together with the trip).
    """
    row = await _get_or_create_settings(db, tenant)
    current = row.trip_number_sequence
    row.trip_number_sequence = current + 1
    await db.flush()
    return current


async def get_next_order_number(db: AsyncSession, tenant: TenantContext) -> int:
    """Hand out the next order number and advance the sequence."""
    row = await _get_or_create_settings(db, tenant)
    current = row.order_number_sequence
    row.order_number_sequence = current + 1
    await db.flush()
    return current


async def get_sequences(db: AsyncSession, tenant: TenantContext) -> Tuple[int, int]:
    """Current (trip_number_sequence, order_number_sequence) without advancing."""
    result = await db.execute(
        select(TenantSettings).where(TenantSettings.tenant_id == tenant.tenant_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        return settings.default_trip_number, settings.default_order_number
    return row.trip_number_sequence, row.order_number_sequence


async def update_sequences(
    db: AsyncSession,
    tenant: TenantContext,
    trip_number_sequence: int,
    order_number_sequence: int
) -> Tuple[int, int]:
    row = await _get_or_create_settings(db, tenant)
    row.trip_number_sequence = trip_number_sequence
    row.order_number_sequence = order_number_sequence
    await db.commit()
    return row.trip_number_sequence, row.order_number_sequence
