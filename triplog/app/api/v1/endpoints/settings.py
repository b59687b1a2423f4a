"""
Tenant settings and form calculation endpoints.
"""

from fastapi import APIRouter, Depends, Body
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.db.session import get_db
from triplog.app.core.dependencies import get_tenant_context
from triplog.app.domain.stops.calculator import AmountReconciler
from triplog.app.schemas.settings import (
    SequencesResponse, SequencesUpdateRequest, AmountsRequest, AmountsResponse
)
from triplog.app.services.tenancy import TenantContext
from triplog.app.services.trip_numbers import get_sequences, update_sequences

router = APIRouter(prefix="/settings", tags=["Settings"])
calculations_router = APIRouter(prefix="/calculations", tags=["Calculations"])


@router.get("/sequences", response_model=SequencesResponse)
async def read_sequences(
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    """Next trip and order numbers that will be handed out."""
    trip_seq, order_seq = await get_sequences(db, tenant)
    return SequencesResponse(trip_number_sequence=trip_seq, order_number_sequence=order_seq)


@router.put("/sequences", response_model=SequencesResponse)
async def write_sequences(
    request: SequencesUpdateRequest = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db)
):
    trip_seq, order_seq = await update_sequences(
        db, tenant, request.trip_number_sequence, request.order_number_sequence
    )
    return SequencesResponse(trip_number_sequence=trip_seq, order_number_sequence=order_seq)


@calculations_router.post("/amounts", response_model=AmountsResponse)
async def reconcile_amounts(request: AmountsRequest = Body(...)):
    """
    Reconcile net, tax (GST) and total after one field was edited.

    The edited field's value is taken as given; the other side is derived.
    """
    amounts = AmountReconciler(
        net=request.net,
        tax=request.tax,
        total=request.total,
        last_edited=request.last_edited,
    )
    amounts.reconcile()
    return AmountsResponse(
        net=amounts.net,
        tax=amounts.tax,
        total=amounts.total,
        last_edited=amounts.last_edited,
    )
