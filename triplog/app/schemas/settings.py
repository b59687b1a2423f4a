"""
Settings and calculation schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional

from triplog.app.domain.stops.calculator import AmountField


class SequencesResponse(BaseModel):
    trip_number_sequence: int
    order_number_sequence: int


class SequencesUpdateRequest(BaseModel):
    trip_number_sequence: int = Field(..., ge=1)
    order_number_sequence: int = Field(..., ge=1)


class AmountsRequest(BaseModel):
    """Current form amounts plus the field the user just edited."""
    net: Optional[float] = Field(None, ge=0)
    tax: Optional[float] = Field(None, ge=0)
    total: Optional[float] = Field(None, ge=0)
    last_edited: AmountField


class AmountsResponse(BaseModel):
    net: Optional[float]
    tax: Optional[float]
    total: Optional[float]
    last_edited: AmountField
