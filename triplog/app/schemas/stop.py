"""
Stop schemas.

Request bodies for stop edits and the stop view returned with derived
fields (lateness, current stop, mileage to the next stop).
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, Literal

from triplog.app.models.enums import StopType, StopStatus


class StopResponse(BaseModel):
    """Schema for a stop with derived fields."""
    id: str
    order: int
    type: StopType
    name: str
    address: str
    location_id: Optional[str]
    odometer_reading: Optional[float]
    mileage_to_next: Optional[float]
    status: StopStatus
    completed_at: Optional[datetime]
    expected_date: Optional[date]
    expected_time: Optional[str]
    notes: str
    
    # Derived
    is_late: bool
    is_current: bool
    computed_mileage_to_next: Optional[float]
    previous_odometer: Optional[float]  # last reading on an earlier stop


class StopDraft(BaseModel):
    """Fields a new stop can be created with."""
    type: StopType = StopType.STOP
    name: str = "New Stop"
    address: str = ""
    location_id: Optional[str] = None
    expected_date: Optional[date] = None
    expected_time: Optional[str] = None
    notes: str = ""


class StopInsertRequest(BaseModel):
    """Insert a stop right after after_order (-1 for the top)."""
    after_order: int = Field(..., ge=-1)
    stop: Optional[StopDraft] = None


class StopUpdateRequest(BaseModel):
    """Partial stop edit; only fields that are sent are changed."""
    type: Optional[StopType] = None
    name: Optional[str] = None
    address: Optional[str] = None
    odometer_reading: Optional[float] = Field(None, ge=0)
    mileage_to_next: Optional[float] = Field(None, ge=0)
    expected_date: Optional[date] = None
    expected_time: Optional[str] = None
    notes: Optional[str] = None


class StopMoveRequest(BaseModel):
    direction: Literal["up", "down"]


class StopMoveResponse(BaseModel):
    moved: bool
    stops: list[StopResponse]


class StopCompleteRequest(BaseModel):
    """Optional explicit completion time (defaults to now)."""
    completed_at: Optional[datetime] = None


class StopLocationRequest(BaseModel):
    location_id: str
