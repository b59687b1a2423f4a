"""
Trip schemas.

Schemas for trip creation, the trip list and the trip detail view.
"""

from pydantic import BaseModel, Field
from datetime import date as date_type
from typing import List, Optional

from triplog.app.schemas.stop import StopDraft, StopResponse


class TripCreateRequest(BaseModel):
    """
    Create a trip.
    
    Without stops, the trip starts with empty start, pickup and delivery.
    """
    date: Optional[date_type] = None
    revenue: Optional[float] = Field(None, ge=0)
    expected_mileage: Optional[float] = Field(None, ge=0)
    stops: Optional[List[StopDraft]] = None


class TripUpdateRequest(BaseModel):
    revenue: Optional[float] = Field(None, ge=0)
    expected_mileage: Optional[float] = Field(None, ge=0)
    actual_mileage: Optional[float] = Field(None, ge=0)


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: str
    trip_reference: Optional[str]
    date: date_type
    expected_mileage: Optional[float]
    actual_mileage: Optional[float]
    revenue: Optional[float]
    origin_name: Optional[str]
    destination_name: Optional[str]
    
    class Config:
        from_attributes = True


class TripDetailResponse(BaseModel):
    """Trip with its stops and derived totals."""
    trip: TripResponse
    stops: List[StopResponse]
    current_stop_index: int
    completed_count: int
    total_mileage: float
    revenue_per_mile: Optional[float]
    revenue_per_mile_display: str


class TripListItem(BaseModel):
    """Row of the trips screen."""
    id: str
    trip_reference: str
    date: Optional[date_type]
    origin: str
    destination: str
    stops: int
    completed: int
    status: str  # In Progress | Completed


class CurrentTripResponse(BaseModel):
    id: str
    trip_reference: str
    date: date_type
    origin_name: Optional[str]
    destination_name: Optional[str]
