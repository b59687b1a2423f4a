"""
Location and geocoding schemas.
"""

from pydantic import BaseModel
from typing import Optional


class LocationResponse(BaseModel):
    """Schema for a saved location."""
    id: str
    name: str
    quick_code: Optional[str]
    address: str


class GeocodeResponse(BaseModel):
    found: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    formatted_address: Optional[str] = None
