"""
Trip database model.

A trip is a container for an ordered list of stops. It is created once
(numbered by the per-tenant allocator) and never deleted by this service.
"""

from sqlalchemy import Column, String, ForeignKey, DateTime, Date, Float
from sqlalchemy.sql import func
from triplog.app.db.session import Base
from triplog.app.models.tenant import new_uuid


class Trip(Base):
    """Trip model."""
    __tablename__ = "trips"
    
    id = Column(String(36), primary_key=True, default=new_uuid)
    tenant_id = Column(String(36), ForeignKey('tenants.id', ondelete="CASCADE"), nullable=False, index=True)
    
    # Human-facing trip number ("100", "101", ...)
    trip_reference = Column(String(50), nullable=True, index=True)
    date = Column(Date, nullable=False)
    
    # Aggregates
    expected_mileage = Column(Float, nullable=True)
    actual_mileage = Column(Float, nullable=True)
    revenue = Column(Float, nullable=True)
    
    # Denormalized endpoints for the trip list
    origin_name = Column(String(255), nullable=True)
    destination_name = Column(String(255), nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Trip(id={self.id}, reference='{self.trip_reference}', date={self.date})>"
