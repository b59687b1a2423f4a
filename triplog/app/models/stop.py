"""
Stop database model.

Stops are the ordered waypoints of a trip. The address is denormalized
(copied from a saved location at selection time, never live-linked).
"""

from sqlalchemy import Column, String, Integer, Float, ForeignKey, DateTime, Date, Enum, Text, Index
from sqlalchemy.sql import func
from triplog.app.db.session import Base
from triplog.app.models.enums import StopType, StopStatus
from triplog.app.models.tenant import new_uuid


class Stop(Base):
    """
    Stop model.
    
    stop_order is zero-based and contiguous within a trip. It is not a unique
    key: reorders rewrite it row by row inside one transaction.
    """
    __tablename__ = "stops"
    __table_args__ = (
        Index("ix_stops_tenant_trip_order", "tenant_id", "trip_id", "stop_order"),
    )
    
    id = Column(String(36), primary_key=True, default=new_uuid)
    tenant_id = Column(String(36), ForeignKey('tenants.id', ondelete="CASCADE"), nullable=False, index=True)
    trip_id = Column(String(36), ForeignKey('trips.id', ondelete="CASCADE"), nullable=False, index=True)
    
    stop_order = Column(Integer, nullable=False)
    type = Column(Enum(StopType), default=StopType.STOP, nullable=False)
    
    # Optional reference to a saved location
    location_id = Column(String(36), ForeignKey('locations.id'), nullable=True)
    
    # Denormalized name/address
    name = Column(String(255), nullable=True)
    address1 = Column(String(255), nullable=True)
    address2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    
    odometer_reading = Column(Float, nullable=True)
    mileage_to_next = Column(Float, nullable=True)
    
    # Status
    status = Column(Enum(StopStatus), default=StopStatus.PENDING, nullable=False)
    completed_at = Column(DateTime, nullable=True)  # driver wall-clock time
    
    # Scheduling
    expected_date = Column(Date, nullable=True)
    expected_time = Column(String(5), nullable=True)  # HH:MM 24h
    
    notes = Column(Text, nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Stop(id={self.id}, trip_id={self.trip_id}, type='{self.type.value}', order={self.stop_order})>"
