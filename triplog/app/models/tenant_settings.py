"""
Per-tenant settings model.

Holds the trip/order number sequences used by the reference allocator.
"""

from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, Enum, Float
from sqlalchemy.sql import func
from triplog.app.db.session import Base
from triplog.app.models.enums import CountryOfOperation
from triplog.app.models.tenant import new_uuid


class TenantSettings(Base):
    """One settings row per tenant."""
    __tablename__ = "settings"
    
    id = Column(String(36), primary_key=True, default=new_uuid)
    tenant_id = Column(String(36), ForeignKey('tenants.id', ondelete="CASCADE"), nullable=False, unique=True, index=True)
    
    driver_name = Column(String(255), nullable=True)
    default_currency = Column(String(3), default="USD", nullable=False)
    country_of_operation = Column(Enum(CountryOfOperation), default=CountryOfOperation.US, nullable=False)
    rate_per_mile_loaded = Column(Float, nullable=True)
    rate_per_mile_empty = Column(Float, nullable=True)
    
    # Sequences (next value handed out)
    trip_number_sequence = Column(Integer, default=100, nullable=False)
    order_number_sequence = Column(Integer, default=1, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<TenantSettings(tenant_id={self.tenant_id}, trip_seq={self.trip_number_sequence})>"
