"""
Saved location model.

Reusable places (shippers, receivers, yards) a driver can pick for a stop.
"""

from sqlalchemy import Column, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from triplog.app.db.session import Base
from triplog.app.models.tenant import new_uuid


class Location(Base):
    """Location model."""
    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint("tenant_id", "quick_code", name="uq_locations_tenant_quick_code"),
    )
    
    id = Column(String(36), primary_key=True, default=new_uuid)
    tenant_id = Column(String(36), ForeignKey('tenants.id', ondelete="CASCADE"), nullable=False, index=True)
    
    name = Column(String(255), nullable=False, index=True)
    quick_code = Column(String(50), nullable=True)
    
    address1 = Column(String(255), nullable=True)
    address2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Location(id={self.id}, name='{self.name}', quick_code='{self.quick_code}')>"
