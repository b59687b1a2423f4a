"""
Tenant database models.

A tenant is one account; every other row is scoped to exactly one tenant.
"""

import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from triplog.app.db.session import Base
from triplog.app.models.enums import TenantRole


def new_uuid() -> str:
    return str(uuid.uuid4())


class Tenant(Base):
    """Tenant (account) model."""
    __tablename__ = "tenants"
    
    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Tenant(id={self.id}, name='{self.name}')>"


class TenantUser(Base):
    """
    Links an authenticated user reference to its tenant.
    
    A user belongs to exactly one tenant (unique user_id).
    """
    __tablename__ = "tenant_users"
    
    id = Column(String(36), primary_key=True, default=new_uuid)
    tenant_id = Column(String(36), ForeignKey('tenants.id', ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, unique=True, index=True)
    role = Column(Enum(TenantRole), default=TenantRole.DRIVER, nullable=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<TenantUser(user_id={self.user_id}, tenant_id={self.tenant_id}, role='{self.role.value}')>"
