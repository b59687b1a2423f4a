"""
Tenant resolution.

Every query is scoped by tenant. The tenant is looked up once per request
from the authenticated user reference and passed around explicitly.
"""

from dataclasses import dataclass
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.core.exceptions import TenantNotFoundError
from triplog.app.models.tenant import TenantUser


@dataclass(frozen=True)
class TenantContext:
    tenant_id: str
    user_id: str


async def resolve_tenant(db: AsyncSession, user_id: str) -> TenantContext:
    """
    Look up the tenant a user belongs to.
    
    Raises:
        TenantNotFoundError: user is not linked to any tenant
    """
    result = await db.execute(
        select(TenantUser.tenant_id).where(TenantUser.user_id == user_id)
    )
    tenant_id = result.scalar_one_or_none()
    if tenant_id is None:
        raise TenantNotFoundError(user_id)
    return TenantContext(tenant_id=tenant_id, user_id=user_id)
