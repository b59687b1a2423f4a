"""
Database seeding script for a development tenant.

Creates one tenant, links a driver user reference to it, adds a few saved
locations and prints a bearer token for that driver.
Run with `python -m triplog.seed_tenant` after the database is set up.
"""

import asyncio
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.core.jwt import create_access_token
from triplog.app.db.session import AsyncSessionLocal
from triplog.app.models.enums import TenantRole
from triplog.app.models.location import Location
from triplog.app.models.tenant import Tenant, TenantUser
from triplog.app.services.tenancy import TenantContext

DEV_USER_ID = "dev-driver"

SAMPLE_LOCATIONS = [
    ("Walmart DC 6094", "WM94", "2100 SE Walton Blvd", "Bentonville", "AR", "72712"),
    ("Pilot Travel Center #357", "PIL357", "3400 S Range Line Rd", "Joplin", "MO", "64804"),
    ("Home Yard", "YARD", "500 Industrial Pkwy", "Tulsa", "OK", "74107"),
]


async def seed_tenant(
    db: AsyncSession,
    user_id: str = DEV_USER_ID,
    name: str = "Dev Hauling",
) -> Optional[TenantContext]:
    """
    Create the tenant, its driver link and sample locations.

    Returns None (and writes nothing) when the user is already linked.
    """
    result = await db.execute(select(TenantUser).where(TenantUser.user_id == user_id))
    if result.scalar_one_or_none():
        return None

    tenant = Tenant(name=name)
    db.add(tenant)
    await db.flush()

    db.add(TenantUser(tenant_id=tenant.id, user_id=user_id, role=TenantRole.OWNER))
    for loc_name, quick_code, address1, city, state, zip_code in SAMPLE_LOCATIONS:
        db.add(Location(
            tenant_id=tenant.id,
            name=loc_name,
            quick_code=quick_code,
            address1=address1,
            city=city,
            state=state,
            zip_code=zip_code,
        ))

    await db.commit()
    return TenantContext(tenant_id=tenant.id, user_id=user_id)


async def main():
    async with AsyncSessionLocal() as db:
        print("🌱 Seeding development tenant...")
        tenant = await seed_tenant(db)
        if tenant is None:
            print(f"ℹ️  User {DEV_USER_ID} already has a tenant, skipping seeding")
            return

        token = create_access_token(data={"sub": f"{DEV_USER_ID}@triplog.dev", "user_id": DEV_USER_ID})
        print(f"✅ Created tenant {tenant.tenant_id} with {len(SAMPLE_LOCATIONS)} saved locations")
        print(f"\nBearer token for {DEV_USER_ID}:\n{token}")


if __name__ == "__main__":
    asyncio.run(main())
