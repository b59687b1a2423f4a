"""
Saved location lookups.

Search matches name or quick code. Plain text becomes a case-insensitive
"contains" match; text that already has SQL wildcards (% or _) is used as is.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from triplog.app.core.config import settings
from triplog.app.core.exceptions import ResourceNotFoundError
from triplog.app.domain.stops.formatting import format_address
from triplog.app.models.location import Location
from triplog.app.services.tenancy import TenantContext

logger = logging.getLogger(__name__)


def format_location_address(location: Location) -> str:
    return format_address(location.address1, location.city, location.state, location.zip_code)


def search_pattern(query: str) -> str:
    pattern = query.strip()
    if "%" not in pattern and "_" not in pattern:
        pattern = f"%{pattern}%"
    return pattern


async def search_locations(
    db: AsyncSession,
    tenant: TenantContext,
    query: str,
    limit: Optional[int] = None
) -> List[Location]:
    if not query or not query.strip():
        return []

    pattern = search_pattern(query)
    result = await db.execute(
        select(Location).where(
            Location.tenant_id == tenant.tenant_id,
            or_(Location.name.ilike(pattern), Location.quick_code.ilike(pattern))
        ).order_by(Location.name.asc()).limit(limit or settings.location_search_limit)
    )
    return list(result.scalars().all())


async def fetch_location(db: AsyncSession, tenant: TenantContext, location_id: str) -> Location:
    result = await db.execute(
        select(Location).where(
            Location.id == location_id,
            Location.tenant_id == tenant.tenant_id
        )
    )
    location = result.scalar_one_or_none()
    if location is None:
        raise ResourceNotFoundError("Location", location_id)
    return location


async def fetch_all_locations(db: AsyncSession, tenant: TenantContext) -> List[Location]:
    result = await db.execute(
        select(Location).where(
            Location.tenant_id == tenant.tenant_id
        ).order_by(Location.name.asc())
    )
    return list(result.scalars().all())


class DebouncedSearch:
    """
    Delays a search until typing pauses.

    Each submit() cancels the search still waiting from the previous
    keystroke, so only the last query in a burst reaches the store. Errors
    from a search are passed to on_error (if given) instead of the caller.
    """

    def __init__(
        self,
        search: Callable[[str], Awaitable[list]],
        delay_ms: Optional[int] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._search = search
        self._delay = (settings.search_debounce_ms if delay_ms is None else delay_ms) / 1000
        self._on_error = on_error
        self._pending: Optional[asyncio.Task] = None

    @property
    def pending(self) -> Optional[asyncio.Task]:
        return self._pending

    def submit(self, query: str) -> asyncio.Task:
        self.cancel()
        self._pending = asyncio.ensure_future(self._run(query))
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _run(self, query: str) -> list:
        if not query or not query.strip():
            return []
        await asyncio.sleep(self._delay)
        try:
            return await self._search(query)
        except Exception as exc:
            if self._on_error is None:
                raise
            logger.error("Location search failed for %r: %s", query, exc)
            self._on_error(exc)
            return []
