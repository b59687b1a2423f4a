"""
Forward geocoding through the Mapbox Geocoding API.

Results are best effort: any failure comes back as None and never blocks
saving a stop.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from triplog.app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodeResult:
    latitude: float
    longitude: float
    formatted_address: str


async def geocode_address(
    address: str,
    client: Optional[httpx.AsyncClient] = None,
    token: Optional[str] = None,
) -> Optional[GeocodeResult]:
    """
    Resolve a free-form address to coordinates.

    Returns None for blank input, a missing token, an HTTP or transport
    error, or when Mapbox finds nothing.
    """
    if not address or not address.strip():
        return None
    token = token if token is not None else settings.mapbox_token
    if not token:
        logger.warning("Mapbox token not configured")
        return None

    url = f"{settings.mapbox_base_url}/{quote(address.strip(), safe='')}.json"
    params = {"access_token": token, "limit": 1, "types": "address,place,postcode"}

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=settings.geocode_timeout_seconds)
    try:
        response = await client.get(url, params=params)
        if response.status_code != 200:
            logger.error("Mapbox geocoding error: %s", response.status_code)
            return None
        features = response.json().get("features") or []
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Mapbox geocoding failed for %r: %s", address, exc)
        return None
    finally:
        if owns_client:
            await client.aclose()

    if not features:
        return None

    feature = features[0]
    lng, lat = feature["center"]  # Mapbox returns [lng, lat]
    return GeocodeResult(
        latitude=lat,
        longitude=lng,
        formatted_address=feature.get("place_name") or address,
    )
