"""
Tests for saved location search, debounced lookups and location selection.
"""

import asyncio

import pytest

from triplog.app.models.location import Location
from triplog.app.services.locations import DebouncedSearch, search_locations, search_pattern


async def add_locations(session, tenant, *rows):
    for name, quick_code in rows:
        session.add(Location(
            tenant_id=tenant.tenant_id,
            name=name,
            quick_code=quick_code,
            address1="100 Main St",
            city="Tulsa",
            state="OK",
            zip_code="74103",
        ))
    await session.commit()


def test_search_pattern():
    assert search_pattern(" walmart ") == "%walmart%"
    assert search_pattern("WM%") == "WM%"
    assert search_pattern("W_M") == "W_M"


@pytest.mark.asyncio
async def test_search_matches_name_or_quick_code(db_session, tenant):
    await add_locations(
        db_session, tenant,
        ("Walmart DC 6094", "WM94"),
        ("Target Distribution", "TGT1"),
        ("Pilot Travel Center", None),
    )

    names = [l.name for l in await search_locations(db_session, tenant, "walmart")]
    assert names == ["Walmart DC 6094"]

    names = [l.name for l in await search_locations(db_session, tenant, "tgt")]
    assert names == ["Target Distribution"]

    assert await search_locations(db_session, tenant, "   ") == []


@pytest.mark.asyncio
async def test_search_limit_and_order(db_session, tenant):
    await add_locations(db_session, tenant, *[(f"Yard {i:02d}", f"Y{i:02d}") for i in range(25)])

    results = await search_locations(db_session, tenant, "yard")
    assert len(results) == 20
    assert results[0].name == "Yard 00"

    results = await search_locations(db_session, tenant, "Y1%")
    assert [l.quick_code for l in results] == [f"Y1{i}" for i in range(10)]


@pytest.mark.asyncio
async def test_search_is_tenant_scoped(db_session, tenant, other_tenant):
    await add_locations(db_session, other_tenant, ("Walmart DC 6094", "WM94"))
    assert await search_locations(db_session, tenant, "walmart") == []


@pytest.mark.asyncio
async def test_search_endpoint(client, headers, db_session, tenant):
    await add_locations(db_session, tenant, ("Walmart DC 6094", "WM94"))

    response = await client.get("/v1/locations/search", params={"q": "wm"}, headers=headers)

    assert response.status_code == 200
    assert response.json() == [{
        "id": response.json()[0]["id"],
        "name": "Walmart DC 6094",
        "quick_code": "WM94",
        "address": "100 Main St, Tulsa, OK 74103",
    }]


@pytest.mark.asyncio
async def test_list_endpoint(client, headers, db_session, tenant):
    await add_locations(db_session, tenant, ("Pilot Travel Center", None), ("Flying J", "FJ"))

    response = await client.get("/v1/locations", headers=headers)

    assert [l["name"] for l in response.json()] == ["Flying J", "Pilot Travel Center"]


@pytest.mark.asyncio
async def test_select_location_fills_stop(client, headers, db_session, tenant):
    """Choosing a saved location copies its name and address onto the stop."""
    await add_locations(db_session, tenant, ("Walmart DC 6094", "WM94"))
    location_id = (await search_locations(db_session, tenant, "WM94"))[0].id

    trip = (await client.post("/v1/trips", headers=headers)).json()
    trip_id = trip["trip"]["id"]
    pickup_id = trip["stops"][1]["id"]

    response = await client.put(
        f"/v1/trips/{trip_id}/stops/{pickup_id}/location",
        json={"location_id": location_id},
        headers=headers,
    )
    assert response.status_code == 200
    stop = response.json()["stops"][1]
    assert stop["name"] == "Walmart DC 6094"
    assert stop["address"] == "100 Main St, Tulsa, OK 74103"
    assert stop["location_id"] == location_id

    # Typing over the name detaches the saved location
    response = await client.patch(
        f"/v1/trips/{trip_id}/stops/{pickup_id}", json={"name": "Walmart DC 6094 door 3"}, headers=headers
    )
    assert response.json()["stops"][1]["location_id"] is None


@pytest.mark.asyncio
async def test_select_unknown_location(client, headers):
    trip = (await client.post("/v1/trips", headers=headers)).json()
    response = await client.put(
        f"/v1/trips/{trip['trip']['id']}/stops/{trip['stops'][1]['id']}/location",
        json={"location_id": "missing"},
        headers=headers,
    )
    assert response.status_code == 404


# Debounced search

@pytest.mark.asyncio
async def test_debounce_runs_only_last_query():
    """Rapid keystrokes cancel the earlier searches."""
    calls = []

    async def search(query):
        calls.append(query)
        return [query]

    debounced = DebouncedSearch(search, delay_ms=20)
    first = debounced.submit("w")
    debounced.submit("wa")
    last = debounced.submit("wal")

    assert await last == ["wal"]
    assert first.cancelled()
    assert calls == ["wal"]


@pytest.mark.asyncio
async def test_debounce_blank_query_skips_search():
    calls = []

    async def search(query):
        calls.append(query)
        return []

    debounced = DebouncedSearch(search, delay_ms=20)
    assert await debounced.submit("  ") == []
    assert calls == []


@pytest.mark.asyncio
async def test_debounce_reports_errors():
    errors = []

    async def search(query):
        raise RuntimeError("connection reset")

    debounced = DebouncedSearch(search, delay_ms=0, on_error=errors.append)

    assert await debounced.submit("wal") == []
    assert str(errors[0]) == "connection reset"


@pytest.mark.asyncio
async def test_debounce_without_handler_raises():
    async def search(query):
        raise RuntimeError("connection reset")

    debounced = DebouncedSearch(search, delay_ms=0)
    with pytest.raises(RuntimeError):
        await debounced.submit("wal")


@pytest.mark.asyncio
async def test_debounce_cancel():
    async def search(query):
        return [query]

    debounced = DebouncedSearch(search, delay_ms=50)
    task = debounced.submit("wal")
    debounced.cancel()

    assert debounced.pending is None
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_new_stops_copy_saved_location(client, headers, db_session, tenant):
    """A location on a new stop fills its name and address, on create and insert."""
    await add_locations(db_session, tenant, ("Walmart DC 6094", "WM94"))
    location_id = (await search_locations(db_session, tenant, "WM94"))[0].id

    response = await client.post(
        "/v1/trips",
        json={"stops": [
            {"type": "pickup", "name": "Shipper", "location_id": location_id},
            {"type": "delivery", "name": "Receiver"},
        ]},
        headers=headers,
    )
    assert response.status_code == 201
    pickup = response.json()["stops"][0]
    assert pickup["name"] == "Walmart DC 6094"
    assert pickup["address"] == "100 Main St, Tulsa, OK 74103"
    assert pickup["location_id"] == location_id

    trip_id = response.json()["trip"]["id"]
    response = await client.post(
        f"/v1/trips/{trip_id}/stops",
        json={"after_order": 0, "stop": {"location_id": location_id}},
        headers=headers,
    )
    assert response.status_code == 201
    inserted = response.json()["stops"][1]
    assert inserted["name"] == "Walmart DC 6094"
    assert inserted["location_id"] == location_id


@pytest.mark.asyncio
async def test_new_stops_cannot_use_another_tenants_location(
    client, headers, db_session, tenant, other_tenant
):
    await add_locations(db_session, other_tenant, ("Other Co Yard", "OCY"))
    foreign_id = (await search_locations(db_session, other_tenant, "OCY"))[0].id

    response = await client.post(
        "/v1/trips",
        json={"stops": [
            {"type": "pickup", "name": "Shipper", "location_id": foreign_id},
            {"type": "delivery", "name": "Receiver"},
        ]},
        headers=headers,
    )
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"
    assert (await client.get("/v1/trips", headers=headers)).json() == []

    trip = (await client.post("/v1/trips", headers=headers)).json()
    response = await client.post(
        f"/v1/trips/{trip['trip']['id']}/stops",
        json={"after_order": 0, "stop": {"location_id": "nope"}},
        headers=headers,
    )
    assert response.status_code == 404
    reloaded = await client.get(f"/v1/trips/{trip['trip']['id']}", headers=headers)
    assert len(reloaded.json()["stops"]) == 3
