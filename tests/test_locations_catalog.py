"""Reference data: the state > area > market hierarchy and the product catalog."""

import uuid

from conftest import auth_headers


def admin():
    return auth_headers(uuid.uuid4(), "admin")


# =================
# LOCATIONS
# =================

async def test_admin_builds_the_hierarchy(client):
    headers = admin()

    state = await client.post("/locations/states", json={"name": "Lagos", "code": "LA"}, headers=headers)
    assert state.status_code == 201
    state_id = state.json()["id"]

    area = await client.post("/locations/areas", json={"stateId": state_id, "name": "Ikeja"}, headers=headers)
    assert area.status_code == 201
    area_id = area.json()["id"]

    market = await client.post(
        "/locations/markets",
        json={
            "stateId": state_id,
            "areaId": area_id,
            "name": "Computer Village",
            "type": "specialized_market",
            "latitude": 6.5966,
            "longitude": 3.3421,
        },
        headers=headers,
    )
    assert market.status_code == 201
    assert market.json()["type"] == "specialized_market"
    assert market.json()["totalShops"] == 0

    states = (await client.get("/locations/states")).json()
    assert [item["name"] for item in states] == ["Lagos"]
    areas = (await client.get("/locations/areas", params={"stateId": state_id})).json()
    assert [item["name"] for item in areas] == ["Ikeja"]


async def test_duplicate_names_conflict(client, lagos):
    state, _, _ = lagos
    headers = admin()

    response = await client.post("/locations/states", json={"name": "lagos"}, headers=headers)
    assert response.status_code == 409

    response = await client.post("/locations/areas", json={"stateId": str(state.id), "name": "IKEJA"}, headers=headers)
    assert response.status_code == 409


async def test_area_needs_existing_state(client):
    response = await client.post(
        "/locations/areas", json={"stateId": str(uuid.uuid4()), "name": "Ikeja"}, headers=admin()
    )
    assert response.status_code == 400


async def test_market_area_must_belong_to_state(client, seed, lagos):
    _, area, _ = lagos
    abuja = await seed.state("Abuja")

    response = await client.post(
        "/locations/markets",
        json={"stateId": str(abuja.id), "areaId": str(area.id), "name": "Wuse Market"},
        headers=admin(),
    )
    assert response.status_code == 400


async def test_location_writes_are_admin_only(client):
    response = await client.post("/locations/states", json={"name": "Kano"}, headers=auth_headers(uuid.uuid4(), "vendor"))
    assert response.status_code == 403


async def test_partial_coordinates_are_rejected(client):
    response = await client.post("/locations/states", json={"name": "Kano", "latitude": 12.0}, headers=admin())
    assert response.status_code == 422


async def test_market_listing_filters_and_paginates(client, seed, lagos):
    state, area, _ = lagos
    await seed.market(state, area, "Alaba International", type="specialized_market")
    await seed.market(state, area, "Ikeja City Mall", type="shopping_mall")

    body = (await client.get("/locations/markets", params={"areaId": str(area.id), "limit": 2})).json()
    assert body["total"] == 3
    assert body["totalPages"] == 2
    assert [item["name"] for item in body["items"]] == ["Alaba International", "Computer Village"]

    body = (await client.get("/locations/markets", params={"type": "shopping_mall"})).json()
    assert [item["name"] for item in body["items"]] == ["Ikeja City Mall"]


async def test_unknown_location_is_404(client):
    assert (await client.get(f"/locations/states/{uuid.uuid4()}")).status_code == 404
    assert (await client.get(f"/locations/areas/{uuid.uuid4()}")).status_code == 404
    assert (await client.get(f"/locations/markets/{uuid.uuid4()}")).status_code == 404


# =================
# CATALOG
# =================

async def test_create_and_look_up_catalog_item(client):
    payload = {
        "name": "iPhone 15",
        "sku": "IP15-128",
        "barcode": "194253000000",
        "brand": "Apple",
        "category": "Phones",
        "alternateNames": ["iphone15", "apple 15"],
    }
    response = await client.post("/catalog", json=payload, headers=admin())
    assert response.status_code == 201
    item_id = response.json()["id"]

    assert (await client.get("/catalog/sku/IP15-128")).json()["id"] == item_id
    assert (await client.get("/catalog/barcode/194253000000")).json()["id"] == item_id
    assert (await client.get(f"/catalog/{item_id}")).json()["name"] == "iPhone 15"
    assert (await client.get("/catalog/sku/NOPE")).status_code == 404

    duplicate = await client.post("/catalog", json={**payload, "name": "Another", "barcode": None}, headers=admin())
    assert duplicate.status_code == 409


async def test_catalog_writes_are_admin_only(client):
    response = await client.post(
        "/catalog", json={"name": "iPhone 15", "category": "Phones"}, headers=auth_headers(uuid.uuid4(), "vendor")
    )
    assert response.status_code == 403


async def test_catalog_search_covers_alternate_names(client, seed):
    await seed.catalog_item(name="iPhone 15", alternate_names=["apple fifteen"])
    await seed.catalog_item(name="Galaxy S24", brand="Samsung")

    body = (await client.get("/catalog", params={"search": "fifteen"})).json()
    assert [item["name"] for item in body["items"]] == ["iPhone 15"]

    body = (await client.get("/catalog", params={"brand": "sams"})).json()
    assert [item["name"] for item in body["items"]] == ["Galaxy S24"]


async def test_catalog_categories_and_brands(client, seed):
    await seed.catalog_item(name="iPhone 15", brand="Apple")
    await seed.catalog_item(name="iPhone 14", brand="Apple")
    await seed.catalog_item(name="Galaxy S24", brand="Samsung")
    await seed.catalog_item(name="Basmati Rice", category="Food")

    categories = (await client.get("/catalog/categories")).json()
    assert categories == [{"name": "Phones", "count": 3}, {"name": "Food", "count": 1}]

    brands = (await client.get("/catalog/brands", params={"category": "Phones"})).json()
    assert brands == [{"name": "Apple", "count": 2}, {"name": "Samsung", "count": 1}]
