"""Shop registration, self-service updates, the public directory and shop deletion."""

import uuid

from conftest import auth_headers
from models import CatalogItem, Market, Product, Vendor, ProductStatus


def shop_payload(state, area, market=None, **fields):
    payload = {
        "businessName": "Phone Palace",
        "vendorType": "market_shop",
        "stateId": str(state.id),
        "areaId": str(area.id),
        "shopNumber": "B12",
        "contactDetails": {"phone": "08012345678", "whatsapp": "08012345678"},
        "categories": ["Phones", "Accessories"],
    }
    if market is not None:
        payload["marketId"] = str(market.id)
    payload.update(fields)
    return payload


async def test_register_promotes_user_to_vendor(client, seed, lagos):
    state, area, market = lagos
    user_id = uuid.uuid4()
    headers = auth_headers(user_id, "user")

    response = await client.post(
        "/vendors", json=shop_payload(state, area, market, latitude=6.5966, longitude=3.3421), headers=headers
    )
    assert response.status_code == 201
    body = response.json()
    assert body["userId"] == str(user_id)
    assert body["marketId"] == str(market.id)
    assert body["totalProducts"] == 0

    me = (await client.get("/auth/me", headers=headers)).json()
    assert me["role"] == "vendor"

    stored_market = await seed.fetch(Market, market.id)
    assert stored_market.total_shops == 1

    # The promoted role applies straight away: the same token can now manage the shop
    detail = await client.get("/vendors/me", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["location"]["market"]["name"] == "Computer Village"
    assert detail.json()["location"]["coordinates"] == [3.3421, 6.5966]


async def test_one_shop_per_user(client, lagos):
    state, area, market = lagos
    headers = auth_headers(uuid.uuid4(), "user")

    assert (await client.post("/vendors", json=shop_payload(state, area), headers=headers)).status_code == 201
    response = await client.post("/vendors", json=shop_payload(state, area, businessName="Second"), headers=headers)
    assert response.status_code == 409


async def test_register_rejects_broken_location_chain(client, seed, lagos):
    state, area, market = lagos
    abuja = await seed.state("Abuja")
    wuse = await seed.area(abuja, "Wuse")
    headers = auth_headers(uuid.uuid4(), "user")

    response = await client.post("/vendors", json=shop_payload(abuja, area), headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Area does not belong to the selected state"

    response = await client.post("/vendors", json=shop_payload(abuja, wuse, market), headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Market does not belong to the selected area"

    response = await client.post("/vendors", json={**shop_payload(state, area), "stateId": str(uuid.uuid4())}, headers=headers)
    assert response.status_code == 400


async def test_register_requires_both_coordinates(client, lagos):
    state, area, _ = lagos
    response = await client.post(
        "/vendors", json=shop_payload(state, area, latitude=6.5), headers=auth_headers(uuid.uuid4())
    )
    assert response.status_code == 422


async def test_location_change_resyncs_products_and_market_counts(client, seed, lagos):
    state, area, market = lagos
    lekki = await seed.area(state, "Lekki")
    lekki_mall = await seed.market(state, lekki, "Lekki Mall")
    user_id = uuid.uuid4()
    headers = auth_headers(user_id, "user")

    created = (await client.post("/vendors", json=shop_payload(state, area, market), headers=headers)).json()
    vendor = await seed.fetch(Vendor, uuid.UUID(created["id"]))
    first = await seed.product(vendor, name="iPhone 15")
    second = await seed.product(vendor, name="Galaxy S24")

    response = await client.put(
        "/vendors/me",
        json={"areaId": str(lekki.id), "marketId": str(lekki_mall.id), "latitude": 6.4474, "longitude": 3.4720},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["location"]["area"]["name"] == "Lekki"

    for product in (first, second):
        stored = await seed.fetch(Product, product.id)
        assert stored.area_id == lekki.id
        assert stored.market_id == lekki_mall.id
        assert (stored.latitude, stored.longitude) == (6.4474, 3.4720)

    assert (await seed.fetch(Market, market.id)).total_shops == 0
    assert (await seed.fetch(Market, lekki_mall.id)).total_shops == 1


async def test_update_rejects_market_outside_area(client, seed, lagos):
    state, area, market = lagos
    lekki = await seed.area(state, "Lekki")
    headers = auth_headers(uuid.uuid4(), "user")
    await client.post("/vendors", json=shop_payload(state, area, market), headers=headers)

    response = await client.put("/vendors/me", json={"areaId": str(lekki.id)}, headers=headers)
    assert response.status_code == 400


async def test_update_shop_details(client, lagos):
    state, area, _ = lagos
    headers = auth_headers(uuid.uuid4(), "user")
    await client.post("/vendors", json=shop_payload(state, area), headers=headers)

    response = await client.put(
        "/vendors/me",
        json={"businessDescription": "Phones and accessories", "isOpen": False, "businessName": None},
        headers=headers,
    )
    body = response.json()
    assert body["businessDescription"] == "Phones and accessories"
    assert body["isOpen"] is False
    assert body["businessName"] == "Phone Palace"


async def test_user_without_shop_gets_404(client):
    response = await client.get("/vendors/me", headers=auth_headers(uuid.uuid4(), "vendor"))
    assert response.status_code == 404


async def test_directory_lists_active_shops_featured_first(client, seed, lagos):
    state, area, market = lagos
    await seed.vendor(state, area, market, business_name="Top Rated", rating=4.9)
    await seed.vendor(state, area, market, business_name="Featured", is_featured=True, rating=3.0)
    await seed.vendor(state, area, market, business_name="Closed", is_active=False)
    await seed.vendor(state, area, business_name="Street Stall", vendor_type="street_shop", categories=["Food"])

    body = (await client.get("/vendors")).json()
    assert body["total"] == 3
    assert [item["businessName"] for item in body["items"]][:2] == ["Featured", "Top Rated"]

    body = (await client.get("/vendors", params={"marketId": str(market.id)})).json()
    assert {item["businessName"] for item in body["items"]} == {"Top Rated", "Featured"}

    body = (await client.get("/vendors", params={"vendorType": "street_shop", "category": "Food"})).json()
    assert [item["businessName"] for item in body["items"]] == ["Street Stall"]

    body = (await client.get("/vendors", params={"search": "rated"})).json()
    assert [item["businessName"] for item in body["items"]] == ["Top Rated"]


async def test_public_profile_counts_views_and_hides_inactive(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    closed = await seed.vendor(state, area, market, business_name="Closed", is_active=False)

    response = await client.get(f"/vendors/{vendor.id}")
    assert response.status_code == 200
    assert response.json()["location"]["state"]["name"] == "Lagos"
    assert (await seed.fetch(Vendor, vendor.id)).total_views == 1

    assert (await client.get(f"/vendors/{closed.id}")).status_code == 404
    assert (await client.get(f"/vendors/{uuid.uuid4()}")).status_code == 404


async def test_delete_shop_cascades(client, seed, lagos):
    state, area, market = lagos
    owner = uuid.uuid4()
    headers = auth_headers(owner, "user")
    created = (await client.post("/vendors", json=shop_payload(state, area, market), headers=headers)).json()
    vendor = await seed.fetch(Vendor, uuid.UUID(created["id"]))

    item = await seed.catalog_item(sku="IP15-128")
    product = await seed.product(vendor, sku="IP15-128", catalog_item_id=item.id, price=1000)
    draft = await seed.product(vendor, name="Draft", status=ProductStatus.DRAFT)
    assert (await seed.fetch(CatalogItem, item.id)).total_listings == 1

    shopper = uuid.uuid4()
    shopper_headers = auth_headers(shopper)
    await client.post("/reviews", json={"type": "vendor", "vendorId": str(vendor.id), "rating": 5}, headers=shopper_headers)
    await client.post("/reviews", json={"type": "product", "productId": str(product.id), "rating": 4}, headers=shopper_headers)
    await client.post("/favorites", json={"type": "product", "itemId": str(product.id)}, headers=shopper_headers)
    await client.post("/favorites", json={"type": "vendor", "itemId": str(vendor.id)}, headers=shopper_headers)

    response = await client.delete("/vendors/me", headers=headers)
    assert response.status_code == 200

    assert await seed.fetch(Vendor, vendor.id) is None
    assert await seed.fetch(Product, product.id) is None
    assert await seed.fetch(Product, draft.id) is None
    assert (await seed.fetch(Market, market.id)).total_shops == 0

    stored_item = await seed.fetch(CatalogItem, item.id)
    assert (stored_item.total_listings, stored_item.lowest_price) == (0, 0)

    reviews = (await client.get("/reviews/mine", headers=shopper_headers)).json()
    assert reviews == []
    favorites = (await client.get("/favorites", headers=shopper_headers)).json()
    assert favorites["total"] == 0

    me = (await client.get("/auth/me", headers=headers)).json()
    assert me["role"] == "user"
