"""End-to-end tests for the search and comparison endpoints."""

import uuid

import pytest
from sqlalchemy.exc import OperationalError

import routers.search.service as search_service
from models import Product, ProductStatus, Vendor


@pytest.fixture
async def iphone_vendors(seed, lagos):
    """Two active vendors selling the same iPhone, plus an inactive one undercutting them both"""
    state, area, market = lagos
    palace = await seed.vendor(state, area, market, business_name="Phone Palace",
                               latitude=6.5966, longitude=3.3421, is_verified=True)
    world = await seed.vendor(state, area, market, business_name="Gadget World",
                              latitude=6.6050, longitude=3.3500)
    closed = await seed.vendor(state, area, market, business_name="Closed Phones",
                               latitude=6.5970, longitude=3.3425, is_active=False)

    await seed.product(palace, name="iPhone 15", sku="IP15-128", brand="Apple", price=1000000)
    await seed.product(world, name="iPhone 15", sku="IP15-128", brand="Apple", price=950000)
    await seed.product(closed, name="iPhone 15", sku="IP15-128", brand="Apple", price=900000)
    return palace, world, closed


# =================
# COMPARISON
# =================

async def test_compare_groups_the_same_product_across_vendors(client, iphone_vendors):
    response = await client.get("/search/compare", params={"query": "iPhone 15"})
    assert response.status_code == 200

    body = response.json()
    assert body["total"] == 1
    group = body["items"][0]
    assert group["id"] == "IP15-128"
    assert group["totalVendors"] == 2
    assert group["priceRange"]["lowest"] == 950000
    assert group["priceRange"]["highest"] == 1000000
    assert group["priceRange"]["average"] == 975000
    assert group["priceRange"]["currency"] == "NGN"
    assert [vendor["price"] for vendor in group["vendors"]] == [950000, 1000000]
    assert [vendor["businessName"] for vendor in group["vendors"]] == ["Gadget World", "Phone Palace"]


async def test_compare_falls_back_to_lowercased_name_without_sku(client, seed, lagos):
    state, area, market = lagos
    first = await seed.vendor(state, area, market, business_name="Mama Put Foods")
    second = await seed.vendor(state, area, market, business_name="Bulk Grains")
    await seed.product(first, name="Basmati Rice 5kg", category="Food", price=12000)
    await seed.product(second, name="basmati rice 5KG", category="Food", price=11500)

    response = await client.get("/search/compare", params={"query": "basmati"})
    group = response.json()["items"][0]
    assert group["id"] == "basmati rice 5kg"
    assert group["totalVendors"] == 2
    assert group["name"] == "Basmati Rice 5kg"


async def test_compare_respects_verified_only(client, iphone_vendors):
    response = await client.get("/search/compare", params={"query": "iPhone", "verifiedOnly": "true"})
    group = response.json()["items"][0]
    assert group["totalVendors"] == 1
    assert group["vendors"][0]["businessName"] == "Phone Palace"


async def test_product_vendors_by_name(client, iphone_vendors):
    response = await client.get("/search/product/iPhone 15/vendors")
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "iphone 15"
    assert body["totalVendors"] == 2
    assert body["vendors"][0]["price"] == 950000


async def test_product_vendors_by_sku(client, iphone_vendors):
    response = await client.get("/search/product/IP15-128/vendors")
    assert response.status_code == 200
    assert response.json()["totalVendors"] == 2


async def test_product_vendors_not_found(client, iphone_vendors):
    response = await client.get("/search/product/Nokia 3310/vendors")
    assert response.status_code == 404


# =================
# PRODUCT SEARCH
# =================

async def test_product_vendors_prefers_the_exact_name(client, seed, lagos):
    state, area, market = lagos
    first = await seed.vendor(state, area, market, business_name="First")
    second = await seed.vendor(state, area, market, business_name="Second")
    await seed.product(first, name="Égusi Soup Mix", category="Food", price=3000)
    await seed.product(second, name="Égusi Soup Mix", category="Food", price=2800)
    await seed.product(first, name="Égusi", category="Food", price=1500)

    response = await client.get("/search/product/Égusi/vendors")
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Égusi"
    assert body["totalVendors"] == 1


async def test_inactive_vendor_is_excluded_everywhere(client, iphone_vendors):
    _, _, closed = iphone_vendors

    products = (await client.get("/search/products", params={"query": "iPhone"})).json()
    assert products["total"] == 2
    assert all(item["vendor"]["id"] != str(closed.id) for item in products["items"])

    shops = (await client.get("/search/shops")).json()
    assert {item["businessName"] for item in shops["items"]} == {"Phone Palace", "Gadget World"}

    facets = (await client.get("/search/filters", params={"query": "iPhone"})).json()
    assert facets["states"] == [{"id": facets["states"][0]["id"], "name": "Lagos", "count": 2}]
    assert facets["priceRange"] == {"min": 950000, "max": 1000000}


async def test_price_low_sort(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    for price in (100, 50, 75):
        await seed.product(vendor, name=f"Rice {price}", category="Food", price=price)

    response = await client.get("/search/products", params={"category": "Food", "sortBy": "price_low"})
    assert [item["price"] for item in response.json()["items"]] == [50, 75, 100]

    response = await client.get("/search/products", params={"category": "Food", "sortBy": "price_high"})
    assert [item["price"] for item in response.json()["items"]] == [100, 75, 50]


async def test_price_range_filter(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    for price in (100, 50, 75):
        await seed.product(vendor, name=f"Rice {price}", category="Food", price=price)

    response = await client.get("/search/products", params={"minPrice": 60, "maxPrice": 100})
    assert sorted(item["price"] for item in response.json()["items"]) == [75, 100]


async def test_pagination_total_is_independent_of_page(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    for index in range(5):
        await seed.product(vendor, name=f"Phone case {index}", category="Accessories", price=1000 + index)

    seen = []
    for page in (1, 2, 3):
        body = (await client.get("/search/products", params={"category": "Accessories", "page": page, "limit": 2})).json()
        assert body["total"] == 5
        assert body["totalPages"] == 3
        assert body["page"] == page
        seen.extend(item["id"] for item in body["items"])

    assert len(seen) == 5
    assert len(set(seen)) == 5

    beyond = (await client.get("/search/products", params={"category": "Accessories", "page": 4, "limit": 2})).json()
    assert beyond["items"] == []
    assert beyond["total"] == 5


async def test_text_search_matches_tags_and_escapes_wildcards(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    await seed.product(vendor, name="Galaxy S24", tags=["smartphone", "android"])
    await seed.product(vendor, name="Charger", description="Fast charging")

    body = (await client.get("/search/products", params={"query": "smartphone"})).json()
    assert [item["name"] for item in body["items"]] == ["Galaxy S24"]

    body = (await client.get("/search/products", params={"query": "%"})).json()
    assert body["total"] == 0


async def test_tag_search_matches_each_tag_on_its_own(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    await seed.product(vendor, name="Espresso beans", category="Food", tags=["café", "arabica"])
    await seed.product(vendor, name="Scarf", category="Fashion", tags=["red", "blue"])
    await seed.product(vendor, name="Poster", category="Art", tags=['12" print'])

    body = (await client.get("/search/products", params={"query": "café"})).json()
    assert [item["name"] for item in body["items"]] == ["Espresso beans"]

    body = (await client.get("/search/products", params={"query": '12" print'})).json()
    assert [item["name"] for item in body["items"]] == ["Poster"]

    # Text between two tags is not a tag
    body = (await client.get("/search/products", params={"query": '", "'})).json()
    assert body["total"] == 0
    body = (await client.get("/search/products", params={"query": "red,blue"})).json()
    assert body["total"] == 0


async def test_only_approved_products_are_searchable(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    await seed.product(vendor, name="Approved kettle", category="Kitchen")
    await seed.product(vendor, name="Pending kettle", category="Kitchen", status=ProductStatus.PENDING)
    await seed.product(vendor, name="Hidden kettle", category="Kitchen", is_active=False)

    body = (await client.get("/search/products", params={"query": "kettle"})).json()
    assert [item["name"] for item in body["items"]] == ["Approved kettle"]
    assert "status" not in body["items"][0]


async def test_geo_search_filters_by_radius_and_sorts_by_distance(client, seed, lagos):
    state, area, market = lagos
    abuja = await seed.state("Abuja", latitude=9.0765, longitude=7.3986)
    wuse = await seed.area(abuja, "Wuse")

    near = await seed.vendor(state, area, market, business_name="Near", latitude=6.5966, longitude=3.3421)
    nearer = await seed.vendor(state, area, market, business_name="Nearer", latitude=6.6001, longitude=3.3401)
    far = await seed.vendor(abuja, wuse, business_name="Far", latitude=9.0765, longitude=7.3986)
    nowhere = await seed.vendor(state, area, market, business_name="No coordinates")
    for vendor in (near, nearer, far, nowhere):
        await seed.product(vendor, name="Power bank", category="Accessories")

    params = {"query": "power bank", "latitude": 6.6, "longitude": 3.34, "maxDistance": 10, "sortBy": "distance"}
    body = (await client.get("/search/products", params=params)).json()

    assert body["total"] == 2
    assert [item["vendor"]["businessName"] for item in body["items"]] == ["Nearer", "Near"]
    distances = [item["distance"] for item in body["items"]]
    assert distances == sorted(distances)
    assert all(0 <= distance <= 10 for distance in distances)

    shops = (await client.get("/search/shops", params={"latitude": 6.6, "longitude": 3.34, "maxDistance": 10})).json()
    assert {item["businessName"] for item in shops["items"]} == {"Near", "Nearer"}
    assert all(item["distance"] is not None for item in shops["items"])


async def test_partial_coordinates_are_rejected(client):
    response = await client.get("/search/products", params={"longitude": 3.34})
    assert response.status_code == 422


async def test_invalid_sort_is_rejected(client):
    response = await client.get("/search/products", params={"sortBy": "cheapest"})
    assert response.status_code == 422


async def test_repeated_search_returns_the_same_results(client, iphone_vendors):
    params = {"query": "iPhone", "sortBy": "relevance"}
    first = (await client.get("/search/products", params=params)).json()
    second = (await client.get("/search/products", params=params)).json()
    assert [item["id"] for item in first["items"]] == [item["id"] for item in second["items"]]
    assert first["total"] == second["total"]


async def test_search_counts_appearances_and_product_views(client, seed, iphone_vendors):
    palace, _, _ = iphone_vendors
    body = (await client.get("/search/products", params={"query": "iPhone"})).json()
    product_id = uuid.UUID(body["items"][0]["id"])

    product = await seed.fetch(Product, product_id)
    assert product.search_appearances == 1

    await client.get(f"/products/{product_id}")
    await client.get(f"/products/{product_id}")
    product = await seed.fetch(Product, product_id)
    assert product.views == 2

    await client.get("/search/shops", params={"query": "Palace"})
    vendor = await seed.fetch(Vendor, palace.id)
    assert vendor.search_appearances == 1


async def test_storage_failure_degrades_to_empty_page(client, iphone_vendors, monkeypatch):
    async def failing_search(session, filters):
        raise OperationalError("SELECT", {}, Exception("database is down"))

    monkeypatch.setattr(search_service, "search_products", failing_search)

    response = await client.get("/search/products", params={"query": "iPhone", "page": 2, "limit": 5})
    assert response.status_code == 200
    assert response.json() == {"total": 0, "page": 2, "limit": 5, "totalPages": 0, "items": []}

    # The other branches of a unified search still answer
    body = (await client.get("/search", params={"query": "iPhone"})).json()
    assert body["products"]["total"] == 0
    assert body["productComparison"]["total"] == 1
    assert len(body["shops"]["items"]) == 0


# =================
# SHOPS
# =================

async def test_shop_search_previews_most_viewed_products(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market, business_name="Fabrics Hub", categories=["Fashion"])
    for views in (3, 50, 7, 20, 1):
        await seed.product(vendor, name=f"Ankara {views}", category="Fashion", views=views)

    body = (await client.get("/search/shops", params={"query": "Fabrics"})).json()
    shop = body["items"][0]
    assert [product["name"] for product in shop["featuredProducts"]] == ["Ankara 50", "Ankara 20", "Ankara 7", "Ankara 3"]
    assert shop["totalProducts"] == 5
    assert shop["location"]["market"]["name"] == "Computer Village"


async def test_shop_search_default_order_puts_featured_first(client, seed, lagos):
    state, area, market = lagos
    await seed.vendor(state, area, market, business_name="Plain", rating=5.0)
    await seed.vendor(state, area, market, business_name="Featured", is_featured=True, rating=1.0)
    await seed.vendor(state, area, market, business_name="Verified", is_verified=True, rating=2.0)

    body = (await client.get("/search/shops")).json()
    assert [item["businessName"] for item in body["items"]] == ["Featured", "Verified", "Plain"]


async def test_shop_category_filter(client, seed, lagos):
    state, area, market = lagos
    await seed.vendor(state, area, market, business_name="Shoe Land", categories=["Shoes"])
    await seed.vendor(state, area, market, business_name="Shoe Polish Co", categories=["Shoe care"])

    body = (await client.get("/search/shops", params={"category": "Shoes"})).json()
    assert [item["businessName"] for item in body["items"]] == ["Shoe Land"]


async def test_shop_category_matches_whole_non_ascii_category(client, seed, lagos):
    state, area, market = lagos
    await seed.vendor(state, area, market, business_name="Maison", categories=["Décor", "Lighting"])
    await seed.vendor(state, area, market, business_name="Deco Lite", categories=["Déco"])

    body = (await client.get("/search/shops", params={"category": "décor"})).json()
    assert [item["businessName"] for item in body["items"]] == ["Maison"]


async def test_shop_price_low_puts_shops_without_prices_last(client, seed, lagos):
    state, area, market = lagos
    empty = await seed.vendor(state, area, market, business_name="Empty")
    pricey = await seed.vendor(state, area, market, business_name="Pricey")
    cheap = await seed.vendor(state, area, market, business_name="Cheap")
    await seed.product(empty, name="Pending rice", status=ProductStatus.PENDING, price=10)
    await seed.product(pricey, name="Rice", price=900)
    await seed.product(cheap, name="Rice", price=200)

    body = (await client.get("/search/shops", params={"sortBy": "price_low"})).json()
    assert [item["businessName"] for item in body["items"]] == ["Cheap", "Pricey", "Empty"]


async def test_shop_products(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market, business_name="Gadget Hub")
    await seed.product(vendor, name="Earbuds", category="Audio", price=15000)
    await seed.product(vendor, name="Speaker", category="Audio", price=45000)
    await seed.product(vendor, name="Laptop", category="Computers", price=650000)

    body = (await client.get(f"/search/shop/{vendor.id}/products", params={"category": "Audio"})).json()
    assert body["shop"]["businessName"] == "Gadget Hub"
    assert body["total"] == 2
    assert {item["name"] for item in body["products"]} == {"Earbuds", "Speaker"}

    missing = await client.get(f"/search/shop/{uuid.uuid4()}/products")
    assert missing.status_code == 404


async def test_similar_products_share_category_and_exclude_the_product(client, seed, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    iphone = await seed.product(vendor, name="iPhone 15", category="Phones")
    galaxy = await seed.product(vendor, name="Galaxy S24", category="Phones")
    await seed.product(vendor, name="Rice", category="Food")

    body = (await client.get(f"/search/product/{iphone.id}/similar")).json()
    assert [item["id"] for item in body["items"]] == [str(galaxy.id)]

    missing = await client.get(f"/search/product/{uuid.uuid4()}/similar")
    assert missing.status_code == 404


# =================
# FACETS & UNIFIED SEARCH
# =================

async def test_facets_only_count_listed_products(client, seed, lagos):
    state, area, market = lagos
    kano = await seed.state("Kano")
    await seed.area(kano, "Sabon Gari")
    vendor = await seed.vendor(state, area, market)
    await seed.product(vendor, name="Rice", category="Food", brand="Mama Gold", price=50)
    await seed.product(vendor, name="Beans", category="Food", brand="Mama Gold", price=30)
    await seed.product(vendor, name="Phone", category="Phones", brand="Tecno", price=80)
    await seed.product(vendor, name="Pending phone", category="Phones", status=ProductStatus.PENDING)

    body = (await client.get("/search/filters")).json()
    assert [state_facet["name"] for state_facet in body["states"]] == ["Lagos"]
    assert body["states"][0]["count"] == 3
    assert body["categories"] == [{"id": None, "name": "Food", "count": 2}, {"id": None, "name": "Phones", "count": 1}]
    assert body["brands"][0] == {"id": None, "name": "Mama Gold", "count": 2}
    assert body["markets"][0]["name"] == "Computer Village"
    assert body["priceRange"] == {"min": 30, "max": 80}


async def test_facets_ignore_the_chosen_state_but_narrow_areas(client, seed, lagos):
    state, area, market = lagos
    kano = await seed.state("Kano")
    sabon_gari = await seed.area(kano, "Sabon Gari")
    await seed.area(state, "Lekki")
    await seed.product(await seed.vendor(state, area, market, business_name="Lagos Grains"), name="Rice", category="Food")
    await seed.product(await seed.vendor(kano, sabon_gari, business_name="Kano Grains"), name="Rice", category="Food")

    body = (await client.get("/search", params={"query": "rice", "stateId": str(kano.id)})).json()
    assert body["products"]["total"] == 1
    assert body["products"]["items"][0]["vendor"]["businessName"] == "Kano Grains"

    facets = body["availableFilters"]
    assert sorted((facet["name"], facet["count"]) for facet in facets["states"]) == [("Kano", 1), ("Lagos", 1)]
    assert [facet["name"] for facet in facets["areas"]] == ["Sabon Gari"]
    assert "Computer Village" not in [facet["name"] for facet in facets["markets"]]


async def test_unified_search_returns_every_section(client, iphone_vendors):
    response = await client.get("/search", params={"query": "iPhone"})
    assert response.status_code == 200

    body = response.json()
    assert body["products"]["total"] == 2
    assert body["productComparison"]["items"][0]["totalVendors"] == 2
    assert body["availableFilters"]["categories"][0]["name"] == "Phones"
    assert body["meta"]["query"] == "iPhone"
    assert body["meta"]["searchType"] == "all"
    assert body["meta"]["tookMs"] >= 0


async def test_unified_search_for_shops_only(client, iphone_vendors):
    body = (await client.get("/search", params={"searchType": "shops"})).json()
    assert body["products"] is None
    assert body["productComparison"] is None
    assert body["shops"]["total"] == 2
