"""Admin dashboard, moderation queue, shop flags and user roles."""

import uuid

import pytest

from conftest import auth_headers
from models import Product, ProductStatus, UserRole


@pytest.fixture
def admin_headers():
    return auth_headers(uuid.uuid4(), "admin")


async def test_dashboard_counts(client, seed, lagos, admin_headers):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market, is_verified=True)
    await seed.vendor(state, area, market, business_name="Closed", is_active=False)
    await seed.product(vendor, name="Rice", views=4)
    await seed.product(vendor, name="Beans", status=ProductStatus.PENDING)
    await seed.user(role=UserRole.VENDOR)

    response = await client.get("/admin/dashboard", headers=admin_headers)
    assert response.status_code == 200

    body = response.json()
    assert body["totalVendors"] == 2
    assert body["activeVendors"] == 1
    assert body["verifiedVendors"] == 1
    assert body["totalProducts"] == 2
    assert body["productsByStatus"]["approved"] == 1
    assert body["productsByStatus"]["pending"] == 1
    assert body["productsByStatus"]["draft"] == 0
    assert body["usersByRole"] == {"user": 0, "vendor": 1, "admin": 1}
    assert body["totalMarkets"] == 1
    assert body["totalProductViews"] == 4


async def test_dashboard_is_admin_only(client):
    response = await client.get("/admin/dashboard", headers=auth_headers(uuid.uuid4(), "vendor"))
    assert response.status_code == 403


async def test_moderation_queue_is_oldest_pending_first(client, seed, lagos, admin_headers):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    older = await seed.product(vendor, name="Older", status=ProductStatus.PENDING)
    newer = await seed.product(vendor, name="Newer", status=ProductStatus.PENDING)
    await seed.product(vendor, name="Live")

    body = (await client.get("/admin/products", headers=admin_headers)).json()
    assert [item["id"] for item in body["items"]] == [str(older.id), str(newer.id)]

    body = (await client.get("/admin/products", params={"status": "approved"}, headers=admin_headers)).json()
    assert [item["name"] for item in body["items"]] == ["Live"]


async def test_approval_makes_listing_searchable(client, seed, lagos, admin_headers):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    product = await seed.product(vendor, name="Jollof spice", price=800, status=ProductStatus.PENDING)

    response = await client.put(
        f"/admin/products/{product.id}/status", json={"status": "approved"}, headers=admin_headers
    )
    assert response.status_code == 200

    body = (await client.get("/search/products", params={"query": "jollof"})).json()
    assert [item["id"] for item in body["items"]] == [str(product.id)]

    shops = (await client.get("/search/shops")).json()
    assert shops["items"][0]["priceRange"] == {"min": 800, "max": 800}


async def test_illegal_moderation_move(client, seed, lagos, admin_headers):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    product = await seed.product(vendor, status=ProductStatus.DRAFT)

    response = await client.put(
        f"/admin/products/{product.id}/status", json={"status": "approved"}, headers=admin_headers
    )
    assert response.status_code == 400
    assert (await seed.fetch(Product, product.id)).status == "draft"


async def test_vendor_flags(client, seed, lagos, admin_headers):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    await seed.product(vendor, name="Rice")

    response = await client.put(
        f"/admin/vendors/{vendor.id}", json={"isVerified": True, "isFeatured": True}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["isVerified"] is True
    assert response.json()["isFeatured"] is True
    assert response.json()["isActive"] is True

    response = await client.put(f"/admin/vendors/{vendor.id}", json={"isActive": False}, headers=admin_headers)
    assert response.json()["isActive"] is False

    # A deactivated shop's listings drop out of search immediately
    body = (await client.get("/search/products", params={"query": "rice"})).json()
    assert body["total"] == 0


async def test_admin_deletes_vendor(client, seed, lagos, admin_headers):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    product = await seed.product(vendor)

    response = await client.delete(f"/admin/vendors/{vendor.id}", headers=admin_headers)
    assert response.status_code == 200
    assert await seed.fetch(Product, product.id) is None

    response = await client.delete(f"/admin/vendors/{vendor.id}", headers=admin_headers)
    assert response.status_code == 404


async def test_change_user_role(client, seed, admin_headers):
    profile = await seed.user()

    response = await client.put(
        f"/admin/users/{profile.user_id}/role", json={"role": "admin"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    # The new role applies on the user's next request
    response = await client.get("/admin/dashboard", headers=auth_headers(profile.user_id, "user"))
    assert response.status_code == 200

    response = await client.put(
        f"/admin/users/{uuid.uuid4()}/role", json={"role": "vendor"}, headers=admin_headers
    )
    assert response.status_code == 404

    response = await client.put(
        f"/admin/users/{profile.user_id}/role", json={"role": "owner"}, headers=admin_headers
    )
    assert response.status_code == 422


async def test_list_users_by_role(client, seed, admin_headers):
    await seed.user(role=UserRole.VENDOR)
    await seed.user(role=UserRole.USER)

    body = (await client.get("/admin/users", params={"role": "vendor"}, headers=admin_headers)).json()
    assert body["total"] == 1
    assert body["items"][0]["role"] == "vendor"
