"""Bearer token verification and profile bootstrap."""

import uuid

from conftest import auth_headers, make_token
from models import UserRole


async def test_first_request_creates_profile_with_token_role(client):
    user_id = uuid.uuid4()
    response = await client.get("/auth/me", headers=auth_headers(user_id, "vendor"))
    assert response.status_code == 200

    body = response.json()
    assert body["userId"] == str(user_id)
    assert body["role"] == "vendor"
    assert body["email"] == f"{user_id}@example.com"


async def test_unknown_token_role_falls_back_to_user(client):
    response = await client.get("/auth/me", headers=auth_headers(uuid.uuid4(), "superuser"))
    assert response.json()["role"] == "user"


async def test_stored_role_wins_over_token_claim(client, seed):
    profile = await seed.user(role=UserRole.USER)
    response = await client.get("/auth/me", headers=auth_headers(profile.user_id, "admin"))
    assert response.json()["role"] == "user"

    response = await client.get("/admin/dashboard", headers=auth_headers(profile.user_id, "admin"))
    assert response.status_code == 403


async def test_expired_token(client):
    token = make_token(uuid.uuid4(), expires_in=-60)
    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token expired"


async def test_token_signed_with_wrong_secret(client):
    token = make_token(uuid.uuid4(), secret="not-the-secret")
    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def test_token_with_malformed_subject(client):
    token = make_token("not-a-uuid")
    response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


async def test_missing_token(client):
    response = await client.get("/auth/me")
    assert response.status_code in (401, 403)


async def test_deactivated_profile_is_refused(client, seed):
    profile = await seed.user(is_active=False)
    response = await client.get("/auth/me", headers=auth_headers(profile.user_id))
    assert response.status_code == 403


async def test_update_own_profile(client):
    headers = auth_headers(uuid.uuid4())
    response = await client.put("/auth/me", json={"displayName": "Ada", "phone": "08011112222"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["displayName"] == "Ada"
    assert response.json()["role"] == "user"
