"""User API tests — profile, password change, admin directory over HTTP."""

import pytest

from conftest import STRONG_PASSWORD, auth_headers, seed_user

PROFILE = "/api/v1/users/profile"
CHANGE_PASSWORD = "/api/v1/users/change-password"
USERS = "/api/v1/users"


# ═══════════════════════════════════════════════════════════
# Self-service
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_profile_requires_session(client):
    r = await client.get(PROFILE)
    assert r.status_code == 401
    assert r.json()["kind"] == "unauthenticated"


@pytest.mark.asyncio
async def test_profile(client, settings, member):
    r = await client.get(PROFILE, headers=auth_headers(member, settings))
    assert r.status_code == 200
    assert r.json()["email"] == member.email
    assert "password_hash" not in r.json()


@pytest.mark.asyncio
async def test_update_profile(client, settings, member):
    r = await client.put(
        PROFILE,
        json={"name": "New Name", "email": "new@example.com"},
        headers=auth_headers(member, settings),
    )
    assert r.status_code == 200
    assert r.json()["name"] == "New Name"
    assert r.json()["email"] == "new@example.com"


@pytest.mark.asyncio
async def test_update_profile_conflict(client, settings, store, hasher, member):
    await seed_user(store, hasher, "taken@example.com")
    r = await client.put(
        PROFILE,
        json={"name": "Member", "email": "taken@example.com"},
        headers=auth_headers(member, settings),
    )
    assert r.status_code == 409


@pytest.mark.asyncio
async def test_update_profile_anonymous(client):
    r = await client.put(PROFILE, json={"name": "x", "email": "x@example.com"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_change_password(client, settings, member):
    headers = auth_headers(member, settings)
    r = await client.post(
        CHANGE_PASSWORD,
        json={"current_password": STRONG_PASSWORD, "new_password": "N3w!Password"},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json() == {"success": True}

    r = await client.post(
        "/api/v1/auth/login", json={"email": member.email, "password": "N3w!Password"}
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(client, settings, member):
    r = await client.post(
        CHANGE_PASSWORD,
        json={"current_password": "nope", "new_password": "N3w!Password"},
        headers=auth_headers(member, settings),
    )
    assert r.status_code == 401
    assert r.json()["detail"] == "Current password is incorrect"


@pytest.mark.asyncio
async def test_change_password_weak(client, settings, member):
    r = await client.post(
        CHANGE_PASSWORD,
        json={"current_password": STRONG_PASSWORD, "new_password": "weakpass"},
        headers=auth_headers(member, settings),
    )
    assert r.status_code == 400
    assert r.json()["field"] == "new_password"


# ═══════════════════════════════════════════════════════════
# Admin directory
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_users_as_admin(client, settings, store, hasher, admin):
    for n in range(24):
        await seed_user(store, hasher, f"user{n}@example.com", password=None)

    r = await client.get(
        USERS, params={"page": 2, "limit": 10}, headers=auth_headers(admin, settings)
    )
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 25
    assert body["page"] == 2
    assert body["limit"] == 10
    assert body["pages"] == 3
    assert len(body["users"]) == 10
    assert all("password_hash" not in u for u in body["users"])
    ids = [u["id"] for u in body["users"]]
    assert ids == sorted(ids)


@pytest.mark.asyncio
async def test_list_users_default_paging(client, settings, admin):
    r = await client.get(USERS, headers=auth_headers(admin, settings))
    assert r.json()["page"] == 1
    assert r.json()["limit"] == 10


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"page": 0}, {"limit": -1}, {"page": "abc"}])
async def test_list_users_bad_paging(client, settings, admin, params):
    r = await client.get(USERS, params=params, headers=auth_headers(admin, settings))
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_argument"


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{}, {"page": 0}, {"page": "abc"}])
async def test_list_users_non_admin_forbidden(client, settings, member, params):
    r = await client.get(USERS, params=params, headers=auth_headers(member, settings))
    assert r.status_code == 403
    assert r.json()["kind"] == "forbidden"


@pytest.mark.asyncio
async def test_list_users_anonymous(client):
    assert (await client.get(USERS)).status_code == 401


@pytest.mark.asyncio
async def test_deactivate_and_activate(client, settings, admin, member):
    headers = auth_headers(admin, settings)

    r = await client.post(f"{USERS}/{member.id}/deactivate", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}

    r = await client.post(
        "/api/v1/auth/login", json={"email": member.email, "password": STRONG_PASSWORD}
    )
    assert r.status_code == 403

    r = await client.post(f"{USERS}/{member.id}/activate", headers=headers)
    assert r.status_code == 200

    r = await client.post(
        "/api/v1/auth/login", json={"email": member.email, "password": STRONG_PASSWORD}
    )
    assert r.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("action", ["activate", "deactivate"])
@pytest.mark.parametrize("user_id", ["1", "0", "abc"])
async def test_status_change_non_admin_forbidden(client, settings, member, action, user_id):
    r = await client.post(
        f"{USERS}/{user_id}/{action}", headers=auth_headers(member, settings)
    )
    assert r.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", ["0", "-3", "abc"])
async def test_status_change_bad_id(client, settings, admin, user_id):
    r = await client.post(
        f"{USERS}/{user_id}/deactivate", headers=auth_headers(admin, settings)
    )
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_argument"


@pytest.mark.asyncio
async def test_status_change_unknown_user(client, settings, admin):
    r = await client.post(f"{USERS}/9999/activate", headers=auth_headers(admin, settings))
    assert r.status_code == 404
