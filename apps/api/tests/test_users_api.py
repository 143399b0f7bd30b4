"""Tests for the /users endpoints (role gating, hierarchy, error mapping)."""
import uuid

import pytest
from httpx import AsyncClient

from app.db.enums import Role


NEW_USER = {
    "email": "casey@shop.test",
    "first_name": "Casey",
    "last_name": "Diaz",
    "role_code": "bodyman",
}


@pytest.mark.asyncio
async def test_admin_creates_user(
    client: AsyncClient, make_user, shop_a, auth_headers, dispatcher
):
    admin = make_user(Role.ADMIN, shop_a)

    response = await client.post("/users", headers=auth_headers(admin), json=NEW_USER)

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "casey@shop.test"
    assert data["role_code"] == "bodyman"
    assert data["shop_code"] == "SHOPA"
    assert data["is_active"] is True
    assert any("welcome email" in d for d in dispatcher.descriptions())


@pytest.mark.asyncio
async def test_staff_cannot_manage_users(client: AsyncClient, make_user, shop_a, auth_headers):
    adjuster = make_user(Role.ADJUSTER, shop_a)
    headers = auth_headers(adjuster)

    assert (await client.get("/users", headers=headers)).status_code == 403
    assert (await client.post("/users", headers=headers, json=NEW_USER)).status_code == 403


@pytest.mark.asyncio
async def test_admin_creating_admin_is_permission_denied(
    client: AsyncClient, make_user, shop_a, auth_headers
):
    admin = make_user(Role.ADMIN, shop_a)

    response = await client.post(
        "/users", headers=auth_headers(admin), json={**NEW_USER, "role_code": "admin"}
    )

    assert response.status_code == 403
    assert response.json()["field"] == "role_code"


@pytest.mark.asyncio
async def test_duplicate_email_is_conflict(client: AsyncClient, make_user, shop_a, auth_headers):
    admin = make_user(Role.ADMIN, shop_a)
    make_user(Role.BODYMAN, shop_a, email="casey@shop.test")

    response = await client.post("/users", headers=auth_headers(admin), json=NEW_USER)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_email_is_bad_request(client: AsyncClient, make_user, shop_a, auth_headers):
    admin = make_user(Role.ADMIN, shop_a)

    response = await client.post(
        "/users", headers=auth_headers(admin), json={**NEW_USER, "email": "nope"}
    )

    assert response.status_code == 400
    assert response.json()["field"] == "email"


@pytest.mark.asyncio
async def test_identity_platform_outage_is_generic_500(
    client: AsyncClient, make_user, shop_a, auth_headers, identity_platform
):
    admin = make_user(Role.ADMIN, shop_a)
    identity_platform.failing.add("create_passwordless_account")

    response = await client.post("/users", headers=auth_headers(admin), json=NEW_USER)

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


@pytest.mark.asyncio
async def test_list_users_hides_superadmins_from_admins(
    client: AsyncClient, make_user, shop_a, auth_headers
):
    admin = make_user(Role.ADMIN, shop_a)
    superadmin = make_user(Role.SUPERADMIN)
    staff = make_user(Role.BODYMAN, shop_a)

    response = await client.get("/users", headers=auth_headers(admin))

    assert response.status_code == 200
    ids = {item["id"] for item in response.json()["items"]}
    assert str(staff.id) in ids
    assert str(admin.id) in ids
    assert str(superadmin.id) not in ids

    hidden = await client.get(f"/users/{superadmin.id}", headers=auth_headers(admin))
    missing = await client.get(f"/users/{uuid.uuid4()}", headers=auth_headers(admin))
    assert hidden.status_code == missing.status_code == 404
    assert hidden.json() == missing.json()


@pytest.mark.asyncio
async def test_list_users_pagination_bounds(client: AsyncClient, make_user, auth_headers):
    superadmin = make_user(Role.SUPERADMIN)
    headers = auth_headers(superadmin)

    assert (await client.get("/users?limit=0", headers=headers)).status_code == 422
    response = await client.get("/users?limit=1&offset=0", headers=headers)
    assert response.status_code == 200
    assert response.json()["limit"] == 1
    assert len(response.json()["items"]) == 1


@pytest.mark.asyncio
async def test_update_user(client: AsyncClient, make_user, shop_a, auth_headers):
    admin = make_user(Role.ADMIN, shop_a)
    staff = make_user(Role.BODYMAN, shop_a)

    response = await client.put(
        f"/users/{staff.id}",
        headers=auth_headers(admin),
        json={"role_code": "adjuster", "phone": "416-555-0177"},
    )

    assert response.status_code == 200
    assert response.json()["role_code"] == "adjuster"
    assert response.json()["phone"] == "416-555-0177"


@pytest.mark.asyncio
async def test_deactivate_lifecycle(client: AsyncClient, make_user, shop_a, auth_headers):
    admin = make_user(Role.ADMIN, shop_a)
    staff = make_user(Role.BODYMAN, shop_a)
    headers = auth_headers(admin)

    self_response = await client.put(f"/users/{admin.id}/deactivate", headers=headers)
    assert self_response.status_code == 400
    assert self_response.json()["field"] == "permissions"

    response = await client.put(f"/users/{staff.id}/deactivate", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    resend = await client.post(f"/users/{staff.id}/resend-password-link", headers=headers)
    assert resend.status_code == 400
    assert resend.json()["field"] == "is_active"

    response = await client.put(f"/users/{staff.id}/reactivate", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is True

    resend = await client.post(f"/users/{staff.id}/resend-password-link", headers=headers)
    assert resend.status_code == 202


@pytest.mark.asyncio
async def test_admin_cannot_touch_other_shop_staff(
    client: AsyncClient, make_user, shop_a, shop_b, auth_headers
):
    admin = make_user(Role.ADMIN, shop_a)
    other_admin = make_user(Role.ADMIN, shop_b)
    headers = auth_headers(admin)

    # Other admins are visible but not manageable
    assert (await client.get(f"/users/{other_admin.id}", headers=headers)).status_code == 200
    response = await client.put(f"/users/{other_admin.id}/deactivate", headers=headers)
    assert response.status_code == 403
    assert response.json()["field"] == "permissions"
