import pytest
from httpx import AsyncClient

from app.core.enums import UserRole


@pytest.mark.asyncio
async def test_admin_manages_users(client: AsyncClient, admin_headers) -> None:
    response = await client.post(
        "/api/v1/users",
        json={"full_name": "Zoe Zamora", "email": "ZOE@school.edu", "password": "Secret123", "role": "DIRECTION"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    user = response.json()["data"]
    assert user["email"] == "zoe@school.edu"

    response = await client.put(
        f"/api/v1/users/{user['id']}",
        json={"full_name": "Zoe Z.", "password": "Another123"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["full_name"] == "Zoe Z."

    login = await client.post("/api/v1/auth/login", json={"email": "zoe@school.edu", "password": "Another123"})
    assert login.status_code == 200

    response = await client.delete(f"/api/v1/users/{user['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["is_active"] is False


@pytest.mark.asyncio
async def test_list_users_filters(client: AsyncClient, make_user, admin_headers) -> None:
    await make_user(UserRole.TEACHER, full_name="Bruno Ibarra")
    await make_user(UserRole.TEACHER, full_name="Carla Mendez", is_active=False)
    await make_user(UserRole.DIRECTION, full_name="Diana Ruiz")

    response = await client.get("/api/v1/users", params={"role": "TEACHER", "active": "true"}, headers=admin_headers)
    assert response.status_code == 200
    names = [u["full_name"] for u in response.json()["data"]]
    assert names == ["Bruno Ibarra"]

    response = await client.get("/api/v1/users", params={"search": "DIANA"}, headers=admin_headers)
    assert [u["full_name"] for u in response.json()["data"]] == ["Diana Ruiz"]


@pytest.mark.asyncio
async def test_users_endpoints_are_admin_only(client: AsyncClient, teacher_headers) -> None:
    response = await client.get("/api/v1/users", headers=teacher_headers)
    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Insufficient permissions", "details": None}


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(client: AsyncClient, teacher, admin_headers) -> None:
    response = await client.put(f"/api/v1/users/{teacher.id}", json={"email": "x@y.z"}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_tutor_role_change_requires_reassignment(client: AsyncClient, factory, teacher) -> None:
    group = await factory.group(tutor_id=teacher.id)

    response = await client.put(f"/api/v1/users/{teacher.id}", json={"role": "DIRECTION"}, headers=factory.headers)
    assert response.status_code == 400
    response = await client.get(f"/api/v1/users/{teacher.id}", headers=factory.headers)
    assert response.json()["data"]["role"] == "TEACHER"

    await client.put(f"/api/v1/groups/{group['id']}", json={"tutor_id": None}, headers=factory.headers)
    response = await client.put(f"/api/v1/users/{teacher.id}", json={"role": "DIRECTION"}, headers=factory.headers)
    assert response.status_code == 200
    assert response.json()["data"]["role"] == "DIRECTION"


@pytest.mark.asyncio
async def test_admin_cannot_deactivate_self_through_update(client: AsyncClient, admin, admin_headers) -> None:
    response = await client.put(f"/api/v1/users/{admin.id}", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.get("/api/v1/auth/me", headers=admin_headers)
    assert response.status_code == 200
