import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import Enrollment


@pytest.mark.asyncio
async def test_enroll_and_duplicate(client: AsyncClient, factory) -> None:
    group = await factory.group()
    student = await factory.student()
    enrollment = await factory.enroll(student, group)
    assert enrollment["status"] == "ACTIVE"
    assert enrollment["student"]["id"] == student["id"]
    assert enrollment["group"]["name"] == "1A"

    response = await client.post(
        "/api/v1/enrollments",
        json={"student_id": student["id"], "group_id": group["id"]},
        headers=factory.headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_enroll_requires_active_student_and_group(client: AsyncClient, factory) -> None:
    group = await factory.group()
    student = await factory.student()
    await client.delete(f"/api/v1/students/{student['id']}", headers=factory.headers)
    response = await client.post(
        "/api/v1/enrollments",
        json={"student_id": student["id"], "group_id": group["id"]},
        headers=factory.headers,
    )
    assert response.status_code == 400

    other = await factory.student(first_name="Maria")
    await client.delete(f"/api/v1/groups/{group['id']}", headers=factory.headers)
    response = await client.post(
        "/api/v1/enrollments",
        json={"student_id": other["id"], "group_id": group["id"]},
        headers=factory.headers,
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/v1/enrollments",
        json={"student_id": other["id"], "group_id": "00000000-0000-0000-0000-000000000000"},
        headers=factory.headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_and_hard_delete(client: AsyncClient, factory, db_session: AsyncSession) -> None:
    group = await factory.group()
    student = await factory.student()
    enrollment = await factory.enroll(student, group)

    response = await client.put(
        f"/api/v1/enrollments/{enrollment['id']}",
        json={"status": "SUSPENDED", "observations": "Cambio de domicilio"},
        headers=factory.headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "SUSPENDED"

    response = await client.put(
        f"/api/v1/enrollments/{enrollment['id']}",
        json={"group_id": group["id"]},
        headers=factory.headers,
    )
    assert response.status_code == 400

    response = await client.delete(f"/api/v1/enrollments/{enrollment['id']}", headers=factory.headers)
    assert response.status_code == 200
    assert response.json()["data"] is None

    result = await db_session.execute(select(Enrollment))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_teacher_enrollment_listing_is_scoped(
    client: AsyncClient, factory, teacher, teacher_headers
) -> None:
    mine = await factory.group(tutor_id=teacher.id, section="A")
    other = await factory.group(section="B")
    a = await factory.student(first_name="Ana")
    b = await factory.student(first_name="Beto")
    await factory.enroll(a, mine)
    await factory.enroll(b, other)

    response = await client.get("/api/v1/enrollments", headers=teacher_headers)
    assert [e["student_id"] for e in response.json()["data"]] == [a["id"]]

    response = await client.get("/api/v1/enrollments", params={"group_id": other["id"]}, headers=teacher_headers)
    assert response.status_code == 403

    response = await client.get("/api/v1/enrollments", params={"student_id": b["id"]}, headers=teacher_headers)
    assert response.status_code == 403

    response = await client.post(
        "/api/v1/enrollments",
        json={"student_id": b["id"], "group_id": mine["id"]},
        headers=teacher_headers,
    )
    assert response.status_code == 403
