import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import AttendanceEntry, AttendanceRecord


@pytest.fixture()
async def classroom(factory, teacher):
    group = await factory.group(tutor_id=teacher.id)
    ana = await factory.student(first_name="Ana")
    beto = await factory.student(first_name="Beto")
    await factory.enroll(ana, group)
    await factory.enroll(beto, group)
    return group, ana, beto


@pytest.mark.asyncio
async def test_saving_twice_replaces_the_roll(
    client: AsyncClient, classroom, teacher_headers, db_session: AsyncSession
) -> None:
    group, ana, beto = classroom
    payload = {
        "group_id": group["id"],
        "date": "2025-03-10",
        "entries": [
            {"student_id": ana["id"], "status": "PRESENT"},
            {"student_id": beto["id"], "status": "ABSENT"},
        ],
    }
    first = await client.post("/api/v1/attendance", json=payload, headers=teacher_headers)
    assert first.status_code == 201
    assert len(first.json()["data"]["entries"]) == 2

    payload["entries"] = [{"student_id": ana["id"], "status": "LATE", "remarks": "Bus"}]
    second = await client.post("/api/v1/attendance", json=payload, headers=teacher_headers)
    assert second.status_code == 201
    data = second.json()["data"]
    assert data["id"] == first.json()["data"]["id"]
    assert [(e["student_id"], e["status"], e["remarks"]) for e in data["entries"]] == [(ana["id"], "LATE", "Bus")]

    assert (await db_session.scalar(select(func.count()).select_from(AttendanceRecord))) == 1
    assert (await db_session.scalar(select(func.count()).select_from(AttendanceEntry))) == 1


@pytest.mark.asyncio
async def test_not_enrolled_student_is_rejected(client: AsyncClient, classroom, factory, teacher_headers) -> None:
    group, ana, _ = classroom
    stranger = await factory.student(first_name="Xavi")
    response = await client.post(
        "/api/v1/attendance",
        json={
            "group_id": group["id"],
            "date": "2025-03-10",
            "entries": [{"student_id": ana["id"]}, {"student_id": stranger["id"]}],
        },
        headers=teacher_headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Student is not actively enrolled in this group"
    assert body["details"]["student_ids"] == [stranger["id"]]


@pytest.mark.asyncio
async def test_duplicate_and_empty_entries_are_rejected(client: AsyncClient, classroom, teacher_headers) -> None:
    group, ana, _ = classroom
    response = await client.post(
        "/api/v1/attendance",
        json={"group_id": group["id"], "date": "2025-03-10", "entries": [{"student_id": ana["id"]}] * 2},
        headers=teacher_headers,
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/v1/attendance",
        json={"group_id": group["id"], "date": "2025-03-10", "entries": []},
        headers=teacher_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_other_teacher_cannot_take_or_read_attendance(
    client: AsyncClient, classroom, other_teacher_headers, teacher_headers
) -> None:
    group, ana, _ = classroom
    payload = {"group_id": group["id"], "date": "2025-03-10", "entries": [{"student_id": ana["id"]}]}
    response = await client.post("/api/v1/attendance", json=payload, headers=other_teacher_headers)
    assert response.status_code == 403

    await client.post("/api/v1/attendance", json=payload, headers=teacher_headers)
    response = await client.get("/api/v1/attendance", params={"group_id": group["id"]}, headers=other_teacher_headers)
    assert response.status_code == 403

    response = await client.get("/api/v1/attendance", headers=other_teacher_headers)
    assert response.json()["data"] == []

    response = await client.get(f"/api/v1/attendance/student/{ana['id']}", headers=other_teacher_headers)
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_list_by_date_range_and_student_history(client: AsyncClient, classroom, teacher_headers) -> None:
    group, ana, _ = classroom
    for day, status in (("2025-03-10", "PRESENT"), ("2025-03-11", "ABSENT"), ("2025-03-12", "EXCUSED")):
        response = await client.post(
            "/api/v1/attendance",
            json={"group_id": group["id"], "date": day, "entries": [{"student_id": ana["id"], "status": status}]},
            headers=teacher_headers,
        )
        assert response.status_code == 201

    response = await client.get(
        "/api/v1/attendance",
        params={"group_id": group["id"], "from": "2025-03-11", "to": "2025-03-12"},
        headers=teacher_headers,
    )
    assert [r["date"] for r in response.json()["data"]] == ["2025-03-12", "2025-03-11"]

    response = await client.get(
        "/api/v1/attendance", params={"from": "2025-03-12", "to": "2025-03-10"}, headers=teacher_headers
    )
    assert response.status_code == 400

    response = await client.get(f"/api/v1/attendance/student/{ana['id']}", headers=teacher_headers)
    assert [item["status"] for item in response.json()["data"]] == ["EXCUSED", "ABSENT", "PRESENT"]
