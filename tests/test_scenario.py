import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit_service import AuditRecorder
from app.core.models import AuditLog


@pytest.mark.asyncio
async def test_tutor_scope_end_to_end(
    client: AsyncClient,
    factory,
    teacher,
    teacher_headers,
    other_teacher_headers,
    audit: AuditRecorder,
    db_session: AsyncSession,
) -> None:
    response = await client.post(
        "/api/v1/groups",
        json={"grade_level": 1, "section": "A", "school_year": "2024-2025", "tutor_id": str(teacher.id)},
        headers=factory.headers,
    )
    assert response.status_code == 201
    g1 = response.json()["data"]

    enrolled = await factory.student(first_name="Elena")
    outsider = await factory.student(first_name="Oscar")
    subject = await factory.subject()
    await factory.enroll(enrolled, g1)

    response = await client.get("/api/v1/students", params={"group_id": g1["id"]}, headers=other_teacher_headers)
    assert response.status_code == 403

    response = await client.get("/api/v1/students", params={"group_id": g1["id"]}, headers=teacher_headers)
    assert response.status_code == 200
    assert [s["id"] for s in response.json()["data"]] == [enrolled["id"]]

    grade = {"group_id": g1["id"], "subject_id": subject["id"], "term": "T1", "score": 90}
    response = await client.post(
        "/api/v1/grades", json={**grade, "student_id": outsider["id"]}, headers=teacher_headers
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/v1/grades", json={**grade, "student_id": enrolled["id"]}, headers=teacher_headers
    )
    assert response.status_code == 201
    grade_id = response.json()["data"]["id"]

    await audit.drain()
    result = await db_session.execute(select(AuditLog).where(AuditLog.action == "GRADE_CREATE"))
    entry = result.scalar_one()
    assert entry.entity_id == grade_id
    assert entry.entity_type == "Grade"
    assert entry.performed_by == teacher.id
