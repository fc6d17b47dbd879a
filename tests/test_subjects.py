import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_subject_lifecycle(client: AsyncClient, admin_headers, teacher, teacher_headers) -> None:
    response = await client.post(
        "/api/v1/subjects",
        json={"name": "Lenguaje", "code": "len1", "grade_level": 1, "teacher_id": str(teacher.id)},
        headers=admin_headers,
    )
    assert response.status_code == 201
    subject = response.json()["data"]
    assert subject["code"] == "LEN1"
    assert subject["teacher"]["id"] == str(teacher.id)

    response = await client.post("/api/v1/subjects", json={"name": "Otra", "code": "LEN1"}, headers=admin_headers)
    assert response.status_code == 409

    response = await client.get("/api/v1/subjects", params={"grade_level": 1}, headers=teacher_headers)
    assert [s["code"] for s in response.json()["data"]] == ["LEN1"]

    response = await client.post("/api/v1/subjects", json={"name": "Arte", "code": "ART1"}, headers=teacher_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/subjects/{subject['id']}", headers=admin_headers)
    assert response.json()["data"]["is_active"] is False
    response = await client.get("/api/v1/subjects", params={"active": "true"}, headers=teacher_headers)
    assert response.json()["data"] == []
