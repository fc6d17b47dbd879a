import pytest
from httpx import AsyncClient


@pytest.fixture()
async def setup(factory, teacher):
    group = await factory.group(tutor_id=teacher.id)
    student = await factory.student()
    subject = await factory.subject()
    await factory.enroll(student, group)
    return group, student, subject


def _grade(group, student, subject, **extra) -> dict:
    return {
        "student_id": student["id"],
        "group_id": group["id"],
        "subject_id": subject["id"],
        "term": "T1",
        "score": 8,
        "max_score": 10,
        **extra,
    }


@pytest.mark.asyncio
async def test_duplicate_grade_conflicts_and_keeps_first(client: AsyncClient, setup, teacher_headers) -> None:
    group, student, subject = setup
    first = await client.post("/api/v1/grades", json=_grade(group, student, subject), headers=teacher_headers)
    assert first.status_code == 201
    assert first.json()["data"]["subject"]["code"] == "MAT1"

    second = await client.post(
        "/api/v1/grades", json=_grade(group, student, subject, score=3), headers=teacher_headers
    )
    assert second.status_code == 409
    assert second.json()["message"] == "A grade for this student, subject and term already exists"

    response = await client.get("/api/v1/grades", params={"student_id": student["id"]}, headers=teacher_headers)
    grades = response.json()["data"]
    assert len(grades) == 1
    assert grades[0]["score"] == 8


@pytest.mark.asyncio
async def test_score_outside_range_is_rejected(client: AsyncClient, setup, teacher_headers) -> None:
    group, student, subject = setup
    response = await client.post(
        "/api/v1/grades", json=_grade(group, student, subject, score=11), headers=teacher_headers
    )
    assert response.status_code == 400
    assert response.json()["details"] == {"score": 11, "max_score": 10}

    response = await client.post(
        "/api/v1/grades", json=_grade(group, student, subject, score=-1), headers=teacher_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_grade_requires_active_enrollment(client: AsyncClient, setup, factory, teacher_headers) -> None:
    group, _, subject = setup
    stranger = await factory.student(first_name="Xavi")
    response = await client.post("/api/v1/grades", json=_grade(group, stranger, subject), headers=teacher_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Student is not actively enrolled in this group"

    # Management roles are bound by the enrollment rule too
    response = await client.post("/api/v1/grades", json=_grade(group, stranger, subject), headers=factory.headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_other_teacher_cannot_grade(client: AsyncClient, setup, other_teacher_headers) -> None:
    group, student, subject = setup
    response = await client.post(
        "/api/v1/grades", json=_grade(group, student, subject), headers=other_teacher_headers
    )
    assert response.status_code == 403
    response = await client.get("/api/v1/grades", headers=other_teacher_headers)
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_update_grade_rechecks_range(client: AsyncClient, setup, teacher_headers) -> None:
    group, student, subject = setup
    created = await client.post("/api/v1/grades", json=_grade(group, student, subject), headers=teacher_headers)
    grade_id = created.json()["data"]["id"]

    response = await client.put(f"/api/v1/grades/{grade_id}", json={"score": 12}, headers=teacher_headers)
    assert response.status_code == 400

    response = await client.put(
        f"/api/v1/grades/{grade_id}", json={"score": 12, "max_score": 20, "comments": "Mejoro"}, headers=teacher_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["score"], data["max_score"], data["comments"]) == (12, 20, "Mejoro")

    response = await client.put(f"/api/v1/grades/{grade_id}", json={"term": "T2"}, headers=teacher_headers)
    assert response.status_code == 400
