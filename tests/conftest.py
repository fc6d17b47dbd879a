import os

# Settings are read at import time; point them at throwaway values first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./.pytest-bootstrap.db"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret"

from typing import AsyncGenerator, Callable, Dict, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.auth.models import User
from app.auth.security import create_access_token, hash_password
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import UserRole
from app.db.session import Base, get_db
from app.main import app


@pytest.fixture()
async def engine(tmp_path):
    """A fresh SQLite file per test so request, audit and test sessions share data."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def audit(session_factory) -> AuditRecorder:
    return AuditRecorder(session_factory)


@pytest.fixture()
async def client(session_factory, audit: AuditRecorder) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, one DB session per request."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_recorder] = lambda: audit
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await audit.drain()
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session: AsyncSession) -> Callable:
    async def _make(
        role: UserRole = UserRole.TEACHER,
        email: Optional[str] = None,
        password: str = "Secret123",
        is_active: bool = True,
        full_name: Optional[str] = None,
    ) -> User:
        email = email or f"{role.value.lower()}-{os.urandom(3).hex()}@school.edu"
        user = User(
            full_name=full_name or f"{role.value.title()} User",
            email=email,
            password_hash=hash_password(password),
            role=role.value,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(subject={"sub": str(user.id), "role": user.role, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN, email="admin@school.edu", full_name="Ada Admin")


@pytest.fixture()
async def teacher(make_user) -> User:
    return await make_user(UserRole.TEACHER, email="t1@school.edu", full_name="Tomas Tutor")


@pytest.fixture()
async def other_teacher(make_user) -> User:
    return await make_user(UserRole.TEACHER, email="t2@school.edu", full_name="Teresa Other")


@pytest.fixture()
def admin_headers(admin: User) -> Dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def teacher_headers(teacher: User) -> Dict[str, str]:
    return auth_headers(teacher)


@pytest.fixture()
def other_teacher_headers(other_teacher: User) -> Dict[str, str]:
    return auth_headers(other_teacher)


class SchoolFactory:
    """Creates records through the API as ADMIN."""

    def __init__(self, client: AsyncClient, headers: Dict[str, str]) -> None:
        self.client = client
        self.headers = headers

    async def _post(self, path: str, payload: dict) -> dict:
        response = await self.client.post(path, json=payload, headers=self.headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    async def group(self, tutor_id=None, grade_level: int = 1, section: str = "A", school_year: str = "2024-2025") -> dict:
        payload = {"grade_level": grade_level, "section": section, "school_year": school_year}
        if tutor_id is not None:
            payload["tutor_id"] = str(tutor_id)
        return await self._post("/api/v1/groups", payload)

    async def student(self, first_name: str = "Lucia", last_name: str = "Perez", **extra) -> dict:
        return await self._post("/api/v1/students", {"first_name": first_name, "last_name": last_name, **extra})

    async def subject(self, code: str = "MAT1", name: str = "Matematicas") -> dict:
        return await self._post("/api/v1/subjects", {"name": name, "code": code})

    async def enroll(self, student: dict, group: dict, status: str = "ACTIVE") -> dict:
        return await self._post(
            "/api/v1/enrollments",
            {"student_id": student["id"], "group_id": group["id"], "status": status},
        )

    async def task(self, group: dict, subject: dict, max_score: float = 10) -> dict:
        return await self._post(
            "/api/v1/tasks",
            {
                "title": "Fracciones",
                "group_id": group["id"],
                "subject_id": subject["id"],
                "due_date": "2025-03-01T12:00:00",
                "max_score": max_score,
            },
        )


@pytest.fixture()
def factory(client: AsyncClient, admin_headers: Dict[str, str]) -> SchoolFactory:
    return SchoolFactory(client, admin_headers)


@pytest.fixture()
def headers_for() -> Callable[[User], Dict[str, str]]:
    return auth_headers
