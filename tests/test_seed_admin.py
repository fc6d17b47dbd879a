import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import verify_password
from app.auth.services import get_user_by_email
from app.core.config import settings
from app.core.enums import UserRole
from app.db.seed_admin import seed_admin


@pytest.mark.asyncio
async def test_seed_creates_then_refreshes_admin(monkeypatch, db_session: AsyncSession, make_user) -> None:
    await make_user(UserRole.TEACHER, email="root@school.edu", is_active=False)
    monkeypatch.setattr(settings, "admin_email", "Root@School.edu")
    monkeypatch.setattr(settings, "admin_password", "RootPass123")

    await seed_admin(db_session)

    user = await get_user_by_email(db_session, "root@school.edu")
    await db_session.refresh(user)
    assert user.role == UserRole.ADMIN.value
    assert user.is_active is True
    assert verify_password("RootPass123", user.password_hash)


@pytest.mark.asyncio
async def test_seed_skips_without_credentials(monkeypatch, db_session: AsyncSession) -> None:
    monkeypatch.setattr(settings, "admin_email", None)
    monkeypatch.setattr(settings, "admin_password", None)
    await seed_admin(db_session)
    assert await get_user_by_email(db_session, "admin@school.edu") is None
