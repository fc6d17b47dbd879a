"""
Seed script to create the first ADMIN user.

Run once (after init_db) with env set:
  ADMIN_EMAIL=admin@school.edu
  ADMIN_PASSWORD=YourSecurePassword

Creates or refreshes one user with role ADMIN. Skips when either variable is
missing.
"""
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.security import hash_password
from app.auth.services import get_user_by_email
from app.core.app_logger import get_logger, setup_logging
from app.core.config import settings
from app.core.enums import UserRole
from app.db.session import AsyncSessionLocal

logger = get_logger("seed")


async def seed_admin(db: AsyncSession) -> None:
    email = (settings.admin_email or "").strip().lower()
    password = settings.admin_password
    if not email or not password:
        logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping admin user.")
        return

    user = await get_user_by_email(db, email)
    if not user:
        db.add(
            User(
                full_name=settings.admin_full_name,
                email=email,
                password_hash=hash_password(password),
                role=UserRole.ADMIN.value,
                is_active=True,
            )
        )
        logger.info("Created ADMIN user: %s", email)
    else:
        user.role = UserRole.ADMIN.value
        user.password_hash = hash_password(password)
        user.is_active = True
        logger.info("Updated existing user to ADMIN: %s", email)

    await db.commit()


async def main() -> None:
    setup_logging()
    async with AsyncSessionLocal() as db:
        try:
            await seed_admin(db)
        except Exception:
            await db.rollback()
            logger.exception("Admin seed failed")
            raise


if __name__ == "__main__":
    asyncio.run(main())
