"""
Create all tables for the configured DATABASE_URL.

  python -m app.db.init_db
"""
import asyncio

import app.auth.models  # noqa: F401
import app.core.models  # noqa: F401
from app.core.app_logger import get_logger, setup_logging
from app.db.session import Base, engine

logger = get_logger("init_db")


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def main() -> None:
    setup_logging()
    await init_db()
    await engine.dispose()
    logger.info("Tables created: %s", ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    asyncio.run(main())
