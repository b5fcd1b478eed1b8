from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.infrastructure.db.engine import build_engine, build_sessionmaker

# Local runs without DATABASE_URL still get a working store for health checks
FALLBACK_DB_URL = "sqlite+aiosqlite:///./bookings.db"


@lru_cache(maxsize=1)
def get_engine():
    settings = get_settings()
    if not settings.database_url:
        settings = settings.model_copy(update={"database_url": FALLBACK_DB_URL})
    return build_engine(settings)


@lru_cache(maxsize=1)
def get_session_maker():
    return build_sessionmaker(get_engine())


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_session_maker()() as session:
        yield session
