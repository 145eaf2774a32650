from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.config import Settings

# Sin DATABASE_URL (modo in-memory) solo los health checks tocan la base
FALLBACK_DB_URL = "sqlite+aiosqlite:///:memory:"


def build_engine(settings: Settings) -> AsyncEngine:
    if not settings.database_url:
        if not settings.use_in_memory:
            raise RuntimeError("DATABASE_URL is required for SQL mode")
        return create_async_engine(FALLBACK_DB_URL)
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
