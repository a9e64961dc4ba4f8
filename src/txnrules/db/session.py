from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from txnrules.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` for the given URL."""
    # SQL echo can log merchant names and amounts; only allow it in development.
    options: dict[str, Any] = {
        "echo": settings.db_echo and settings.app_env.lower() == "development",
    }
    if make_url(database_url).get_backend_name() != "sqlite":
        options.update(pool_pre_ping=True, pool_size=settings.db_pool_size)
    return options


async_engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; services commit or roll back explicitly."""
    async with AsyncSessionLocal() as session:
        yield session
