from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from memberhub.core.config import get_settings

engine = create_async_engine(
    get_settings().database_url,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def dispose_engine() -> None:
    await engine.dispose()
