from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from paystream.core.config import DatabaseSettings

Base = declarative_base()

_engine = None
_AsyncSessionLocal = None

def get_engine():
    global _engine
    if _engine is None:
        db_settings = DatabaseSettings()
        _engine = create_async_engine(
            db_settings.database_url,
            future=True,
            echo=db_settings.debug_sql,
            poolclass=NullPool,
        )
    return _engine

def get_async_sessionmaker():
    global _AsyncSessionLocal
    if _AsyncSessionLocal is None:
        _AsyncSessionLocal = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _AsyncSessionLocal

async def get_db() -> AsyncSession:
    async with get_async_sessionmaker()() as session:
        yield session
