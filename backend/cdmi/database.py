"""Async SQLAlchemy engine and session factory.

Usage in routes:
    from cdmi.database import get_db

    @router.get("/rows")
    async def list_rows(db: AsyncSession = Depends(get_db)):
        result = await db.execute(select(RowItem))
        return result.scalars().all()
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from cdmi.config import settings

# SQLite (local runs, tests) has no connection pool sizing
_pool_options = {} if settings.DATABASE_URL.startswith("sqlite") else {
    "pool_size": 10,
    "max_overflow": 20,
}

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    **_pool_options,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
