"""
Homesite – Database setup (async SQLAlchemy).
Only needed when admin sessions are kept in the database
(SESSION_BACKEND=database); settings documents live in JSON files.
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def init_db():
    """Create all tables (for development)."""
    async with engine.begin() as conn:
        from app.models import admin_session  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)
