"""Async SQLAlchemy engine and session factory.

Usage in routes:
    from doc_library.database import get_db

    @router.get("/documents")
    async def list_documents(db: AsyncSession = Depends(get_db)):
        result = await db.execute(select(Document))
        return result.scalars().all()
"""
import ssl

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from doc_library.config import settings


def _engine_kwargs(url: str) -> dict:
    """Pool and TLS options for the configured database."""
    if url.startswith("sqlite"):
        # aiosqlite connections are cheap; don't share them across event loops
        return {"poolclass": NullPool}

    kwargs = {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
    }
    if settings.DATABASE_SSL:
        context = ssl.create_default_context()
        if not settings.DATABASE_SSL_VERIFY:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        kwargs["connect_args"] = {"ssl": context}
    return kwargs


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    **_engine_kwargs(settings.DATABASE_URL),
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
