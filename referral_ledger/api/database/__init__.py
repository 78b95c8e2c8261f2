from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from referral_ledger.config import Settings
from referral_ledger.api.models import Base


class DatabaseManager:
    def __init__(self, url: str | None = None, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.url = url or self.settings.env.DATABASE_URL
        self.engine: AsyncEngine = create_async_engine(self.url, **self.settings.engine_kwargs(self.url))
        if self.settings.is_sqlite(self.url):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def init_models(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, rolled back on error."""
    async with get_db_manager().session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
