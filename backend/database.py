"""
Database engine and session management for the NFT Registry.

Uses SQLAlchemy async engine with aiosqlite for non-blocking DB operations
inside FastAPI. Tables are auto-created on server startup via init_db().

The registry commits once per executed call (see services.registry_service);
sessions are created with expire_on_commit=False so results stay readable
after that commit.
"""
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


# ── Engine ──────────────────────────────────────────────────────────

def to_async_url(url: str) -> str:
    """sqlite:///... → sqlite+aiosqlite:///... for the async driver."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def enable_sqlite_pragmas(engine: AsyncEngine) -> None:
    """
    Per-connection SQLite settings.

    foreign_keys makes token_approvals follow their token on delete;
    WAL lets /query readers run while a call is committing.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if engine.url.database not in (None, "", ":memory:"):
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def make_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = create_async_engine(
    to_async_url(settings.database_url),
    echo=False,
    future=True,
)
enable_sqlite_pragmas(engine)

async_session = make_sessionmaker(engine)


# ── Helpers ─────────────────────────────────────────────────────────

async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create all tables. Called once on server startup (and per test DB)."""
    # Import models so Base.metadata knows about them
    import db_models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database tables ready: {', '.join(sorted(Base.metadata.tables))}")


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields an async session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
