import logging
import os
from functools import lru_cache
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy import event
from sqlalchemy.orm import declarative_base
from .config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

_db_url = os.environ.get("DATABASE_URL", settings.database_url)

Base = declarative_base()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo)
        _enable_sqlite_transactions(engine)
        return engine
    return create_async_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=20,
    )


def _enable_sqlite_transactions(engine: AsyncEngine):
    # SQLAlchemy emits BEGIN itself so SAVEPOINTs nest inside the outer transaction;
    # IMMEDIATE takes the write lock up front so concurrent writers wait instead of failing
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async_engine = build_engine(_db_url, echo=settings.debug)
AsyncSessionLocal = build_sessionmaker(async_engine)


@lru_cache()
def get_match_store():
    """Dependency for the score store bound to the application database.

    Cached so every request shares the per-player submission locks.
    """
    from .services.match_store import MatchRecordStore
    return MatchRecordStore(AsyncSessionLocal)


async def init_db(engine: AsyncEngine = None):
    """Initialize database tables."""
    from . import models  # noqa: F401  registers tables on Base.metadata
    engine = engine or async_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")
