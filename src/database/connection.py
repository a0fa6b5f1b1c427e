from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.utils.settings.database import DatabaseSettings


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """Enforce foreign keys on SQLite connections (local runs and tests)."""
    module_name = type(dbapi_connection).__module__
    if "sqlite" not in module_name:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_async_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL."""
    options: dict = {"echo": echo}
    if url.startswith("postgresql"):
        options.update(pool_pre_ping=True, pool_recycle=300)
    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


_settings = DatabaseSettings()
async_engine = build_async_engine(
    _settings.DATABASE_URL_ASYNC, echo=_settings.DATABASE_ECHO
)
AsyncSessionLocal = build_session_factory(async_engine)

