import threading
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings, get_settings


def build_engine(settings: Settings) -> AsyncEngine:
    options: dict[str, Any] = {"echo": settings.debug}
    if settings.database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=settings.db_pool_pre_ping,
        )
    return create_async_engine(settings.database_url, **options)


# expire_on_commit=False keeps ORM objects usable after commit. Permission
# checks never rely on that: each check runs a fresh EXISTS query.
def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None
_engine_lock = threading.Lock()


def get_engine() -> AsyncEngine:
    """Create the process-wide engine on first use."""
    global _engine, _sessionmaker

    if _engine is not None:
        return _engine

    with _engine_lock:
        if _engine is None:
            _engine = build_engine(get_settings())
            _sessionmaker = build_sessionmaker(_engine)

    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    get_engine()
    assert _sessionmaker is not None
    return _sessionmaker


def AsyncSessionLocal() -> AsyncSession:
    return get_sessionmaker()()


async def dispose_engine() -> None:
    global _engine, _sessionmaker

    with _engine_lock:
        engine, _engine, _sessionmaker = _engine, None, None
    if engine is not None:
        await engine.dispose()
