"""
Async database session management using SQLAlchemy 2.0.

Engines and session factories are built explicitly and handed to the sync
context; there is no module-level engine.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pokesync.core.config import Settings


def create_engine(settings: Settings, **overrides: Any) -> AsyncEngine:
    """
    Create async engine with connection pooling.

    Args:
        settings: Application settings (database URL, debug flag)
        **overrides: Extra keyword arguments for create_async_engine

    Returns:
        AsyncEngine bound to the configured database
    """
    url = settings.async_database_url
    options: Dict[str, Any] = {
        "echo": settings.app_debug,
        "pool_pre_ping": True,
    }
    # SQLite (tests, local runs) does not accept the queue pool sizing options
    if not url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10)
    options.update(overrides)
    return create_async_engine(url, **options)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory for an engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
