from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine as sa_create_async_engine

from event_link.config.settings import get_settings

_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Return the cached async engine for ``settings.database_url``."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = sa_create_async_engine(
            settings.database_url, echo=settings.database_echo, pool_pre_ping=True
        )
    return _engine


async def dispose_engine() -> None:
    """Close pooled connections before the event loop shuts down."""
    if _engine is not None:
        await _engine.dispose()
