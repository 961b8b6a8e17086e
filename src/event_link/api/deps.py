"""FastAPI dependency injection for DB sessions, settings and the provider client."""

from collections.abc import AsyncGenerator

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from event_link.config.settings import Settings, get_settings
from event_link.db.session import get_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session for request handling."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


def get_db_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for operations that manage their own transactions."""
    return get_session_factory()


def get_app_settings() -> Settings:
    return get_settings()


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Yield an HTTP client for provider calls, closed after the request."""
    settings = get_settings()
    async with httpx.AsyncClient(timeout=httpx.Timeout(settings.provider_timeout_seconds)) as client:
        yield client
