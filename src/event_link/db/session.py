from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from event_link.db.engine import get_engine

_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the cached session factory.

    Resolver and import operations take the factory rather than a session,
    because each attempt must run in a fresh transaction.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory
