from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import exc as sa_exc

from event_link.errors import StoreUnavailable


@asynccontextmanager
async def store_guard() -> AsyncIterator[None]:
    """Translate connectivity failures into :class:`StoreUnavailable`.

    Integrity errors and other SQL errors pass through unchanged.
    """
    try:
        yield
    except (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError) as exc:
        raise StoreUnavailable(f"event store unavailable: {type(exc).__name__}") from exc
    except OSError as exc:
        raise StoreUnavailable(f"event store unavailable: {exc}") from exc
