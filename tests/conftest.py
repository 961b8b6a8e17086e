"""Shared test fixtures."""

from collections.abc import Callable

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from event_link.api.app import app
from event_link.api.deps import get_app_settings, get_db, get_db_factory, get_http_client
from event_link.config.settings import Settings
from event_link.models.base import Base

PROVIDER_URL = "https://provider.test/discovery/v2/events.json"
FALLBACK_URL = "https://provider.test/discovery/v2/events"


def make_tm_event(
    event_id: str = "G5v0Z9",
    name: str = "Rock Fest 2026",
    **overrides,
) -> dict:
    """Return a Discovery API event dict with every field the importer reads."""
    event = {
        "id": event_id,
        "name": name,
        "url": f"https://www.ticketmaster.es/event/{event_id}",
        "dates": {"start": {"localDate": "2026-11-20", "localTime": "21:30:00"}},
        "images": [
            {"url": "https://img.test/small.jpg", "width": 100},
            {"url": "https://img.test/large.jpg", "width": 1024},
        ],
        "_embedded": {
            "venues": [
                {
                    "name": "WiZink Center",
                    "city": {"name": "Madrid"},
                    "country": {"name": "Spain", "countryCode": "ES"},
                    "location": {"latitude": "40.4239", "longitude": "-3.6717"},
                }
            ]
        },
        "classifications": [
            {"genre": {"name": "Rock"}, "subGenre": {"name": "Alternative Rock"}}
        ],
    }
    event.update(overrides)
    return event


def tm_response(*events: dict) -> dict:
    """Wrap events the way the Discovery API does."""
    return {"_embedded": {"events": list(events)}, "page": {"size": len(events)}}


@pytest.fixture
def provider_settings() -> Settings:
    """Settings pointing at fake provider endpoints with an API key."""
    return Settings(
        ticketmaster_api_key="test-key",
        ticketmaster_api_urls=[PROVIDER_URL, FALLBACK_URL],
        provider_timeout_seconds=1.0,
        default_cities=["Madrid", "Barcelona"],
    )


@pytest.fixture
def mock_provider() -> Callable[..., tuple[httpx.AsyncClient, list[httpx.Request]]]:
    """Build an AsyncClient whose requests are answered by ``handler``.

    Returns the client and the list of requests it has handled so far.
    """

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> tuple[httpx.AsyncClient, list[httpx.Request]]:
        seen: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return client, seen

    return factory


@pytest.fixture
async def test_engine():
    """Create an async SQLite in-memory engine for tests."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture
async def api_client(test_engine, test_session_factory, provider_settings):
    """Async HTTP client hitting the FastAPI app with test DB and fake provider."""

    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    def override_get_db_factory():
        return test_session_factory

    def override_get_settings():
        return provider_settings

    def provider_handler(request: httpx.Request) -> httpx.Response:
        city = request.url.params.get("city")
        if city == "Madrid":
            return httpx.Response(
                200,
                json=tm_response(
                    make_tm_event("tm-1", "Rock Fest 2026 | VIP PACKAGES"),
                    make_tm_event("tm-2", "Rock Fest 2026 | General Admission"),
                    make_tm_event("tm-3", "Jazz Night"),
                ),
            )
        return httpx.Response(500)

    async def override_get_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(provider_handler)) as client:
            yield client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_factory] = override_get_db_factory
    app.dependency_overrides[get_app_settings] = override_get_settings
    app.dependency_overrides[get_http_client] = override_get_http_client
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def seeded_db(test_session_factory):
    """Seed two internal events, one of them linked to a provider id.

    - Event A: user-created "Concierto en el parque" (musica), favorited by user 7,
      one attendee and one comment
    - Event B: imported "Jazz Night", linked to (ticketmaster, tm-jazz)
    """
    import datetime as dt

    from event_link.models.event_link import EventLink
    from event_link.models.interactions import EventAttendee, EventComment, EventFavorite
    from event_link.models.internal_event import InternalEvent

    async with test_session_factory() as session:
        async with session.begin():
            local = InternalEvent(
                title="Concierto en el parque",
                description="Música en directo",
                event_at=dt.datetime(2026, 11, 1, 18, 0),
                location="Retiro, Madrid",
                type="musica",
                created_by=7,
            )
            imported = InternalEvent(
                title="Jazz Night",
                event_at=dt.datetime(2026, 12, 5, 21, 0),
                location="Café Central, Madrid",
                type="musica",
            )
            session.add_all([local, imported])
            await session.flush()

            session.add_all(
                [
                    EventFavorite(user_id=7, event_id=local.id),
                    EventAttendee(user_id=8, event_id=local.id),
                    EventComment(user_id=8, event_id=local.id, body="Allí estaré"),
                    EventLink(
                        source="ticketmaster",
                        external_id="tm-jazz",
                        event_id=imported.id,
                        title="Jazz Night",
                    ),
                ]
            )

    return {"local_id": local.id, "imported_id": imported.id}
