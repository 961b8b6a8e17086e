"""Tests for the Ticketmaster Discovery API importer."""

import datetime as dt

import httpx
import pytest

from conftest import FALLBACK_URL, PROVIDER_URL, make_tm_event, tm_response
from event_link.importer.ticketmaster import (
    DEFAULT_GENRE,
    MAX_PAGE_SIZE,
    fetch_events_by_city,
    fetch_events_multiple_cities,
    format_ticketmaster_event,
    format_ticketmaster_events,
    parse_coordinate,
)

TODAY = dt.date(2026, 10, 17)


# --- format_ticketmaster_event ---


def test_format_full_event():
    record = format_ticketmaster_event(make_tm_event(), today=TODAY)

    assert record.source == "ticketmaster"
    assert record.external_id == "G5v0Z9"
    assert record.id == "G5v0Z9"
    assert record.type == "api"
    assert record.title == "Rock Fest 2026"
    assert record.date == dt.date(2026, 11, 20)
    assert record.time_start == "21:30"
    assert record.event_at == dt.datetime(2026, 11, 20, 21, 30)
    assert record.venue_name == "WiZink Center"
    assert record.location == "WiZink Center, Madrid"
    assert record.city == "Madrid"
    assert record.country == "ES"
    assert record.latitude == pytest.approx(40.4239)
    assert record.longitude == pytest.approx(-3.6717)
    assert record.image == "https://img.test/large.jpg"
    assert record.url == "https://www.ticketmaster.es/event/G5v0Z9"
    assert record.category_slug == "musica"
    assert record.category_name == "Música"
    assert record.genre == "Alternative Rock"


def test_format_picks_widest_image():
    item = make_tm_event(
        images=[
            {"url": "a", "width": 100},
            {"url": "b", "width": 1024},
            {"url": "c", "width": 640},
        ]
    )
    assert format_ticketmaster_event(item, today=TODAY).image == "b"


def test_format_equal_widths_keep_first_image():
    item = make_tm_event(images=[{"url": "a", "width": 300}, {"url": "b", "width": 300}])
    assert format_ticketmaster_event(item, today=TODAY).image == "a"


def test_format_without_images():
    item = make_tm_event(images=[])
    assert format_ticketmaster_event(item, today=TODAY).image is None


def test_format_missing_dates_defaults_to_today_at_eight():
    item = make_tm_event()
    del item["dates"]
    record = format_ticketmaster_event(item, today=TODAY)

    assert record.date == TODAY
    assert record.time_start == "20:00"


def test_format_missing_local_time_only():
    item = make_tm_event(dates={"start": {"localDate": "2026-12-31"}})
    record = format_ticketmaster_event(item, today=TODAY)

    assert record.date == dt.date(2026, 12, 31)
    assert record.time_start == "20:00"


def test_format_garbage_date_and_time_fall_back():
    item = make_tm_event(dates={"start": {"localDate": "soon", "localTime": "late"}})
    record = format_ticketmaster_event(item, today=TODAY)

    assert record.date == TODAY
    assert record.time_start == "20:00"


def test_format_venue_without_city():
    item = make_tm_event(_embedded={"venues": [{"name": "Sala Apolo"}]})
    record = format_ticketmaster_event(item, today=TODAY)

    assert record.venue_name == "Sala Apolo"
    assert record.location == "Sala Apolo"
    assert record.city == ""
    assert record.country == ""
    assert record.latitude is None
    assert record.longitude is None


def test_format_without_venue_uses_placeholder():
    item = make_tm_event()
    del item["_embedded"]
    record = format_ticketmaster_event(item, today=TODAY)

    assert record.venue_name == "Venue"
    assert record.location == "Venue"


def test_format_unnamed_venue_with_city():
    item = make_tm_event(_embedded={"venues": [{"city": {"name": "Valencia"}}]})
    assert format_ticketmaster_event(item, today=TODAY).location == "Venue, Valencia"


def test_format_country_name_when_code_missing():
    item = make_tm_event(_embedded={"venues": [{"name": "X", "country": {"name": "Spain"}}]})
    assert format_ticketmaster_event(item, today=TODAY).country == "Spain"


def test_format_genre_fallbacks():
    only_genre = make_tm_event(classifications=[{"genre": {"name": "Jazz"}}])
    assert format_ticketmaster_event(only_genre, today=TODAY).genre == "Jazz"

    nothing = make_tm_event(classifications=[])
    assert format_ticketmaster_event(nothing, today=TODAY).genre == DEFAULT_GENRE

    empty_names = make_tm_event(classifications=[{"genre": {"name": ""}, "subGenre": {}}])
    assert format_ticketmaster_event(empty_names, today=TODAY).genre == DEFAULT_GENRE


def test_format_invalid_coordinates_become_none():
    item = make_tm_event(
        _embedded={
            "venues": [
                {
                    "name": "X",
                    "city": {"name": "Madrid"},
                    "location": {"latitude": "not-a-number", "longitude": ""},
                }
            ]
        }
    )
    record = format_ticketmaster_event(item, today=TODAY)
    assert record.latitude is None
    assert record.longitude is None


def test_format_description_fallbacks():
    assert format_ticketmaster_event(make_tm_event(), today=TODAY).description == (
        "Event: Rock Fest 2026"
    )
    with_info = make_tm_event(info="Doors at 20:00")
    assert format_ticketmaster_event(with_info, today=TODAY).description == "Doors at 20:00"
    with_desc = make_tm_event(description="Big show", info="ignored")
    assert format_ticketmaster_event(with_desc, today=TODAY).description == "Big show"


def test_format_numeric_provider_id_becomes_string():
    record = format_ticketmaster_event(make_tm_event(event_id=12345), today=TODAY)
    assert record.external_id == "12345"


def test_format_events_skips_items_without_id():
    broken = make_tm_event()
    del broken["id"]
    records = format_ticketmaster_events([broken, make_tm_event("ok")], today=TODAY)

    assert [r.external_id for r in records] == ["ok"]


def test_parse_coordinate():
    assert parse_coordinate("40.5") == 40.5
    assert parse_coordinate(-3) == -3.0
    assert parse_coordinate("0") == 0.0
    assert parse_coordinate(None) is None
    assert parse_coordinate("abc") is None
    assert parse_coordinate("nan") is None
    assert parse_coordinate("inf") is None
    assert parse_coordinate(True) is None


def test_record_to_dict_is_json_friendly():
    data = format_ticketmaster_event(make_tm_event(), today=TODAY).to_dict()

    assert data["id"] == "G5v0Z9"
    assert data["date"] == "2026-11-20"
    assert data["starts_at"] == "2026-11-20T21:30:00"
    assert data["category_slug"] == "musica"


# --- fetch_events_by_city ---


async def test_fetch_by_city_sends_expected_params(mock_provider, provider_settings):
    client, seen = mock_provider(lambda request: httpx.Response(200, json=tm_response()))
    async with client:
        await fetch_events_by_city("Madrid", 50, client=client, settings=provider_settings)

    assert len(seen) == 1
    params = seen[0].url.params
    assert str(seen[0].url).startswith(PROVIDER_URL)
    assert params["apikey"] == "test-key"
    assert params["city"] == "Madrid"
    assert params["classificationName"] == "music"
    assert params["size"] == "50"
    assert params["countryCode"] == "ES"


async def test_fetch_by_city_caps_size(mock_provider, provider_settings):
    client, seen = mock_provider(lambda request: httpx.Response(200, json=tm_response()))
    async with client:
        await fetch_events_by_city("Madrid", 500, client=client, settings=provider_settings)

    assert seen[0].url.params["size"] == str(MAX_PAGE_SIZE)


async def test_fetch_by_city_normalizes_listing(mock_provider, provider_settings):
    item = make_tm_event(
        "tm-1",
        "Indie Night",
        images=[{"url": "a", "width": 100}, {"url": "b", "width": 1024}],
    )
    del item["dates"]
    client, _ = mock_provider(lambda request: httpx.Response(200, json=tm_response(item)))

    async with client:
        records = await fetch_events_by_city(
            "Madrid", 50, client=client, settings=provider_settings, today=TODAY
        )

    assert len(records) == 1
    assert records[0].image == "b"
    assert records[0].date == TODAY
    assert records[0].time_start == "20:00"


async def test_fetch_by_city_without_api_key_makes_no_request(mock_provider, provider_settings):
    settings = provider_settings.model_copy(update={"ticketmaster_api_key": None})
    client, seen = mock_provider(lambda request: httpx.Response(200, json=tm_response()))

    async with client:
        records = await fetch_events_by_city("Madrid", client=client, settings=settings)

    assert records == []
    assert seen == []


async def test_fetch_by_city_explicit_api_key_wins(mock_provider, provider_settings):
    client, seen = mock_provider(lambda request: httpx.Response(200, json=tm_response()))
    async with client:
        await fetch_events_by_city(
            "Madrid", api_key="other-key", client=client, settings=provider_settings
        )

    assert seen[0].url.params["apikey"] == "other-key"


async def test_fetch_by_city_falls_through_to_next_endpoint(mock_provider, provider_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url).startswith(PROVIDER_URL):
            return httpx.Response(404)
        return httpx.Response(200, json=tm_response(make_tm_event("tm-9")))

    client, seen = mock_provider(handler)
    async with client:
        records = await fetch_events_by_city("Madrid", client=client, settings=provider_settings)

    assert [r.external_id for r in records] == ["tm-9"]
    assert len(seen) == 2
    assert str(seen[1].url).startswith(FALLBACK_URL)


async def test_fetch_by_city_non_2xx_everywhere_returns_empty(mock_provider, provider_settings):
    client, seen = mock_provider(lambda request: httpx.Response(503))
    async with client:
        records = await fetch_events_by_city("Madrid", client=client, settings=provider_settings)

    assert records == []
    assert len(seen) == 2


async def test_fetch_by_city_timeout_returns_empty(mock_provider, provider_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client, _ = mock_provider(handler)
    async with client:
        records = await fetch_events_by_city("Madrid", client=client, settings=provider_settings)

    assert records == []


async def test_fetch_by_city_transport_error_returns_empty(mock_provider, provider_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = mock_provider(handler)
    async with client:
        records = await fetch_events_by_city("Madrid", client=client, settings=provider_settings)

    assert records == []


async def test_fetch_by_city_invalid_json_returns_empty(mock_provider, provider_settings):
    client, _ = mock_provider(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
    async with client:
        records = await fetch_events_by_city("Madrid", client=client, settings=provider_settings)

    assert records == []


async def test_fetch_by_city_body_without_events(mock_provider, provider_settings):
    client, seen = mock_provider(lambda request: httpx.Response(200, json={"page": {"size": 0}}))
    async with client:
        records = await fetch_events_by_city("Nowhere", client=client, settings=provider_settings)

    assert records == []
    # An empty but valid answer is final
    assert len(seen) == 1


# --- fetch_events_multiple_cities ---


async def test_multiple_cities_concatenates_in_city_order(mock_provider, provider_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        city = request.url.params["city"]
        return httpx.Response(
            200,
            json=tm_response(
                make_tm_event(f"{city}-1", f"{city} Show 1"),
                make_tm_event(f"{city}-2", f"{city} Show 2"),
            ),
        )

    client, _ = mock_provider(handler)
    async with client:
        records = await fetch_events_multiple_cities(
            ["Valencia", "Madrid"], 10, client=client, settings=provider_settings
        )

    assert [r.external_id for r in records] == ["Valencia-1", "Valencia-2", "Madrid-1", "Madrid-2"]


async def test_multiple_cities_isolates_failing_city(mock_provider, provider_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["city"] == "Barcelona":
            raise httpx.ConnectError("down", request=request)
        return httpx.Response(200, json=tm_response(make_tm_event("mad-1")))

    client, _ = mock_provider(handler)
    async with client:
        records = await fetch_events_multiple_cities(
            ["Madrid", "Barcelona"], 10, client=client, settings=provider_settings
        )

    assert [r.external_id for r in records] == ["mad-1"]


async def test_multiple_cities_uses_configured_defaults(mock_provider, provider_settings):
    client, seen = mock_provider(lambda request: httpx.Response(200, json=tm_response()))
    async with client:
        await fetch_events_multiple_cities(client=client, settings=provider_settings)

    cities = sorted(request.url.params["city"] for request in seen)
    assert cities == ["Barcelona", "Madrid"]
    assert {request.url.params["size"] for request in seen} == {
        str(provider_settings.default_size)
    }


async def test_multiple_cities_empty_list(mock_provider, provider_settings):
    client, seen = mock_provider(lambda request: httpx.Response(200, json=tm_response()))
    async with client:
        records = await fetch_events_multiple_cities([], client=client, settings=provider_settings)

    assert records == []
    assert seen == []
