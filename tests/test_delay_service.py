from __future__ import annotations

import asyncio

import httpx

from app.core.config import Settings
from app.models.route_models import DirectionType
from app.services.delay_service import DelayClient, apply_delay, refresh_delays
from app.services.route_builder import build_route


SETTINGS = Settings(api_base_url="http://tcat.test", max_retries=2, retry_delay=0.0)


def make_client(handler) -> DelayClient:
    transport = httpx.MockTransport(handler)
    return DelayClient(SETTINGS, client=httpx.AsyncClient(transport=transport, base_url=SETTINGS.api_base_url))


def delays(route):
    return [d.delay for d in route.directions]


def test_apply_delay_spreads_over_later_legs(bus_trip):
    route = build_route(bus_trip)

    apply_delay(route, 120)

    assert route.get_first_depart_raw_direction().delay == 120
    # walk, depart, arrive, walk
    assert delays(route) == [None, 120, 120, 120]


def test_apply_delay_accumulates(bus_trip):
    route = build_route(bus_trip)
    route.directions[2].delay = 30

    apply_delay(route, 120)

    assert route.directions[2].delay == 150


def test_apply_delay_skips_later_departs(segment, payload):
    route = build_route(
        payload(
            [
                segment("depart", stops=["A", "B"]),
                segment("depart", stops=["C", "D"]),
            ]
        )
    )

    apply_delay(route, 60)

    assert [d.type for d in route.directions] == [
        DirectionType.DEPART,
        DirectionType.ARRIVE,
        DirectionType.DEPART,
        DirectionType.ARRIVE,
    ]
    assert delays(route) == [60, 60, None, 60]


def test_refresh_delays_applies_fetched_delay(bus_trip):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"delay": 90}})

    route = build_route(bus_trip)
    applied = asyncio.run(refresh_delays(route, make_client(handler)))

    assert applied is True
    assert seen[0].url.path == "/delay"
    assert seen[0].url.params["tripID"] == "t10"
    # Raw directions keep the boarding stop.
    assert seen[0].url.params["stopID"] == "stop-a"
    assert delays(route) == [None, 90, 90, 90]
    assert route.raw_directions[1].delay == 90


def test_refresh_delays_clears_stale_values_on_failure(bus_trip):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "not found"})

    route = build_route(bus_trip)
    apply_delay(route, 45)

    applied = asyncio.run(refresh_delays(route, make_client(handler)))

    assert applied is False
    assert delays(route) == [None, None, None, None]
    assert route.raw_directions[1].delay == 45


def test_refresh_delays_unsuccessful_body(bus_trip):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False})

    route = build_route(bus_trip)

    assert asyncio.run(refresh_delays(route, make_client(handler))) is False
    assert delays(route) == [None, None, None, None]


def test_refresh_delays_without_bus_leg(segment, payload):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    route = build_route(payload([segment("walk")]))

    assert asyncio.run(refresh_delays(route, make_client(handler))) is False


def test_refresh_delays_without_trip_identifier(bus_trip):
    bus_trip["directions"][1]["tripIdentifiers"] = None

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    route = build_route(bus_trip)

    assert asyncio.run(refresh_delays(route, make_client(handler))) is False


def test_get_delay_retries_server_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"success": True, "data": {"delay": -30}})

    result = asyncio.run(make_client(handler).get_delay("t1", "s1"))

    assert len(calls) == 2
    assert result.success is True
    assert result.delay == -30


def test_get_delay_gives_up_after_max_retries():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    result = asyncio.run(make_client(handler).get_delay("t1", "s1"))

    assert result is None
    assert len(calls) == SETTINGS.max_retries + 1


def test_get_delay_rejects_malformed_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    assert asyncio.run(make_client(handler).get_delay("t1", "s1")) is None


def test_get_delay_rejects_non_integer_delay():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": {"delay": "late"}})

    assert asyncio.run(make_client(handler).get_delay("t1", "s1")) is None


def test_client_context_manager_opens_own_client():
    async def run():
        async with DelayClient(SETTINGS) as client:
            assert client._client is not None
            inner = client._client
        return client, inner

    client, inner = asyncio.run(run())

    assert client._client is None
    assert inner.is_closed
