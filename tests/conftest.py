from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest


BASE_TIME = datetime(2018, 3, 1, 10, 0, tzinfo=timezone.utc)

HOME = {"lat": 42.4440, "lng": -76.5019, "name": "Home"}
STOP_A = {"lat": 42.4470, "lng": -76.4830, "name": "Stop A"}
STOP_C = {"lat": 42.4410, "lng": -76.4850, "name": "Stop C"}
GYM = {"lat": 42.4460, "lng": -76.4780, "name": "Gym"}


def _iso(minutes: int) -> str:
    return (BASE_TIME + timedelta(minutes=minutes)).isoformat()


def _stop(name: str) -> dict:
    return {"id": name.lower().replace(" ", "-"), "name": name, "lat": 42.445, "lng": -76.49}


@pytest.fixture
def segment():
    def make(
        type: str,
        name: str = "",
        start: dict = HOME,
        end: dict = GYM,
        stops=(),
        stay: bool = False,
        route_number: int = 0,
        start_minute: int = 0,
        end_minute: int = 5,
        travel_distance: float = 0.4,
        trip_ids=None,
    ) -> dict:
        return {
            "type": type,
            "name": name,
            "startLocation": dict(start),
            "endLocation": dict(end),
            "startTime": _iso(start_minute),
            "endTime": _iso(end_minute),
            "path": [{"lat": start["lat"], "lng": start["lng"]}, {"lat": end["lat"], "lng": end["lng"]}],
            "travelDistance": travel_distance,
            "routeNumber": route_number,
            "stops": [_stop(s) for s in stops],
            "stayOnBusForTransfer": stay,
            "tripIdentifiers": trip_ids,
            "delay": None,
        }

    return make


@pytest.fixture
def payload():
    def make(directions, start_name: str = "Home", end_name: str = "Gym", **overrides) -> dict:
        data = {
            "departureTime": _iso(0),
            "arrivalTime": _iso(25),
            "startCoords": {"lat": HOME["lat"], "lng": HOME["lng"]},
            "endCoords": {"lat": GYM["lat"], "lng": GYM["lng"]},
            "startName": start_name,
            "endName": end_name,
            "boundingBox": {"minLat": 42.44, "minLong": -76.51, "maxLat": 42.45, "maxLong": -76.47},
            "numberOfTransfers": 0,
            "directions": list(directions),
        }
        data.update(overrides)
        return data

    return make


@pytest.fixture
def bus_trip(segment, payload):
    """Walk to a stop, ride Route 10 through three stops, walk to the gym."""
    return payload(
        [
            segment("walk", start=HOME, end=STOP_A, end_minute=5, travel_distance=0.2),
            segment(
                "depart",
                name="Route 10",
                start=STOP_A,
                end=STOP_C,
                stops=["Stop A", "Stop B", "Stop C"],
                route_number=10,
                start_minute=5,
                end_minute=20,
                trip_ids=["t10"],
            ),
            segment("walk", start=STOP_C, end=GYM, start_minute=20, end_minute=25),
        ]
    )
