# path: tcat-route-api/app/services/route_builder.py

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
import logging

from pydantic import ValidationError

from app.models.route_models import (
    CURRENT_LOCATION,
    DESTINATION,
    Coordinates,
    Direction,
    DirectionType,
    Route,
    RoutePayload,
)
from app.utils.geo import haversine_m


logger = logging.getLogger(__name__)

MISSING_STOP_NAME = "Nil"
ROUTE_CALCULATION_FAILURE = "Route Calculation Failure"


class ParseError(ValueError):
    """Raised when a route payload is missing or has malformed fields."""


class RouteCalculationError(Exception):
    def __init__(self, title: str, description: str):
        super().__init__(f"{title}: {description}")
        self.title = title
        self.description = description


def copy_directions(directions: List[Direction]) -> List[Direction]:
    return [d.model_copy(deep=True) for d in directions]


def build_raw_directions(segments: List[Direction], start_name: str, end_name: str) -> List[Direction]:
    raw = copy_directions(segments)
    if not raw:
        return raw

    # Walking legs are named after where the walk starts from.
    for index, direction in enumerate(raw):
        if direction.type != DirectionType.WALK:
            continue
        if index == 0:
            direction.name = start_name
        else:
            previous = raw[index - 1]
            direction.name = previous.last_stop_name if previous.last_stop_name is not None else previous.name

    # Extra leg marking the destination; it can never be a transfer.
    last = raw[-1]
    terminal_type = {
        DirectionType.WALK: DirectionType.WALK,
        DirectionType.DEPART: DirectionType.ARRIVE,
    }.get(last.type)
    if terminal_type is not None:
        raw.append(
            last.model_copy(
                update={"type": terminal_type, "name": end_name, "stay_on_bus_for_transfer": False},
                deep=True,
            )
        )

    # Interior walks become arrivals at the previous leg's end.
    last_index = len(raw) - 1
    for index in range(1, last_index):
        direction = raw[index]
        if direction.type == DirectionType.WALK:
            direction.type = DirectionType.ARRIVE
            direction.name = raw[index - 1].end_location.name or ""

    return raw


def build_display_directions(segments: List[Direction]) -> List[Direction]:
    """
    Returns the presentation list: every bus leg that is not continued by a
    stay-on-board transfer is followed by an arrival leg, and bus legs lose
    their boarding and alighting stops.

    Split decisions always read ``original``; ``output`` only receives legs.
    """
    original = segments
    output: List[Direction] = []

    for index, segment in enumerate(original):
        direction = segment.model_copy(deep=True)
        output.append(direction)
        if direction.type != DirectionType.DEPART:
            continue

        if direction.stay_on_bus_for_transfer:
            direction.type = DirectionType.TRANSFER

        is_last = index == len(original) - 1
        if is_last or not original[index + 1].stay_on_bus_for_transfer:
            arrive = direction.model_copy(
                update={
                    "type": DirectionType.ARRIVE,
                    "start_time": direction.end_time,
                    "start_location": direction.end_location.model_copy(),
                    "stops": [],
                    "name": direction.last_stop_name if direction.last_stop_name is not None else MISSING_STOP_NAME,
                },
                deep=True,
            )
            output.append(arrive)

        if len(direction.stops) >= 2:
            direction.stops = direction.stops[1:-1]

    return output


def calculate_travel_distance(start_coords: Coordinates, raw_directions: List[Direction]) -> float:
    if not raw_directions:
        return 0.0

    walking_route = all(d.type == DirectionType.WALK for d in raw_directions)

    stop = raw_directions[0]
    if not walking_route and stop.type == DirectionType.WALK and len(raw_directions) > 1:
        stop = raw_directions[1]

    target = stop.end_location if walking_route else stop.start_location
    return haversine_m(start_coords.lng, start_coords.lat, target.lng, target.lat)


def build_route(payload: Dict[str, Any] | RoutePayload) -> Route:
    if isinstance(payload, RoutePayload):
        parsed = payload
    else:
        try:
            parsed = RoutePayload.model_validate(payload)
        except ValidationError as e:
            raise ParseError(str(e)) from e

    raw_directions = build_raw_directions(parsed.directions, parsed.start_name, parsed.end_name)
    directions = build_display_directions(parsed.directions)

    route = Route(
        departure_time=parsed.departure_time,
        arrival_time=parsed.arrival_time,
        start_coords=parsed.start_coords,
        end_coords=parsed.end_coords,
        start_name=parsed.start_name,
        end_name=parsed.end_name,
        bounding_box=parsed.bounding_box,
        number_of_transfers=parsed.number_of_transfers,
        directions=directions,
        raw_directions=raw_directions,
        travel_distance=calculate_travel_distance(parsed.start_coords, raw_directions),
    )
    logger.debug(
        "Built route %s -> %s: %d raw directions, %d directions",
        route.start_name,
        route.end_name,
        len(raw_directions),
        len(directions),
    )
    return route


def parse_routes(
    json: Dict[str, Any],
    from_name: Optional[str] = None,
    to_name: Optional[str] = None,
) -> Tuple[List[Route], Optional[RouteCalculationError]]:
    if not json.get("success"):
        description = json.get("error") or ""
        logger.warning("Route calculation failed: %s", description)
        return [], RouteCalculationError(title=ROUTE_CALCULATION_FAILURE, description=str(description))

    routes = []
    for item in json.get("data") or []:
        if not isinstance(item, dict):
            raise ParseError(f"Route entry must be an object, got {type(item).__name__}")
        augmented = dict(item)
        augmented["startName"] = from_name or CURRENT_LOCATION
        augmented["endName"] = to_name or DESTINATION
        routes.append(build_route(augmented))

    logger.info("Parsed %d route options", len(routes))
    return routes, None
