# path: tcat-route-api/app/models/route_models.py

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    computed_field,
    field_validator,
    model_validator,
)

from app.utils.geo import rounded_distance


CURRENT_LOCATION = "Current Location"
DESTINATION = "your destination"


class CamelModel(BaseModel):
    # Server payloads are camelCase; attributes stay snake_case.
    model_config = ConfigDict(populate_by_name=True)


class Coordinates(CamelModel):
    lat: float = Field(validation_alias=AliasChoices("lat", "latitude"))
    lng: float = Field(validation_alias=AliasChoices("lng", "long", "longitude"))

    @field_validator("lat")
    @classmethod
    def validate_lat(cls, lat: float):
        if not (-90.0 <= lat <= 90.0):
            raise ValueError(f"lat out of range [-90,90]: {lat}")
        return lat

    @field_validator("lng")
    @classmethod
    def validate_lng(cls, lng: float):
        if not (-180.0 <= lng <= 180.0):
            raise ValueError(f"lng out of range [-180,180]: {lng}")
        return lng


class Location(Coordinates):
    name: Optional[str] = None


class Stop(Coordinates):
    id: str
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        # Stop ids arrive as numbers from some endpoints.
        if isinstance(value, int):
            return str(value)
        return value


class Bounds(CamelModel):
    min_lat: float = Field(alias="minLat")
    min_long: float = Field(alias="minLong")
    max_lat: float = Field(alias="maxLat")
    max_long: float = Field(alias="maxLong")


class DirectionType(str, Enum):
    DEPART = "depart"
    TRANSFER = "transfer"
    WALK = "walk"
    ARRIVE = "arrive"


class Direction(CamelModel):
    type: DirectionType
    name: str = ""
    start_location: Location = Field(alias="startLocation")
    end_location: Location = Field(alias="endLocation")
    start_time: datetime = Field(alias="startTime")
    end_time: datetime = Field(alias="endTime")
    path: List[Coordinates] = Field(default_factory=list)
    travel_distance: float = Field(default=0.0, ge=0, alias="travelDistance")
    route_number: int = Field(default=0, alias="routeNumber")
    stops: List[Stop] = Field(default_factory=list)
    stay_on_bus_for_transfer: bool = Field(default=False, alias="stayOnBusForTransfer")
    trip_identifiers: Optional[List[str]] = Field(default=None, alias="tripIdentifiers")
    delay: Optional[int] = None

    @field_validator(
        "name", "path", "travel_distance", "route_number", "stops", "stay_on_bus_for_transfer", mode="before"
    )
    @classmethod
    def null_to_default(cls, value, info: ValidationInfo):
        # The server sends null for fields that do not apply to a leg.
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def validate_times(self):
        if self.start_time > self.end_time:
            raise ValueError("startTime must not be after endTime")
        return self

    @property
    def last_stop_name(self) -> Optional[str]:
        if self.stops:
            return self.stops[-1].name
        return None

    def is_bus(self) -> bool:
        return self.type in (DirectionType.DEPART, DirectionType.TRANSFER)


class RoutePayload(CamelModel):
    """
    One route option as sent by the route-calculation server, with the
    start/end names already filled in by the caller.
    """

    departure_time: datetime = Field(alias="departureTime")
    arrival_time: datetime = Field(alias="arrivalTime")
    start_coords: Coordinates = Field(alias="startCoords")
    end_coords: Coordinates = Field(alias="endCoords")
    start_name: str = Field(default=CURRENT_LOCATION, alias="startName")
    end_name: str = Field(default=DESTINATION, alias="endName")
    bounding_box: Bounds = Field(alias="boundingBox")
    number_of_transfers: int = Field(default=0, ge=0, alias="numberOfTransfers")
    directions: List[Direction] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_times(self):
        if self.departure_time > self.arrival_time:
            raise ValueError("departureTime must not be after arrivalTime")
        return self


class RouteCalculationFailure(BaseModel):
    title: str
    description: str


class Route(CamelModel):
    departure_time: datetime = Field(alias="departureTime")
    arrival_time: datetime = Field(alias="arrivalTime")
    start_coords: Coordinates = Field(alias="startCoords")
    end_coords: Coordinates = Field(alias="endCoords")
    start_name: str = Field(alias="startName")
    end_name: str = Field(alias="endName")
    bounding_box: Bounds = Field(alias="boundingBox")
    number_of_transfers: int = Field(ge=0, alias="numberOfTransfers")

    # Display list, with arrival legs inserted and boundary stops trimmed.
    directions: List[Direction]
    # Leg list keeping stop metadata, used for delay lookups.
    raw_directions: List[Direction] = Field(alias="rawDirections")

    # Meters from the start coordinates to the first meaningful leg.
    travel_distance: float = Field(default=0.0, ge=0, alias="travelDistance")

    @computed_field(alias="totalDuration")
    @property
    def total_duration(self) -> int:
        """Whole minutes between departure and arrival."""
        return int((self.arrival_time - self.departure_time).total_seconds() // 60)

    @computed_field(alias="summaryDescription")
    @property
    def summary_description(self) -> str:
        """
        One sentence summary of the route used for sharing.

        Bus legs are described in order; a route without any bus legs is
        described as a walk using the first leg's distance. Returns "" when
        there are no directions at all.
        """
        description = f"To get from {self.start_name} to {self.end_name},"
        if self.start_name == CURRENT_LOCATION:
            description = f"To get to {self.end_name},"

        bus_directions = [d for d in self.directions if d.is_bus()]

        for index, direction in enumerate(bus_directions):
            number = direction.route_number
            start = direction.start_location.name or ""
            end = direction.end_location.name or ""
            line = f"take Route {number} from {start} to {end}. "
            if direction.type == DirectionType.TRANSFER:
                line = f"the bus becomes Route {number}. Stay on board, and then get off at {end}"

            if index == 0:
                description += f" {line}"
            else:
                description += f"Then, {line}"

        description += "."

        if not bus_directions:
            if not self.directions:
                return ""
            distance = rounded_distance(self.directions[0].travel_distance)
            description = f"Walk {distance} from {self.start_name} to {self.end_name}."

        return description

    def time_until_departure(self, now: Optional[datetime] = None) -> timedelta:
        if now is None:
            now = datetime.now(tz=self.departure_time.tzinfo)
        return self.departure_time - now

    def is_raw_walking_route(self) -> bool:
        return all(d.type == DirectionType.WALK for d in self.raw_directions)

    def get_first_depart_raw_direction(self) -> Optional[Direction]:
        return next((d for d in self.raw_directions if d.type == DirectionType.DEPART), None)

    def get_last_depart_raw_direction(self) -> Optional[Direction]:
        return next((d for d in reversed(self.raw_directions) if d.type == DirectionType.DEPART), None)

    def get_first_depart_direction(self) -> Optional[Direction]:
        return next((d for d in self.directions if d.type == DirectionType.DEPART), None)

    def get_raw_num_of_walk_lines(self) -> int:
        # The trailing leg only marks the destination, it is never drawn as a walk line.
        return sum(
            1
            for index, d in enumerate(self.raw_directions)
            if index != len(self.raw_directions) - 1 and d.type == DirectionType.WALK
        )
