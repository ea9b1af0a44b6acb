from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from hfx_transit.models.gtfs import Route, ShapePoint, Stop, Trip
from hfx_transit.models.realtime import VehicleRecord


class ArrivalSource(str, Enum):
    """Indicates whether an arrival came from the static schedule or the GTFS-RT feed."""

    SCHEDULED = "scheduled"
    REALTIME = "realtime"


class Arrival(BaseModel):
    """One upcoming visit of a trip at a stop."""

    trip_id: str
    arrival_time: str = Field(description="Displayed arrival time in HH:MM format")
    arrival_seconds: int = Field(description="Seconds since local midnight of the arrival")
    stop_sequence: int | None = None
    route_id: str | None = None
    route_short_name: str | None = Field(default=None, description="Bus number")
    route_long_name: str | None = None
    trip_headsign: str | None = Field(default=None, description="Destination displayed on vehicle")
    vehicle_label: str | None = Field(
        default=None, description="Vehicle label from the trip update (realtime only)"
    )
    source: ArrivalSource


class ArrivalsResponse(BaseModel):
    stop_id: str
    arrivals: list[Arrival]
    query_time: str = Field(description="Query time in ISO-8601 format")
    count: int = Field(description="Number of arrivals returned")
    realtime_consulted: bool = Field(
        default=False, description="Whether the query time was close enough to now to use GTFS-RT"
    )
    realtime_updated_at: str | None = Field(
        default=None, description="When the trip updates snapshot was fetched (ISO-8601)"
    )


class StaticSummaryResponse(BaseModel):
    routes: list[Route]
    stops: list[Stop]
    trips: list[Trip]


class ShapeResponse(BaseModel):
    shape_id: str
    points: list[ShapePoint]
    count: int = Field(description="Number of points in the polyline")


class VehiclesResponse(BaseModel):
    vehicles: list[VehicleRecord]
    count: int = Field(description="Number of vehicles returned")
    fetched_at: datetime | None = Field(
        default=None, description="When the vehicle snapshot was fetched (None before first poll)"
    )
