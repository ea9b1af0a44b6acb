"""Pydantic models for GTFS static entities.

All models are frozen: the static index is built once and only read afterwards.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict

# GTFS weekday column names indexed by weekday (0=Monday, 6=Sunday)
WEEKDAY_COLUMNS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class Route(BaseModel):
    """GTFS route entity."""

    model_config = ConfigDict(frozen=True)

    route_id: str
    route_short_name: str | None = None
    route_long_name: str | None = None
    route_desc: str | None = None
    route_type: int | None = None  # 3=bus
    route_color: str | None = None


class Stop(BaseModel):
    """GTFS stop entity."""

    model_config = ConfigDict(frozen=True)

    stop_id: str
    stop_name: str | None = None
    stop_lat: float | None = None
    stop_lon: float | None = None


class Trip(BaseModel):
    """GTFS trip entity."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    route_id: str | None = None
    service_id: str | None = None
    trip_headsign: str | None = None
    direction_id: int | None = None  # 0, 1 or absent
    shape_id: str | None = None


class ShapePoint(BaseModel):
    """A single vertex of a shape polyline."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    sequence: int


class StopTimeEntry(BaseModel):
    """A scheduled visit of one trip at one stop."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    arrival_time: str  # HH:MM:SS (can exceed 24:00:00)
    arrival_seconds: int
    arrival_label: str  # HH:MM, hour modulo 24
    stop_sequence: int | None = None


class CalendarEntry(BaseModel):
    """GTFS calendar entity for a weekly service pattern."""

    model_config = ConfigDict(frozen=True)

    service_id: str
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False
    start_date: date
    end_date: date

    def is_running(self, on_date: date) -> bool:
        """True if the weekday flag is set and the date is within [start, end]."""
        if not getattr(self, WEEKDAY_COLUMNS[on_date.weekday()]):
            return False
        return self.start_date <= on_date <= self.end_date
