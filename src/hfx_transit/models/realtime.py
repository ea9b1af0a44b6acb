"""Pydantic models for GTFS-RT data.

These models represent the normalized subset of GTFS-RT fields the map and
arrivals endpoints use. A whole feed decode becomes one immutable snapshot
(VehiclePositionsData / TripUpdatesData) that is replaced wholesale on the
next poll.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class FeedHeader(BaseModel):
    """Header information from GTFS-RT feed."""

    model_config = ConfigDict(frozen=True)

    gtfs_realtime_version: str
    timestamp: int | None = None


class VehicleRecord(BaseModel):
    """Normalized position of one vehicle from the vehicle positions feed."""

    model_config = ConfigDict(frozen=True)

    entity_id: str
    vehicle_id: str  # descriptor id, else label, else entity id
    trip_id: str | None = None
    route_id: str | None = None
    direction_id: int | None = None
    latitude: float
    longitude: float
    bearing: float | None = None
    speed: float | None = None  # meters/second
    timestamp: datetime | None = None
    current_stop_sequence: int | None = None
    stop_id: str | None = None
    congestion_level: str | None = None  # GTFS-RT enum name
    schedule_relationship: str | None = None  # GTFS-RT enum name
    label: str | None = None
    license_plate: str | None = None


class StopTimePrediction(BaseModel):
    """Predicted arrival/departure of a trip at one stop."""

    model_config = ConfigDict(frozen=True)

    stop_id: str | None = None
    stop_sequence: int | None = None
    arrival_time: int | None = None  # unix timestamp
    departure_time: int | None = None  # unix timestamp

    @property
    def predicted_time(self) -> int | None:
        """Arrival time, falling back to departure time."""
        if self.arrival_time is not None:
            return self.arrival_time
        return self.departure_time


class TripUpdateRecord(BaseModel):
    """Real-time predictions for a single trip."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    route_id: str | None = None
    vehicle_label: str | None = None
    timestamp: int | None = None
    predictions: tuple[StopTimePrediction, ...] = ()


class VehiclePositionsData(BaseModel):
    """One decoded vehicle positions snapshot."""

    model_config = ConfigDict(frozen=True)

    header: FeedHeader
    vehicles: tuple[VehicleRecord, ...] = ()
    fetched_at: datetime


class TripUpdatesData(BaseModel):
    """One decoded trip updates snapshot."""

    model_config = ConfigDict(frozen=True)

    header: FeedHeader
    trip_updates: tuple[TripUpdateRecord, ...] = ()
    fetched_at: datetime
