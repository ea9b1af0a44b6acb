from datetime import UTC, datetime

import httpx
from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

from hfx_transit.data.config import TransitConfig
from hfx_transit.errors import FeedUnavailableError
from hfx_transit.models.realtime import (
    FeedHeader,
    StopTimePrediction,
    TripUpdateRecord,
    TripUpdatesData,
    VehiclePositionsData,
    VehicleRecord,
)

VEHICLE_POSITIONS_FEED = "vehicle_positions"
TRIP_UPDATES_FEED = "trip_updates"


def decode_feed_message(content: bytes, feed_name: str) -> gtfs_realtime_pb2.FeedMessage:
    """Decode the GTFS-RT FeedMessage envelope.

    Raises:
        FeedUnavailableError: If the bytes are not a valid FeedMessage.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(content)
    except DecodeError as e:
        raise FeedUnavailableError(feed_name, f"malformed feed: {e}") from e
    return feed


def decode_vehicle_positions(content: bytes) -> VehiclePositionsData:
    """Decode raw vehicle positions feed bytes into a snapshot.

    Vehicles without a position are dropped.
    """
    feed = decode_feed_message(content, VEHICLE_POSITIONS_FEED)

    vehicles: list[VehicleRecord] = []
    for entity in feed.entity:
        if not entity.HasField("vehicle"):
            continue
        record = _parse_vehicle(entity.id, entity.vehicle)
        if record is not None:
            vehicles.append(record)

    return VehiclePositionsData(
        header=_parse_header(feed.header),
        vehicles=tuple(vehicles),
        fetched_at=datetime.now(UTC),
    )


def decode_trip_updates(content: bytes) -> TripUpdatesData:
    """Decode raw trip updates feed bytes into a snapshot.

    Trip updates without a trip_id are dropped.
    """
    feed = decode_feed_message(content, TRIP_UPDATES_FEED)

    trip_updates: list[TripUpdateRecord] = []
    for entity in feed.entity:
        if not entity.HasField("trip_update"):
            continue
        record = _parse_trip_update(entity.trip_update)
        if record is not None:
            trip_updates.append(record)

    return TripUpdatesData(
        header=_parse_header(feed.header),
        trip_updates=tuple(trip_updates),
        fetched_at=datetime.now(UTC),
    )


def _parse_header(header: gtfs_realtime_pb2.FeedHeader) -> FeedHeader:
    return FeedHeader(
        gtfs_realtime_version=header.gtfs_realtime_version,
        timestamp=header.timestamp if header.HasField("timestamp") else None,
    )


def _epoch_to_datetime(seconds: int) -> datetime | None:
    """UTC datetime for a feed epoch, or None if it is outside the representable range."""
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_vehicle(entity_id: str, vp: gtfs_realtime_pb2.VehiclePosition) -> VehicleRecord | None:
    """Parse a single vehicle position entity, or None if it has no position."""
    if not vp.HasField("position"):
        return None

    position = vp.position
    trip = vp.trip if vp.HasField("trip") else None
    descriptor = vp.vehicle if vp.HasField("vehicle") else None

    vehicle_id = entity_id
    label = None
    license_plate = None
    if descriptor is not None:
        label = descriptor.label or None
        license_plate = descriptor.license_plate or None
        vehicle_id = descriptor.id or descriptor.label or entity_id

    congestion_level = None
    if vp.HasField("congestion_level"):
        congestion_level = gtfs_realtime_pb2.VehiclePosition.CongestionLevel.Name(
            vp.congestion_level
        )

    trip_id = None
    route_id = None
    direction_id = None
    schedule_relationship = None
    if trip is not None:
        trip_id = trip.trip_id or None
        route_id = trip.route_id or None
        if trip.HasField("direction_id"):
            direction_id = trip.direction_id
        if trip.HasField("schedule_relationship"):
            schedule_relationship = gtfs_realtime_pb2.TripDescriptor.ScheduleRelationship.Name(
                trip.schedule_relationship
            )

    return VehicleRecord(
        entity_id=entity_id,
        vehicle_id=vehicle_id,
        trip_id=trip_id,
        route_id=route_id,
        direction_id=direction_id,
        latitude=position.latitude,
        longitude=position.longitude,
        bearing=position.bearing if position.HasField("bearing") else None,
        speed=position.speed if position.HasField("speed") else None,
        timestamp=_epoch_to_datetime(vp.timestamp) if vp.HasField("timestamp") else None,
        current_stop_sequence=(
            vp.current_stop_sequence if vp.HasField("current_stop_sequence") else None
        ),
        stop_id=vp.stop_id or None,
        congestion_level=congestion_level,
        schedule_relationship=schedule_relationship,
        label=label,
        license_plate=license_plate,
    )


def _parse_trip_update(tu: gtfs_realtime_pb2.TripUpdate) -> TripUpdateRecord | None:
    """Parse a single trip update entity, or None if it has no trip_id."""
    if not tu.trip.trip_id:
        return None

    predictions = tuple(_parse_stop_time_update(stu) for stu in tu.stop_time_update)
    vehicle_label = None
    if tu.HasField("vehicle"):
        vehicle_label = tu.vehicle.label or None

    return TripUpdateRecord(
        trip_id=tu.trip.trip_id,
        route_id=tu.trip.route_id or None,
        vehicle_label=vehicle_label,
        timestamp=tu.timestamp if tu.HasField("timestamp") else None,
        predictions=predictions,
    )


def _parse_stop_time_update(
    stu: gtfs_realtime_pb2.TripUpdate.StopTimeUpdate,
) -> StopTimePrediction:
    arrival_time = None
    if stu.HasField("arrival") and stu.arrival.HasField("time"):
        arrival_time = stu.arrival.time or None

    departure_time = None
    if stu.HasField("departure") and stu.departure.HasField("time"):
        departure_time = stu.departure.time or None

    return StopTimePrediction(
        stop_id=stu.stop_id or None,
        stop_sequence=stu.stop_sequence if stu.HasField("stop_sequence") else None,
        arrival_time=arrival_time,
        departure_time=departure_time,
    )


class GTFSRTClient:
    """Async HTTP client for fetching GTFS-RT feeds.

    Usage:
        async with GTFSRTClient(config) as client:
            trip_updates = await client.fetch_trip_updates()
    """

    def __init__(self, config: TransitConfig):
        """Initialize the client.

        Args:
            config: Transit configuration with feed URLs and timeout.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GTFSRTClient":
        """Enter async context - create HTTP client."""
        headers = {}
        if self._config.api_key:
            headers["apikey"] = self._config.api_key
        self._client = httpx.AsyncClient(
            headers=headers, timeout=self._config.request_timeout_seconds
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_vehicle_positions(self) -> VehiclePositionsData:
        """Fetch and decode the vehicle positions feed.

        Raises:
            RuntimeError: If client not initialized.
            FeedUnavailableError: If the request fails or the feed is malformed.
        """
        content = await self._fetch(self._config.vehicle_positions_url, VEHICLE_POSITIONS_FEED)
        return decode_vehicle_positions(content)

    async def fetch_trip_updates(self) -> TripUpdatesData:
        """Fetch and decode the trip updates feed.

        Raises:
            RuntimeError: If client not initialized.
            FeedUnavailableError: If the request fails or the feed is malformed.
        """
        content = await self._fetch(self._config.trip_updates_url, TRIP_UPDATES_FEED)
        return decode_trip_updates(content)

    async def _fetch(self, url: str, feed_name: str) -> bytes:
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FeedUnavailableError(
                feed_name, f"HTTP {e.response.status_code} from {url}"
            ) from e
        except httpx.HTTPError as e:
            raise FeedUnavailableError(feed_name, f"request failed: {e}") from e

        return response.content
