"""Tests for the GTFS-RT decoder and client."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.transit import gtfs_realtime_pb2

from hfx_transit.data.config import TransitConfig
from hfx_transit.data.gtfsrt_client import (
    GTFSRTClient,
    decode_trip_updates,
    decode_vehicle_positions,
)
from hfx_transit.errors import FeedUnavailableError

MALFORMED_FEED = b"\xff\xff\xff\xff"


def create_trip_updates_feed() -> bytes:
    """Create a trip updates protobuf feed for testing."""
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"
    feed.header.timestamp = 1700000000

    entity = feed.entity.add()
    entity.id = "trip_update_1"
    tu = entity.trip_update
    tu.trip.trip_id = "T1"
    tu.trip.route_id = "1"
    tu.vehicle.label = "1234"
    tu.timestamp = 1700000000

    stu = tu.stop_time_update.add()
    stu.stop_sequence = 5
    stu.stop_id = "S1"
    stu.arrival.time = 1700000120

    stu = tu.stop_time_update.add()
    stu.stop_sequence = 6
    stu.stop_id = "S2"
    stu.departure.time = 1700000300

    # no trip_id: dropped
    entity = feed.entity.add()
    entity.id = "trip_update_2"
    entity.trip_update.trip.route_id = "2"

    return feed.SerializeToString()


def create_vehicle_positions_feed() -> bytes:
    """Create a vehicle positions protobuf feed for testing."""
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"
    feed.header.timestamp = 1700000000

    entity = feed.entity.add()
    entity.id = "vehicle_1"
    vp = entity.vehicle
    vp.trip.trip_id = "T1"
    vp.trip.route_id = "1"
    vp.trip.direction_id = 0
    vp.trip.schedule_relationship = gtfs_realtime_pb2.TripDescriptor.SCHEDULED
    vp.vehicle.id = "bus_001"
    vp.vehicle.label = "1001"
    vp.vehicle.license_plate = "HFX 123"
    vp.position.latitude = 44.6424
    vp.position.longitude = -63.5802
    vp.position.bearing = 90.0
    vp.position.speed = 8.5
    vp.timestamp = 1700000000
    vp.stop_id = "S1"
    vp.current_stop_sequence = 5
    vp.congestion_level = gtfs_realtime_pb2.VehiclePosition.RUNNING_SMOOTHLY

    # label only, no trip
    entity = feed.entity.add()
    entity.id = "vehicle_2"
    entity.vehicle.vehicle.label = "1002"
    entity.vehicle.position.latitude = 44.65
    entity.vehicle.position.longitude = -63.57

    # no descriptor at all
    entity = feed.entity.add()
    entity.id = "vehicle_3"
    entity.vehicle.position.latitude = 44.66
    entity.vehicle.position.longitude = -63.56

    # no position: dropped
    entity = feed.entity.add()
    entity.id = "vehicle_4"
    entity.vehicle.vehicle.id = "bus_004"

    return feed.SerializeToString()


@pytest.fixture
def config() -> TransitConfig:
    """Create a test config."""
    return TransitConfig(
        HFX_API_KEY="test_api_key",
        HFX_VEHICLE_POSITIONS_URL="https://example.com/vehicle_positions",
        HFX_TRIP_UPDATES_URL="https://example.com/trip_updates",
    )


class TestDecodeTripUpdates:
    def test_decodes_predictions(self) -> None:
        data = decode_trip_updates(create_trip_updates_feed())

        assert data.header.gtfs_realtime_version == "2.0"
        assert data.header.timestamp == 1700000000
        assert len(data.trip_updates) == 1

        tu = data.trip_updates[0]
        assert tu.trip_id == "T1"
        assert tu.route_id == "1"
        assert tu.vehicle_label == "1234"
        assert tu.timestamp == 1700000000

        arrival, departure_only = tu.predictions
        assert arrival.stop_id == "S1"
        assert arrival.stop_sequence == 5
        assert arrival.predicted_time == 1700000120
        assert departure_only.arrival_time is None
        assert departure_only.predicted_time == 1700000300

    def test_malformed_envelope(self) -> None:
        with pytest.raises(FeedUnavailableError) as exc_info:
            decode_trip_updates(MALFORMED_FEED)
        assert exc_info.value.feed == "trip_updates"

    def test_empty_feed(self) -> None:
        feed = gtfs_realtime_pb2.FeedMessage()
        feed.header.gtfs_realtime_version = "2.0"

        data = decode_trip_updates(feed.SerializeToString())

        assert data.trip_updates == ()
        assert data.header.timestamp is None


class TestDecodeVehiclePositions:
    def test_full_vehicle(self) -> None:
        data = decode_vehicle_positions(create_vehicle_positions_feed())

        vehicle = data.vehicles[0]
        assert vehicle.entity_id == "vehicle_1"
        assert vehicle.vehicle_id == "bus_001"
        assert vehicle.trip_id == "T1"
        assert vehicle.route_id == "1"
        assert vehicle.direction_id == 0
        # protobuf uses float32
        assert vehicle.latitude == pytest.approx(44.6424, rel=1e-5)
        assert vehicle.longitude == pytest.approx(-63.5802, rel=1e-5)
        assert vehicle.bearing == pytest.approx(90.0)
        assert vehicle.speed == pytest.approx(8.5)
        assert vehicle.timestamp == datetime.fromtimestamp(1700000000, tz=UTC)
        assert vehicle.current_stop_sequence == 5
        assert vehicle.stop_id == "S1"
        assert vehicle.congestion_level == "RUNNING_SMOOTHLY"
        assert vehicle.schedule_relationship == "SCHEDULED"
        assert vehicle.label == "1001"
        assert vehicle.license_plate == "HFX 123"

    def test_vehicle_id_fallbacks(self) -> None:
        data = decode_vehicle_positions(create_vehicle_positions_feed())

        ids = [v.vehicle_id for v in data.vehicles]
        assert ids == ["bus_001", "1002", "vehicle_3"]

    def test_absent_fields_are_none(self) -> None:
        data = decode_vehicle_positions(create_vehicle_positions_feed())

        bare = data.vehicles[2]
        assert bare.trip_id is None
        assert bare.direction_id is None
        assert bare.bearing is None
        assert bare.speed is None
        assert bare.timestamp is None
        assert bare.current_stop_sequence is None
        assert bare.congestion_level is None
        assert bare.schedule_relationship is None

    def test_vehicle_without_position_dropped(self) -> None:
        data = decode_vehicle_positions(create_vehicle_positions_feed())
        assert "vehicle_4" not in [v.entity_id for v in data.vehicles]

    def test_unrepresentable_timestamp_is_none(self) -> None:
        feed = gtfs_realtime_pb2.FeedMessage()
        feed.header.gtfs_realtime_version = "2.0"
        entity = feed.entity.add()
        entity.id = "vehicle_far_future"
        entity.vehicle.position.latitude = 44.65
        entity.vehicle.position.longitude = -63.57
        entity.vehicle.timestamp = 2**63

        data = decode_vehicle_positions(feed.SerializeToString())

        assert data.vehicles[0].entity_id == "vehicle_far_future"
        assert data.vehicles[0].timestamp is None

    def test_malformed_envelope(self) -> None:
        with pytest.raises(FeedUnavailableError) as exc_info:
            decode_vehicle_positions(MALFORMED_FEED)
        assert exc_info.value.feed == "vehicle_positions"


def _mock_http_client(mock_client_class: MagicMock, response: MagicMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.get = AsyncMock(return_value=response)
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.mark.asyncio
async def test_fetch_trip_updates(config: TransitConfig):
    """Test fetching trip updates over HTTP."""
    # Mock the HTTP response (raise_for_status is sync, not async)
    mock_response = MagicMock()
    mock_response.content = create_trip_updates_feed()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_http_client(mock_client_class, mock_response)

        async with GTFSRTClient(config) as client:
            data = await client.fetch_trip_updates()

    mock_client.get.assert_awaited_once_with("https://example.com/trip_updates")
    assert mock_client_class.call_args.kwargs["headers"] == {"apikey": "test_api_key"}
    assert data.trip_updates[0].trip_id == "T1"


@pytest.mark.asyncio
async def test_fetch_vehicle_positions(config: TransitConfig):
    """Test fetching vehicle positions over HTTP."""
    mock_response = MagicMock()
    mock_response.content = create_vehicle_positions_feed()

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_http_client(mock_client_class, mock_response)

        async with GTFSRTClient(config) as client:
            data = await client.fetch_vehicle_positions()

    mock_client.get.assert_awaited_once_with("https://example.com/vehicle_positions")
    assert len(data.vehicles) == 3


@pytest.mark.asyncio
async def test_fetch_http_error_status(config: TransitConfig):
    """Non-success status is reported as FeedUnavailableError."""
    mock_response = MagicMock()
    mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "Service Unavailable",
        request=httpx.Request("GET", "https://example.com/trip_updates"),
        response=httpx.Response(503),
    )

    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_http_client(mock_client_class, mock_response)

        async with GTFSRTClient(config) as client:
            with pytest.raises(FeedUnavailableError, match="503"):
                await client.fetch_trip_updates()


@pytest.mark.asyncio
async def test_fetch_network_error(config: TransitConfig):
    """Transport failures are reported as FeedUnavailableError."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        mock_client_class.return_value = mock_client

        async with GTFSRTClient(config) as client:
            with pytest.raises(FeedUnavailableError, match="vehicle_positions"):
                await client.fetch_vehicle_positions()


@pytest.mark.asyncio
async def test_fetch_malformed_body(config: TransitConfig):
    mock_response = MagicMock()
    mock_response.content = MALFORMED_FEED

    with patch("httpx.AsyncClient") as mock_client_class:
        _mock_http_client(mock_client_class, mock_response)

        async with GTFSRTClient(config) as client:
            with pytest.raises(FeedUnavailableError):
                await client.fetch_trip_updates()


@pytest.mark.asyncio
async def test_fetch_requires_context(config: TransitConfig):
    client = GTFSRTClient(config)
    with pytest.raises(RuntimeError):
        await client.fetch_trip_updates()
