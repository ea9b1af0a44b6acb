"""Shared GTFS and GTFS-RT fixtures."""

import zipfile
from datetime import UTC, datetime
from pathlib import Path

import pytest

from hfx_transit.data.gtfs_loader import build_static_index
from hfx_transit.data.static_index import StaticIndex
from hfx_transit.models.realtime import (
    FeedHeader,
    StopTimePrediction,
    TripUpdateRecord,
    TripUpdatesData,
    VehiclePositionsData,
    VehicleRecord,
)

ROUTES_TXT = (
    "route_id,agency_id,route_short_name,route_long_name,route_desc,route_type,route_color\n"
    "1,HT,1,Spring Garden,Downtown via Spring Garden,3,0072BC\n"
    "2,HT,2,Fairview,,,\n"
)

STOPS_TXT = (
    "stop_id,stop_code,stop_name,stop_lat,stop_lon\n"
    "S1,8117,Spring Garden Rd [EB],44.6424,-63.5802\n"
    "S2,8118,Barrington St [NB],44.6460,-63.5740\n"
)

TRIPS_TXT = (
    "route_id,service_id,trip_id,trip_headsign,direction_id,shape_id\n"
    "1,WD,T1,Downtown,0,SH1\n"
    "2,WD,T2,Fairview,1,SH2\n"
    "1,WE,T3,Downtown Weekend,,SH1\n"
    "2,NOCAL,T4,Nowhere,0,\n"
    "1,WD,T5,Downtown Late,0,SH1\n"
)

SHAPES_TXT = (
    "shape_id,shape_pt_lat,shape_pt_lon,shape_pt_sequence\n"
    "SH1,44.6430,-63.5790,3\n"
    "SH1,44.6424,-63.5802,1\n"
    "SH1,44.6427,-63.5796,2\n"
    "SH2,44.6460,-63.5740,1\n"
)

STOP_TIMES_TXT = (
    "trip_id,arrival_time,departure_time,stop_id,stop_sequence\n"
    "T2,09:15:00,09:15:00,S1,4\n"
    "T1,08:00:00,08:00:00,S1,1\n"
    "T1,08:05:00,08:05:00,S2,2\n"
    "T3,08:30:00,08:30:00,S1,1\n"
    "T4,10:00:00,10:00:00,S1,1\n"
    "T5,25:10:00,25:10:00,S1,1\n"
)

CALENDAR_TXT = (
    "service_id,monday,tuesday,wednesday,thursday,friday,saturday,sunday,start_date,end_date\n"
    "WD,1,1,1,1,1,0,0,20240101,20241231\n"
    "WE,0,0,0,0,0,1,1,20240101,20241231\n"
)

GTFS_TABLES = {
    "routes.txt": ROUTES_TXT,
    "stops.txt": STOPS_TXT,
    "trips.txt": TRIPS_TXT,
    "shapes.txt": SHAPES_TXT,
    "stop_times.txt": STOP_TIMES_TXT,
    "calendar.txt": CALENDAR_TXT,
}


def write_gtfs_zip(zip_path: Path, tables: dict[str, str], prefix: str = "") -> Path:
    """Write tables into a GTFS ZIP, optionally under a directory prefix."""
    with zipfile.ZipFile(zip_path, "w") as zf:
        for filename, contents in tables.items():
            zf.writestr(prefix + filename, contents)
    return zip_path


@pytest.fixture
def sample_gtfs_dir(tmp_path: Path) -> Path:
    """Create a sample GTFS directory with minimal valid data."""
    gtfs_dir = tmp_path / "gtfs"
    gtfs_dir.mkdir()
    for filename, contents in GTFS_TABLES.items():
        (gtfs_dir / filename).write_text(contents)
    return gtfs_dir


@pytest.fixture
def sample_gtfs_zip(tmp_path: Path) -> Path:
    """Create a sample GTFS ZIP file."""
    return write_gtfs_zip(tmp_path / "google_transit.zip", GTFS_TABLES)


@pytest.fixture
def static_index(sample_gtfs_zip: Path) -> StaticIndex:
    """Static index built from the sample archive."""
    return build_static_index(sample_gtfs_zip)


def make_trip_updates(*updates: TripUpdateRecord) -> TripUpdatesData:
    """Wrap trip update records in a snapshot."""
    return TripUpdatesData(
        header=FeedHeader(gtfs_realtime_version="2.0", timestamp=1700000000),
        trip_updates=updates,
        fetched_at=datetime.now(UTC),
    )


def make_vehicles(*vehicles: VehicleRecord) -> VehiclePositionsData:
    """Wrap vehicle records in a snapshot."""
    return VehiclePositionsData(
        header=FeedHeader(gtfs_realtime_version="2.0", timestamp=1700000000),
        vehicles=vehicles,
        fetched_at=datetime.now(UTC),
    )


def make_prediction_update(
    trip_id: str,
    stop_id: str,
    at: datetime,
    vehicle_label: str | None = None,
    stop_sequence: int | None = 1,
) -> TripUpdateRecord:
    """A trip update with a single arrival prediction."""
    return TripUpdateRecord(
        trip_id=trip_id,
        vehicle_label=vehicle_label,
        predictions=(
            StopTimePrediction(
                stop_id=stop_id,
                stop_sequence=stop_sequence,
                arrival_time=int(at.timestamp()),
            ),
        ),
    )
