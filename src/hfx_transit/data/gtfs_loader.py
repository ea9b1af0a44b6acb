"""GTFS static archive loader that builds the in-memory query indices."""

import csv
import io
import logging
import zipfile
import zlib
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

from hfx_transit.data.gtfs_time import (
    format_time_label,
    parse_gtfs_date,
    safe_gtfs_time_to_seconds,
)
from hfx_transit.data.static_index import StaticIndex
from hfx_transit.errors import DataIntegrityError
from hfx_transit.models.gtfs import (
    WEEKDAY_COLUMNS,
    CalendarEntry,
    Route,
    ShapePoint,
    Stop,
    StopTimeEntry,
    Trip,
)

logger = logging.getLogger(__name__)

ArchiveSource = bytes | bytearray | BinaryIO | Path | str

# Table definitions: table_name -> (csv_filename, columns that must be in the header)
TABLE_DEFINITIONS: dict[str, tuple[str, list[str]]] = {
    "routes": ("routes.txt", ["route_id"]),
    "stops": ("stops.txt", ["stop_id"]),
    "trips": ("trips.txt", ["trip_id", "route_id", "service_id"]),
    "shapes": (
        "shapes.txt",
        ["shape_id", "shape_pt_lat", "shape_pt_lon", "shape_pt_sequence"],
    ),
    "stop_times": ("stop_times.txt", ["trip_id", "stop_id"]),
    "calendar": ("calendar.txt", ["service_id", "start_date", "end_date"]),
}

# Columns that must have a value for a row to be kept.
REQUIRED_VALUES: dict[str, list[str]] = {
    "routes": ["route_id"],
    "stops": ["stop_id"],
    "trips": ["trip_id"],
    "shapes": ["shape_id", "shape_pt_lat", "shape_pt_lon", "shape_pt_sequence"],
    "stop_times": ["trip_id", "stop_id"],
    "calendar": ["service_id"],
}

Row = dict[str, str]


def parse_int_safe(value: str | None) -> int | None:
    """Parse an integer, returning None (not 0) for blank or invalid input."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_float_safe(value: str | None) -> float | None:
    """Parse a float, returning None for blank, invalid or non-finite input."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def find_entry(names: list[str], target_name: str) -> str:
    """Locate a table inside the archive regardless of casing or directory prefix.

    Raises:
        DataIntegrityError: If no entry ends with the target filename.
    """
    target = target_name.lower()
    for name in names:
        lowered = name.lower()
        if lowered == target or lowered.endswith("/" + target):
            return name
    raise DataIntegrityError(f"Unable to locate {target_name} inside GTFS archive")


def load_static_index(gtfs_path: Path) -> StaticIndex:
    """Build the static index from a GTFS ZIP file or directory on disk.

    Raises:
        DataIntegrityError: If the path doesn't exist or a required table is
            missing or unparsable.
    """
    gtfs_path = Path(gtfs_path)
    if not gtfs_path.exists():
        raise DataIntegrityError(f"GTFS path not found: {gtfs_path}")

    logger.info(f"Loading GTFS static data from {gtfs_path}...")
    return build_static_index(gtfs_path)


def build_static_index(source: ArchiveSource) -> StaticIndex:
    """Parse every required table and build the query indices.

    All-or-nothing: the index is only constructed after every table has been
    read and converted, so a failure never exposes partial data.

    Args:
        source: Raw ZIP bytes, a binary file object, or a path to a ZIP file
            or an extracted GTFS directory.

    Returns:
        The immutable StaticIndex.

    Raises:
        DataIntegrityError: If a required table is missing or unparsable.
    """
    tables = _read_tables(source)

    routes = _build_routes(tables["routes"])
    stops = _build_stops(tables["stops"])
    trips = _build_trips(tables["trips"])
    shapes_by_id = _build_shapes(tables["shapes"])
    stop_times_by_stop_id = _build_stop_times(tables["stop_times"])
    calendar_by_service_id = _build_calendar(tables["calendar"])

    index = StaticIndex(
        routes=tuple(routes),
        stops=tuple(stops),
        trips=tuple(trips),
        routes_by_id={route.route_id: route for route in routes},
        stops_by_id={stop.stop_id: stop for stop in stops},
        trips_by_id={trip.trip_id: trip for trip in trips},
        shapes_by_id=shapes_by_id,
        stop_times_by_stop_id=stop_times_by_stop_id,
        calendar_by_service_id=calendar_by_service_id,
    )
    logger.info(f"GTFS static index built: {index.counts()}")
    return index


def _read_tables(source: ArchiveSource) -> dict[str, list[Row]]:
    """Read every required table from a directory or ZIP archive."""
    if isinstance(source, (str, Path)):
        path = Path(source)
        if path.is_dir():
            names = sorted(p.relative_to(path).as_posix() for p in path.rglob("*") if p.is_file())
            try:
                return _read_all(names, lambda name: open(path / name, "rb"))
            except OSError as e:
                raise DataIntegrityError(f"Unable to read GTFS directory: {e}") from e
        archive: Path | BinaryIO = path
    elif isinstance(source, (bytes, bytearray)):
        archive = io.BytesIO(source)
    else:
        archive = source

    try:
        with zipfile.ZipFile(archive, "r") as zf:
            names = [info.filename for info in zf.infolist() if not info.is_dir()]
            return _read_all(names, zf.open)
    except zipfile.BadZipFile as e:
        raise DataIntegrityError(f"Unreadable GTFS archive: {e}") from e
    except OSError as e:
        raise DataIntegrityError(f"Unable to read GTFS archive: {e}") from e
    except (zlib.error, EOFError, NotImplementedError) as e:
        raise DataIntegrityError(f"Corrupt entry in GTFS archive: {e}") from e


def _read_all(names: list[str], opener: Callable[[str], BinaryIO]) -> dict[str, list[Row]]:
    tables: dict[str, list[Row]] = {}
    for table_name, (csv_filename, columns) in TABLE_DEFINITIONS.items():
        entry = find_entry(names, csv_filename)
        with opener(entry) as f:
            rows = _read_csv(f, columns, entry)
        kept = [row for row in rows if _has_required_values(row, REQUIRED_VALUES[table_name])]
        skipped = len(rows) - len(kept)
        logger.info(
            f"  Loaded {len(kept):,} rows from {entry}"
            + (f" (skipped {skipped:,} invalid)" if skipped else "")
        )
        tables[table_name] = kept
    return tables


def _read_csv(f: BinaryIO, columns: list[str], filename: str) -> list[Row]:
    """Read a CSV table into a list of dicts keyed by trimmed header names."""
    try:
        # Wrap binary file in text mode
        text_file = io.TextIOWrapper(f, encoding="utf-8-sig", newline="")
        reader = csv.reader(text_file)
        header = next(reader, None)
        if header is None:
            raise DataIntegrityError(f"{filename} is empty")
        header_index = _build_header_index(header, columns, filename)

        rows: list[Row] = []
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            rows.append(
                {
                    col: row[idx].strip() if idx < len(row) else ""
                    for col, idx in header_index.items()
                }
            )
        return rows
    except (csv.Error, UnicodeDecodeError) as e:
        raise DataIntegrityError(f"{filename} is not a readable CSV table: {e}") from e


def _build_header_index(header: list[str], columns: list[str], filename: str) -> dict[str, int]:
    """Map header names to column positions, checking required columns exist."""
    header_index: dict[str, int] = {}
    for idx, name in enumerate(header):
        cleaned = name.strip()
        if cleaned and cleaned not in header_index:
            header_index[cleaned] = idx
    missing = [col for col in columns if col not in header_index]
    if missing:
        raise DataIntegrityError(f"{filename} missing columns: {', '.join(missing)}")
    return header_index


def _has_required_values(row: Row, required: list[str]) -> bool:
    """Return True if all required columns have non-empty values."""
    return all(row.get(col) for col in required)


def _optional(row: Row, column: str) -> str | None:
    value = row.get(column)
    return value if value else None


def _build_routes(rows: list[Row]) -> list[Route]:
    return [
        Route(
            route_id=row["route_id"],
            route_short_name=_optional(row, "route_short_name"),
            route_long_name=_optional(row, "route_long_name"),
            route_desc=_optional(row, "route_desc"),
            route_type=parse_int_safe(row.get("route_type")),
            route_color=_optional(row, "route_color"),
        )
        for row in rows
    ]


def _build_stops(rows: list[Row]) -> list[Stop]:
    return [
        Stop(
            stop_id=row["stop_id"],
            stop_name=_optional(row, "stop_name"),
            stop_lat=parse_float_safe(row.get("stop_lat")),
            stop_lon=parse_float_safe(row.get("stop_lon")),
        )
        for row in rows
    ]


def _build_trips(rows: list[Row]) -> list[Trip]:
    return [
        Trip(
            trip_id=row["trip_id"],
            route_id=_optional(row, "route_id"),
            service_id=_optional(row, "service_id"),
            trip_headsign=_optional(row, "trip_headsign"),
            direction_id=parse_int_safe(row.get("direction_id")),
            shape_id=_optional(row, "shape_id"),
        )
        for row in rows
    ]


def _build_shapes(rows: list[Row]) -> dict[str, tuple[ShapePoint, ...]]:
    """Group shape points by shape id, sorted once by sequence."""
    grouped: dict[str, list[ShapePoint]] = defaultdict(list)
    dropped = 0
    for row in rows:
        latitude = parse_float_safe(row["shape_pt_lat"])
        longitude = parse_float_safe(row["shape_pt_lon"])
        sequence = parse_int_safe(row["shape_pt_sequence"])
        if latitude is None or longitude is None or sequence is None:
            dropped += 1
            continue
        grouped[row["shape_id"]].append(
            ShapePoint(latitude=latitude, longitude=longitude, sequence=sequence)
        )

    if dropped:
        logger.warning(f"Dropped {dropped:,} shape points with unparsable coordinates or sequence")

    shapes: dict[str, tuple[ShapePoint, ...]] = {}
    for shape_id, points in grouped.items():
        points.sort(key=lambda point: point.sequence)
        for previous, current in zip(points, points[1:]):
            if previous.sequence == current.sequence:
                raise DataIntegrityError(
                    f"shapes.txt has duplicate sequence {current.sequence} in shape {shape_id}"
                )
        shapes[shape_id] = tuple(points)
    return shapes


def _build_stop_times(rows: list[Row]) -> dict[str, tuple[StopTimeEntry, ...]]:
    """Group stop-times by stop id, sorted once by seconds since midnight."""
    grouped: dict[str, list[StopTimeEntry]] = defaultdict(list)
    dropped = 0
    for row in rows:
        arrival_time = row.get("arrival_time") or row.get("departure_time")
        arrival_seconds = safe_gtfs_time_to_seconds(arrival_time)
        if arrival_time is None or arrival_seconds is None:
            dropped += 1
            continue
        grouped[row["stop_id"]].append(
            StopTimeEntry(
                trip_id=row["trip_id"],
                arrival_time=arrival_time,
                arrival_seconds=arrival_seconds,
                arrival_label=format_time_label(arrival_time),
                stop_sequence=parse_int_safe(row.get("stop_sequence")),
            )
        )

    if dropped:
        logger.warning(f"Dropped {dropped:,} stop_times without a parsable time")

    return {
        stop_id: tuple(sorted(entries, key=lambda e: (e.arrival_seconds, e.trip_id)))
        for stop_id, entries in grouped.items()
    }


def _build_calendar(rows: list[Row]) -> dict[str, CalendarEntry]:
    calendar: dict[str, CalendarEntry] = {}
    for row in rows:
        try:
            start_date = parse_gtfs_date(row.get("start_date", ""))
            end_date = parse_gtfs_date(row.get("end_date", ""))
        except ValueError as e:
            raise DataIntegrityError(f"calendar.txt service {row['service_id']}: {e}") from e

        flags = {day: row.get(day) == "1" for day in WEEKDAY_COLUMNS}
        calendar[row["service_id"]] = CalendarEntry(
            service_id=row["service_id"],
            start_date=start_date,
            end_date=end_date,
            **flags,
        )
    return calendar
