"""In-memory query indices over the static GTFS archive."""

from dataclasses import dataclass

from hfx_transit.models.gtfs import (
    CalendarEntry,
    Route,
    ShapePoint,
    Stop,
    StopTimeEntry,
    Trip,
)


@dataclass(frozen=True)
class StaticIndex:
    """Query-ready static schedule, built once at startup.

    Never mutated after construction; a new archive means building a new
    index and swapping the reference.
    """

    # file order, served verbatim by the summary endpoint
    routes: tuple[Route, ...]
    stops: tuple[Stop, ...]
    trips: tuple[Trip, ...]

    routes_by_id: dict[str, Route]
    stops_by_id: dict[str, Stop]
    trips_by_id: dict[str, Trip]
    shapes_by_id: dict[str, tuple[ShapePoint, ...]]  # ascending sequence
    stop_times_by_stop_id: dict[str, tuple[StopTimeEntry, ...]]  # ascending arrival_seconds
    calendar_by_service_id: dict[str, CalendarEntry]

    def counts(self) -> dict[str, int]:
        """Row counts per index, for logging and the `check` command."""
        return {
            "routes": len(self.routes),
            "stops": len(self.stops),
            "trips": len(self.trips),
            "shapes": len(self.shapes_by_id),
            "shape_points": sum(len(points) for points in self.shapes_by_id.values()),
            "stop_times": sum(len(entries) for entries in self.stop_times_by_stop_id.values()),
            "calendar": len(self.calendar_by_service_id),
        }
