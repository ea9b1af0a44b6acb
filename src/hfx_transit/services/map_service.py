"""Passthrough queries for map rendering: static summary, shapes, vehicles."""

from hfx_transit.data.snapshot import RealtimeStore
from hfx_transit.data.static_index import StaticIndex
from hfx_transit.models.gtfs import ShapePoint
from hfx_transit.models.realtime import VehicleRecord
from hfx_transit.models.responses import StaticSummaryResponse


def get_static_summary(index: StaticIndex) -> StaticSummaryResponse:
    """Routes, stops and trips exactly as loaded from the archive."""
    return StaticSummaryResponse(
        routes=list(index.routes),
        stops=list(index.stops),
        trips=list(index.trips),
    )


def get_shape_polyline(index: StaticIndex, shape_id: str) -> list[ShapePoint]:
    """Shape points in ascending sequence order; [] for unknown shapes."""
    return list(index.shapes_by_id.get(shape_id, ()))


def get_vehicles_now(store: RealtimeStore) -> list[VehicleRecord]:
    """Vehicles from the current snapshot; [] before the first successful poll."""
    snapshot = store.vehicles.get()
    if snapshot is None:
        return []
    return list(snapshot.vehicles)
