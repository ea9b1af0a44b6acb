"""MCP tools serving the static schedule for map rendering."""

from mcp.server.fastmcp import Context

from hfx_transit.app import mcp
from hfx_transit.models.responses import ShapeResponse, StaticSummaryResponse
from hfx_transit.services.map_service import get_shape_polyline
from hfx_transit.services.map_service import get_static_summary as _get_static_summary
from hfx_transit.tools.params import get_app_context, require_param


@mcp.tool()
def get_static_summary(ctx: Context) -> StaticSummaryResponse:
    """Get all routes, stops and trips from the published GTFS schedule."""
    return _get_static_summary(get_app_context(ctx).index)


@mcp.tool()
def get_shape(shape_id: str, ctx: Context) -> ShapeResponse:
    """Get the polyline for a trip shape, ordered along the path.

    Unknown shape IDs return an empty point list.

    Args:
        shape_id: The shape ID from a trip (trip.shape_id). Required.
    """
    shape_id = require_param(shape_id, "shapeId")
    points = get_shape_polyline(get_app_context(ctx).index, shape_id)
    return ShapeResponse(shape_id=shape_id, points=points, count=len(points))
