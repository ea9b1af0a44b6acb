from datetime import datetime

from mcp.server.fastmcp import Context

from hfx_transit.app import mcp
from hfx_transit.models.responses import ArrivalsResponse
from hfx_transit.services.arrivals_service import (
    get_merged_arrivals,
    is_within_realtime_window,
)
from hfx_transit.services.schedule_service import (
    get_scheduled_arrivals as _get_scheduled_arrivals,
)
from hfx_transit.tools.params import get_app_context, parse_request_time, require_param


@mcp.tool()
def get_scheduled_arrivals(stop_id: str, ctx: Context) -> ArrivalsResponse:
    """Get the next scheduled arrivals at a Halifax Transit stop.

    Uses only the published GTFS schedule, filtered to services running
    today. Times are shown as HH:MM in local time.

    Args:
        stop_id: The stop ID to get arrivals for (e.g., "8117"). Required.

    Returns:
        ArrivalsResponse with up to 20 arrivals tagged "scheduled".
    """
    stop_id = require_param(stop_id, "stopId")
    app = get_app_context(ctx)
    now = datetime.now(app.config.tzinfo)

    arrivals = _get_scheduled_arrivals(app.index, stop_id, now)
    return ArrivalsResponse(
        stop_id=stop_id,
        arrivals=arrivals,
        query_time=now.isoformat(),
        count=len(arrivals),
    )


@mcp.tool()
def get_stop_arrivals(stop_id: str, ctx: Context, time: str | None = None) -> ArrivalsResponse:
    """Get upcoming arrivals at a stop, merging live predictions with the schedule.

    When the requested time is within two hours of now, live GTFS-RT
    predictions replace the scheduled entry for the same trip. Each arrival
    carries a source of "realtime" or "scheduled".

    Args:
        stop_id: The stop ID to get arrivals for. Required.
        time: Optional ISO-8601 time to query (default: now). Unparsable
            values fall back to now.

    Returns:
        ArrivalsResponse with up to 20 merged arrivals.
    """
    stop_id = require_param(stop_id, "stopId")
    app = get_app_context(ctx)
    tz = app.config.tzinfo
    now = datetime.now(tz)
    request_time = parse_request_time(time, tz, now)

    arrivals = get_merged_arrivals(app.index, app.store, stop_id, request_time, now)

    realtime_consulted = is_within_realtime_window(request_time, now)
    trip_updates = app.store.trip_updates.get()
    realtime_updated_at = None
    if realtime_consulted and trip_updates is not None:
        realtime_updated_at = trip_updates.fetched_at.isoformat()

    return ArrivalsResponse(
        stop_id=stop_id,
        arrivals=arrivals,
        query_time=request_time.isoformat(),
        count=len(arrivals),
        realtime_consulted=realtime_consulted,
        realtime_updated_at=realtime_updated_at,
    )
