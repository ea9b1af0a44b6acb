"""Schedule service for calendar-aware scheduled arrivals from the static index."""

from datetime import date, datetime

from hfx_transit.data.gtfs_time import seconds_since_midnight
from hfx_transit.data.static_index import StaticIndex
from hfx_transit.models.responses import Arrival, ArrivalSource

MAX_SCHEDULED_ARRIVALS = 20


def is_service_running(index: StaticIndex, service_id: str | None, on_date: date) -> bool:
    """Check whether a service runs on a date.

    A service without a calendar entry is treated as not running.
    """
    if service_id is None:
        return False
    calendar = index.calendar_by_service_id.get(service_id)
    if calendar is None:
        return False
    return calendar.is_running(on_date)


def get_scheduled_arrivals(
    index: StaticIndex,
    stop_id: str,
    at_time: datetime,
    limit: int = MAX_SCHEDULED_ARRIVALS,
) -> list[Arrival]:
    """Get scheduled arrivals at a stop from a point in time.

    Uses the wall-clock time and calendar date of `at_time`, so callers pass
    it in the agency timezone.

    Args:
        index: Static index built at startup.
        stop_id: The stop ID to get arrivals for. Unknown stops yield [].
        at_time: Query instant.
        limit: Maximum number of arrivals to return.

    Returns:
        Arrivals tagged "scheduled", in schedule time order.
    """
    schedule = index.stop_times_by_stop_id.get(stop_id, ())
    query_seconds = seconds_since_midnight(at_time)
    service_date = at_time.date()

    arrivals: list[Arrival] = []
    for entry in schedule:
        if entry.arrival_seconds < query_seconds:
            continue

        trip = index.trips_by_id.get(entry.trip_id)
        if trip is None or not is_service_running(index, trip.service_id, service_date):
            continue

        route = index.routes_by_id.get(trip.route_id) if trip.route_id else None
        arrivals.append(
            Arrival(
                trip_id=entry.trip_id,
                arrival_time=entry.arrival_label,
                arrival_seconds=entry.arrival_seconds,
                stop_sequence=entry.stop_sequence,
                route_id=trip.route_id,
                route_short_name=route.route_short_name if route else None,
                route_long_name=route.route_long_name if route else None,
                trip_headsign=trip.trip_headsign,
                source=ArrivalSource.SCHEDULED,
            )
        )
        if len(arrivals) >= limit:
            break

    return arrivals
