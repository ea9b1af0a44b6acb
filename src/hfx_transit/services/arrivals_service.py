"""Arrivals service for merging the static schedule with GTFS-RT predictions.

Realtime wins per trip: a trip with a live prediction at the stop is shown
only with that prediction, and trips the feed says nothing about keep their
scheduled entry. Realtime data is only consulted when the request time is
within two hours of now; when the feed is down the merge degrades to
schedule-only results.
"""

import logging
from datetime import datetime, timedelta, tzinfo

from hfx_transit.data.gtfs_time import seconds_since_midnight
from hfx_transit.data.snapshot import RealtimeStore
from hfx_transit.data.static_index import StaticIndex
from hfx_transit.models.realtime import TripUpdatesData
from hfx_transit.models.responses import Arrival, ArrivalSource
from hfx_transit.services.schedule_service import get_scheduled_arrivals

logger = logging.getLogger(__name__)

REALTIME_WINDOW = timedelta(hours=2)
MAX_ARRIVALS = 20


def format_clock_label(dt: datetime) -> str:
    """Format a datetime as a 24-hour HH:MM label."""
    return f"{dt.hour:02d}:{dt.minute:02d}"


def arrival_sort_key(arrival: Arrival) -> tuple[str, int, str]:
    """Order by displayed label, then seconds, then trip_id for exact ties."""
    return (arrival.arrival_time, arrival.arrival_seconds, arrival.trip_id)


def is_within_realtime_window(request_time: datetime, now: datetime) -> bool:
    """True if the request time is close enough to now to trust GTFS-RT.

    Measured in elapsed time, so a DST change inside the window does not
    stretch or shrink it.
    """
    return abs(request_time.timestamp() - now.timestamp()) <= REALTIME_WINDOW.total_seconds()


def get_realtime_arrivals(
    index: StaticIndex,
    trip_updates: TripUpdatesData | None,
    stop_id: str,
    now: datetime,
    limit: int = MAX_ARRIVALS,
) -> list[Arrival]:
    """Get predicted arrivals at a stop from the trip updates snapshot.

    Predictions in the past or more than two hours ahead are ignored. A trip
    can be announced more than once; the earliest label is kept and the
    first one seen wins on equal labels.

    Args:
        index: Static index, used to enrich trips with route and headsign.
        trip_updates: Current trip updates snapshot (None before first poll).
        stop_id: The stop ID to get arrivals for.
        now: Current instant, timezone-aware in the agency timezone.
        limit: Maximum number of arrivals to return.

    Returns:
        Arrivals tagged "realtime", sorted by label.
    """
    if trip_updates is None:
        return []

    tz: tzinfo | None = now.tzinfo
    window_start = now.timestamp()
    window_end = window_start + REALTIME_WINDOW.total_seconds()
    by_trip_id: dict[str, Arrival] = {}

    for trip_update in trip_updates.trip_updates:
        trip = index.trips_by_id.get(trip_update.trip_id)
        route_id = trip.route_id if trip and trip.route_id else trip_update.route_id
        route = index.routes_by_id.get(route_id) if route_id else None

        for prediction in trip_update.predictions:
            if prediction.stop_id != stop_id:
                continue
            predicted_time = prediction.predicted_time
            # compare epochs first; out-of-range values never reach fromtimestamp
            if predicted_time is None or not window_start <= predicted_time <= window_end:
                continue

            predicted_at = datetime.fromtimestamp(predicted_time, tz=tz)

            arrival = Arrival(
                trip_id=trip_update.trip_id,
                arrival_time=format_clock_label(predicted_at),
                arrival_seconds=seconds_since_midnight(predicted_at),
                stop_sequence=prediction.stop_sequence,
                route_id=route_id,
                route_short_name=route.route_short_name if route else None,
                route_long_name=route.route_long_name if route else None,
                trip_headsign=trip.trip_headsign if trip else None,
                vehicle_label=trip_update.vehicle_label,
                source=ArrivalSource.REALTIME,
            )

            existing = by_trip_id.get(arrival.trip_id)
            if existing is None or arrival.arrival_time < existing.arrival_time:
                by_trip_id[arrival.trip_id] = arrival

    arrivals = sorted(by_trip_id.values(), key=arrival_sort_key)
    return arrivals[:limit]


def merge_arrivals(
    realtime: list[Arrival],
    scheduled: list[Arrival],
    limit: int = MAX_ARRIVALS,
) -> list[Arrival]:
    """Merge realtime and scheduled arrivals, one entry per trip.

    Args:
        realtime: Realtime arrivals (take precedence).
        scheduled: Scheduled arrivals (fill trips without realtime data).
        limit: Maximum number of arrivals to return.

    Returns:
        Merged arrivals sorted by displayed time label.
    """
    by_trip_id: dict[str, Arrival] = {}
    for arrival in realtime:
        by_trip_id.setdefault(arrival.trip_id, arrival)
    for arrival in scheduled:
        by_trip_id.setdefault(arrival.trip_id, arrival)

    merged = sorted(by_trip_id.values(), key=arrival_sort_key)
    return merged[:limit]


def get_merged_arrivals(
    index: StaticIndex,
    store: RealtimeStore,
    stop_id: str,
    request_time: datetime,
    now: datetime,
    limit: int = MAX_ARRIVALS,
) -> list[Arrival]:
    """Get upcoming arrivals at a stop combining schedule and realtime data.

    Args:
        index: Static index built at startup.
        store: Current realtime snapshots.
        stop_id: The stop ID to get arrivals for.
        request_time: Time the caller asked about, in the agency timezone.
        now: Current instant, in the agency timezone.
        limit: Maximum number of arrivals to return.

    Returns:
        Merged arrivals, each tagged with its source.
    """
    realtime: list[Arrival] = []
    if is_within_realtime_window(request_time, now):
        realtime = get_realtime_arrivals(index, store.trip_updates.get(), stop_id, now, limit)
    else:
        logger.debug(f"Request time {request_time.isoformat()} outside realtime window")

    scheduled = get_scheduled_arrivals(index, stop_id, request_time, limit)
    return merge_arrivals(realtime, scheduled, limit)
