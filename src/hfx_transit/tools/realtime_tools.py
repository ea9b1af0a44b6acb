from mcp.server.fastmcp import Context

from hfx_transit.app import mcp
from hfx_transit.models.responses import VehiclesResponse
from hfx_transit.services.map_service import get_vehicles_now
from hfx_transit.tools.params import get_app_context


@mcp.tool()
def get_vehicles(ctx: Context) -> VehiclesResponse:
    """Get the live positions of all buses from the latest GTFS-RT poll.

    Each vehicle carries its own capture timestamp; `fetched_at` tells when
    the snapshot was fetched. Empty until the first successful poll.
    """
    store = get_app_context(ctx).store
    vehicles = get_vehicles_now(store)
    snapshot = store.vehicles.get()
    return VehiclesResponse(
        vehicles=vehicles,
        count=len(vehicles),
        fetched_at=snapshot.fetched_at if snapshot else None,
    )
