"""MCP application instance.

This module exists to avoid circular import issues when running with `python -m`.
All tool modules should import `mcp` from here, not from server.py.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP

from hfx_transit.data.config import TransitConfig, get_transit_config
from hfx_transit.data.gtfs_loader import load_static_index
from hfx_transit.data.gtfsrt_client import GTFSRTClient
from hfx_transit.data.snapshot import RealtimeStore
from hfx_transit.data.static_index import StaticIndex
from hfx_transit.services.realtime_service import RealtimePoller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContext:
    """Shared read-only state handed to every tool call."""

    index: StaticIndex
    store: RealtimeStore
    config: TransitConfig


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Build the static index, then poll GTFS-RT for the server's lifetime.

    A DataIntegrityError from the index build propagates, so the server never
    starts serving without static data.
    """
    config = get_transit_config()
    index = await asyncio.to_thread(load_static_index, config.static_archive_path)
    store = RealtimeStore()

    async with GTFSRTClient(config) as client:
        poller = RealtimePoller(client, store, interval=config.poll_interval_seconds)
        poller.start()
        try:
            yield AppContext(index=index, store=store, config=config)
        finally:
            await poller.stop()


# Initialize the MCP server
mcp = FastMCP(
    "Halifax Transit",
    instructions="Halifax Transit bus information - stop arrivals, route shapes and live vehicle positions",
    lifespan=app_lifespan,
)
