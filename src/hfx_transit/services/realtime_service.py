"""Background poll loop that keeps the GTFS-RT snapshots current.

Each cycle fetches both feeds independently. Starting a new cycle cancels
the previous one if it is still in flight, and every result is checked
against the newest generation before it is published, so an older snapshot
can never overwrite a newer one. Fetch errors are logged and the previous
snapshot stays in place until the next cycle.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from hfx_transit.data.snapshot import RealtimeStore, SnapshotSlot
from hfx_transit.errors import FeedUnavailableError
from hfx_transit.models.realtime import TripUpdatesData, VehiclePositionsData

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0

T = TypeVar("T")


class FeedClient(Protocol):
    async def fetch_vehicle_positions(self) -> VehiclePositionsData: ...

    async def fetch_trip_updates(self) -> TripUpdatesData: ...


class RealtimePoller:
    """Polls both GTFS-RT feeds on a fixed interval into a RealtimeStore.

    Usage:
        poller = RealtimePoller(client, store)
        poller.start()
        ...
        await poller.stop()
    """

    def __init__(
        self,
        client: FeedClient,
        store: RealtimeStore,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ):
        self._client = client
        self._store = store
        self._interval = interval
        self._generation = 0
        self._inflight: asyncio.Task[None] | None = None
        self._loop_task: asyncio.Task[None] | None = None

    @property
    def generation(self) -> int:
        """Generation number of the most recently started cycle."""
        return self._generation

    def start_cycle(self) -> asyncio.Task[None]:
        """Start a new poll cycle, superseding any cycle still in flight."""
        if self._inflight is not None and not self._inflight.done():
            logger.debug(f"Cancelling superseded poll cycle {self._generation}")
            self._inflight.cancel()

        self._generation += 1
        self._inflight = asyncio.create_task(self._run_cycle(self._generation))
        return self._inflight

    async def poll_once(self) -> None:
        """Run one poll cycle until it finishes or is superseded."""
        await asyncio.wait({self.start_cycle()})

    async def run(self) -> None:
        """Start a cycle every interval until cancelled."""
        while True:
            self.start_cycle()
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Start the poll loop as a background task."""
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self.run())
            logger.info(f"Realtime poller started (every {self._interval:g}s)")

    async def stop(self) -> None:
        """Stop the poll loop and abandon any in-flight cycle."""
        tasks = [t for t in (self._loop_task, self._inflight) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._inflight = None
        logger.info("Realtime poller stopped")

    async def _run_cycle(self, generation: int) -> None:
        await asyncio.gather(
            self._refresh(
                "vehicle positions",
                self._client.fetch_vehicle_positions,
                self._store.vehicles,
                generation,
            ),
            self._refresh(
                "trip updates",
                self._client.fetch_trip_updates,
                self._store.trip_updates,
                generation,
            ),
        )

    async def _refresh(
        self,
        feed_name: str,
        fetch: Callable[[], Awaitable[T]],
        slot: SnapshotSlot[T],
        generation: int,
    ) -> None:
        """Fetch one feed and publish it if this cycle is still the newest."""
        try:
            data = await fetch()
        except FeedUnavailableError as e:
            logger.warning(f"Failed to refresh {feed_name}, keeping previous snapshot: {e}")
            return

        if generation != self._generation:
            logger.debug(f"Discarding stale {feed_name} from cycle {generation}")
            return

        if slot.publish(data, generation):
            logger.debug(f"Published {feed_name} snapshot for cycle {generation}")
