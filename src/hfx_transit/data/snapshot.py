"""Atomically replaced holders for the current GTFS-RT snapshots."""

from typing import Generic, TypeVar

from hfx_transit.models.realtime import TripUpdatesData, VehiclePositionsData

T = TypeVar("T")


class SnapshotSlot(Generic[T]):
    """Single-value holder for one feed's current snapshot.

    Publishing swaps the stored reference in one assignment, so readers see
    either the previous snapshot or the new one in full. Snapshots are
    versioned by the poll generation that produced them and a slot never goes
    back to an older generation.
    """

    def __init__(self) -> None:
        self._current: tuple[int, T] | None = None

    def get(self) -> T | None:
        """Get the current snapshot, or None before the first publish."""
        current = self._current
        return current[1] if current is not None else None

    @property
    def generation(self) -> int:
        """Generation of the current snapshot (0 before the first publish)."""
        current = self._current
        return current[0] if current is not None else 0

    def publish(self, value: T, generation: int) -> bool:
        """Replace the snapshot unless it comes from an older generation.

        Args:
            value: The new snapshot.
            generation: Poll generation that produced it.

        Returns:
            True if the snapshot was stored, False if it was stale.
        """
        if generation < self.generation:
            return False
        self._current = (generation, value)
        return True


class RealtimeStore:
    """Current vehicle positions and trip updates snapshots.

    Only the poll loop writes; request handlers read. The two feeds are
    refreshed independently, so one may be a cycle ahead of the other.
    """

    def __init__(self) -> None:
        self.vehicles: SnapshotSlot[VehiclePositionsData] = SnapshotSlot()
        self.trip_updates: SnapshotSlot[TripUpdatesData] = SnapshotSlot()
