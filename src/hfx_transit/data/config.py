from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TransitConfig(BaseSettings):
    """Configuration for the static archive, GTFS-RT feeds and poll loop.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    static_archive_path: Path = Field(default=Path("google_transit.zip"), alias="HFX_GTFS_PATH")
    vehicle_positions_url: str = Field(
        default="https://gtfs.halifax.ca/realtime/Vehicle/VehiclePositions.pb",
        alias="HFX_VEHICLE_POSITIONS_URL",
    )
    trip_updates_url: str = Field(
        default="https://gtfs.halifax.ca/realtime/TripUpdate/TripUpdates.pb",
        alias="HFX_TRIP_UPDATES_URL",
    )
    api_key: str | None = Field(default=None, alias="HFX_API_KEY")

    # poll loop
    poll_interval_seconds: float = Field(default=5.0, alias="HFX_POLL_INTERVAL")
    request_timeout_seconds: float = Field(default=10.0, alias="HFX_REQUEST_TIMEOUT")

    # agency timezone used for schedule wall-clock arithmetic
    timezone: str = Field(default="America/Halifax", alias="HFX_TIMEZONE")

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache
def get_transit_config() -> TransitConfig:
    """Get transit configuration (cached singleton).

    Returns:
        TransitConfig with values from .env file or environment variables.
    """
    return TransitConfig()
