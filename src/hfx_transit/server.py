import argparse
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from hfx_transit.app import mcp
from hfx_transit.data.config import get_transit_config
from hfx_transit.errors import DataIntegrityError

# Register tools on the shared MCP instance
from hfx_transit.tools import arrivals_tools, realtime_tools, static_tools  # noqa: F401

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the Halifax Transit MCP server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from hfx_transit import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


def run_check(gtfs_path: Path) -> int:
    """Build the static index once and print its table counts."""
    from hfx_transit.data.gtfs_loader import load_static_index

    try:
        index = load_static_index(gtfs_path)
    except DataIntegrityError as e:
        logger.error(f"GTFS static data failed to load: {e}")
        return 1

    print("\nStatic index built. Counts:")
    for table, count in index.counts().items():
        print(f"  {table}: {count:,}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="hfx-transit",
        description="Halifax Transit MCP Server",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Run the MCP server (default)")

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Build the static index from a GTFS archive and report counts",
    )
    check_parser.add_argument(
        "gtfs_path",
        type=Path,
        nargs="?",
        default=None,
        help="Path to GTFS ZIP file or directory (default: HFX_GTFS_PATH or google_transit.zip)",
    )

    args = parser.parse_args()

    # Configure logging (stderr, stdout belongs to the MCP stdio transport)
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "check":
        gtfs_path = args.gtfs_path or get_transit_config().static_archive_path
        sys.exit(run_check(gtfs_path))
    else:
        # Default: run MCP server
        mcp.run()


if __name__ == "__main__":
    main()
