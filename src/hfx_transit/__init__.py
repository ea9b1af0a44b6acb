"""Halifax Transit MCP server: GTFS schedule and GTFS-RT arrivals."""

__version__ = "0.1.0"
