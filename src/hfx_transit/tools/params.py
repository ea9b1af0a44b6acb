"""Request parameter helpers shared by the MCP tools."""

from datetime import datetime, tzinfo

from mcp.server.fastmcp import Context

from hfx_transit.app import AppContext
from hfx_transit.errors import InvalidRequestError


def get_app_context(ctx: Context) -> AppContext:
    """Get the shared index/store handle from the lifespan context."""
    return ctx.request_context.lifespan_context


def require_param(value: str | None, name: str) -> str:
    """Return a stripped required parameter.

    Raises:
        InvalidRequestError: If the parameter is missing or blank.
    """
    if value is None or not value.strip():
        raise InvalidRequestError(f"{name} query parameter is required.")
    return value.strip()


def parse_request_time(value: str | None, tz: tzinfo, now: datetime) -> datetime:
    """Parse an optional ISO-8601 request time in the agency timezone.

    Missing or unparsable values fall back to `now`. Naive values are taken
    as local wall-clock time.
    """
    if value is None or not value.strip():
        return now
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return now
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)
