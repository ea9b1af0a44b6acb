"""GTFS time and date literals: HH:MM:SS times past midnight and YYYYMMDD dates."""

from datetime import date, datetime


def parse_gtfs_time(time_str: str) -> tuple[int, int, int]:
    """Parse a GTFS time string into hours, minutes, seconds.

    GTFS times can exceed 24:00:00 for trips that extend past midnight.
    For example, "25:30:00" means 1:30 AM the next day. The seconds
    component is optional ("8:05" is accepted).

    Args:
        time_str: Time string in HH:MM:SS or HH:MM format (hours can exceed 24).

    Returns:
        Tuple of (hours, minutes, seconds).

    Raises:
        ValueError: If the time string is invalid.
    """
    parts = time_str.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid GTFS time format: {time_str}")

    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) == 3 else 0
    except ValueError as e:
        raise ValueError(f"Invalid GTFS time format: {time_str}") from e

    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise ValueError(f"Invalid GTFS time format: {time_str}")

    return hours, minutes, seconds


def gtfs_time_to_seconds(time_str: str) -> int:
    """Convert a GTFS time string to seconds since midnight.

    Args:
        time_str: Time string in HH:MM:SS format.

    Returns:
        Total seconds since midnight (can exceed 86400 for next-day times).
    """
    hours, minutes, seconds = parse_gtfs_time(time_str)
    return hours * 3600 + minutes * 60 + seconds


def safe_gtfs_time_to_seconds(time_str: str | None) -> int | None:
    """Like gtfs_time_to_seconds but returns None for blank or invalid input."""
    if not time_str:
        return None
    try:
        return gtfs_time_to_seconds(time_str)
    except ValueError:
        return None


def format_time_label(time_str: str) -> str:
    """Format a GTFS time string as an HH:MM display label.

    Hours past midnight wrap around, so "25:30:00" is shown as "01:30".
    """
    hours, minutes, _ = parse_gtfs_time(time_str)
    return f"{hours % 24:02d}:{minutes:02d}"


def seconds_since_midnight(dt: datetime) -> int:
    """Wall-clock seconds since midnight for a datetime."""
    return dt.hour * 3600 + dt.minute * 60 + dt.second


def parse_gtfs_date(date_str: str) -> date:
    """Parse a GTFS YYYYMMDD date literal.

    Raises:
        ValueError: If the value is not an 8-digit valid date.
    """
    cleaned = date_str.strip()
    if len(cleaned) != 8 or not cleaned.isdigit():
        raise ValueError(f"Invalid GTFS date format: {date_str!r}")
    return date(int(cleaned[:4]), int(cleaned[4:6]), int(cleaned[6:]))
