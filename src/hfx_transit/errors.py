"""Error taxonomy shared across the loader, feed client and tools."""


class TransitError(Exception):
    """Base class for transit data errors."""


class DataIntegrityError(TransitError):
    """A required static GTFS table is missing or cannot be parsed."""


class FeedUnavailableError(TransitError):
    """A GTFS-RT feed could not be fetched or decoded."""

    def __init__(self, feed: str, message: str):
        super().__init__(f"{feed}: {message}")
        self.feed = feed


class InvalidRequestError(TransitError):
    """A required request parameter is missing."""
