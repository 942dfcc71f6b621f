"""Error taxonomy for feed retrieval and request handling."""


class FeedError(Exception):
    """Base class for errors reported to the transport layer."""


class FetchError(FeedError):
    """Raised when a feed cannot be retrieved (transport failure or bad status)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class ParseError(FeedError):
    """Raised when a feed body is not a parseable calendar."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to parse feed {url}: {reason}")
        self.url = url
        self.reason = reason


class ValidationError(FeedError):
    """Raised when a required request parameter is missing or invalid."""
