"""Failure taxonomy for searches, the cache and persisted storage."""

RATE_LIMIT_MESSAGE = "GitHub API rate limit exceeded. Please try again later."
NETWORK_MESSAGE = "Network error. Please check your connection and try again."
GENERIC_MESSAGE = "An error occurred while searching"


class SearchError(Exception):
    """Base class for everything a search can fail with."""


class RateLimitExceeded(SearchError):
    """The quota latch is active and no fallback result was available."""

    def __init__(self, message: str = RATE_LIMIT_MESSAGE):
        super().__init__(message)


class NetworkError(SearchError):
    """The request never produced a response."""


class RemoteError(SearchError):
    """GitHub answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class CacheCorrupt(Exception):
    """A persisted cache entry could not be parsed. Treated as a miss."""


class StorageUnavailable(Exception):
    """The storage directory could not be read or written."""
